"""Context assembly: session history + the new turn, and conversion to chat messages."""

from __future__ import annotations

import json
import logging
from typing import Any

from .config import HISTORY_LIMIT
from .models import Message, Turn
from .persistence import ConciergeStore

logger = logging.getLogger(__name__)


def pending_turns(incoming: list[Turn]) -> list[Turn]:
    """The trailing user turns of a request, i.e. what the caller just said.

    Clients resend their visible transcript; everything up to the last
    assistant or tool turn is already in stored history. A transcript that
    ends on such a turn has nothing pending.
    """
    for idx in range(len(incoming) - 1, -1, -1):
        if incoming[idx].role != "user":
            return list(incoming[idx + 1:])
    return list(incoming)


async def assemble_context(
    incoming: list[Turn],
    session_id: str | None,
    store: ConciergeStore,
    *,
    limit: int = HISTORY_LIMIT,
) -> list[Turn]:
    """
    Build the ordered turn sequence for the model.

    Without a session id the result is exactly `incoming`. With one, the most
    recent `limit` exchanges are loaded, ordered oldest first, flattened, and
    followed by the pending user turns. A failed history fetch degrades to
    stateless mode for this turn.
    """
    if not session_id:
        return list(incoming)
    try:
        exchanges = await store.fetch_recent_exchanges(session_id, limit)
    except Exception as e:
        logger.warning("History unavailable for session %s, continuing without it: %s", session_id, e)
        return list(incoming)
    if not exchanges:
        return list(incoming)

    history = [turn for ex in sorted(exchanges, key=lambda ex: ex.created_at) for turn in ex.turns]
    return history + pending_turns(incoming)


def _result_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, default=str)


def to_model_messages(turns: list[Turn]) -> list[Message]:
    """Flatten turns into chat messages, keeping part order.

    Text and tool-call parts accumulate into one assistant message; a
    tool-result part closes it and becomes its own `tool` message, so text
    that follows a result starts a new assistant message.
    """
    messages: list[Message] = []
    for turn in turns:
        if turn.role == "user":
            messages.append(Message(role="user", content=turn.text))
            continue

        text: list[str] = []
        calls: list[dict[str, Any]] = []

        def flush() -> None:
            if text or calls:
                messages.append(
                    Message(role="assistant", content="".join(text), tool_calls=list(calls) or None)
                )
            text.clear()
            calls.clear()

        for part in turn.parts:
            if part.type == "text":
                text.append(part.text or "")
            elif part.type == "tool-call":
                calls.append({"id": part.tool_call_id or "", "name": part.tool_name or "", "params": part.args or {}})
            else:
                flush()
                messages.append(
                    Message(
                        role="tool",
                        content=_result_text(part.result),
                        tool_call_id=part.tool_call_id,
                        name=part.tool_name,
                    )
                )
        flush()
    return messages
