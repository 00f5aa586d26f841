"""Chat router: streamed concierge endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from src.concierge.config import DEFAULT_MODEL
from src.concierge.context import assemble_context, pending_turns, to_model_messages
from src.concierge.errors import ModelInvocationError
from src.concierge.locales import DEFAULT_LOCALE, FAILURE_MESSAGES, FALLBACK_MESSAGES, Locale, localized
from src.concierge.loop import LoopOptions, run_loop
from src.concierge.models import Turn
from src.concierge.persistence import ConciergeStore
from src.concierge.providers import LLMProvider
from src.concierge.recorder import ExchangeRecorder
from src.concierge.streaming import ResponseStream
from src.concierge.system_prompt_loader import get_system_prompt
from src.concierge.tools import ToolRegistry

from .dependencies import get_llm_provider, get_recorder, get_registry, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


class ChatRequest(BaseModel):
    """Request body for POST /api/chat."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    messages: list[Turn] = Field(
        ...,
        min_length=1,
        description="Visible conversation, oldest first; the last user turns are the new utterance",
    )
    session_id: str | None = Field(
        None,
        alias="sessionId",
        description="Optional session id; enables history load and persistence",
    )
    unit_number: str | None = Field(None, alias="unitNumber", description="Resident's unit, if known")
    locale: Locale = Field(DEFAULT_LOCALE, alias="language", description="Response language")


@router.post("/chat", response_class=StreamingResponse)
async def chat(
    request: ChatRequest,
    store: ConciergeStore = Depends(get_store),
    registry: ToolRegistry = Depends(get_registry),
    recorder: ExchangeRecorder = Depends(get_recorder),
    provider: LLMProvider | None = Depends(get_llm_provider),
) -> StreamingResponse:
    """Run the concierge loop and stream the answer as plain text. The exchange is saved in the background once the answer is complete."""
    turns = await assemble_context(request.messages, request.session_id, store)
    events = run_loop(
        to_model_messages(turns),
        system_prompt=get_system_prompt(request.locale, request.unit_number),
        registry=registry,
        options=LoopOptions(
            model=DEFAULT_MODEL,
            llm_provider=provider,
            fallback_text=localized(FALLBACK_MESSAGES, request.locale),
        ),
    )
    user_turns = pending_turns(request.messages)

    def _save(answer: str) -> None:
        recorder.schedule(request.session_id, request.unit_number, user_turns, answer)

    stream = ResponseStream(
        events,
        on_complete=_save,
        failure_text=localized(FAILURE_MESSAGES, request.locale),
    )
    try:
        await stream.start()
    except ModelInvocationError as e:
        logger.error("Chat failed before streaming: %s", e)
        raise HTTPException(status_code=502, detail="The concierge is unavailable right now.") from e
    return StreamingResponse(stream.iter_text(), media_type="text/plain; charset=utf-8")
