"""Exchange recorder: append the finished turn to session history in the background."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from .models import Exchange, Turn
from .persistence import ConciergeStore

logger = logging.getLogger(__name__)


class ExchangeRecorder:
    """Fire-and-forget persistence of (user turns, assistant answer) per session."""

    def __init__(self, store: ConciergeStore) -> None:
        self._store = store
        self._pending: set[asyncio.Task[bool]] = set()

    @staticmethod
    def build_exchange(
        session_id: str,
        unit_number: str | None,
        user_turns: list[Turn],
        answer: str,
    ) -> Exchange:
        return Exchange(
            session_id=session_id,
            unit_number=unit_number,
            turns=[*user_turns, Turn.text_turn("assistant", answer)],
            created_at=datetime.now(timezone.utc),
        )

    async def record(self, exchange: Exchange) -> bool:
        """Append one exchange. Failures are logged and reported as False."""
        try:
            await self._store.append_exchange(exchange)
        except Exception:
            logger.exception("Failed to save conversation for session %s", exchange.session_id)
            return False
        return True

    def schedule(
        self,
        session_id: str | None,
        unit_number: str | None,
        user_turns: list[Turn],
        answer: str,
    ) -> asyncio.Task[bool] | None:
        """Start the write without waiting for it. No session id means nothing to record."""
        if not session_id:
            return None
        exchange = self.build_exchange(session_id, unit_number, user_turns, answer)
        task = asyncio.get_running_loop().create_task(self.record(exchange))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight writes (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
