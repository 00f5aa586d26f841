"""Streaming response emitter: forwards loop text to the caller as it arrives."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable

from .errors import ModelInvocationError
from .loop import LoopEvent

logger = logging.getLogger(__name__)


class ResponseStream:
    """Pass-through consumer of loop events with a tap on the delivered text.

    `start()` pulls the first event before any byte is sent so that a model
    failure on the first submission can still become an HTTP error. After
    that, `iter_text()` yields plain text chunks. When the loop finishes,
    `on_complete` receives the full answer; it is not called if the caller
    disconnects or the model fails mid-answer.
    """

    def __init__(
        self,
        events: AsyncGenerator[LoopEvent, None],
        *,
        on_complete: Callable[[str], None] | None = None,
        failure_text: str = "",
    ) -> None:
        self._events = events
        self._on_complete = on_complete
        self._failure_text = failure_text
        self._first: LoopEvent | None = None
        self._started = False
        self._chunks: list[str] = []
        self.final_text: str | None = None
        self.finish_reason: str | None = None

    @property
    def text(self) -> str:
        """Everything yielded to the caller so far."""
        return "".join(self._chunks)

    @property
    def completed(self) -> bool:
        return self.final_text is not None

    async def start(self) -> None:
        """Pull the first loop event. Raises ModelInvocationError if the model is down."""
        if self._started:
            return
        self._started = True
        try:
            self._first = await self._next_event()
        except BaseException:
            await self._events.aclose()
            raise

    async def _next_event(self) -> LoopEvent | None:
        try:
            return await self._events.__anext__()
        except StopAsyncIteration:
            return None

    async def iter_text(self) -> AsyncIterator[str]:
        try:
            await self.start()
            event, self._first = self._first, None
            while event is not None:
                if event.type == "text_delta" and event.content:
                    self._chunks.append(event.content)
                    yield event.content
                elif event.type == "finish":
                    self.final_text = event.content
                    self.finish_reason = event.finish_reason
                event = await self._next_event()
        except ModelInvocationError as e:
            logger.error("Model failed mid-answer: %s", e)
            if self._failure_text:
                self._chunks.append(self._failure_text)
                yield self._failure_text
            return
        finally:
            await self._events.aclose()

        if self.final_text is not None and self._on_complete is not None:
            self._on_complete(self.final_text)
