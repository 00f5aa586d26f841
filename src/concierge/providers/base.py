"""Abstract LLM provider interface for the concierge loop."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from ..models import Message


@dataclass
class StreamChunk:
    """One chunk from an LLM stream."""

    type: str  # "text_delta" | "done"
    content: str = ""
    tool_calls: list[dict[str, Any]] | None = None


class LLMProvider(ABC):
    """
    Abstract LLM provider. Implement this to plug in any backend (OpenAI, Ollama, ...).

    The orchestration loop only depends on this interface.
    """

    @abstractmethod
    async def stream_chat(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[StreamChunk]:
        """Stream chat; yields text deltas and a final done chunk (with optional tool_calls)."""
        ...
