"""Scripted collaborators shared by the test modules."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from pydantic import BaseModel

from src.concierge.models import Message, ToolResult
from src.concierge.providers import LLMProvider, StreamChunk
from src.concierge.tools import BaseTool, UnitArgs


def tool_call(name: str, call_id: str = "call_1", **params: Any) -> dict[str, Any]:
    return {"id": call_id, "name": name, "params": params}


class ScriptedProvider(LLMProvider):
    """Replays one scripted step per model submission.

    Each step is (text_chunks, tool_calls) or an Exception to raise. When the
    script runs out, the last step repeats.
    """

    def __init__(self, steps: list[Any]) -> None:
        self.steps = steps
        self.submissions: list[list[Message]] = []
        self.tools_seen: list[list[dict[str, Any]] | None] = []

    @property
    def calls(self) -> int:
        return len(self.submissions)

    async def stream_chat(self, messages, *, model=None, tools=None, **kwargs) -> AsyncIterator[StreamChunk]:
        self.submissions.append(list(messages))
        self.tools_seen.append(tools)
        step = self.steps[min(len(self.submissions), len(self.steps)) - 1]
        if isinstance(step, Exception):
            raise step
        chunks, tool_calls = step
        for text in chunks:
            yield StreamChunk(type="text_delta", content=text)
        yield StreamChunk(type="done", content="".join(chunks), tool_calls=tool_calls or None)


class SpyTool(BaseTool):
    """Records every execution; optionally raises."""

    def __init__(self, name: str = "spy", content: str = "ok", error: Exception | None = None) -> None:
        self._name = name
        self._content = content
        self._error = error
        self.executed: list[BaseModel] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Test tool."

    @property
    def args_model(self) -> type[BaseModel]:
        return UnitArgs

    async def execute(self, args: UnitArgs) -> ToolResult:
        self.executed.append(args)
        if self._error is not None:
            raise self._error
        return ToolResult(success=True, content=f"{self._content}:{args.unit_number}")
