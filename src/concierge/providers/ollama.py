"""Ollama LLM provider, for running the concierge against a local model."""

from __future__ import annotations

import json
import uuid
from collections.abc import AsyncIterator
from typing import Any

from ollama import AsyncClient

from ..models import Message
from .base import LLMProvider, StreamChunk


def _message_to_chat(m: Message) -> dict[str, Any]:
    """Convert our Message to Ollama chat format."""
    out: dict[str, Any] = {"role": m.role, "content": m.content or ""}
    if m.tool_calls:
        out["tool_calls"] = [
            {
                "function": {
                    "name": tc.get("name", ""),
                    "arguments": tc.get("params") or tc.get("arguments") or {},
                },
            }
            for tc in m.tool_calls
        ]
    if m.role == "tool" and m.name:
        out["tool_name"] = m.name
    return out


class OllamaProvider(LLMProvider):
    """Ollama-backed LLM provider."""

    def __init__(self, default_model: str = "llama3.2", base_url: str | None = None):
        self.default_model = default_model
        self.base_url = base_url or "http://localhost:11434"

    async def stream_chat(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[StreamChunk]:
        client = AsyncClient(host=self.base_url)
        stream = await client.chat(
            model=model or self.default_model,
            messages=[_message_to_chat(m) for m in messages],
            tools=tools or None,
            stream=True,
            **kwargs,
        )
        content_parts: list[str] = []
        final_tool_calls: list[dict[str, Any]] = []
        async for chunk in stream:
            msg = getattr(chunk, "message", None)
            if msg is None:
                continue
            delta = getattr(msg, "content", None) or ""
            if delta:
                content_parts.append(delta)
                yield StreamChunk(type="text_delta", content=delta)
            for tc in getattr(msg, "tool_calls", None) or []:
                fn = getattr(tc, "function", None)
                if fn is None:
                    continue
                args = getattr(fn, "arguments", None)
                if isinstance(args, str):
                    try:
                        args = json.loads(args)
                    except json.JSONDecodeError:
                        args = {}
                final_tool_calls.append({
                    "id": str(uuid.uuid4()),
                    "name": getattr(fn, "name", "") or "",
                    "params": args if isinstance(args, dict) else {},
                })
        yield StreamChunk(
            type="done",
            content="".join(content_parts),
            tool_calls=final_tool_calls or None,
        )
