"""OpenAI LLM provider for the concierge loop."""

from __future__ import annotations

import json
import os
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..models import Message
from .base import LLMProvider, StreamChunk


def _parse_arguments(raw_args: Any) -> dict[str, Any]:
    """Decode function-call arguments; malformed JSON becomes an empty dict."""
    if isinstance(raw_args, dict):
        return raw_args
    if isinstance(raw_args, str) and raw_args:
        try:
            params = json.loads(raw_args)
        except json.JSONDecodeError:
            return {}
        return params if isinstance(params, dict) else {}
    return {}


class OpenAIProvider(LLMProvider):
    """OpenAI-backed LLM provider using the Chat Completions API."""

    def __init__(
        self,
        default_model: str = "gpt-4o",
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        self.default_model = default_model
        self.api_key = api_key or os.getenv("OPENAI_API_KEY") or ""
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL")
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            kwargs: dict[str, Any] = {"api_key": self.api_key}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    @staticmethod
    def _to_openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
        """Convert internal Message objects into OpenAI chat message dicts."""
        out: list[dict[str, Any]] = []
        for m in messages:
            base: dict[str, Any] = {"role": m.role, "content": m.content or ""}
            if m.role == "assistant" and m.tool_calls:
                oa_tool_calls: list[dict[str, Any]] = []
                for tc in m.tool_calls:
                    name = tc.get("name", "") or ""
                    if not name:
                        continue
                    raw_args = tc.get("params") or tc.get("arguments") or {}
                    args_str = raw_args if isinstance(raw_args, str) else json.dumps(raw_args, default=str)
                    oa_tool_calls.append(
                        {
                            "id": tc.get("id") or "",
                            "type": "function",
                            "function": {"name": name, "arguments": args_str},
                        }
                    )
                if oa_tool_calls:
                    base["tool_calls"] = oa_tool_calls
            if m.role == "tool" and m.tool_call_id:
                base["tool_call_id"] = m.tool_call_id
            out.append(base)
        return out

    def _request_params(
        self,
        messages: list[Message],
        model: str | None,
        tools: list[dict[str, Any]] | None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": model or self.default_model,
            "messages": self._to_openai_messages(messages),
            **kwargs,
        }
        if tools:
            params["tools"] = tools
        return params

    async def stream_chat(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[StreamChunk]:
        """Streaming chat; yields text deltas and a final done chunk."""
        client = self._get_client()
        params = self._request_params(messages, model, tools, stream=True, **kwargs)
        stream = await client.chat.completions.create(**params)

        content_parts: list[str] = []
        # Tool-call arguments arrive as fragments keyed by index
        tool_calls_buffer: dict[int, dict[str, Any]] = {}

        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = getattr(chunk.choices[0], "delta", None)
            if delta is None:
                continue

            if getattr(delta, "content", None):
                content_parts.append(delta.content)
                yield StreamChunk(type="text_delta", content=delta.content)

            for tc in getattr(delta, "tool_calls", None) or []:
                idx = getattr(tc, "index", 0)
                buf = tool_calls_buffer.setdefault(
                    idx,
                    {"id": getattr(tc, "id", "") or f"call_{idx}", "name": "", "arguments": ""},
                )
                fn = getattr(tc, "function", None)
                if fn is not None:
                    if getattr(fn, "name", None):
                        buf["name"] = fn.name
                    if getattr(fn, "arguments", None):
                        buf["arguments"] += fn.arguments

        final_tool_calls = [
            {"id": buf["id"], "name": buf["name"], "params": _parse_arguments(buf["arguments"])}
            for _, buf in sorted(tool_calls_buffer.items())
        ]
        yield StreamChunk(
            type="done",
            content="".join(content_parts),
            tool_calls=final_tool_calls or None,
        )
