"""Main model–tool loop orchestrator."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from .config import DEFAULT_MAX_STEPS, DEFAULT_MODEL
from .llm import stream_chat
from .locales import FALLBACK_MESSAGES, localized
from .models import Message, ToolResult
from .providers import LLMProvider
from .tools import ToolRegistry, invoke_tool

logger = logging.getLogger(__name__)

FINISH_STOP = "stop"
FINISH_STEP_BUDGET = "step_budget"


@dataclass
class LoopOptions:
    """Options for the model–tool loop."""

    model: str = DEFAULT_MODEL
    max_steps: int = DEFAULT_MAX_STEPS
    parallel_tool_calls: bool = False
    llm_provider: LLMProvider | None = None
    fallback_text: str = field(default_factory=lambda: localized(FALLBACK_MESSAGES, None))


@dataclass
class LoopEvent:
    """One event surfaced by the loop.

    type: "text_delta" | "tool_result" | "finish"
    """

    type: str
    content: str = ""
    step: int = 0
    tool_call: dict[str, Any] | None = None
    result: ToolResult | None = None
    finish_reason: str | None = None


async def _resolve_tool_calls(
    registry: ToolRegistry,
    tool_calls: list[dict[str, Any]],
    parallel: bool,
) -> list[ToolResult]:
    """Run one step's tool calls; results come back in emission order."""
    if parallel:
        return list(await asyncio.gather(*(invoke_tool(registry, tc) for tc in tool_calls)))
    results = []
    for tc in tool_calls:
        results.append(await invoke_tool(registry, tc))
    return results


async def run_loop(
    messages: list[Message],
    *,
    system_prompt: str,
    registry: ToolRegistry,
    options: LoopOptions | None = None,
) -> AsyncIterator[LoopEvent]:
    """
    Run one model–tool loop: submit the conversation, execute any requested
    tools, feed their results back, and repeat until the model answers in
    text or `max_steps` submissions have been made.

    Text deltas are yielded as soon as the model produces them. The last
    event is always "finish", carrying the full text delivered to the caller;
    if the model never produced text, the fallback text is emitted first.

    Raises ModelInvocationError when the model service fails.
    """
    opts = options or LoopOptions()
    tool_schemas = registry.tool_schemas()
    conversation = list(messages)
    if system_prompt:
        conversation.insert(0, Message(role="system", content=system_prompt))

    delivered: list[str] = []
    finish_reason = FINISH_STEP_BUDGET

    for step in range(1, opts.max_steps + 1):
        step_text: list[str] = []
        tool_calls: list[dict[str, Any]] = []
        async for chunk in stream_chat(
            conversation,
            model=opts.model,
            tools=tool_schemas or None,
            provider=opts.llm_provider,
        ):
            if chunk.type == "text_delta" and chunk.content:
                step_text.append(chunk.content)
                delivered.append(chunk.content)
                yield LoopEvent(type="text_delta", content=chunk.content, step=step)
            elif chunk.type == "done" and chunk.tool_calls:
                tool_calls = list(chunk.tool_calls)

        content = "".join(step_text)
        if not tool_calls:
            conversation.append(Message(role="assistant", content=content))
            finish_reason = FINISH_STOP
            break

        conversation.append(
            Message(
                role="assistant",
                content=content,
                tool_calls=[{"id": tc.get("id"), "name": tc.get("name"), "params": tc.get("params", {})} for tc in tool_calls],
            )
        )
        logger.info("Step %d: executing %d tool call(s)", step, len(tool_calls))
        results = await _resolve_tool_calls(registry, tool_calls, opts.parallel_tool_calls)
        for tc, result in zip(tool_calls, results):
            conversation.append(
                Message(role="tool", content=result.to_text(), tool_call_id=tc.get("id", ""), name=tc.get("name", ""))
            )
            yield LoopEvent(type="tool_result", step=step, tool_call=tc, result=result)
    else:
        logger.warning("Step budget of %d exhausted before a final answer", opts.max_steps)

    final_text = "".join(delivered)
    if not final_text.strip():
        final_text = opts.fallback_text
        yield LoopEvent(type="text_delta", content=final_text)
    yield LoopEvent(type="finish", content=final_text, finish_reason=finish_reason)
