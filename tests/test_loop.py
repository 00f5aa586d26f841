"""Unit tests for the model–tool loop with a scripted provider."""
from __future__ import annotations

import asyncio
import unittest

from src.concierge.errors import ModelInvocationError
from src.concierge.loop import FINISH_STEP_BUDGET, FINISH_STOP, LoopEvent, LoopOptions, run_loop
from src.concierge.models import Message, ToolResult
from src.concierge.tools import ToolRegistry

from tests.fakes import ScriptedProvider, SpyTool, tool_call

USER = [Message(role="user", content="Do I have any packages?")]


async def _collect(provider: ScriptedProvider, registry: ToolRegistry, **opts) -> list[LoopEvent]:
    options = LoopOptions(llm_provider=provider, fallback_text="Fallback.", **opts)
    return [
        event
        async for event in run_loop(USER, system_prompt="You are Tides.", registry=registry, options=options)
    ]


def _text(events: list[LoopEvent]) -> str:
    return "".join(e.content for e in events if e.type == "text_delta")


class TestLoop(unittest.IsolatedAsyncioTestCase):
    async def test_plain_answer_finishes_in_one_step(self) -> None:
        provider = ScriptedProvider([(["Hello, ", "how can I help?"], None)])
        events = await _collect(provider, ToolRegistry([SpyTool()]))
        self.assertEqual(provider.calls, 1)
        self.assertEqual(_text(events), "Hello, how can I help?")
        self.assertEqual(events[-1].type, "finish")
        self.assertEqual(events[-1].finish_reason, FINISH_STOP)
        self.assertEqual(events[-1].content, "Hello, how can I help?")

    async def test_system_prompt_and_tools_are_submitted(self) -> None:
        provider = ScriptedProvider([(["Hi."], None)])
        await _collect(provider, ToolRegistry([SpyTool()]))
        first = provider.submissions[0]
        self.assertEqual(first[0].role, "system")
        self.assertEqual(first[0].content, "You are Tides.")
        self.assertEqual(first[1].content, "Do I have any packages?")
        self.assertEqual(provider.tools_seen[0][0]["function"]["name"], "spy")

    async def test_all_tool_results_precede_next_submission_in_order(self) -> None:
        spy = SpyTool()
        provider = ScriptedProvider([
            (["Checking that for you... "], [
                tool_call("spy", "c1", unit_number="101"),
                tool_call("spy", "c2", unit_number="102"),
                tool_call("spy", "c3", unit_number="103"),
            ]),
            (["All done."], None),
        ])
        events = await _collect(provider, ToolRegistry([spy]))

        second = provider.submissions[1]
        assistant = second[-4]
        self.assertEqual(assistant.role, "assistant")
        self.assertEqual([tc["id"] for tc in assistant.tool_calls], ["c1", "c2", "c3"])
        tool_msgs = second[-3:]
        self.assertEqual([m.role for m in tool_msgs], ["tool", "tool", "tool"])
        self.assertEqual([m.tool_call_id for m in tool_msgs], ["c1", "c2", "c3"])
        self.assertEqual([m.content for m in tool_msgs], ["ok:101", "ok:102", "ok:103"])

        results = [e for e in events if e.type == "tool_result"]
        self.assertEqual([e.tool_call["id"] for e in results], ["c1", "c2", "c3"])
        self.assertEqual(_text(events), "Checking that for you... All done.")
        self.assertEqual(events[-1].finish_reason, FINISH_STOP)

    async def test_parallel_tool_calls_keep_emission_order(self) -> None:
        class SlowFirst(SpyTool):
            async def execute(self, args):
                if args.unit_number == "1":
                    await asyncio.sleep(0.05)
                return ToolResult(success=True, content=f"done:{args.unit_number}")

        provider = ScriptedProvider([
            ([], [tool_call("spy", "a", unit_number="1"), tool_call("spy", "b", unit_number="2")]),
            (["ok"], None),
        ])
        await _collect(provider, ToolRegistry([SlowFirst()]), parallel_tool_calls=True)
        tool_msgs = [m for m in provider.submissions[1] if m.role == "tool"]
        self.assertEqual([m.content for m in tool_msgs], ["done:1", "done:2"])

    async def test_step_budget_bounds_submissions(self) -> None:
        provider = ScriptedProvider([([], [tool_call("spy", unit_number="101")])])
        events = await _collect(provider, ToolRegistry([SpyTool()]), max_steps=3)
        self.assertEqual(provider.calls, 3)
        self.assertEqual(events[-1].finish_reason, FINISH_STEP_BUDGET)
        self.assertEqual(events[-1].content, "Fallback.")
        self.assertEqual(_text(events), "Fallback.")

    async def test_step_budget_keeps_partial_text(self) -> None:
        provider = ScriptedProvider([(["Still looking. "], [tool_call("spy", unit_number="101")])])
        events = await _collect(provider, ToolRegistry([SpyTool()]), max_steps=2)
        self.assertEqual(provider.calls, 2)
        self.assertEqual(events[-1].content, "Still looking. Still looking. ")
        self.assertNotIn("Fallback.", _text(events))

    async def test_empty_answer_gets_fallback(self) -> None:
        provider = ScriptedProvider([([], None)])
        events = await _collect(provider, ToolRegistry([SpyTool()]))
        self.assertEqual(events[-1].finish_reason, FINISH_STOP)
        self.assertEqual(_text(events), "Fallback.")

    async def test_invalid_arguments_never_reach_tool_body(self) -> None:
        spy = SpyTool()
        provider = ScriptedProvider([
            ([], [tool_call("spy", "c1", wrong="x")]),
            (["Sorry, that did not work."], None),
        ])
        events = await _collect(provider, ToolRegistry([spy]))
        self.assertEqual(spy.executed, [])
        tool_msg = provider.submissions[1][-1]
        self.assertEqual(tool_msg.role, "tool")
        self.assertTrue(tool_msg.content.startswith("Error: Invalid arguments for spy"))
        result = next(e for e in events if e.type == "tool_result").result
        self.assertFalse(result.success)

    async def test_tool_fault_is_fed_back_not_raised(self) -> None:
        provider = ScriptedProvider([
            ([], [tool_call("spy", unit_number="101")]),
            (["Something went wrong with that."], None),
        ])
        events = await _collect(provider, ToolRegistry([SpyTool(error=RuntimeError("db exploded"))]))
        self.assertEqual(events[-1].finish_reason, FINISH_STOP)
        self.assertTrue(provider.submissions[1][-1].content.startswith("Error: "))

    async def test_model_failure_propagates(self) -> None:
        provider = ScriptedProvider([ConnectionError("unreachable")])
        with self.assertRaises(ModelInvocationError):
            await _collect(provider, ToolRegistry([SpyTool()]))

    async def test_input_messages_are_not_mutated(self) -> None:
        provider = ScriptedProvider([([], [tool_call("spy", unit_number="1")]), (["ok"], None)])
        messages = list(USER)
        await _collect(provider, ToolRegistry([SpyTool()]))
        self.assertEqual(messages, USER)
        self.assertEqual(len(USER), 1)


if __name__ == "__main__":
    unittest.main()
