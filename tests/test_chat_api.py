"""End-to-end tests for POST /api/chat with a scripted model and a temp database."""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import httpx

from main import app
from src.concierge.errors import StorageError
from src.concierge.persistence import SQLiteConciergeStore
from src.concierge.recorder import ExchangeRecorder
from src.concierge.tools import build_registry
from src.routers.dependencies import get_llm_provider, get_recorder, get_registry, get_store

from tests.fakes import ScriptedProvider, tool_call


class FlakyStore(SQLiteConciergeStore):
    """History and/or exchange writes fail; building data works."""

    fail_history = False
    fail_append = False

    async def fetch_recent_exchanges(self, session_id, limit):
        if self.fail_history:
            raise StorageError("history unavailable")
        return await super().fetch_recent_exchanges(session_id, limit)

    async def append_exchange(self, exchange):
        if self.fail_append:
            raise StorageError("write rejected")
        await super().append_exchange(exchange)


class ChatApiTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = FlakyStore(Path(self._tmp.name) / "concierge.db")
        self.recorder = ExchangeRecorder(self.store)
        self.provider = ScriptedProvider([(["Hello!"], None)])
        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_registry] = lambda: build_registry(self.store)
        app.dependency_overrides[get_recorder] = lambda: self.recorder
        app.dependency_overrides[get_llm_provider] = lambda: self.provider

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.store.close()
        self._tmp.cleanup()

    async def _post(self, payload: dict) -> httpx.Response:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/chat", json=payload)
        await self.recorder.drain()
        return response

    @staticmethod
    def _payload(text: str, **extra) -> dict:
        return {"messages": [{"role": "user", "parts": [{"type": "text", "text": text}]}], **extra}


class TestChatScenarios(ChatApiTestCase):
    async def test_package_check_answer_matches_tool_result(self) -> None:
        self.store.add_package("101", "CourierA")
        self.store.add_package("101", "CourierB")
        self.provider.steps = [
            (["Checking that for you... "], [tool_call("check_packages", unit_number="101")]),
            (["You have 2 packages, from CourierA and CourierB."], None),
        ]
        response = await self._post(self._payload("Do I have any packages?", unitNumber="101"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/plain"))
        self.assertEqual(
            response.text,
            "Checking that for you... You have 2 packages, from CourierA and CourierB.",
        )
        first = self.provider.submissions[0]
        self.assertIn("Unit 101", first[0].content)
        tool_msg = self.provider.submissions[1][-1]
        self.assertEqual(tool_msg.role, "tool")
        self.assertEqual(tool_msg.content, "Found 2 packages from CourierA and CourierB.")

    async def test_pickup_with_nothing_pending_confirms(self) -> None:
        self.provider.steps = [
            ([], [tool_call("log_pickup", unit_number="101")]),
            (["Done, your pickup is logged."], None),
        ]
        response = await self._post(self._payload("Mark my packages as picked up", unitNumber="101"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Done, your pickup is logged.")
        self.assertIn("Successfully logged pickup", self.provider.submissions[1][-1].content)

    async def test_invalid_amenity_is_fed_back_as_error(self) -> None:
        self.provider.steps = [
            ([], [tool_call("book_amenity", unit_number="101", amenity="spa", booking_time="2026-10-18T10:00")]),
            (["Sorry, I can't book the spa."], None),
        ]
        response = await self._post(self._payload("Book the spa", unitNumber="101"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.provider.submissions[1][-1].content.startswith("Error: Invalid arguments"))
        self.assertEqual(self.store.list_bookings("101"), [])

    async def test_spanish_locale_selects_spanish_prompt(self) -> None:
        response = await self._post(self._payload("¿Tengo paquetes?", language="es", unitNumber=202))
        self.assertEqual(response.status_code, 200)
        system = self.provider.submissions[0][0].content
        self.assertIn("Unidad 202", system)


class TestChatSessions(ChatApiTestCase):
    async def test_exchange_is_recorded_and_reloaded(self) -> None:
        self.provider.steps = [(["Hi, I'm Tides."], None)]
        await self._post(self._payload("Hello", sessionId="s1", unitNumber="101"))
        [exchange] = await self.store.fetch_recent_exchanges("s1", 10)
        self.assertEqual([(t.role, t.text) for t in exchange.turns], [("user", "Hello"), ("assistant", "Hi, I'm Tides.")])
        self.assertEqual(exchange.unit_number, "101")

        self.provider.steps = [(["Sure."], None)]
        await self._post(self._payload("Can you help?", sessionId="s1"))
        second = self.provider.submissions[-1]
        self.assertEqual([m.content for m in second if m.role != "system"], ["Hello", "Hi, I'm Tides.", "Can you help?"])

    async def test_stateless_request_records_nothing(self) -> None:
        response = await self._post(self._payload("Hello"))
        self.assertEqual(response.text, "Hello!")
        self.assertEqual(self.recorder.pending, 0)
        self.assertEqual(await self.store.fetch_recent_exchanges("", 10), [])

    async def test_history_outage_still_answers(self) -> None:
        self.store.fail_history = True
        response = await self._post(self._payload("Hello", sessionId="s1"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Hello!")

    async def test_persistence_failure_does_not_change_response(self) -> None:
        self.store.fail_append = True
        with self.assertLogs("src.concierge.recorder", level="ERROR"):
            response = await self._post(self._payload("Hello", sessionId="s1"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Hello!")


class TestChatErrors(ChatApiTestCase):
    async def test_model_unreachable_is_502(self) -> None:
        self.provider.steps = [ConnectionError("no route to host")]
        response = await self._post(self._payload("Hello"))
        self.assertEqual(response.status_code, 502)
        self.assertNotIn("no route", response.json()["detail"])

    async def test_empty_messages_rejected(self) -> None:
        response = await self._post({"messages": []})
        self.assertEqual(response.status_code, 422)

    async def test_unknown_language_rejected(self) -> None:
        response = await self._post(self._payload("Bonjour", language="fr"))
        self.assertEqual(response.status_code, 422)

    async def test_health(self) -> None:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")
        self.assertEqual(response.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
