import asyncio
import io
import unittest
from contextlib import redirect_stdout
from typing import Any

from caterbot_chat.console import ChatConsole
from caterbot_chat.session import GENERIC_WELCOME, ChatSession


class _FakeClient:
    def __init__(self, equipment: dict | None = None):
        self._equipment = equipment
        self.lookups: list[str] = []
        self.requests: list[dict] = []

    async def invoke(self, request: dict) -> Any:
        self.requests.append(request)
        return {
            "response": "Check the pilot light.",
            "response_type": "pattern",
            "cost_gbp": 0.002,
            "confidence_score": 0.9,
        }

    async def lookup_equipment(self, qr_code: str) -> dict | None:
        self.lookups.append(qr_code)
        return self._equipment


class _FakeRuntime:
    def __init__(self, client: _FakeClient, equipment: dict | None = None):
        self.client = client
        self.equipment = equipment

    def new_session(self, equipment: dict | None = None) -> ChatSession:
        return ChatSession.create(self.client, equipment)


def _run(console: ChatConsole, text: str) -> str:
    out = io.StringIO()
    with redirect_stdout(out):
        asyncio.run(console.handle(text))
    return out.getvalue()


class ChatConsoleTests(unittest.TestCase):
    def test_message_prints_reply_with_details(self) -> None:
        console = ChatConsole(_FakeRuntime(_FakeClient()))

        output = _run(console, "oven won't heat")

        self.assertIn("caterbot> Check the pilot light.", output)
        self.assertIn("pattern", output)
        self.assertIn("confidence 90%", output)
        self.assertIn("£0.002", output)
        self.assertEqual(3, len(console.session.messages))

    def test_stats_command_does_not_submit(self) -> None:
        client = _FakeClient()
        console = ChatConsole(_FakeRuntime(client))
        _run(console, "oven won't heat")

        output = _run(console, "/stats")

        self.assertIn("Session stats:", output)
        self.assertIn("Replies: 1", output)
        self.assertIn("pattern=1", output)
        self.assertEqual(1, len(client.requests))

    def test_scan_switches_to_new_equipment_session(self) -> None:
        client = _FakeClient({"id": "eq-2", "name": "Blast Chiller", "location": "Prep room"})
        console = ChatConsole(_FakeRuntime(client))
        _run(console, "hello")
        old_session = console.session

        output = _run(console, "/scan QR-2")

        self.assertEqual(["QR-2"], client.lookups)
        self.assertIsNot(old_session, console.session)
        self.assertEqual(1, len(console.session.messages))
        self.assertIn("Blast Chiller", console.session.messages[0].text)
        self.assertIn("Equipment: Blast Chiller", output)

    def test_scan_unknown_code_keeps_session(self) -> None:
        console = ChatConsole(_FakeRuntime(_FakeClient(None)))
        session = console.session

        output = _run(console, "/scan QR-missing")

        self.assertIn("No equipment found", output)
        self.assertIs(session, console.session)

    def test_scan_without_code_prints_usage(self) -> None:
        client = _FakeClient()
        console = ChatConsole(_FakeRuntime(client))

        output = _run(console, "/scan")

        self.assertIn("Usage: /scan <code>", output)
        self.assertEqual([], client.lookups)

    def test_new_keeps_equipment(self) -> None:
        equipment = {"id": "eq-5", "name": "Ice Machine"}
        console = ChatConsole(_FakeRuntime(_FakeClient(), equipment))
        _run(console, "no ice")

        _run(console, "/new")

        self.assertEqual(1, len(console.session.messages))
        self.assertEqual("Ice Machine", console.session.equipment_context["name"])

    def test_session_without_equipment_uses_generic_welcome(self) -> None:
        console = ChatConsole(_FakeRuntime(_FakeClient()))

        out = io.StringIO()
        with redirect_stdout(out):
            console.print_session_header()

        self.assertIn("No equipment selected", out.getvalue())
        self.assertIn(GENERIC_WELCOME, out.getvalue())

    def test_unknown_command(self) -> None:
        console = ChatConsole(_FakeRuntime(_FakeClient()))

        output = _run(console, "/reboot")

        self.assertIn("Unknown command: /reboot", output)
        self.assertEqual(1, len(console.session.messages))


if __name__ == "__main__":
    unittest.main()
