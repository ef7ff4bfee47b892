import unittest
from datetime import UTC, datetime
from decimal import Decimal

from caterbot_chat.models import Message, SessionStats, empty_tally
from caterbot_chat.services.session_controller import SessionController, format_cost

_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


def _message(**overrides) -> Message:
    fields = {
        "id": "m1",
        "seq": 3,
        "role": "assistant",
        "text": "Switch it off at the isolator.",
        "created_at": _NOW,
        "response_type": "escalation",
        "cost_amount": Decimal("0.0126"),
    }
    fields.update(overrides)
    return Message(**fields)


class SessionControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._controller = SessionController(line_prefix="> ")

    def test_format_cost_rounds_to_places(self) -> None:
        self.assertEqual("£0.013", format_cost(Decimal("0.0126")))
        self.assertEqual("£1.50", format_cost(Decimal("1.5"), places=2))

    def test_safety_message_includes_warning_and_actions(self) -> None:
        lines = self._controller.format_message_lines(
            _message(
                safety_flag=True,
                safety_warning="Gas leak suspected",
                follow_up_actions=("Open windows", "Call the gas engineer"),
            )
        )

        self.assertEqual("> Switch it off at the isolator.", lines[0])
        self.assertEqual("> [escalation • £0.013]", lines[1])
        self.assertIn("> !! SAFETY: Gas leak suspected", lines)
        self.assertEqual(["> - Open windows", "> - Call the gas engineer"], lines[-2:])

    def test_system_message_has_no_detail_line(self) -> None:
        lines = self._controller.format_message_lines(
            _message(role="system", response_type="error", cost_amount=Decimal(0))
        )

        self.assertEqual(["> Switch it off at the isolator."], lines)

    def test_equipment_lines(self) -> None:
        lines = self._controller.format_equipment_lines(
            {"name": "Combi Oven", "make": "Rational", "model": "iCombi Pro", "location": "Line", "status": "maintenance_required"}
        )

        self.assertEqual(
            [
                "> Equipment: Combi Oven (Rational iCombi Pro)",
                "> - Location: Line",
                "> - Status: maintenance required",
            ],
            lines,
        )

    def test_stats_lines(self) -> None:
        tally = empty_tally()
        tally.update({"pattern": 2, "error": 1})
        stats = SessionStats(
            message_count=3,
            total_cost=Decimal("0.004"),
            started_at=_NOW,
            elapsed_seconds=125.4,
            response_type_tally=tally,
            safety_flag_count=1,
        )

        lines = self._controller.format_stats_lines(stats)

        self.assertEqual("> - Replies: 3 | Cost: £0.004 | Duration: 2m 05s", lines[1])
        self.assertEqual(
            "> - Types: pattern=2, cached=0, ai=0, escalation=0, offline=0, error=1",
            lines[2],
        )
        self.assertEqual("> - Safety escalations: 1", lines[3])


if __name__ == "__main__":
    unittest.main()
