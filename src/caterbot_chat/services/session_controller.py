from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from caterbot_chat.models import RESPONSE_TYPES, Message, SessionStats


def format_cost(amount: Decimal, places: int = 3) -> str:
    return f"£{amount:.{places}f}"


class SessionController:
    def __init__(self, *, line_prefix: str, currency_places: int = 3):
        self._line_prefix = line_prefix
        self._currency_places = currency_places

    def format_message_lines(self, message: Message) -> list[str]:
        lines = [f"{self._line_prefix}{message.text}"]

        details: list[str] = []
        if message.response_type:
            details.append(message.response_type)
        if message.confidence is not None:
            details.append(f"confidence {message.confidence * 100:.0f}%")
        if message.cost_amount:
            details.append(format_cost(message.cost_amount, self._currency_places))
        if details and message.role == "assistant":
            lines.append(f"{self._line_prefix}[{' • '.join(details)}]")

        if message.safety_flag:
            warning = message.safety_warning or "This needs a person on site. Stop using the equipment."
            lines.append(f"{self._line_prefix}!! SAFETY: {warning}")
        for action in message.follow_up_actions:
            lines.append(f"{self._line_prefix}- {action}")
        return lines

    def format_equipment_lines(self, equipment: Mapping[str, Any] | None) -> list[str]:
        if not equipment:
            return [f"{self._line_prefix}No equipment selected. Use /scan <code> to pick one."]
        name = equipment.get("name") or equipment.get("custom_name") or equipment.get("id", "?")
        make = " ".join(str(part) for part in (equipment.get("make") or equipment.get("manufacturer"), equipment.get("model")) if part)
        lines = [f"{self._line_prefix}Equipment: {name}" + (f" ({make})" if make else "")]
        if equipment.get("location"):
            lines.append(f"{self._line_prefix}- Location: {equipment['location']}")
        if equipment.get("status"):
            lines.append(f"{self._line_prefix}- Status: {str(equipment['status']).replace('_', ' ')}")
        return lines

    def format_stats_lines(self, stats: SessionStats) -> list[str]:
        minutes, seconds = divmod(int(stats.elapsed_seconds), 60)
        lines = [f"{self._line_prefix}Session stats:"]
        lines.append(
            f"{self._line_prefix}- Replies: {stats.message_count} | "
            f"Cost: {format_cost(stats.total_cost, self._currency_places)} | "
            f"Duration: {minutes}m {seconds:02d}s"
        )
        tally = ", ".join(
            f"{response_type}={stats.response_type_tally.get(response_type, 0)}"
            for response_type in RESPONSE_TYPES
        )
        lines.append(f"{self._line_prefix}- Types: {tally}")
        if stats.safety_flag_count:
            lines.append(f"{self._line_prefix}- Safety escalations: {stats.safety_flag_count}")
        return lines
