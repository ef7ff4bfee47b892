"""Normalisation and classification of troubleshooting service replies.

The chat function has answered in several shapes over time (``response``,
``ai_response``, or fields tucked under ``metadata``/``data``).
``normalize_result`` is the one place that knows about those shapes; the
rest of the package only sees ``RawResult``.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from caterbot_chat.errors import RemoteMalformedError
from caterbot_chat.models import AI, ESCALATION, REMOTE_KINDS, RawResult

_TEXT_KEYS = ("text", "response", "ai_response", "message")
_KIND_KEYS = ("kind", "response_type")
_COST_KEYS = ("cost", "cost_gbp", "cost_amount")
_CONFIDENCE_KEYS = ("confidence", "confidence_score")

SAFETY = "safety"
HUMAN = "human"


def normalize_result(payload: Any) -> RawResult:
    if not isinstance(payload, Mapping):
        raise RemoteMalformedError(f"Expected a mapping, got {type(payload).__name__}")

    fields = dict(payload)
    nested = fields.get("data")
    if isinstance(nested, Mapping) and _first_text(fields) is None:
        fields = {**fields, **nested}
    metadata = fields.get("metadata")
    if isinstance(metadata, Mapping):
        fields = {**metadata, **fields}

    if fields.get("success") is False:
        raise RemoteMalformedError(f"Service reported failure: {fields.get('error', 'no detail')}")

    text = _first_text(fields)
    if text is None:
        raise RemoteMalformedError("Reply has no text")

    safety_warning = fields.get("safety_warning")
    if not isinstance(safety_warning, str) or not safety_warning.strip():
        safety_warning = None

    escalation = fields.get("escalation")
    if escalation is None:
        if safety_warning:
            escalation = SAFETY
        elif fields.get("escalation_required") is True:
            escalation = HUMAN

    kind = _first_value(fields, _KIND_KEYS)

    return RawResult(
        text=text,
        kind=kind if isinstance(kind, str) else None,
        escalation=escalation if isinstance(escalation, (bool, str)) else None,
        cost=parse_cost(_first_value(fields, _COST_KEYS)),
        confidence=_parse_confidence(_first_value(fields, _CONFIDENCE_KEYS)),
        follow_up_actions=_parse_actions(fields.get("follow_up_actions")),
        safety_warning=safety_warning.strip() if safety_warning else None,
    )


def classify(raw: Any) -> str:
    """Map any reply, however malformed, to one response type."""
    kind = _field(raw, "kind")
    if isinstance(kind, str):
        kind = kind.strip().lower()
        if kind in REMOTE_KINDS:
            return kind
    if is_safety_escalation(raw):
        return ESCALATION
    return AI


def is_safety_escalation(raw: Any) -> bool:
    escalation = _field(raw, "escalation")
    if escalation is True:
        return True
    return isinstance(escalation, str) and escalation.strip().lower() == SAFETY


def parse_cost(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal(0)
    if isinstance(value, float):
        value = repr(value)
    if not isinstance(value, (int, str, Decimal)):
        return Decimal(0)
    try:
        cost = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not cost.is_finite() or cost < 0:
        return Decimal(0)
    return cost


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, RawResult):
        return getattr(raw, name)
    if isinstance(raw, Mapping):
        try:
            return raw.get(name)
        except Exception:  # noqa: BLE001 - arbitrary mapping implementations
            return None
    return None


def _first_text(fields: Mapping[str, Any]) -> str | None:
    for key in _TEXT_KEYS:
        value = fields.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_value(fields: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if fields.get(key) is not None:
            return fields[key]
    return None


def _parse_confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    return min(max(float(value), 0.0), 1.0)


def _parse_actions(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
