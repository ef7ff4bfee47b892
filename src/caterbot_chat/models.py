from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"

PATTERN = "pattern"
CACHED = "cached"
AI = "ai"
ESCALATION = "escalation"
OFFLINE = "offline"
ERROR = "error"

# Kinds the remote service may report for a reply.
REMOTE_KINDS = (PATTERN, CACHED, AI, ESCALATION)
RESPONSE_TYPES = REMOTE_KINDS + (OFFLINE, ERROR)


@dataclass(frozen=True)
class Message:
    id: str
    seq: int
    role: str
    text: str
    created_at: datetime
    response_type: str | None = None
    cost_amount: Decimal = Decimal(0)
    safety_flag: bool = False
    confidence: float | None = None
    follow_up_actions: tuple[str, ...] = ()
    safety_warning: str | None = None


@dataclass(frozen=True)
class RawResult:
    text: str
    kind: str | None = None
    escalation: bool | str | None = None
    cost: Decimal = Decimal(0)
    confidence: float | None = None
    follow_up_actions: tuple[str, ...] = ()
    safety_warning: str | None = None


def empty_tally() -> dict[str, int]:
    return {response_type: 0 for response_type in RESPONSE_TYPES}


@dataclass(frozen=True)
class SessionStats:
    message_count: int
    total_cost: Decimal
    started_at: datetime
    elapsed_seconds: float
    response_type_tally: dict[str, int] = field(default_factory=empty_tally)
    safety_flag_count: int = 0
