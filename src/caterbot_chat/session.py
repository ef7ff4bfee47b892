from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from loguru import logger

from caterbot_chat.errors import RemoteMalformedError
from caterbot_chat.models import (
    ERROR,
    OFFLINE,
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_USER,
    Message,
    RawResult,
    SessionStats,
    empty_tally,
)
from caterbot_chat.remote import RemoteChatClient
from caterbot_chat.results import classify, is_safety_escalation, normalize_result

GENERIC_WELCOME = (
    "Welcome to CaterBot! Tell me which piece of equipment you're working on "
    "and what's going wrong."
)
OFFLINE_TEXT = (
    "You're offline, so CaterBot can't reach the troubleshooting service right now. "
    "Check your connection and try again. If anything looks unsafe, switch the "
    "equipment off and tell your manager."
)
ERROR_TEXT = (
    "Sorry, something went wrong reaching the troubleshooting service. Please try "
    "again. If anything looks unsafe, switch the equipment off and tell your manager."
)


def utc_now() -> datetime:
    return datetime.now(UTC)


def welcome_text(equipment_context: Mapping[str, Any] | None) -> str:
    if not equipment_context:
        return GENERIC_WELCOME
    name = (
        _context_str(equipment_context, "name")
        or _context_str(equipment_context, "custom_name")
        or "your equipment"
    )
    location = _context_str(equipment_context, "location")
    where = f" in {location}" if location else ""
    return (
        f"Welcome to CaterBot! I can see you've selected {name}{where}. "
        "How can I help troubleshoot today?"
    )


def _context_str(context: Mapping[str, Any], key: str) -> str | None:
    value = context.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class ChatSession:
    """One troubleshooting conversation.

    The log is append-only. Every call to ``submit`` with real text appends a
    user entry and then exactly one assistant or system entry, in the order
    remote calls complete. Remote failures never propagate; they become
    ``offline``/``error`` system entries.

    Concurrent ``submit`` calls are not serialised. Callers that need
    request-order appends (or want to drop stale replies) must do that
    themselves.
    """

    def __init__(
        self,
        remote: RemoteChatClient,
        equipment_context: Mapping[str, Any] | None = None,
        *,
        is_online: Callable[[], bool] | None = None,
        timeout_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._remote = remote
        self._equipment_context = (
            MappingProxyType(dict(equipment_context)) if equipment_context else None
        )
        self._is_online = is_online
        self._timeout_seconds = timeout_seconds
        self._clock = clock or utc_now
        self._seq = itertools.count(1)
        self._messages: list[Message] = []

        self._started_at = self._clock()
        self._message_count = 0
        self._total_cost = Decimal(0)
        self._tally = empty_tally()
        self._safety_flag_count = 0

        self._append(ROLE_SYSTEM, welcome_text(self._equipment_context))

    @classmethod
    def create(
        cls,
        remote: RemoteChatClient,
        equipment_context: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> ChatSession:
        return cls(remote, equipment_context, **kwargs)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def equipment_context(self) -> Mapping[str, Any] | None:
        return self._equipment_context

    async def submit(self, text: str) -> Message | None:
        if not isinstance(text, str) or not text.strip():
            return None
        trimmed = text.strip()

        self._append(ROLE_USER, trimmed)
        logger.debug(f"Submitting message ({len(trimmed)} chars), log size {len(self._messages)}")

        # The network signal only labels a failure; every submit still tries the call.
        try:
            payload = await self._invoke(trimmed)
            raw = normalize_result(payload)
        except RemoteMalformedError as ex:
            logger.warning(f"Unusable reply from troubleshooting service: {ex}")
            return self._append_failure(ERROR)
        except TimeoutError:
            logger.warning(f"Troubleshooting service did not answer within {self._timeout_seconds}s")
            return self._append_failure(self._failure_type())
        except Exception as ex:
            logger.warning(f"Troubleshooting request failed: {type(ex).__name__}: {ex}")
            return self._append_failure(self._failure_type())

        return self._append_reply(raw)

    def get_stats(self) -> SessionStats:
        elapsed = (self._clock() - self._started_at).total_seconds()
        return SessionStats(
            message_count=self._message_count,
            total_cost=self._total_cost,
            started_at=self._started_at,
            elapsed_seconds=max(elapsed, 0.0),
            response_type_tally=dict(self._tally),
            safety_flag_count=self._safety_flag_count,
        )

    async def _invoke(self, text: str) -> Any:
        request = {
            "text": text,
            "equipment_context": dict(self._equipment_context) if self._equipment_context else None,
        }
        if self._timeout_seconds is None:
            return await self._remote.invoke(request)
        return await asyncio.wait_for(self._remote.invoke(request), self._timeout_seconds)

    def _online(self) -> bool:
        if self._is_online is None:
            return True
        try:
            return bool(self._is_online())
        except Exception as ex:
            logger.warning(f"Network state check failed, assuming online: {ex}")
            return True

    def _failure_type(self) -> str:
        return ERROR if self._online() else OFFLINE

    def _append_reply(self, raw: RawResult) -> Message:
        safety_flag = is_safety_escalation(raw)
        message = self._append(
            ROLE_ASSISTANT,
            raw.text,
            response_type=classify(raw),
            cost_amount=raw.cost,
            safety_flag=safety_flag,
            confidence=raw.confidence,
            follow_up_actions=raw.follow_up_actions,
            safety_warning=raw.safety_warning,
        )
        if safety_flag:
            logger.warning(f"Safety escalation on message {message.id}: {raw.safety_warning or raw.text[:80]}")
        return message

    def _append_failure(self, response_type: str) -> Message:
        text = OFFLINE_TEXT if response_type == OFFLINE else ERROR_TEXT
        return self._append(ROLE_SYSTEM, text, response_type=response_type)

    def _append(
        self,
        role: str,
        text: str,
        *,
        response_type: str | None = None,
        cost_amount: Decimal = Decimal(0),
        safety_flag: bool = False,
        confidence: float | None = None,
        follow_up_actions: tuple[str, ...] = (),
        safety_warning: str | None = None,
    ) -> Message:
        message = Message(
            id=uuid4().hex,
            seq=next(self._seq),
            role=role,
            text=text,
            created_at=self._clock(),
            response_type=response_type,
            cost_amount=cost_amount,
            safety_flag=safety_flag,
            confidence=confidence,
            follow_up_actions=follow_up_actions,
            safety_warning=safety_warning,
        )
        self._messages.append(message)

        # Stats only move here, so they always fold the log.
        self._total_cost += message.cost_amount
        if response_type is not None:
            self._message_count += 1
            self._tally[response_type] += 1
        if safety_flag:
            self._safety_flag_count += 1
        return message
