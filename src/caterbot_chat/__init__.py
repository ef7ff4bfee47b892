"""Troubleshooting chat session engine for kitchen equipment."""

from caterbot_chat.errors import RemoteMalformedError, RemoteUnavailableError
from caterbot_chat.models import Message, RawResult, SessionStats
from caterbot_chat.remote import RemoteChatClient
from caterbot_chat.results import classify, is_safety_escalation, normalize_result
from caterbot_chat.session import ChatSession

__all__ = [
    "ChatSession",
    "Message",
    "RawResult",
    "RemoteChatClient",
    "RemoteMalformedError",
    "RemoteUnavailableError",
    "SessionStats",
    "classify",
    "is_safety_escalation",
    "normalize_result",
]
