from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_stats: Callable[[], Awaitable[None]],
        on_scan: Callable[[str], Awaitable[None]],
        on_new: Callable[[], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_stats = on_stats
        self._on_scan = on_scan
        self._on_new = on_new
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        command, _, argument = trimmed.partition(" ")
        if command == "/help":
            await self._on_help()
            return True
        if command == "/stats":
            await self._on_stats()
            return True
        if command == "/scan":
            await self._on_scan(argument.strip())
            return True
        if command == "/new":
            await self._on_new()
            return True

        self._on_unknown(trimmed)
        return True
