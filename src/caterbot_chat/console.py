from __future__ import annotations

import sys
import threading

from loguru import logger

from caterbot_chat.bootstrap import AppRuntime
from caterbot_chat.commands.router import CommandRouter
from caterbot_chat.services.session_controller import SessionController
from caterbot_chat.session import ChatSession

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


class Spinner:
    """Thread-based spinner that renders on the current line using \\r."""

    def __init__(self, prefix: str = "", label: str = " CaterBot is thinking..."):
        self._prefix = prefix
        self._label = label
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if not sys.stdout.isatty():
            return
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None or self._stop.is_set():
            return
        self._stop.set()
        self._thread.join()
        sys.stdout.write("\r" + " " * (len(self._prefix) + 1 + len(self._label)) + "\r")
        sys.stdout.flush()

    def _run(self) -> None:
        i = 0
        try:
            while not self._stop.is_set():
                frame = _SPINNER_FRAMES[i % len(_SPINNER_FRAMES)] + self._label
                sys.stdout.write("\r" + self._prefix + frame)
                sys.stdout.flush()
                self._stop.wait(0.08)
                i += 1
        except (UnicodeEncodeError, OSError):
            pass  # terminal can't draw the frames


class ChatConsole:
    _LINE_PREFIX = "caterbot> "

    def __init__(self, runtime: AppRuntime):
        self._runtime = runtime
        self._equipment = runtime.equipment
        self._session = runtime.new_session(self._equipment)
        self._controller = SessionController(line_prefix=self._LINE_PREFIX)
        self._command_router = CommandRouter(
            on_help=self._on_help,
            on_stats=self._on_stats,
            on_scan=self._on_scan,
            on_new=self._on_new,
            on_unknown=self._on_unknown,
        )

    @property
    def session(self) -> ChatSession:
        return self._session

    def print_session_header(self) -> None:
        for line in self._controller.format_equipment_lines(self._equipment):
            print(line)
        for line in self._controller.format_message_lines(self._session.messages[0]):
            print(line)

    async def handle(self, user_input: str) -> None:
        if await self._command_router.try_handle(user_input):
            return

        spinner = Spinner(prefix=self._LINE_PREFIX)
        spinner.start()
        try:
            reply = await self._session.submit(user_input)
        finally:
            spinner.stop()

        if reply is None:
            return
        for line in self._controller.format_message_lines(reply):
            print(line)

    async def _on_help(self) -> None:
        print(f"{self._LINE_PREFIX}Commands:")
        print(f"{self._LINE_PREFIX}- /scan <code>  look up equipment by QR code and start a new session")
        print(f"{self._LINE_PREFIX}- /new          start a fresh session for the current equipment")
        print(f"{self._LINE_PREFIX}- /stats        show cost and reply stats for this session")
        print(f"{self._LINE_PREFIX}- exit          quit")

    async def _on_stats(self) -> None:
        for line in self._controller.format_stats_lines(self._session.get_stats()):
            print(line)

    async def _on_scan(self, code: str) -> None:
        if not code:
            print(f"{self._LINE_PREFIX}Usage: /scan <code>")
            return
        equipment = await self._runtime.client.lookup_equipment(code)
        if equipment is None:
            print(f"{self._LINE_PREFIX}No equipment found for {code!r}.")
            return
        logger.info(f"Switched equipment to {equipment.get('id', code)}")
        self._equipment = equipment
        await self._on_new()

    async def _on_new(self) -> None:
        self._session = self._runtime.new_session(self._equipment)
        self.print_session_header()

    def _on_unknown(self, command: str) -> None:
        print(f"{self._LINE_PREFIX}Unknown command: {command}. Type /help for commands.")
