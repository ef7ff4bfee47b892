import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

_PACKAGE = "caterbot_chat"
_CONSOLE_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


def _own_records_only(record: dict) -> bool:
    # Only this package; httpx and tenacity records stay off the console.
    return record["name"].startswith(_PACKAGE)


@dataclass
class ConsoleLogConsumer:
    include_libraries: bool = False

    def register(self, level: str) -> None:
        logger.add(
            sys.stderr,
            level=level,
            format=_CONSOLE_FORMAT,
            filter=None if self.include_libraries else _own_records_only,
        )

    def describe(self, level: str) -> str:
        scope = "all" if self.include_libraries else _PACKAGE
        return f"console (stderr, {level}, {scope})"


@dataclass
class FileLogConsumer:
    """Rotating log file; ``serialize`` writes one JSON record per line."""

    path: str = "caterbot.log"
    rotation: str = "5 MB"
    retention: int = 5
    serialize: bool = False

    def register(self, level: str) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            self.path,
            level=level,
            format=_FILE_FORMAT,
            rotation=self.rotation,
            retention=self.retention,
            serialize=self.serialize,
        )

    def describe(self, level: str) -> str:
        return f"{'json' if self.serialize else 'text'} file ({self.path}, {level})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
}

_DEFAULT_CONSUMERS = [
    {"type": "console", "level": "WARNING"},
    {"type": "file", "path": "logs/caterbot.log"},
]


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace loguru's default sink with the configured consumers.

    Each consumer dict has a ``type`` (``console`` or ``file``), an optional
    ``level`` overriding the global one, and consumer-specific options.
    Returns a description of each registered consumer.
    """
    logger.remove()

    descriptions: list[str] = []
    for config in consumers if consumers is not None else _DEFAULT_CONSUMERS:
        sink_type = config.get("type", "")
        cls = _CONSUMER_TYPES.get(sink_type)
        if cls is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue

        options = {k: v for k, v in config.items() if k not in ("type", "level")}
        sink_level = config.get("level", level)
        try:
            consumer = cls(**options)
        except TypeError as ex:
            logger.warning(f"Invalid options for {sink_type} log consumer: {ex}")
            continue
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))

    return descriptions
