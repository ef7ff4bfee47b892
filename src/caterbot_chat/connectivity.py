from __future__ import annotations

from loguru import logger


class ConnectivityTracker:
    """Last known network state, flipped by transport outcomes.

    Instances are callable so they can be passed straight to a session as its
    ``is_online`` signal.
    """

    def __init__(self, initially_online: bool = True):
        self._online = initially_online

    def __call__(self) -> bool:
        return self._online

    def mark_online(self) -> None:
        if not self._online:
            logger.info("Connection restored")
        self._online = True

    def mark_offline(self) -> None:
        if self._online:
            logger.warning("Connection lost; switching to offline mode")
        self._online = False
