from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from caterbot_chat.app_config import AppConfig, RuntimeEnv
from caterbot_chat.clients.functions_client import FunctionsClient
from caterbot_chat.connectivity import ConnectivityTracker
from caterbot_chat.logging_config import setup_logging
from caterbot_chat.remote import create_remote_client
from caterbot_chat.session import ChatSession


@dataclass
class AppRuntime:
    client: FunctionsClient
    connectivity: ConnectivityTracker
    equipment: dict[str, Any] | None
    reply_timeout_seconds: float | None
    log_descriptions: list[str]

    def new_session(self, equipment: Mapping[str, Any] | None = None) -> ChatSession:
        return ChatSession.create(
            self.client,
            equipment,
            is_online=self.connectivity,
            timeout_seconds=self.reply_timeout_seconds,
        )


async def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    connectivity = ConnectivityTracker()
    client = create_remote_client(app, env, connectivity=connectivity)

    equipment: dict[str, Any] | None = None
    if app.equipment_qr_code:
        equipment = await client.lookup_equipment(app.equipment_qr_code)
        if equipment is None:
            logger.warning(f"Starting without equipment context; {app.equipment_qr_code!r} did not resolve")

    return AppRuntime(
        client=client,
        connectivity=connectivity,
        equipment=equipment,
        reply_timeout_seconds=app.reply_timeout_seconds,
        log_descriptions=log_descriptions,
    )
