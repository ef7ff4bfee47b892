from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class RuntimeEnv:
    functions_url: str
    functions_key: str


@dataclass
class AppConfig:
    site_id: str | None
    user_id: str
    chat_function: str
    equipment_function: str
    equipment_qr_code: str | None
    request_timeout_seconds: float
    max_attempts: int
    reply_timeout_seconds: float | None
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _optional_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        site_id=_optional_str(config.get("SiteId")),
        user_id=_optional_str(config.get("UserId")) or "demo-user",
        chat_function=str(config.get("ChatFunction", "master-chat")).strip(),
        equipment_function=str(config.get("EquipmentFunction", "equipment-context")).strip(),
        equipment_qr_code=_optional_str(config.get("EquipmentQrCode")),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 30)),
        max_attempts=int(config.get("MaxAttempts", 3)),
        reply_timeout_seconds=_optional_float(config.get("ReplyTimeoutSeconds", 90)),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env() -> RuntimeEnv:
    return RuntimeEnv(
        functions_url=os.environ.get("SUPABASE_URL", "").strip(),
        functions_key=os.environ.get("SUPABASE_ANON_KEY", "").strip(),
    )
