from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from caterbot_chat.app_config import AppConfig, RuntimeEnv
    from caterbot_chat.clients.functions_client import FunctionsClient
    from caterbot_chat.connectivity import ConnectivityTracker


@runtime_checkable
class RemoteChatClient(Protocol):
    async def invoke(self, request: dict[str, Any]) -> Any:
        """Send one troubleshooting message.

        ``request`` carries ``text`` and ``equipment_context`` (which may be
        None). Returns the service's reply as decoded JSON; the shape is not
        trusted and is normalised by the caller.
        """
        ...


def create_remote_client(
    app: AppConfig,
    env: RuntimeEnv,
    *,
    connectivity: ConnectivityTracker | None = None,
) -> FunctionsClient:
    """Factory: build the edge-function client from configuration."""
    if not env.functions_url:
        raise ValueError("SUPABASE_URL environment variable is required.")
    if not env.functions_key:
        raise ValueError("SUPABASE_ANON_KEY environment variable is required.")

    from caterbot_chat.clients.functions_client import FunctionsClient

    return FunctionsClient(
        env.functions_url,
        env.functions_key,
        site_id=app.site_id,
        user_id=app.user_id,
        chat_function=app.chat_function,
        equipment_function=app.equipment_function,
        timeout_seconds=app.request_timeout_seconds,
        max_attempts=app.max_attempts,
        connectivity=connectivity,
    )
