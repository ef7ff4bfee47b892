from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from tenacity import AsyncRetrying

from caterbot_chat.clients.common import default_retry_kwargs
from caterbot_chat.connectivity import ConnectivityTracker
from caterbot_chat.errors import RemoteMalformedError, RemoteUnavailableError

# Raised before the request reaches the server; the only retries a chat post gets.
_UNSENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)
_TRANSIENT_ERRORS = (httpx.TransportError,)
_OFFLINE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class FunctionsClient:
    """Client for the hosted troubleshooting functions.

    ``invoke`` posts to the chat function; ``lookup_equipment`` resolves a
    scanned QR code through the equipment-context function. Transport errors
    are retried (chat posts only when the request was never sent); HTTP
    error statuses are not.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        site_id: str | None = None,
        user_id: str = "demo-user",
        chat_function: str = "master-chat",
        equipment_function: str = "equipment-context",
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        retry_backoff_seconds: float = 1.0,
        connectivity: ConnectivityTracker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._site_id = site_id
        self._user_id = user_id
        self._chat_function = chat_function
        self._equipment_function = equipment_function
        self._max_attempts = max_attempts
        self._retry_backoff_seconds = retry_backoff_seconds
        self._connectivity = connectivity
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/functions/v1",
            headers={
                "Authorization": f"Bearer {api_key}",
                "apikey": api_key,
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> FunctionsClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def invoke(self, request: dict[str, Any]) -> Any:
        context = request.get("equipment_context") or None
        body = {
            "message": request["text"],
            "user_id": self._user_id,
            "site_id": self._site_id,
            "equipment_id": context.get("id") if context else None,
            "equipment_context": context,
        }
        return await self._call(self._chat_function, body, retry_on=_UNSENT_ERRORS)

    async def lookup_equipment(self, qr_code: str) -> dict[str, Any] | None:
        try:
            data = await self._call(
                self._equipment_function,
                {"qr_code": qr_code.strip(), "site_id": self._site_id},
            )
        except (RemoteUnavailableError, RemoteMalformedError) as ex:
            logger.error(f"Equipment lookup failed for {qr_code!r}: {ex}")
            return None

        equipment = data.get("equipment") if isinstance(data, dict) else None
        if not isinstance(equipment, dict):
            logger.warning(f"No equipment found for QR code {qr_code!r}")
            return None
        return equipment

    async def _call(
        self,
        function_name: str,
        body: dict[str, Any],
        *,
        retry_on: tuple[type[Exception], ...] = _TRANSIENT_ERRORS,
    ) -> Any:
        payload = {key: value for key, value in body.items() if value is not None}
        retrying = AsyncRetrying(
            **default_retry_kwargs(
                retry_on,
                max_attempts=self._max_attempts,
                backoff_seconds=self._retry_backoff_seconds,
            )
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._post(function_name, payload)
        except httpx.HTTPStatusError as ex:
            raise RemoteUnavailableError(
                f"{function_name} returned HTTP {ex.response.status_code}"
            ) from ex
        except httpx.HTTPError as ex:
            raise RemoteUnavailableError(f"{function_name} request failed: {ex}") from ex

        try:
            return response.json()
        except ValueError as ex:
            raise RemoteMalformedError(f"{function_name} returned a non-JSON body") from ex

    async def _post(self, function_name: str, payload: dict[str, Any]) -> httpx.Response:
        logger.debug(f"POST {function_name}: fields={sorted(payload)}")
        try:
            response = await self._client.post(f"/{function_name}", json=payload)
        except _OFFLINE_ERRORS:
            if self._connectivity is not None:
                self._connectivity.mark_offline()
            raise
        if self._connectivity is not None:
            self._connectivity.mark_online()
        logger.debug(f"{function_name} responded {response.status_code}")
        response.raise_for_status()
        return response
