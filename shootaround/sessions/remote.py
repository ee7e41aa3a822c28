from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from shootaround.config import get_settings

from .adapters import unwrap_session_list

_logger = logging.getLogger("shootaround.sessions.remote")


class SessionStoreError(RuntimeError):
    """Raised for any failed call to the session store."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionStoreUnavailable(SessionStoreError):
    """The store could not be reached at all."""


class SessionNotFound(SessionStoreError):
    """The store has no session with the requested id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"session {session_id} not found", status_code=404)
        self.session_id = session_id


class SessionStoreClient:
    def __init__(
        self,
        endpoint: str | None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = (endpoint or "").strip().rstrip("/")
        self._timeout = timeout if timeout is not None else 10.0
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "SessionStoreClient":
        settings = get_settings()
        return cls(settings.session_api_endpoint, timeout=settings.session_api_timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def configured(self) -> bool:
        return bool(self._endpoint)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        allow_missing: bool = False,
    ) -> Any:
        if not self.configured:
            raise SessionStoreUnavailable("session store endpoint is not configured")
        try:
            async with self._client() as client:
                response = await client.request(method, url, json=json, params=params)
        except httpx.RequestError as exc:
            raise SessionStoreUnavailable(
                f"session store request failed: {exc}"
            ) from exc

        if allow_missing and response.status_code == 404:
            return None
        if not response.is_success:
            raise SessionStoreError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise SessionStoreError("session store returned malformed JSON") from exc

    async def list_sessions(self, status: str | None = None) -> list[dict]:
        params = {"status": status} if status else None
        payload = await self._request("GET", self._endpoint, params=params)
        return [entry for entry in unwrap_session_list(payload) if isinstance(entry, dict)]

    async def get_session(self, session_id: str) -> dict | None:
        payload = await self._request(
            "GET", f"{self._endpoint}/{session_id}", allow_missing=True
        )
        return payload if isinstance(payload, dict) else None

    async def create_session(self, payload: Mapping[str, Any]) -> dict | None:
        body = await self._request("POST", self._endpoint, json=dict(payload))
        if body is not None and not isinstance(body, dict):
            _logger.warning("unexpected create response body: %r", body)
            return None
        return body

    async def update_session(
        self, session_id: str, payload: Mapping[str, Any]
    ) -> dict | None:
        """PATCH one session; an accepted update without a body returns ``None``.

        Raises :class:`SessionNotFound` when the store has no such row.
        """

        try:
            body = await self._request(
                "PATCH", f"{self._endpoint}/{session_id}", json=dict(payload)
            )
        except SessionStoreError as exc:
            if exc.status_code == 404:
                raise SessionNotFound(session_id) from exc
            raise
        return body if isinstance(body, dict) else None


__all__ = [
    "SessionStoreClient",
    "SessionStoreError",
    "SessionStoreUnavailable",
    "SessionNotFound",
]
