from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from shootaround.sessions.remote import (
    SessionNotFound,
    SessionStoreClient,
    SessionStoreError,
    SessionStoreUnavailable,
)

ENDPOINT = "http://store.test/api/sessions"


def _client(handler) -> SessionStoreClient:
    return SessionStoreClient(ENDPOINT, transport=httpx.MockTransport(handler))


def test_list_sessions_sends_status_and_unwraps() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"sessions": [{"id": "a"}, "junk", {"id": "b"}]})

    sessions = asyncio.run(_client(handler).list_sessions(status="in progress"))

    assert [s["id"] for s in sessions] == ["a", "b"]
    assert seen[0].method == "GET"
    assert seen[0].url.params["status"] == "in progress"


def test_list_sessions_without_status_has_no_query() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "status" not in request.url.params
        return httpx.Response(200, json=[{"id": "a"}])

    assert asyncio.run(_client(handler).list_sessions()) == [{"id": "a"}]


def test_get_session_missing_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/sessions/abc"
        return httpx.Response(404, json={"detail": "Session not found"})

    assert asyncio.run(_client(handler).get_session("abc")) is None


def test_create_session_posts_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        body = json.loads(request.content)
        return httpx.Response(201, json={"id": "srv-1", "playerName": body["playerName"]})

    created = asyncio.run(_client(handler).create_session({"playerName": "J. Doe"}))
    assert created == {"id": "srv-1", "playerName": "J. Doe"}


def test_update_session_patch_and_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PATCH"
        if request.url.path.endswith("/gone"):
            return httpx.Response(404)
        return httpx.Response(200, json={"id": "s-1"})

    client = _client(handler)
    assert asyncio.run(client.update_session("s-1", {})) == {"id": "s-1"}
    with pytest.raises(SessionNotFound) as excinfo:
        asyncio.run(client.update_session("gone", {}))
    assert excinfo.value.status_code == 404
    assert excinfo.value.session_id == "gone"


def test_update_session_accepted_without_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    assert asyncio.run(_client(handler).update_session("s-1", {})) is None


def test_server_error_raises_with_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(SessionStoreError) as excinfo:
        asyncio.run(_client(handler).list_sessions())
    assert excinfo.value.status_code == 500
    assert not isinstance(excinfo.value, SessionStoreUnavailable)


def test_connection_error_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SessionStoreUnavailable):
        asyncio.run(_client(handler).create_session({"playerName": "J. Doe"}))


def test_malformed_json_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>", headers={"content-type": "text/html"})

    with pytest.raises(SessionStoreError, match="malformed"):
        asyncio.run(_client(handler).list_sessions())


def test_empty_body_is_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    assert asyncio.run(_client(handler).create_session({})) is None


def test_unconfigured_endpoint() -> None:
    client = SessionStoreClient("  ")
    assert client.configured is False
    with pytest.raises(SessionStoreUnavailable):
        asyncio.run(client.list_sessions())


def test_from_settings_reads_environment(monkeypatch) -> None:
    from shootaround.config import reset_settings_cache

    monkeypatch.setenv("SESSION_API_ENDPOINT", "http://example.test/api/sessions/")
    monkeypatch.setenv("SESSION_API_TIMEOUT", "2.5")
    reset_settings_cache()

    client = SessionStoreClient.from_settings()
    assert client.endpoint == "http://example.test/api/sessions"
    assert client.configured is True
