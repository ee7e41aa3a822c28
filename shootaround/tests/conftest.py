"""Shared pytest fixtures for shootaround tests."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from shootaround.app import create_app
from shootaround.config import reset_settings_cache
from shootaround.repositories.sessions_repo import (
    InMemorySessionsRepository,
    sessions_repo,
)
from shootaround.sessions.local_cache import LocalSessionCache
from shootaround.sessions.remote import SessionStoreClient
from shootaround.telemetry import events as telemetry

STORE_ENDPOINT = "http://testserver/api/sessions"


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("SHOOTAROUND_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("SHOOTAROUND_STORE_PATH", raising=False)
    reset_settings_cache()
    telemetry.set_session_telemetry_emitter(None)
    yield
    telemetry.set_session_telemetry_emitter(None)
    reset_settings_cache()


@pytest.fixture
def cache(tmp_path) -> LocalSessionCache:
    return LocalSessionCache(tmp_path / "cache" / "cavs.offlineSessions.json")


@pytest.fixture
def store_repo():
    repo = InMemorySessionsRepository()
    sessions_repo.set_repository(repo)
    yield repo
    sessions_repo.reset()


@pytest.fixture
def store_app(store_repo):
    return create_app()


@pytest.fixture
def store_client(store_app):
    return TestClient(store_app)


@pytest.fixture
def remote(store_app) -> SessionStoreClient:
    return SessionStoreClient(
        STORE_ENDPOINT, transport=httpx.ASGITransport(app=store_app)
    )


@pytest.fixture
def offline_remote() -> SessionStoreClient:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return SessionStoreClient(STORE_ENDPOINT, transport=httpx.MockTransport(handler))
