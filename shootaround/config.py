"""Configuration helpers for the session core and the reference store."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SESSION_API_ENDPOINT = "http://127.0.0.1:3000/api/sessions"


class _Settings(BaseSettings):
    session_api_endpoint: str = Field(
        default=DEFAULT_SESSION_API_ENDPOINT, alias="SESSION_API_ENDPOINT"
    )
    session_api_timeout: float = Field(default=10.0, alias="SESSION_API_TIMEOUT")
    data_dir: Path = Field(default=Path(".data"), alias="SHOOTAROUND_DATA_DIR")
    store_path: Path | None = Field(default=None, alias="SHOOTAROUND_STORE_PATH")
    server_port: int = Field(default=3000, alias="SERVER_PORT")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> _Settings:
    """Return cached application settings."""

    return _Settings()  # type: ignore[call-arg]


def reset_settings_cache() -> None:
    """Clear cached settings (primarily for tests)."""

    get_settings.cache_clear()


def env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    coerced = coerce_boolish(value)
    return default if coerced is None else coerced


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def coerce_boolish(value: Any) -> bool | None:
    """Attempt to coerce *value* into a boolean."""

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    return None


MAX_PREVIOUS_SESSIONS: int = _int_env("MAX_PREVIOUS_SESSIONS", 5)
DEBUG_PAYLOAD_LOGGING: bool = env_bool("SHOOTAROUND_DEBUG_PAYLOADS", False)

__all__ = [
    "DEFAULT_SESSION_API_ENDPOINT",
    "get_settings",
    "reset_settings_cache",
    "env_bool",
    "coerce_boolish",
    "MAX_PREVIOUS_SESSIONS",
    "DEBUG_PAYLOAD_LOGGING",
]
