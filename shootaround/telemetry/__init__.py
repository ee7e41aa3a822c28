"""Telemetry helpers for session instrumentation."""

from .events import (
    record_session_persisted,
    record_sessions_loaded,
    set_session_telemetry_emitter,
)

__all__ = [
    "record_session_persisted",
    "record_sessions_loaded",
    "set_session_telemetry_emitter",
]
