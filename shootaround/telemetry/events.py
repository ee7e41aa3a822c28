"""Telemetry helpers for session lifecycle instrumentation."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, MutableMapping, Optional

SessionTelemetryEmitter = Callable[[str, Mapping[str, object]], None]

_emitter: Optional[SessionTelemetryEmitter] = None
_logger = logging.getLogger("shootaround.telemetry.events")


def set_session_telemetry_emitter(candidate: SessionTelemetryEmitter | None) -> None:
    """Register a telemetry emitter used for session instrumentation."""

    global _emitter
    _emitter = candidate if callable(candidate) else None


def _safe_emit(event: str, payload: MutableMapping[str, object]) -> None:
    if not _emitter:
        _logger.debug("telemetry emitter not configured for event %s", event)
        return
    try:
        _emitter(event, dict(payload))
    except Exception:  # pragma: no cover - logging only
        _logger.exception("failed to emit telemetry event %s", event)


def record_session_persisted(
    session_id: str,
    duration_ms: float,
    *,
    status: str,
    outcome: str,
    shots: int | None = None,
) -> None:
    payload: Dict[str, object] = {
        "sessionId": session_id,
        "durationMs": int(max(0, round(duration_ms))),
        "status": status,
        "outcome": outcome,
        "ts": _now_ms(),
    }
    if shots is not None:
        payload["shots"] = int(shots)
    _safe_emit("session.persist", payload)


def record_sessions_loaded(
    *, kind: str, remote_ok: bool, local_count: int, total: int
) -> None:
    payload: Dict[str, object] = {
        "kind": kind,
        "remoteOk": bool(remote_ok),
        "localCount": int(local_count),
        "total": int(total),
        "ts": _now_ms(),
    }
    _safe_emit("session.load", payload)


def _now_ms() -> int:
    from time import time

    return int(time() * 1000)


__all__ = [
    "SessionTelemetryEmitter",
    "set_session_telemetry_emitter",
    "record_session_persisted",
    "record_sessions_loaded",
]
