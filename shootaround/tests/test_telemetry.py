from __future__ import annotations

import logging

from shootaround.telemetry import events as telemetry


def test_records_are_noop_without_emitter(caplog) -> None:
    telemetry.set_session_telemetry_emitter(None)
    with caplog.at_level(logging.DEBUG, logger="shootaround.telemetry.events"):
        telemetry.record_sessions_loaded(kind="incomplete", remote_ok=True, local_count=0, total=0)
    assert "telemetry emitter not configured" in caplog.text


def test_persist_event_payload() -> None:
    captured: list[tuple[str, dict]] = []
    telemetry.set_session_telemetry_emitter(lambda event, payload: captured.append((event, payload)))

    telemetry.record_session_persisted("s-1", 12.6, status="paused", outcome="remote", shots=4)

    event, payload = captured[0]
    assert event == "session.persist"
    assert payload["sessionId"] == "s-1"
    assert payload["durationMs"] == 13
    assert payload["status"] == "paused"
    assert payload["outcome"] == "remote"
    assert payload["shots"] == 4
    assert isinstance(payload["ts"], int)


def test_load_event_payload() -> None:
    captured: list[tuple[str, dict]] = []
    telemetry.set_session_telemetry_emitter(lambda event, payload: captured.append((event, payload)))

    telemetry.record_sessions_loaded(kind="previous", remote_ok=False, local_count=2, total=2)

    event, payload = captured[0]
    assert event == "session.load"
    assert payload["remoteOk"] is False
    assert payload["localCount"] == 2


def test_non_callable_emitter_is_ignored() -> None:
    telemetry.set_session_telemetry_emitter("not callable")  # type: ignore[arg-type]
    telemetry.record_session_persisted("s-1", -5, status="paused", outcome="offline")
