from __future__ import annotations

from shootaround.sessions.models import Session
from shootaround.sessions.reconcile import (
    OFFLINE_MESSAGE,
    UNREACHABLE_MESSAGE,
    load_error_message,
    merge_sessions,
    sort_by_recency,
)


def _session(session_id, source="local", ts=None, name="J. Doe") -> Session:
    return Session(id=session_id, player_name=name, source=source, updated_at=ts)


def test_merge_prefers_first_list_on_shared_identifier() -> None:
    remote = [_session("a", "remote"), _session("b", "remote")]
    local = [_session("b", "local"), _session("c", "local")]

    merged = merge_sessions(remote, local)

    assert [s.id for s in merged] == ["a", "b", "c"]
    assert next(s for s in merged if s.id == "b").source == "remote"


def test_merge_dedupes_within_one_list() -> None:
    merged = merge_sessions([_session("a"), _session("a", ts="2024-01-01")], [])
    assert len(merged) == 1
    assert merged[0].updated_at is None


def test_merge_without_identifier_uses_document_equality() -> None:
    first = _session(None, name="K. Lee")
    same = _session(None, name="K. Lee")
    other = _session(None, name="M. Ray")

    merged = merge_sessions([first], [same, other])
    assert merged == [first, other]


def test_sort_by_recency_newest_first_and_undated_last() -> None:
    sessions = [
        _session("old", ts="2024-01-01T00:00:00Z"),
        _session("bad", ts="not a date"),
        _session("new", ts="2024-03-01T00:00:00Z"),
        _session("none"),
        _session("mid", ts="2024-02-01T00:00:00+00:00"),
    ]
    ordered = [s.id for s in sort_by_recency(sessions)]
    assert ordered == ["new", "mid", "old", "bad", "none"]


def test_sort_by_recency_is_stable_for_ties() -> None:
    sessions = [
        _session("first", ts="2024-01-01T00:00:00Z"),
        _session("second", ts="2024-01-01T00:00:00Z"),
    ]
    assert [s.id for s in sort_by_recency(sessions)] == ["first", "second"]


def test_sort_falls_back_to_timestamp_field() -> None:
    older = Session(id="a", timestamp="2024-01-01T00:00:00Z")
    newer = Session(id="b", timestamp="2024-01-02T00:00:00Z")
    assert [s.id for s in sort_by_recency([older, newer])] == ["b", "a"]


def test_load_error_message_policy() -> None:
    assert load_error_message(False, 0) is None
    assert load_error_message(False, 3) is None
    assert load_error_message(True, 2) == OFFLINE_MESSAGE
    assert load_error_message(True, 0) == UNREACHABLE_MESSAGE
