from __future__ import annotations

import errno
import json
import os

import pytest

from shootaround.sessions import local_cache as local_cache_module
from shootaround.sessions.local_cache import (
    LOCAL_SESSION_STORAGE_KEY,
    LocalSessionCache,
    classify_storage_error,
)


def _doc(session_id: str | None = "s-1", **extra) -> dict:
    doc = {
        "id": session_id,
        "status": "paused",
        "playerName": "J. Doe",
        "shots": [],
        "timestamp": "2024-03-01T10:00:00.000Z",
    }
    doc.update(extra)
    return doc


def test_read_all_missing_file(cache: LocalSessionCache) -> None:
    assert cache.read_all() == []


def test_read_all_tolerates_corrupt_or_wrong_shape(cache: LocalSessionCache) -> None:
    cache.path.parent.mkdir(parents=True, exist_ok=True)
    cache.path.write_text("{not json", encoding="utf-8")
    assert cache.read_all() == []

    cache.path.write_text(json.dumps({"id": "s-1"}), encoding="utf-8")
    assert cache.read_all() == []


def test_default_path_uses_data_dir(tmp_path) -> None:
    cache = LocalSessionCache()
    assert cache.path == tmp_path / "data" / f"{LOCAL_SESSION_STORAGE_KEY}.json"
    assert cache.is_available is True


def test_upsert_round_trip_strips_provenance(cache: LocalSessionCache) -> None:
    assert cache.upsert({**_doc(), "__source": "remote"}) is True

    stored = cache.read_all()
    assert len(stored) == 1
    entry = stored[0]
    assert "__source" not in entry
    assert entry["playerName"] == "J. Doe"
    assert entry["timestamp"] == "2024-03-01T10:00:00.000Z"
    assert entry["updatedAt"]


def test_upsert_keeps_existing_updated_at(cache: LocalSessionCache) -> None:
    cache.upsert(_doc(updatedAt="2024-03-02T00:00:00.000Z"))
    assert cache.read_all()[0]["updatedAt"] == "2024-03-02T00:00:00.000Z"


def test_upsert_replaces_same_identifier(cache: LocalSessionCache) -> None:
    cache.upsert(_doc("s-1"))
    cache.upsert(_doc("s-2"))
    cache.upsert(_doc("s-1", status="complete"))

    stored = cache.read_all()
    assert [entry["id"] for entry in stored] == ["s-2", "s-1"]
    assert stored[1]["status"] == "complete"


def test_upsert_matches_legacy_identifier_keys(cache: LocalSessionCache) -> None:
    cache.write_all([{"session_id": "legacy", "status": "paused"}])
    cache.upsert(_doc("legacy"))
    assert len(cache.read_all()) == 1


def test_upsert_requires_identifier(cache: LocalSessionCache, caplog) -> None:
    with caplog.at_level("ERROR", logger="shootaround.sessions.local_cache"):
        assert cache.upsert(_doc(None)) is False
    assert "missing identifier" in caplog.text
    assert cache.read_all() == []


def test_remove(cache: LocalSessionCache) -> None:
    cache.upsert(_doc("s-1"))
    cache.upsert(_doc("s-2"))

    assert cache.remove("s-1") is True
    assert [entry["id"] for entry in cache.read_all()] == ["s-2"]
    assert cache.remove("missing") is False
    assert cache.remove(None) is False
    assert cache.get("s-2")["id"] == "s-2"
    assert cache.get("s-1") is None


def test_list_incomplete_tags_local_source(cache: LocalSessionCache) -> None:
    cache.upsert(_doc("s-1", status="paused"))
    cache.upsert(_doc("s-2", status="Completed"))
    cache.upsert(_doc("s-3", status=None))

    pending = cache.list_incomplete()
    assert [entry["id"] for entry in pending] == ["s-1", "s-3"]
    assert all(entry["__source"] == "local" for entry in pending)
    # Tagging never leaks into the stored document.
    assert all("__source" not in entry for entry in cache.read_all())


def test_list_incomplete_custom_predicate(cache: LocalSessionCache) -> None:
    cache.upsert(_doc("s-1", status="paused"))
    assert cache.list_incomplete(lambda status: status == "paused") == []


def test_write_all_reports_quota_failure(cache: LocalSessionCache, monkeypatch, caplog) -> None:
    def _full(*_args, **_kwargs):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(local_cache_module.os, "replace", _full)
    with caplog.at_level("ERROR", logger="shootaround.sessions.local_cache"):
        assert cache.write_all([_doc()]) is False
    assert "quota_exceeded" in caplog.text
    assert cache.upsert(_doc()) is False


def test_unwritable_location_is_not_available(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    cache = LocalSessionCache(blocker / "cache.json")

    assert cache.is_available is False
    assert cache.read_all() == []
    assert cache.upsert(_doc()) is False


def test_overlong_path_never_raises(tmp_path) -> None:
    cache = LocalSessionCache(tmp_path / ("x" * 300) / "cavs.offlineSessions.json")

    assert cache.is_available is False
    assert cache.read_all() == []
    assert cache.upsert(_doc()) is False
    assert cache.remove("s-1") is False
    assert cache.get("s-1") is None
    assert cache.list_incomplete() == []


def test_unreadable_file_is_logged_and_empty(cache: LocalSessionCache, monkeypatch, caplog) -> None:
    cache.upsert(_doc())

    def _denied(*_args, **_kwargs):
        raise PermissionError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(type(cache.path), "read_text", _denied)
    with caplog.at_level("WARNING", logger="shootaround.sessions.local_cache"):
        assert cache.read_all() == []
    assert "unable to read stored sessions" in caplog.text


@pytest.mark.parametrize(
    "exc,cause",
    [
        (PermissionError(errno.EACCES, "denied"), "access_denied"),
        (OSError(errno.EROFS, "read-only"), "access_denied"),
        (OSError(errno.ENOSPC, "full"), "quota_exceeded"),
        (OSError(errno.EIO, "io"), "unknown"),
        (TypeError("not serializable"), "unknown"),
    ],
)
def test_classify_storage_error(exc, cause) -> None:
    assert classify_storage_error(exc) == cause


def test_write_is_atomic_replace(cache: LocalSessionCache) -> None:
    cache.upsert(_doc())
    leftovers = [name for name in os.listdir(cache.path.parent) if name.endswith(".tmp")]
    assert leftovers == []
