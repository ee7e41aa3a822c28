"""Durable on-disk cache of sessions that may not have reached the store.

The whole cache is one JSON array under a fixed namespaced file name and is
always read and written as a single document. Nothing here raises: callers
get ``[]`` or ``False`` and the cause is logged.
"""

from __future__ import annotations

import errno
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Mapping

from shootaround.config import get_settings

from .adapters import is_status_complete, session_identifier, strip_source, tag_source
from .models import now_iso

LOCAL_SESSION_STORAGE_KEY = "cavs.offlineSessions"

_logger = logging.getLogger("shootaround.sessions.local_cache")

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}
_ACCESS_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}


def classify_storage_error(exc: BaseException) -> str:
    if isinstance(exc, PermissionError):
        return "access_denied"
    if isinstance(exc, OSError):
        if exc.errno in _QUOTA_ERRNOS:
            return "quota_exceeded"
        if exc.errno in _ACCESS_ERRNOS:
            return "access_denied"
    return "unknown"


def _default_path() -> Path:
    return Path(get_settings().data_dir) / f"{LOCAL_SESSION_STORAGE_KEY}.json"


class LocalSessionCache:
    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path).expanduser() if path else _default_path()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_available(self) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self._path.parent, os.W_OK)

    def read_all(self) -> list[dict]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (FileNotFoundError, NotADirectoryError):
            return []
        except (OSError, ValueError) as exc:
            _logger.warning("unable to read stored sessions: %s", exc)
            return []
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    def write_all(self, sessions: list[Mapping[str, Any]]) -> bool:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            serialized = json.dumps(list(sessions), indent=2)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(serialized, encoding="utf-8")
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as exc:
            cause = classify_storage_error(exc)
            _logger.error("unable to write stored sessions (%s): %s", cause, exc)
            if cause == "quota_exceeded":
                _logger.error(
                    "session cache storage is full; clear old sessions or free disk space"
                )
            elif cause == "access_denied":
                _logger.error("session cache access denied at %s", self._path)
            return False
        return True

    def upsert(self, session: Mapping[str, Any]) -> bool:
        identifier = session_identifier(session)
        if not identifier:
            _logger.error("session missing identifier, cannot save: %r", dict(session))
            return False

        sanitized = strip_source(session)
        if not sanitized.get("updatedAt"):
            sanitized["updatedAt"] = now_iso()

        remaining = [
            entry for entry in self.read_all() if session_identifier(entry) != identifier
        ]
        remaining.append(sanitized)
        return self.write_all(remaining)

    def remove(self, identifier: str | None) -> bool:
        if not identifier:
            return False
        existing = self.read_all()
        remaining = [entry for entry in existing if session_identifier(entry) != identifier]
        if len(remaining) == len(existing):
            return False
        return self.write_all(remaining)

    def get(self, identifier: str) -> dict | None:
        for entry in self.read_all():
            if session_identifier(entry) == identifier:
                return entry
        return None

    def list_incomplete(
        self, is_complete: Callable[[Any], bool] = is_status_complete
    ) -> list[dict]:
        pending = [entry for entry in self.read_all() if not is_complete(entry.get("status"))]
        return tag_source(pending, "local")


__all__ = [
    "LOCAL_SESSION_STORAGE_KEY",
    "LocalSessionCache",
    "classify_storage_error",
]
