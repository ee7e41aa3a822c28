from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Protocol

from shootaround.config import get_settings
from shootaround.sessions.models import SessionRow

__all__ = [
    "SessionsRepository",
    "InMemorySessionsRepository",
    "JsonFileSessionsRepository",
    "sessions_repo",
]

_logger = logging.getLogger(__name__)


class SessionsRepository(Protocol):
    def list_rows(self, *, status: str | None = None) -> List[SessionRow]: ...

    def fetch(self, row_id: str) -> SessionRow | None: ...

    def insert(self, row: SessionRow) -> SessionRow: ...

    def update(self, row_id: str, row: SessionRow) -> SessionRow | None: ...


def _sort_key(row: SessionRow) -> datetime:
    return row.session_timestamp or datetime.min.replace(tzinfo=timezone.utc)


class InMemorySessionsRepository:
    def __init__(self) -> None:
        self._rows: Dict[str, SessionRow] = {}
        self._lock = threading.Lock()

    def list_rows(self, *, status: str | None = None) -> List[SessionRow]:
        with self._lock:
            rows = [
                row
                for row in self._rows.values()
                if status is None or row.status == status
            ]
        rows.sort(key=_sort_key, reverse=True)
        return rows

    def fetch(self, row_id: str) -> SessionRow | None:
        with self._lock:
            return self._rows.get(row_id)

    def insert(self, row: SessionRow) -> SessionRow:
        with self._lock:
            self._rows[row.id] = row
        return row

    def update(self, row_id: str, row: SessionRow) -> SessionRow | None:
        with self._lock:
            if row_id not in self._rows:
                return None
            updated = row.model_copy(update={"id": row_id})
            self._rows[row_id] = updated
            return updated


class JsonFileSessionsRepository(InMemorySessionsRepository):
    """In-memory rows mirrored to a JSON file after every write."""

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self._path = Path(path).expanduser()
        for row in self._load():
            self._rows[row.id] = row

    def _load(self) -> List[SessionRow]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _logger.warning("unable to read session store %s: %s", self._path, exc)
            return []
        rows: List[SessionRow] = []
        for entry in raw if isinstance(raw, list) else []:
            try:
                rows.append(SessionRow.from_dict(entry))
            except (TypeError, ValueError):
                continue
        return rows

    def _write(self) -> None:
        with self._lock:
            payload = [row.to_dict() for row in self._rows.values()]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def insert(self, row: SessionRow) -> SessionRow:
        stored = super().insert(row)
        self._write()
        return stored

    def update(self, row_id: str, row: SessionRow) -> SessionRow | None:
        stored = super().update(row_id, row)
        if stored is not None:
            self._write()
        return stored


class _SessionsRepoFacade:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._repo: SessionsRepository = self._build_default()

    def _build_default(self) -> SessionsRepository:
        store_path = get_settings().store_path
        if store_path:
            return JsonFileSessionsRepository(store_path)
        return InMemorySessionsRepository()

    def set_repository(self, repo: SessionsRepository) -> None:
        with self._lock:
            self._repo = repo

    def reset(self) -> None:
        with self._lock:
            self._repo = self._build_default()

    def __getattr__(self, name: str):
        repo = self._repo
        return getattr(repo, name)


sessions_repo = _SessionsRepoFacade()
