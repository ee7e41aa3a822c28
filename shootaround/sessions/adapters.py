"""Adapters between the session shapes of each source and :class:`Session`.

The local cache keeps full request payloads (with a few legacy key aliases
written by older clients), the session store answers with aggregate-only
documents, and the store itself persists flat rows. Each shape has exactly
one adapter into or out of the canonical model.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from .locations import SHOT_LOCATIONS, column_prefix
from .models import (
    SOURCE_KEY,
    LocalSessionDocument,
    RemoteSessionDocument,
    Session,
    SessionPayload,
    SessionRow,
    SessionSource,
    SessionStats,
    parse_dt,
    serialize_ts,
)
from .shots import normalize_shots

_IDENTIFIER_KEYS = ("id", "sessionId", "session_id", "identifier")
_TIMESTAMP_KEYS = (
    "updatedAt",
    "updated_at",
    "lastModified",
    "last_modified",
    "timestamp",
    "createdAt",
    "created_at",
)
_LIST_KEYS = (
    "sessions",
    "data",
    "items",
    "incompleteSessions",
    "openSessions",
    "results",
)


def _first_present(doc: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = doc.get(key)
        if value is not None:
            return value
    return None


def session_identifier(doc: Any) -> str | None:
    if isinstance(doc, Session):
        return doc.id
    if not isinstance(doc, Mapping):
        return None
    value = _first_present(doc, _IDENTIFIER_KEYS)
    if value is None or value == "":
        return None
    return str(value)


def session_player_name(doc: Any) -> str:
    if isinstance(doc, Session):
        return doc.player_name.strip()
    if not isinstance(doc, Mapping):
        return ""
    return str(_first_present(doc, ("playerName", "player")) or "").strip()


def session_timestamp(doc: Any) -> str | None:
    if isinstance(doc, Session):
        return doc.last_modified
    if not isinstance(doc, Mapping):
        return None
    value = _first_present(doc, _TIMESTAMP_KEYS)
    if value is None:
        return None
    if isinstance(value, datetime):
        return serialize_ts(value)
    return str(value)


def is_status_complete(status: Any) -> bool:
    if not status:
        return False
    return str(status).lower() in {"complete", "completed"}


def format_status(status: Any) -> str:
    if not status:
        return "Unknown"
    normalized = str(status).lower()
    if normalized == "paused":
        return "Paused"
    if normalized == "active":
        return "In Progress"
    if is_status_complete(normalized):
        return "Completed"
    return normalized[:1].upper() + normalized[1:]


def format_timestamp(doc: Any) -> str:
    raw = session_timestamp(doc)
    if not raw:
        return "Time not available"
    parsed = parse_dt(raw)
    if parsed is None:
        return raw
    return parsed.strftime("%b %d, %Y, %I:%M %p")


def attempt_count(doc: Any) -> int:
    if isinstance(doc, Session):
        if doc.shots:
            return len(doc.shots)
        return doc.reported_stats.attempts if doc.reported_stats else 0
    if not isinstance(doc, Mapping):
        return 0
    shots = doc.get("shots")
    if isinstance(shots, list):
        return len(shots)
    stats = doc.get("stats")
    if isinstance(stats, Mapping) and _is_number(stats.get("attempts")):
        return int(stats["attempts"])
    for key in ("totalShots", "attempts"):
        if _is_number(doc.get(key)):
            return int(doc[key])
    return 0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def unwrap_session_list(payload: Any) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in _LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def _reported_stats(stats: Mapping[str, Any] | None) -> SessionStats | None:
    if not stats:
        return None
    attempts = int(stats["attempts"]) if _is_number(stats.get("attempts")) else 0
    makes = int(stats["makes"]) if _is_number(stats.get("makes")) else 0
    return SessionStats(attempts=attempts, makes=makes, misses=attempts - makes)


def session_from_local(doc: Mapping[str, Any]) -> Session:
    parsed = LocalSessionDocument.model_validate(dict(doc))
    return Session(
        id=session_identifier(doc),
        player_name=parsed.player_name.strip(),
        status=parsed.status or "paused",
        shots=normalize_shots(parsed.shots),
        timestamp=parsed.timestamp or parsed.created_at,
        updated_at=parsed.updated_at,
        reported_stats=_reported_stats(parsed.stats),
        source="local",
    )


def session_from_remote(doc: Mapping[str, Any]) -> Session:
    parsed = RemoteSessionDocument.model_validate(dict(doc))
    return Session(
        id=parsed.id,
        player_name=parsed.player_name.strip(),
        status=parsed.status or "in progress",
        shots=normalize_shots(parsed.shots),
        timestamp=parsed.timestamp,
        updated_at=parsed.updated_at,
        reported_stats=_reported_stats(parsed.stats),
        source="remote",
    )


def tag_source(docs: Iterable[Mapping[str, Any]], source: SessionSource) -> list[dict]:
    return [{**doc, SOURCE_KEY: source} for doc in docs if isinstance(doc, Mapping)]


def strip_source(doc: Mapping[str, Any]) -> dict:
    sanitized = dict(doc)
    sanitized.pop(SOURCE_KEY, None)
    return sanitized


def store_status(status: Any) -> str | None:
    """Status as the store records it: ``complete``, ``in progress`` or null."""

    if is_status_complete(status):
        return "complete"
    if status == "paused":
        return "in progress"
    return None


def row_from_payload(payload: SessionPayload, *, row_id: str | None = None) -> SessionRow:
    counts = {location.id: [0, 0] for location in SHOT_LOCATIONS}
    made_total = 0
    for shot in payload.shots:
        made = shot.get("made") is True
        if made:
            made_total += 1
        bucket = counts.get(shot.get("locationId"))
        if bucket is None:
            continue
        bucket[1] += 1
        if made:
            bucket[0] += 1

    columns: dict[str, Any] = {}
    for location_id, (made, attempted) in counts.items():
        prefix = column_prefix(location_id)
        columns[f"{prefix}_made"] = made
        columns[f"{prefix}_attempted"] = attempted

    return SessionRow(
        id=row_id or payload.id or str(uuid.uuid4()),
        player_name=payload.player_name,
        session_timestamp=parse_dt(payload.timestamp) or datetime.now(timezone.utc),
        shots_made=made_total,
        shots_attempted=len(payload.shots),
        status=store_status(payload.status),
        **columns,
    )


def document_from_row(row: SessionRow) -> dict:
    ts = serialize_ts(row.session_timestamp)
    locations = {}
    for location in SHOT_LOCATIONS:
        prefix = column_prefix(location.id)
        locations[location.id] = {
            "attempts": getattr(row, f"{prefix}_attempted"),
            "makes": getattr(row, f"{prefix}_made"),
        }
    return {
        "id": row.id,
        "playerName": row.player_name,
        "status": row.status,
        "timestamp": ts,
        "updatedAt": ts,
        "stats": {
            "attempts": row.shots_attempted,
            "makes": row.shots_made,
            "misses": row.shots_attempted - row.shots_made,
        },
        "locations": locations,
        "shots": [],
    }


__all__ = [
    "session_identifier",
    "session_player_name",
    "session_timestamp",
    "is_status_complete",
    "format_status",
    "format_timestamp",
    "attempt_count",
    "unwrap_session_list",
    "session_from_local",
    "session_from_remote",
    "tag_source",
    "strip_source",
    "store_status",
    "row_from_payload",
    "document_from_row",
]
