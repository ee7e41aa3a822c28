from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from .models import Session, parse_dt

OFFLINE_MESSAGE = "Working offline. Showing locally saved sessions."
UNREACHABLE_MESSAGE = (
    "Unable to reach the session service. Sessions will be saved locally."
)


def _dedupe_key(session: Session) -> str:
    if session.id:
        return session.id
    return session.model_dump_json()


def merge_sessions(primary: Iterable[Session], secondary: Iterable[Session]) -> list[Session]:
    """Union of both lists, first occurrence of each session winning.

    Pass the store's sessions as *primary*: when a session exists in both
    sources the store copy is kept and the local copy is dropped.
    """

    seen: set[str] = set()
    merged: list[Session] = []
    for group in (primary, secondary):
        for session in group:
            if session is None:
                continue
            key = _dedupe_key(session)
            if key in seen:
                continue
            seen.add(key)
            merged.append(session)
    return merged


def _recency(session: Session) -> Optional[datetime]:
    return parse_dt(session.last_modified)


def sort_by_recency(sessions: Iterable[Session]) -> list[Session]:
    dated: list[tuple[datetime, int, Session]] = []
    undated: list[Session] = []
    for index, session in enumerate(sessions):
        ts = _recency(session)
        if ts is None:
            undated.append(session)
        else:
            dated.append((ts, index, session))
    # Newest first; equal timestamps keep their input order.
    dated.sort(key=lambda item: (-item[0].timestamp(), item[1]))
    return [session for _, _, session in dated] + undated


def load_error_message(remote_failed: bool, local_count: int) -> str | None:
    if not remote_failed:
        return None
    if local_count:
        return OFFLINE_MESSAGE
    return UNREACHABLE_MESSAGE


__all__ = [
    "OFFLINE_MESSAGE",
    "UNREACHABLE_MESSAGE",
    "merge_sessions",
    "sort_by_recency",
    "load_error_message",
]
