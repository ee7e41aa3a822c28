from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, HTTPException, Query, status
from pydantic import ValidationError

from shootaround.config import DEBUG_PAYLOAD_LOGGING
from shootaround.metrics import SESSION_STORE_WRITES
from shootaround.repositories.sessions_repo import sessions_repo
from shootaround.sessions.adapters import document_from_row, row_from_payload
from shootaround.sessions.models import SessionPayload

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

logger = logging.getLogger(__name__)


def _parse_payload(body: Dict[str, Any]) -> SessionPayload:
    try:
        return SessionPayload.model_validate(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid session payload"
        ) from exc


@router.get("")
def list_sessions(status_filter: str | None = Query(default=None, alias="status")) -> List[dict]:
    rows = sessions_repo.list_rows(status=status_filter or None)
    return [document_from_row(row) for row in rows]


@router.get("/{session_id}")
def get_session(session_id: str) -> dict:
    row = sessions_repo.fetch(session_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return document_from_row(row)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_session(body: Dict[str, Any] = Body(...)) -> dict:
    payload = _parse_payload(body)
    if not payload.player_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="playerName is required"
        )
    if DEBUG_PAYLOAD_LOGGING:
        logger.debug("received session payload: %s", body)

    # Rows always get a store-assigned id; the client id is only a tracking key.
    row = row_from_payload(payload.model_copy(update={"id": None}))
    stored = sessions_repo.insert(row)
    SESSION_STORE_WRITES.labels(operation="create").inc()
    logger.info(
        "session saved: id=%s player=%s shots=%d",
        stored.id,
        stored.player_name,
        stored.shots_attempted,
    )
    return document_from_row(stored)


@router.patch("/{session_id}")
def update_session(session_id: str, body: Dict[str, Any] = Body(...)) -> dict:
    payload = _parse_payload(body)
    if DEBUG_PAYLOAD_LOGGING:
        logger.debug("updating session %s with payload: %s", session_id, body)

    existing = sessions_repo.fetch(session_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if not payload.player_name:
        payload = payload.model_copy(update={"player_name": existing.player_name})

    row = row_from_payload(payload, row_id=session_id)
    stored = sessions_repo.update(session_id, row)
    if stored is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    SESSION_STORE_WRITES.labels(operation="update").inc()
    logger.info("session updated: id=%s shots=%d", stored.id, stored.shots_attempted)
    return document_from_row(stored)


__all__ = ["router"]
