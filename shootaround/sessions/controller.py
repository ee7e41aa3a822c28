"""Session lifecycle: setup -> active <-> paused -> complete.

The controller owns one :class:`SessionState` and is the only place that
decides when a session is written and to which store. Statistics and shot
normalization are delegated to the pure helpers in ``stats`` and ``shots``.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import ValidationError

from shootaround.config import MAX_PREVIOUS_SESSIONS
from shootaround.metrics import SESSION_PERSISTS
from shootaround.telemetry.events import (
    record_session_persisted,
    record_sessions_loaded,
)

from .adapters import (
    is_status_complete,
    session_from_local,
    session_from_remote,
    session_player_name,
)
from .local_cache import LocalSessionCache
from .locations import MAX_SHOTS_PER_LOCATION, MAX_TOTAL_SHOTS, get_location
from .models import (
    LocationStats,
    Session,
    SessionPayload,
    SessionPhase,
    SessionStats,
    ShotRecord,
    now_iso,
)
from .reconcile import load_error_message, merge_sessions, sort_by_recency
from .remote import SessionNotFound, SessionStoreClient, SessionStoreError
from .shots import normalize_shot, normalize_shots
from .stats import (
    aggregate_stats,
    all_locations_completed,
    calculate_session_stats,
    per_location_stats,
)

_logger = logging.getLogger(__name__)

STORE_STATUS_IN_PROGRESS = "in progress"
CLEAR_SHOTS_PROMPT = "Are you sure you want to clear all shots?"
PLAYER_NAME_REQUIRED = "Please enter a player name to begin."

_PERSIST_MESSAGES = {
    "paused": "Saving your session and pausing progress...",
    "active": "Resuming your session...",
    "complete": "Saving your session and marking it complete...",
}
_SAVED_LOCALLY_MESSAGE = "Session saved locally. Connect to the internet to sync."
_ALL_COMPLETE_MESSAGE = (
    "All locations complete! Mark the session complete when you are ready."
)


class SessionPersistError(RuntimeError):
    """Neither the local cache nor the session store holds the session."""

    def __init__(self, endpoint: str, cause: BaseException | None) -> None:
        detail = f": {cause}" if cause else ""
        super().__init__(f"Unable to write the session to {endpoint or 'storage'}{detail}")
        self.endpoint = endpoint
        self.cause = cause


@dataclass
class PersistResult:
    saved_locally: bool
    saved_remotely: bool
    offline: bool = False
    error: Optional[BaseException] = None


@dataclass
class PreviousSession:
    session: Session
    stats: SessionStats
    timestamp: Optional[str] = None


@dataclass
class SessionState:
    phase: SessionPhase = "setup"
    session_id: Optional[str] = None
    player_name: str = ""
    player_name_error: str = ""
    shots: list[ShotRecord] = field(default_factory=list)
    active_location_id: Optional[str] = None
    current_shot_type: str = "make"
    selection_message: str = ""
    is_persisting: bool = False
    incomplete_sessions: list[Session] = field(default_factory=list)
    sessions_load_error: Optional[str] = None
    is_loading_sessions: bool = False
    previous_sessions: list[PreviousSession] = field(default_factory=list)
    is_loading_previous_sessions: bool = False

    @property
    def is_paused(self) -> bool:
        return self.phase == "paused"

    @property
    def is_complete(self) -> bool:
        return self.phase == "complete"


def _default_confirm(_prompt: str) -> bool:
    return True


def _new_session_id() -> str:
    return str(uuid.uuid4())


class SessionController:
    def __init__(
        self,
        cache: LocalSessionCache,
        remote: SessionStoreClient | None = None,
        *,
        confirm: Callable[[str], bool] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._confirm = confirm or _default_confirm
        self._id_factory = id_factory or _new_session_id
        self.state = SessionState()

    # Derived views
    @property
    def stats(self) -> SessionStats:
        return aggregate_stats(self.state.shots)

    @property
    def location_stats(self) -> list[LocationStats]:
        return per_location_stats(self.state.shots)

    @property
    def all_locations_completed(self) -> bool:
        return all_locations_completed(self.state.shots)

    @property
    def remote_enabled(self) -> bool:
        return self._store() is not None

    def _store(self) -> SessionStoreClient | None:
        if self._remote is not None and self._remote.configured:
            return self._remote
        return None

    def _location_stat(self, location_id: str) -> LocationStats | None:
        for stat in self.location_stats:
            if stat.id == location_id:
                return stat
        return None

    # Setup
    def begin_session(self, player_name: str) -> bool:
        name = (player_name or "").strip()
        if not name:
            self.state.player_name_error = PLAYER_NAME_REQUIRED
            return False
        self.state.player_name = name
        self.state.player_name_error = ""
        self.state.phase = "active"
        self.update_selection_message()
        return True

    def update_selection_message(self, completed_label: str | None = None) -> None:
        state = self.state
        if completed_label:
            state.selection_message = f"{completed_label} complete! Select a new location."
        elif state.is_complete:
            state.selection_message = (
                "Session complete. Start a new session or review your stats."
            )
        elif state.is_paused:
            state.selection_message = "Session paused. Click Resume to continue."
        elif state.is_persisting:
            state.selection_message = "Saving your session..."
        elif self.all_locations_completed:
            state.selection_message = _ALL_COMPLETE_MESSAGE
        elif state.active_location_id and (
            stat := self._location_stat(state.active_location_id)
        ):
            remaining = max(MAX_SHOTS_PER_LOCATION - stat.attempts, 0)
            if remaining > 0:
                state.selection_message = (
                    f"Tracking {stat.label}: {stat.attempts}/{MAX_SHOTS_PER_LOCATION} "
                    f"shots logged ({remaining} remaining)."
                )
            else:
                state.selection_message = f"{stat.label} complete! Select a new location."
        else:
            state.selection_message = ""

    def _blocked(self, *, paused_message: str) -> bool:
        state = self.state
        if state.is_complete:
            state.selection_message = (
                "Session complete. Start a new session to log more shots."
            )
            return True
        if state.is_paused:
            state.selection_message = paused_message
            return True
        if state.is_persisting:
            state.selection_message = "Saving session. Please wait..."
            return True
        return False

    # Shot tracking
    def select_location(self, location_id: str) -> bool:
        if self._blocked(paused_message="Session paused. Click Resume to continue."):
            return False
        location = get_location(location_id)
        if location is None:
            return False
        stat = self._location_stat(location.id)
        if stat is not None and stat.is_completed:
            self.state.selection_message = (
                f"{stat.label} shots are already complete. Choose another location."
            )
            return False
        self.state.active_location_id = location.id
        self.update_selection_message()
        return True

    def log_shot(
        self, made: bool, coords: Mapping[str, Any] | None = None
    ) -> ShotRecord | None:
        state = self.state
        state.current_shot_type = "make" if made else "miss"
        if self._blocked(
            paused_message="Session paused. Click Resume to continue logging shots."
        ):
            return None

        location_id = state.active_location_id
        if not location_id:
            self.update_selection_message()
            return None
        location = get_location(location_id)
        if location is None:
            state.active_location_id = None
            self.update_selection_message()
            return None

        stat = self._location_stat(location.id)
        if stat is not None and stat.is_completed:
            state.active_location_id = None
            self.update_selection_message(location.label)
            return None
        if len(state.shots) >= MAX_TOTAL_SHOTS:
            state.selection_message = _ALL_COMPLETE_MESSAGE
            return None

        base = coords or {
            "normalizedX": location.normalized_x,
            "normalizedY": location.normalized_y,
        }
        shot = normalize_shot(
            {
                "normalizedX": base.get("normalizedX", base.get("normalized_x")),
                "normalizedY": base.get("normalizedY", base.get("normalized_y")),
                "made": made,
                "locationId": location.id,
                "timestamp": now_iso(),
            }
        )
        if shot is None:
            return None
        state.shots.append(shot)

        attempts = (stat.attempts if stat else 0) + 1
        if attempts >= MAX_SHOTS_PER_LOCATION:
            state.active_location_id = None
            self.update_selection_message(location.label)
        else:
            self.update_selection_message()
        return shot

    def undo_last_shot(self) -> ShotRecord | None:
        state = self.state
        if not state.shots:
            return None
        if state.is_complete or state.is_paused:
            return None
        removed = state.shots.pop()
        self.update_selection_message()
        return removed

    def clear_shots(self) -> bool:
        state = self.state
        if not state.shots:
            return False
        if not self._confirm(CLEAR_SHOTS_PROMPT):
            return False
        state.shots = []
        state.active_location_id = None
        return True

    # Persistence
    def ensure_session_id(self) -> str:
        if not self.state.session_id:
            self.state.session_id = self._id_factory()
        return self.state.session_id

    def build_payload(self, status: str, session_id: str, timestamp: str) -> SessionPayload:
        shots = self.state.shots
        return SessionPayload(
            id=session_id,
            status=status,
            player_name=self.state.player_name,
            shots=[shot.model_dump(by_alias=True) for shot in shots],
            stats=aggregate_stats(shots),
            locations=per_location_stats(shots),
            session_id=session_id,
            timestamp=timestamp,
            updated_at=timestamp,
        )

    async def persist(self, status: str) -> PersistResult:
        state = self.state
        if not state.shots:
            return PersistResult(saved_locally=False, saved_remotely=False)
        if state.is_persisting:
            # Dropped, not queued: the in-flight write already carries the shots.
            _logger.debug("persist already in flight, dropping %s request", status)
            SESSION_PERSISTS.labels(outcome="dropped").inc()
            return PersistResult(saved_locally=False, saved_remotely=False)

        state.selection_message = _PERSIST_MESSAGES.get(status, "Saving your session...")
        had_existing_id = bool(state.session_id)
        session_id = self.ensure_session_id()
        payload = self.build_payload(status, session_id, now_iso())
        document = payload.to_document()
        started = time.perf_counter()

        saved_locally = self._cache.upsert(document)

        remote = self._store()
        if remote is None:
            if not saved_locally:
                self._record(session_id, status, "failed", started)
                raise SessionPersistError("local cache", None)
            state.selection_message = _SAVED_LOCALLY_MESSAGE
            self._record(session_id, status, "offline", started)
            return PersistResult(saved_locally=True, saved_remotely=False, offline=True)

        body: dict | None = None
        created = False
        state.is_persisting = True
        try:
            if had_existing_id:
                try:
                    body = await remote.update_session(session_id, document)
                except SessionNotFound:
                    # First save never reached the store; create it now.
                    body = await remote.create_session(document)
                    created = True
            else:
                body = await remote.create_session(document)
                created = True
        except SessionStoreError as exc:
            _logger.warning(
                "unable to persist session %s to %s: %s",
                session_id,
                remote.endpoint,
                exc,
            )
            if not saved_locally:
                saved_locally = self._cache.upsert(document)
            if saved_locally:
                state.selection_message = _SAVED_LOCALLY_MESSAGE
                self._record(session_id, status, "offline", started)
                return PersistResult(
                    saved_locally=True, saved_remotely=False, offline=True, error=exc
                )
            self._record(session_id, status, "failed", started)
            raise SessionPersistError(remote.endpoint, exc) from exc
        finally:
            state.is_persisting = False

        final_id = session_id
        server_id = body.get("id") if created and body else None
        if server_id and str(server_id) != session_id:
            if state.session_id == session_id:
                state.session_id = str(server_id)
            self._cache.remove(session_id)
            final_id = str(server_id)
            document = {**document, "id": final_id, "sessionId": final_id}

        if is_status_complete(status):
            self._cache.remove(final_id)
        else:
            self._cache.upsert(document)

        self._record(final_id, status, "remote", started)
        return PersistResult(saved_locally=saved_locally, saved_remotely=True)

    def _record(self, session_id: str, status: str, outcome: str, started: float) -> None:
        SESSION_PERSISTS.labels(outcome=outcome).inc()
        record_session_persisted(
            session_id,
            (time.perf_counter() - started) * 1000.0,
            status=status,
            outcome=outcome,
            shots=len(self.state.shots),
        )

    # Lifecycle transitions
    async def pause_session(self) -> PersistResult | None:
        state = self.state
        if state.phase != "active":
            return None
        if state.is_persisting:
            state.selection_message = "Saving session. Please wait..."
            return None
        result = await self.persist("paused")
        state.phase = "paused"
        self.update_selection_message()
        return result

    async def resume_session(self) -> PersistResult | None:
        state = self.state
        if state.phase != "paused":
            return None
        result = None
        if state.shots:
            result = await self.persist("active")
        state.phase = "active"
        self.update_selection_message()
        return result

    async def complete_session(self, *, force: bool = False) -> PersistResult | None:
        state = self.state
        if state.is_complete or state.phase == "setup":
            return None
        if state.is_persisting:
            state.selection_message = "Saving session. Please wait..."
            return None
        if not force and not self.all_locations_completed:
            state.selection_message = (
                "Finish every location before marking the session complete."
            )
            return None
        result = await self.persist("complete")
        state.phase = "complete"
        state.active_location_id = None
        self.update_selection_message()
        return result

    def resume_stored_session(self, session: Session) -> None:
        """Load a stored session into the controller, paused."""

        shots = session.shots
        if not shots and session.id:
            local = self._cache.get(session.id)
            if local:
                shots = normalize_shots(local.get("shots"))
        state = self.state
        state.session_id = session.id
        state.player_name = session.player_name.strip()
        state.player_name_error = ""
        state.shots = list(shots)
        state.active_location_id = None
        state.phase = "paused"
        self.update_selection_message()

    def reset(self) -> None:
        state = self.state
        state.session_id = None
        if state.phase != "setup":
            state.phase = "active"
        state.is_persisting = False

    def start_new_session(self) -> None:
        self.reset()
        state = self.state
        state.phase = "setup"
        state.shots = []
        state.active_location_id = None
        state.current_shot_type = "make"
        state.selection_message = ""
        state.previous_sessions = []

    # Loading
    async def load_incomplete_sessions(self) -> list[Session]:
        state = self.state
        state.is_loading_sessions = True
        state.sessions_load_error = None

        local_sessions = _adapt(
            self._cache.list_incomplete(is_status_complete), session_from_local
        )
        remote_sessions: list[Session] = []
        remote_failed = False

        remote = self._store()
        if remote is not None:
            try:
                docs = await remote.list_sessions(status=STORE_STATUS_IN_PROGRESS)
            except SessionStoreError as exc:
                _logger.warning("unable to load sessions: %s", exc)
                remote_failed = True
            else:
                remote_sessions = [
                    session
                    for session in _adapt(docs, session_from_remote)
                    if not is_status_complete(session.status)
                ]
        else:
            remote_failed = True

        merged = sort_by_recency(merge_sessions(remote_sessions, local_sessions))
        state.incomplete_sessions = merged
        state.sessions_load_error = load_error_message(remote_failed, len(local_sessions))
        state.is_loading_sessions = False
        record_sessions_loaded(
            kind="incomplete",
            remote_ok=not remote_failed,
            local_count=len(local_sessions),
            total=len(merged),
        )
        return merged

    async def load_previous_sessions(self) -> list[PreviousSession]:
        state = self.state
        if not state.player_name:
            return []
        state.is_loading_previous_sessions = True
        state.previous_sessions = []

        remote_ok = False
        try:
            remote = self._store()
            if remote is not None:
                try:
                    docs = await remote.list_sessions(status="complete")
                except SessionStoreError as exc:
                    _logger.warning("unable to load previous sessions: %s", exc)
                else:
                    remote_ok = True
                    state.previous_sessions = self._player_sessions(
                        _adapt(docs, session_from_remote), from_store=True
                    )
            if not remote_ok:
                state.previous_sessions = self._player_sessions(
                    _adapt(self._cache.read_all(), session_from_local), from_store=False
                )
        finally:
            state.is_loading_previous_sessions = False

        record_sessions_loaded(
            kind="previous",
            remote_ok=remote_ok,
            local_count=0 if remote_ok else len(state.previous_sessions),
            total=len(state.previous_sessions),
        )
        return state.previous_sessions

    def _player_sessions(
        self, sessions: Iterable[Session], *, from_store: bool
    ) -> list[PreviousSession]:
        name = self.state.player_name.strip()
        current_id = self.state.session_id
        matching = [
            session
            for session in sessions
            if session_player_name(session) == name
            and (from_store or is_status_complete(session.status))
            and session.id != current_id
        ]
        recent = sort_by_recency(matching)[:MAX_PREVIOUS_SESSIONS]
        return [
            PreviousSession(
                session=session,
                stats=calculate_session_stats(session),
                timestamp=session.last_modified if from_store else session.timestamp,
            )
            for session in recent
        ]


def _adapt(
    docs: Iterable[Mapping[str, Any]], adapter: Callable[[Mapping[str, Any]], Session]
) -> list[Session]:
    sessions: list[Session] = []
    for doc in docs:
        try:
            sessions.append(adapter(doc))
        except ValidationError as exc:
            _logger.warning("skipping unreadable session document: %s", exc)
    return sessions


__all__ = [
    "SessionController",
    "SessionState",
    "PersistResult",
    "PreviousSession",
    "SessionPersistError",
    "STORE_STATUS_IN_PROGRESS",
    "CLEAR_SHOTS_PROMPT",
    "PLAYER_NAME_REQUIRED",
]
