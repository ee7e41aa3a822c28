from .controller import (
    PersistResult,
    PreviousSession,
    SessionController,
    SessionPersistError,
    SessionState,
)
from .local_cache import LocalSessionCache
from .models import Session, SessionStats, ShotRecord
from .remote import (
    SessionNotFound,
    SessionStoreClient,
    SessionStoreError,
    SessionStoreUnavailable,
)

__all__ = [
    "Session",
    "SessionStats",
    "ShotRecord",
    "SessionController",
    "SessionState",
    "PersistResult",
    "PreviousSession",
    "SessionPersistError",
    "LocalSessionCache",
    "SessionStoreClient",
    "SessionStoreError",
    "SessionStoreUnavailable",
    "SessionNotFound",
]
