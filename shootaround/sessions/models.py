from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

SessionSource = Literal["local", "remote"]
SessionPhase = Literal["setup", "active", "paused", "complete"]

SOURCE_KEY = "__source"


class ShotRecord(BaseModel):
    normalized_x: float = Field(
        validation_alias=AliasChoices("normalized_x", "normalizedX"),
        serialization_alias="normalizedX",
    )
    normalized_y: float = Field(
        validation_alias=AliasChoices("normalized_y", "normalizedY"),
        serialization_alias="normalizedY",
    )
    made: bool
    location_id: str = Field(
        validation_alias=AliasChoices("location_id", "locationId"),
        serialization_alias="locationId",
    )
    location_label: str = Field(
        validation_alias=AliasChoices("location_label", "locationLabel"),
        serialization_alias="locationLabel",
    )
    timestamp: str

    model_config = ConfigDict(populate_by_name=True)


class SessionStats(BaseModel):
    attempts: int = 0
    makes: int = 0
    misses: int = 0
    percentage: str = "0.0"


class LocationStats(BaseModel):
    id: str
    label: str
    makes: int = 0
    attempts: int = 0
    percentage: str = "0.0"
    remaining: int = 0
    is_completed: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_completed", "isCompleted"),
        serialization_alias="isCompleted",
    )

    model_config = ConfigDict(populate_by_name=True)


class Session(BaseModel):
    """Canonical session, whatever source it was read from."""

    id: Optional[str] = None
    player_name: str = Field(default="", serialization_alias="playerName")
    status: str = "active"
    shots: List[ShotRecord] = Field(default_factory=list)
    timestamp: Optional[str] = None
    updated_at: Optional[str] = Field(default=None, serialization_alias="updatedAt")
    # Aggregates reported by a source that does not keep individual shots.
    reported_stats: Optional[SessionStats] = Field(default=None, exclude=True)
    source: Optional[SessionSource] = Field(default=None, exclude=True)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def last_modified(self) -> Optional[str]:
        return self.updated_at or self.timestamp


class SessionPayload(BaseModel):
    """Body sent to the session store and written to the local cache."""

    id: Optional[str] = None
    status: Optional[str] = None
    player_name: str = Field(
        default="",
        validation_alias=AliasChoices("player_name", "playerName"),
        serialization_alias="playerName",
    )
    shots: List[Dict[str, Any]] = Field(default_factory=list)
    stats: Optional[SessionStats] = None
    locations: Optional[List[LocationStats]] = None
    session_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("session_id", "sessionId"),
        serialization_alias="sessionId",
    )
    timestamp: Optional[str] = None
    updated_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("updated_at", "updatedAt"),
        serialization_alias="updatedAt",
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class LocalSessionDocument(BaseModel):
    """Session document as kept in the local cache, including legacy aliases."""

    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("id", "sessionId", "session_id", "identifier"),
    )
    status: Optional[str] = None
    player_name: str = Field(
        default="", validation_alias=AliasChoices("playerName", "player_name", "player")
    )
    shots: List[Any] = Field(default_factory=list)
    stats: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None
    updated_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "updatedAt", "updated_at", "lastModified", "last_modified"
        ),
    )
    created_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("createdAt", "created_at")
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", "timestamp", "updated_at", "created_at", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("player_name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return str(value or "")

    @field_validator("shots", mode="before")
    @classmethod
    def _shots(cls, value: Any) -> list:
        return list(value) if isinstance(value, list) else []

    @field_validator("stats", mode="before")
    @classmethod
    def _stats(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class RemoteLocationAggregate(BaseModel):
    attempts: int = 0
    makes: int = 0


class RemoteSessionDocument(BaseModel):
    """Session document returned by the session store (aggregate only)."""

    id: Optional[str] = None
    player_name: str = Field(
        default="", validation_alias=AliasChoices("playerName", "player_name")
    )
    status: Optional[str] = None
    timestamp: Optional[str] = None
    updated_at: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("updatedAt", "updated_at")
    )
    stats: Optional[Dict[str, Any]] = None
    locations: Dict[str, RemoteLocationAggregate] = Field(default_factory=dict)
    shots: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", "timestamp", "updated_at", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, datetime):
            return serialize_ts(value)
        return str(value)

    @field_validator("player_name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return str(value or "")

    @field_validator("locations", mode="before")
    @classmethod
    def _locations(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("shots", mode="before")
    @classmethod
    def _shots(cls, value: Any) -> list:
        return list(value) if isinstance(value, list) else []

    @field_validator("stats", mode="before")
    @classmethod
    def _stats(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class SessionRow(BaseModel):
    """One aggregate row of the session store."""

    id: str
    player_name: str
    session_timestamp: datetime
    shots_made: int = Field(default=0, ge=0)
    shots_attempted: int = Field(default=0, ge=0)
    left_corner_made: int = 0
    left_corner_attempted: int = 0
    right_corner_made: int = 0
    right_corner_attempted: int = 0
    left_wing_made: int = 0
    left_wing_attempted: int = 0
    right_wing_made: int = 0
    right_wing_attempted: int = 0
    top_key_made: int = 0
    top_key_attempted: int = 0
    status: Optional[Literal["complete", "in progress"]] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["session_timestamp"] = serialize_ts(self.session_timestamp)
        return data

    @staticmethod
    def from_dict(data: dict) -> "SessionRow":
        return SessionRow.model_validate(data)


def now_iso() -> str:
    return serialize_ts(datetime.now(timezone.utc))


def serialize_ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def parse_dt(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


__all__ = [
    "SOURCE_KEY",
    "SessionSource",
    "SessionPhase",
    "ShotRecord",
    "SessionStats",
    "LocationStats",
    "Session",
    "SessionPayload",
    "LocalSessionDocument",
    "RemoteLocationAggregate",
    "RemoteSessionDocument",
    "SessionRow",
    "now_iso",
    "serialize_ts",
    "parse_dt",
]
