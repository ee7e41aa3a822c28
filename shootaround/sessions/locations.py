from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ShotLocation:
    id: str
    label: str
    normalized_x: float
    normalized_y: float


SHOT_LOCATIONS: tuple[ShotLocation, ...] = (
    ShotLocation("left-corner", "Left Corner 3", 0.06, 0.12),
    ShotLocation("left-wing", "Left Wing 3", 0.28, 0.22),
    ShotLocation("top-key", "Top of the Key", 0.5, 0.48),
    ShotLocation("right-wing", "Right Wing 3", 0.72, 0.23),
    ShotLocation("right-corner", "Right Corner 3", 0.94, 0.12),
)

LOCATION_IDS: tuple[str, ...] = tuple(location.id for location in SHOT_LOCATIONS)

MAX_SHOTS_PER_LOCATION = 20
MAX_TOTAL_SHOTS = len(SHOT_LOCATIONS) * MAX_SHOTS_PER_LOCATION
PLAYER_NAME_SUGGESTION = "F. Lastname"

_BY_ID = {location.id: location for location in SHOT_LOCATIONS}


def get_location(location_id: object) -> ShotLocation | None:
    if not isinstance(location_id, str):
        return None
    return _BY_ID.get(location_id)


def column_prefix(location_id: str) -> str:
    """Column prefix used by the aggregate store rows (``top-key`` -> ``top_key``)."""

    return location_id.replace("-", "_")


__all__ = [
    "ShotLocation",
    "SHOT_LOCATIONS",
    "LOCATION_IDS",
    "MAX_SHOTS_PER_LOCATION",
    "MAX_TOTAL_SHOTS",
    "PLAYER_NAME_SUGGESTION",
    "get_location",
    "column_prefix",
]
