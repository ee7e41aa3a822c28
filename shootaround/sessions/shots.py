from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from .locations import SHOT_LOCATIONS, ShotLocation, get_location
from .models import ShotRecord, now_iso

_DEFAULT_COORD = 0.5


def clamp(value: Any, fallback: float = _DEFAULT_COORD) -> float:
    """Clamp *value* into [0, 1]; non-numeric input yields *fallback*."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if math.isnan(value):
        return fallback
    return min(max(float(value), 0.0), 1.0)


def classify_location(normalized_x: float, normalized_y: float) -> ShotLocation:
    # Zones are split on the horizontal axis only; y positions the marker.
    del normalized_y
    if normalized_x <= 0.19:
        return _zone("left-corner", 0)
    if normalized_x >= 0.81:
        return _zone("right-corner", len(SHOT_LOCATIONS) - 1)
    if normalized_x < 0.44:
        return _zone("left-wing", 1)
    if normalized_x > 0.56:
        return _zone("right-wing", len(SHOT_LOCATIONS) - 2)
    return _zone("top-key", len(SHOT_LOCATIONS) // 2)


def _zone(location_id: str, fallback_index: int) -> ShotLocation:
    return get_location(location_id) or SHOT_LOCATIONS[fallback_index]


def _coerce_made(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in {"", "false", "0"}
    return bool(value)


def _field(raw: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake)


def normalize_shot(raw: Mapping[str, Any] | ShotRecord | None) -> ShotRecord | None:
    if raw is None:
        return None
    if isinstance(raw, ShotRecord):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        return None

    normalized_x = clamp(_field(raw, "normalizedX", "normalized_x"))
    normalized_y = clamp(_field(raw, "normalizedY", "normalized_y"))
    location = get_location(_field(raw, "locationId", "location_id")) or classify_location(
        normalized_x, normalized_y
    )
    timestamp = raw.get("timestamp")

    return ShotRecord(
        normalized_x=normalized_x,
        normalized_y=normalized_y,
        made=_coerce_made(raw.get("made")),
        location_id=location.id,
        location_label=location.label,
        timestamp=str(timestamp) if timestamp else now_iso(),
    )


def normalize_shots(raws: Iterable[Any] | None) -> list[ShotRecord]:
    if not raws:
        return []
    shots: list[ShotRecord] = []
    for raw in raws:
        shot = normalize_shot(raw)
        if shot is not None:
            shots.append(shot)
    return shots


__all__ = ["clamp", "classify_location", "normalize_shot", "normalize_shots"]
