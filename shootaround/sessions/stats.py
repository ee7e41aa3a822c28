from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from .locations import MAX_SHOTS_PER_LOCATION, SHOT_LOCATIONS, ShotLocation
from .models import LocationStats, Session, SessionStats, ShotRecord


def _percentage(makes: int, attempts: int) -> str:
    if attempts <= 0:
        return "0.0"
    return f"{makes / attempts * 100:.1f}"


def _is_made(shot: Any) -> bool:
    if isinstance(shot, ShotRecord):
        return shot.made
    if isinstance(shot, Mapping):
        made = shot.get("made")
        return made is True or made == "true"
    return bool(getattr(shot, "made", False))


def _location_of(shot: Any) -> Any:
    if isinstance(shot, ShotRecord):
        return shot.location_id
    if isinstance(shot, Mapping):
        return shot.get("locationId", shot.get("location_id"))
    return getattr(shot, "location_id", None)


def aggregate_stats(shots: Iterable[Any]) -> SessionStats:
    attempts = 0
    makes = 0
    for shot in shots:
        attempts += 1
        if _is_made(shot):
            makes += 1
    return SessionStats(
        attempts=attempts,
        makes=makes,
        misses=attempts - makes,
        percentage=_percentage(makes, attempts),
    )


def per_location_stats(
    shots: Sequence[Any],
    zones: Sequence[ShotLocation] = SHOT_LOCATIONS,
    cap: int = MAX_SHOTS_PER_LOCATION,
) -> list[LocationStats]:
    results: list[LocationStats] = []
    for zone in zones:
        zone_stats = aggregate_stats(s for s in shots if _location_of(s) == zone.id)
        results.append(
            LocationStats(
                id=zone.id,
                label=zone.label,
                makes=zone_stats.makes,
                attempts=zone_stats.attempts,
                percentage=zone_stats.percentage,
                remaining=max(cap - zone_stats.attempts, 0),
                is_completed=zone_stats.attempts >= cap,
            )
        )
    return results


def location_stats_map(
    shots: Sequence[Any], cap: int = MAX_SHOTS_PER_LOCATION
) -> dict[str, LocationStats]:
    return {stat.id: stat for stat in per_location_stats(shots, cap=cap)}


def completed_location_ids(shots: Sequence[Any]) -> list[str]:
    return [stat.id for stat in per_location_stats(shots) if stat.is_completed]


def all_locations_completed(shots: Sequence[Any]) -> bool:
    return len(completed_location_ids(shots)) == len(SHOT_LOCATIONS)


def calculate_session_stats(session: Session | Mapping[str, Any]) -> SessionStats:
    """Stats for a stored session, preferring its shots over reported totals."""

    if isinstance(session, Session):
        if session.shots:
            return aggregate_stats(session.shots)
        reported = session.reported_stats or SessionStats()
        attempts, makes = reported.attempts, reported.makes
    else:
        shots = session.get("shots")
        if isinstance(shots, list) and shots:
            return aggregate_stats(shots)
        stored = session.get("stats")
        stored = stored if isinstance(stored, Mapping) else {}
        attempts = _as_int(stored.get("attempts"))
        makes = _as_int(stored.get("makes"))

    return SessionStats(
        attempts=attempts,
        makes=makes,
        misses=attempts - makes,
        percentage=_percentage(makes, attempts),
    )


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


__all__ = [
    "aggregate_stats",
    "per_location_stats",
    "location_stats_map",
    "completed_location_ids",
    "all_locations_completed",
    "calculate_session_stats",
]
