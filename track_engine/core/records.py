"""Best-effort (personal record) search within a single track."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from track_engine.core.point import TrackPoint
from track_engine.core.track import Track

# Standard race distances in metres.
PR_DISTANCES: dict[str, float] = {
    "1km": 1000.0,
    "5km": 5000.0,
    "10km": 10000.0,
    "half_marathon": 21097.5,
    "marathon": 42195.0,
}


@dataclass(frozen=True)
class PersonalRecord:
    """Fastest effort over a standard distance inside one track.

    Attributes:
        label: Key from ``PR_DISTANCES``.
        distance_m: Target distance in metres.
        time_s: Fastest time in seconds.
        track_id: Track the effort belongs to.
    """

    label: str
    distance_m: float
    time_s: float
    track_id: str


def find_best_time_for_distance(
    points: Sequence[TrackPoint], distance_km: float
) -> float | None:
    """Return the fastest time in seconds to cover *distance_km*.

    A two-pointer window slides over the points.  For each start point the
    end pointer advances until the window covers the target, and the end
    time is interpolated inside the last segment so that the window is
    exactly *distance_km* long.

    Returns:
        Best time in seconds, or ``None`` if the track is shorter than the
        target.
    """
    if len(points) < 2 or points[-1].cumulative_distance < distance_km:
        return None

    best: float = float("inf")
    end: int = 0
    for start_point in points:
        while (
            end < len(points)
            and points[end].cumulative_distance - start_point.cumulative_distance
            < distance_km
        ):
            end += 1
        if end >= len(points):
            break

        p_end = points[end]
        p_prev = points[end - 1] if end > 0 else p_end
        overshoot: float = (
            p_end.cumulative_distance - start_point.cumulative_distance - distance_km
        )
        segment: float = p_end.cumulative_distance - p_prev.cumulative_distance
        end_time = p_end.timestamp
        if segment > 1e-6:
            ratio: float = (segment - overshoot) / segment
            end_time = p_prev.timestamp + (p_end.timestamp - p_prev.timestamp) * ratio

        elapsed: float = (end_time - start_point.timestamp).total_seconds()
        best = min(best, elapsed)

    return None if best == float("inf") else best


def find_personal_records(
    track: Track, distances: dict[str, float] | None = None
) -> list[PersonalRecord]:
    """Scan *track* for best efforts over each standard distance.

    Args:
        track: Track to scan.
        distances: Mapping of label to distance in metres; defaults to
            ``PR_DISTANCES``.

    Returns:
        One record per distance the track is long enough to contain.
    """
    targets = PR_DISTANCES if distances is None else distances
    records: list[PersonalRecord] = []
    for label, metres in targets.items():
        km = metres / 1000.0
        if track.total_distance < km:
            continue
        time_s = find_best_time_for_distance(track.points, km)
        if time_s is not None:
            records.append(
                PersonalRecord(
                    label=label, distance_m=metres, time_s=time_s, track_id=track.id
                )
            )
    return records
