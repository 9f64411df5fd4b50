"""Pause detection for recorded tracks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from track_engine.core.point import TrackPoint

# Segments shorter than this are treated as moving (timestamps too close to
# yield a meaningful speed).
_MIN_SEGMENT_S: float = 0.1


@dataclass(frozen=True)
class PauseSegment:
    """A maximal stationary stretch of a track.

    Attributes:
        start_point: Last point before the runner stopped moving.
        end_point: Point at which movement resumed (or the final point).
        duration_s: Seconds between the two points.
    """

    start_point: TrackPoint
    end_point: TrackPoint
    duration_s: float


def _close(
    start: TrackPoint, end: TrackPoint, min_duration_s: float
) -> PauseSegment | None:
    duration_s: float = (end.timestamp - start.timestamp).total_seconds()
    if duration_s >= min_duration_s:
        return PauseSegment(start_point=start, end_point=end, duration_s=duration_s)
    return None


def find_pauses(
    points: Sequence[TrackPoint],
    min_duration_s: float = 10.0,
    max_speed_kmh: float = 1.0,
) -> list[PauseSegment]:
    """Detect stretches where speed stays below *max_speed_kmh*.

    Instantaneous speed is derived from consecutive cumulative distances
    and timestamps.  A run of slow segments becomes a pause once it lasts at
    least *min_duration_s*; a run still open at the end of the track is
    closed at the final point.

    Args:
        points: Ordered points with cumulative distances.
        min_duration_s: Minimum pause length in seconds.
        max_speed_kmh: Stationary speed threshold.

    Returns:
        Pause segments in track order.  Empty for fewer than two points.
    """
    if len(points) < 2:
        return []

    pauses: list[PauseSegment] = []
    pause_start: TrackPoint | None = None

    for prev, cur in zip(points, points[1:]):
        dt_s: float = (cur.timestamp - prev.timestamp).total_seconds()
        speed_kmh: float = float("inf")
        if dt_s > _MIN_SEGMENT_S:
            speed_kmh = (cur.cumulative_distance - prev.cumulative_distance) / dt_s * 3600.0

        if speed_kmh < max_speed_kmh:
            if pause_start is None:
                pause_start = prev
        elif pause_start is not None:
            segment = _close(pause_start, prev, min_duration_s)
            if segment is not None:
                pauses.append(segment)
            pause_start = None

    if pause_start is not None:
        segment = _close(pause_start, points[-1], min_duration_s)
        if segment is not None:
            pauses.append(segment)

    return pauses


def total_pause_seconds(pauses: Sequence[PauseSegment]) -> float:
    """Sum of all pause durations in seconds."""
    return sum(p.duration_s for p in pauses)
