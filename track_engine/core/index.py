"""Distance and time addressing of track points.

``recompute_metrics`` is the only routine that writes cumulative distances.
``point_at_distance`` and ``point_at_elapsed`` share one linear
interpolation law so that a replay driven by time and a scrubber driven by
distance always agree on where a runner is.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import replace
from datetime import timedelta
from typing import Iterable

from track_engine.core.geometry import distance
from track_engine.core.point import GeoPoint, TrackPoint
from track_engine.core.track import DEFAULT_COLOR, Track

# ---------------------------------------------------------------------------
# Recomputation
# ---------------------------------------------------------------------------


def _as_track_point(point: GeoPoint) -> TrackPoint:
    if isinstance(point, TrackPoint):
        return point
    return TrackPoint(
        latitude=point.latitude,
        longitude=point.longitude,
        elevation=point.elevation,
        timestamp=point.timestamp,
    )


def recompute_metrics(
    points: Iterable[GeoPoint],
) -> tuple[list[TrackPoint], float, timedelta]:
    """Rebuild cumulative distances from scratch.

    Walks the sequence once, accumulating the great-circle distance between
    consecutive points into each point's ``cumulative_distance``.

    Args:
        points: Ordered samples.  Plain ``GeoPoint`` values are promoted to
            ``TrackPoint``.

    Returns:
        Tuple of (points with fresh cumulative distances, total distance in
        km, last timestamp minus first timestamp).  Fewer than two points
        yields zero distance and zero duration.
    """
    pts: list[TrackPoint] = [_as_track_point(p) for p in points]
    if len(pts) < 2:
        return [replace(p, cumulative_distance=0.0) for p in pts], 0.0, timedelta(0)

    total: float = 0.0
    rebuilt: list[TrackPoint] = [replace(pts[0], cumulative_distance=0.0)]
    for prev, cur in zip(pts, pts[1:]):
        total += distance(prev, cur)
        rebuilt.append(replace(cur, cumulative_distance=total))

    return rebuilt, total, pts[-1].timestamp - pts[0].timestamp


def build_track(
    track_id: str,
    name: str,
    points: Iterable[GeoPoint],
    color: str = DEFAULT_COLOR,
) -> Track:
    """Create a Track whose metrics are derived from *points*."""
    rebuilt, total_distance, total_duration = recompute_metrics(points)
    return Track(
        id=track_id,
        name=name,
        color=color,
        points=tuple(rebuilt),
        total_distance=total_distance,
        total_duration=total_duration,
    )


def with_points(
    track: Track,
    points: Iterable[GeoPoint],
    name: str | None = None,
) -> Track:
    """Return a copy of *track* carrying *points* and freshly derived metrics."""
    rebuilt, total_distance, total_duration = recompute_metrics(points)
    return replace(
        track,
        name=track.name if name is None else name,
        points=tuple(rebuilt),
        total_distance=total_distance,
        total_duration=total_duration,
    )


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------


def _lerp_sample(a: int | None, b: int | None, ratio: float) -> int | None:
    if a is not None and b is not None:
        return round(a + (b - a) * ratio)
    return a if a is not None else b


def interpolate(p1: TrackPoint, p2: TrackPoint, ratio: float) -> TrackPoint:
    """Linearly interpolate every field between *p1* and *p2*."""
    return TrackPoint(
        latitude=p1.latitude + (p2.latitude - p1.latitude) * ratio,
        longitude=p1.longitude + (p2.longitude - p1.longitude) * ratio,
        elevation=p1.elevation + (p2.elevation - p1.elevation) * ratio,
        timestamp=p1.timestamp + (p2.timestamp - p1.timestamp) * ratio,
        cumulative_distance=p1.cumulative_distance
        + (p2.cumulative_distance - p1.cumulative_distance) * ratio,
        heart_rate=_lerp_sample(p1.heart_rate, p2.heart_rate, ratio),
        cadence=_lerp_sample(p1.cadence, p2.cadence, ratio),
    )


def point_at_distance(track: Track, target: float) -> TrackPoint | None:
    """Return the point located *target* km from the start of *track*.

    Args:
        track: Track to query.
        target: Distance from the start in kilometres.

    Returns:
        The recorded point when *target* matches one exactly, otherwise a
        point interpolated between the bracketing pair.  ``None`` for a
        degenerate track or a target outside ``[0, total_distance]``.
    """
    points = track.points
    if len(points) < 2 or target < 0.0 or target > track.total_distance:
        return None

    idx: int = bisect_left(points, target, key=lambda p: p.cumulative_distance)
    if idx >= len(points):
        return points[-1]
    p2 = points[idx]
    if p2.cumulative_distance == target or idx == 0:
        return p2

    p1 = points[idx - 1]
    span: float = p2.cumulative_distance - p1.cumulative_distance
    if span <= 0.0:
        return p1
    point = interpolate(p1, p2, (target - p1.cumulative_distance) / span)
    return replace(point, cumulative_distance=target)


def point_at_elapsed(track: Track, elapsed_s: float) -> TrackPoint | None:
    """Return the point reached *elapsed_s* seconds after the track start.

    Same interpolation law as :func:`point_at_distance`, driven by time.
    ``None`` for a degenerate track or an offset outside the track duration.
    """
    points = track.points
    if len(points) < 2 or elapsed_s < 0.0 or elapsed_s > track.duration_s:
        return None

    target = points[0].timestamp + timedelta(seconds=elapsed_s)
    idx: int = bisect_left(points, target, key=lambda p: p.timestamp)
    if idx >= len(points):
        return points[-1]
    p2 = points[idx]
    if p2.timestamp == target or idx == 0:
        return p2

    p1 = points[idx - 1]
    span: timedelta = p2.timestamp - p1.timestamp
    if span <= timedelta(0):
        return p1
    return interpolate(p1, p2, (target - p1.timestamp) / span)


def elapsed_at_distance(track: Track, target: float) -> float | None:
    """Return seconds from the start at which *target* km is reached."""
    point = point_at_distance(track, target)
    if point is None:
        return None
    return (point.timestamp - track.points[0].timestamp).total_seconds()


def points_in_range(track: Track, start: float, end: float) -> list[TrackPoint]:
    """Return the contiguous sub-sequence covering ``[start, end]`` km.

    The result is the interpolated point at *start*, every recorded point
    strictly between the bounds, and the interpolated point at *end*.
    Bounds outside the track contribute no boundary point.
    """
    selected: list[TrackPoint] = []

    start_point = point_at_distance(track, start)
    if start_point is not None:
        selected.append(start_point)

    selected.extend(
        p for p in track.points if start < p.cumulative_distance < end
    )

    end_point = point_at_distance(track, end)
    if end_point is not None:
        selected.append(end_point)

    return selected
