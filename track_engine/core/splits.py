"""Per-distance split computation for the track analysis engine.

Splits are produced by a single walk over the point sequence.  Whenever a
segment crosses a bucket boundary the boundary point is interpolated, the
current bucket is closed on it, and the next bucket starts from it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from track_engine.core.index import interpolate
from track_engine.core.point import TrackPoint


@dataclass(frozen=True)
class Split:
    """Summary of one distance bucket.

    Attributes:
        index: 1-based split number.
        distance: Kilometres covered (the nominal size except for the last).
        duration_s: Seconds spent in the bucket.
        pace: Minutes per kilometre (0 for a zero-length bucket).
        elevation_gain: Metres climbed.
        elevation_loss: Metres descended (positive).
        avg_heart_rate: Mean of positive HR samples, ``None`` without any.
        is_fastest: Lowest pace among ranked buckets.
        is_slowest: Highest pace among ranked buckets.
    """

    index: int
    distance: float
    duration_s: float
    pace: float
    elevation_gain: float
    elevation_loss: float
    avg_heart_rate: float | None = None
    is_fastest: bool = False
    is_slowest: bool = False


class _Bucket:
    """Mutable accumulator for the split currently being walked."""

    __slots__ = ("start", "last", "gain", "loss", "heart_rates")

    def __init__(self, start: TrackPoint) -> None:
        self.start: TrackPoint = start
        self.last: TrackPoint = start
        self.gain: float = 0.0
        self.loss: float = 0.0
        self.heart_rates: list[int] = []

    @property
    def distance(self) -> float:
        return self.last.cumulative_distance - self.start.cumulative_distance

    def add(self, point: TrackPoint) -> None:
        diff: float = point.elevation - self.last.elevation
        if diff > 0.0:
            self.gain += diff
        else:
            self.loss -= diff
        if point.heart_rate is not None and point.heart_rate > 0:
            self.heart_rates.append(point.heart_rate)
        self.last = point

    def close(self, index: int) -> Split:
        distance: float = self.distance
        duration_s: float = (self.last.timestamp - self.start.timestamp).total_seconds()
        avg_hr: float | None = None
        if self.heart_rates:
            avg_hr = sum(self.heart_rates) / len(self.heart_rates)
        return Split(
            index=index,
            distance=distance,
            duration_s=duration_s,
            pace=(duration_s / 60.0) / distance if distance > 0.0 else 0.0,
            elevation_gain=self.gain,
            elevation_loss=self.loss,
            avg_heart_rate=avg_hr,
        )


def _boundary_point(prev: TrackPoint, cur: TrackPoint, boundary: float) -> TrackPoint:
    if cur.cumulative_distance == boundary:
        return cur
    span: float = cur.cumulative_distance - prev.cumulative_distance
    ratio: float = (boundary - prev.cumulative_distance) / span
    return replace(interpolate(prev, cur, ratio), cumulative_distance=boundary)


def _mark_extremes(
    splits: list[Split], split_distance: float, rank_fraction: float
) -> list[Split]:
    """Flag the fastest and slowest among sufficiently long buckets."""
    ranked = [s for s in splits if s.distance > split_distance * rank_fraction]
    if len(ranked) < 2:
        return splits

    # min()/max() keep the first occurrence on ties.
    fastest = min(ranked, key=lambda s: s.pace).index
    slowest = max(ranked, key=lambda s: s.pace).index
    return [
        replace(s, is_fastest=s.index == fastest, is_slowest=s.index == slowest)
        for s in splits
    ]


def compute_splits(
    points: Sequence[TrackPoint],
    split_distance: float = 1.0,
    min_final_fraction: float = 0.05,
    rank_fraction: float = 0.5,
) -> list[Split]:
    """Divide a track into fixed-distance buckets.

    Args:
        points: Ordered points with cumulative distances.
        split_distance: Bucket size in kilometres (> 0).
        min_final_fraction: The trailing partial bucket is kept only when
            longer than ``split_distance * min_final_fraction``.
        rank_fraction: Only buckets longer than
            ``split_distance * rank_fraction`` compete for fastest/slowest.

    Returns:
        Splits in track order.  Empty for fewer than two points.

    Raises:
        ValueError: If split_distance <= 0.
    """
    if split_distance <= 0.0:
        raise ValueError("split_distance must be > 0.")
    if len(points) < 2:
        return []

    splits: list[Split] = []
    bucket = _Bucket(points[0])
    next_boundary: float = split_distance

    for prev, cur in zip(points, points[1:]):
        while cur.cumulative_distance >= next_boundary:
            edge = _boundary_point(prev, cur, next_boundary)
            bucket.add(edge)
            splits.append(bucket.close(len(splits) + 1))
            bucket = _Bucket(edge)
            next_boundary = (len(splits) + 1) * split_distance
        if bucket.last is not cur:
            bucket.add(cur)

    if bucket.distance > split_distance * min_final_fraction:
        splits.append(bucket.close(len(splits) + 1))

    return _mark_extremes(splits, split_distance, rank_fraction)
