"""Statistics engine for recorded tracks.

``compute_stats`` is a pure function of a track, an optional elevation
smoothing window and the engine configuration.  Degenerate tracks produce
a zeroed ``TrackStats`` rather than an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from track_engine.core.index import points_in_range
from track_engine.core.pauses import PauseSegment, find_pauses, total_pause_seconds
from track_engine.core.point import TrackPoint
from track_engine.core.settings import DEFAULT_CONFIG, EngineConfig
from track_engine.core.splits import Split, compute_splits
from track_engine.core.track import Track

# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrackStats:
    """Aggregate statistics of a track.

    Durations are in seconds, distances in km, speeds in km/h and paces in
    min/km.  Heart-rate aggregates are ``None`` when the track carries no
    positive heart-rate sample.  The filtered elevation figures only count
    swings of at least ``EngineConfig.elevation_hysteresis_m``.
    """

    total_distance: float
    total_duration_s: float
    moving_duration_s: float
    elevation_gain: float
    elevation_loss: float
    avg_pace: float
    moving_avg_pace: float
    avg_speed: float
    max_speed: float
    filtered_elevation_gain: float = 0.0
    filtered_elevation_loss: float = 0.0
    avg_heart_rate: float | None = None
    min_heart_rate: int | None = None
    max_heart_rate: int | None = None
    splits: tuple[Split, ...] = ()
    pauses: tuple[PauseSegment, ...] = ()

    @classmethod
    def empty(cls) -> TrackStats:
        """Zeroed statistics for a degenerate track."""
        return cls(
            total_distance=0.0,
            total_duration_s=0.0,
            moving_duration_s=0.0,
            elevation_gain=0.0,
            elevation_loss=0.0,
            avg_pace=0.0,
            moving_avg_pace=0.0,
            avg_speed=0.0,
            max_speed=0.0,
        )

    @property
    def fastest_split(self) -> Split | None:
        return next((s for s in self.splits if s.is_fastest), None)


@dataclass(frozen=True)
class SegmentStats:
    """Statistics of a selected distance range."""

    distance: float
    duration_s: float
    elevation_gain: float
    pace: float


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def smooth_elevation(points: Sequence[TrackPoint], window: int) -> list[TrackPoint]:
    """Apply a centred moving average to elevations.

    Even windows are widened to the next odd size.  Near the ends of the
    sequence the window is clipped, averaging only the available samples.
    Positions and timestamps are left untouched.
    """
    if window <= 1 or len(points) < 2:
        return list(points)
    if window % 2 == 0:
        window += 1
    half: int = window // 2
    n: int = len(points)

    elevations = np.array([p.elevation for p in points], dtype=np.float64)
    csum = np.concatenate(([0.0], np.cumsum(elevations)))
    idx = np.arange(n)
    lo = np.clip(idx - half, 0, n)
    hi = np.clip(idx + half + 1, 0, n)
    means = (csum[hi] - csum[lo]) / (hi - lo)

    return [replace(p, elevation=float(m)) for p, m in zip(points, means)]


def elevation_totals(points: Sequence[TrackPoint]) -> tuple[float, float]:
    """Return (gain, loss) in metres from consecutive elevation deltas."""
    if len(points) < 2:
        return 0.0, 0.0
    diffs = np.diff(np.array([p.elevation for p in points], dtype=np.float64))
    gain = float(diffs[diffs > 0.0].sum())
    loss = float(-diffs[diffs < 0.0].sum())
    return gain, loss


def elevation_hysteresis(
    points: Sequence[TrackPoint], threshold_m: float = 4.0
) -> tuple[float, float]:
    """Return (gain, loss) counting only swings larger than *threshold_m*.

    A climb is committed once the elevation drops *threshold_m* below the
    running peak (and symmetrically for descents), which ignores the
    sub-threshold jitter of barometric and GPS altimeters.
    """
    if len(points) < 2:
        return 0.0, 0.0

    gain: float = 0.0
    loss: float = 0.0
    valley: float = points[0].elevation
    peak: float = points[0].elevation
    climbing: bool = points[1].elevation >= points[0].elevation

    for point in points[1:]:
        ele = point.elevation
        if climbing:
            if ele > peak:
                peak = ele
            elif peak - ele >= threshold_m:
                gain += peak - valley
                valley = ele
                climbing = False
        else:
            if ele < valley:
                valley = ele
            elif ele - valley >= threshold_m:
                loss += peak - valley
                peak = ele
                climbing = True

    if climbing:
        gain += peak - valley
    else:
        loss += peak - valley
    return gain, loss


def window_speeds(points: Sequence[TrackPoint], window: int = 0) -> np.ndarray:
    """Per-point speed in km/h for every point after the first.

    With ``window <= 1`` the speed of point *i* is that of segment
    ``(i-1, i)``; otherwise distance over time across the centred window
    ``[i - window // 2, i + window // 2]`` clipped to the sequence.
    """
    n: int = len(points)
    if n < 2:
        return np.zeros(0)

    origin = points[0].timestamp
    dist = np.array([p.cumulative_distance for p in points], dtype=np.float64)
    secs = np.array(
        [(p.timestamp - origin).total_seconds() for p in points], dtype=np.float64
    )
    idx = np.arange(1, n)
    if window > 1:
        half = window // 2
        lo = np.maximum(idx - half, 0)
        hi = np.minimum(idx + half, n - 1)
    else:
        lo = idx - 1
        hi = idx

    dt = secs[hi] - secs[lo]
    dd = dist[hi] - dist[lo]
    with np.errstate(divide="ignore", invalid="ignore"):
        speeds = np.where(dt > 0.0, dd / dt * 3600.0, 0.0)
    return speeds


def format_pace(pace: float) -> str:
    """Render a min/km pace as ``m:ss``; ``--:--`` when undefined."""
    if not math.isfinite(pace) or pace <= 0.0:
        return "--:--"
    minutes = int(pace)
    seconds = round((pace - minutes) * 60.0)
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_stats(
    track: Track,
    smoothing_window: int = 0,
    config: EngineConfig | None = None,
) -> TrackStats:
    """Compute the full statistics of *track*.

    Steps:
        1. Optionally smooth elevations with a centred moving average.
        2. Detect pauses; moving duration = total minus pause time.
        3. Sum positive/negative elevation deltas, and again with
           hysteresis for the filtered figures.
        4. Max speed over the local window, capped at
           ``config.max_speed_cap_kmh``.
        5. Average and moving paces (0 when the distance is 0).
        6. Distance splits.

    Positions are deliberately left unsmoothed: distances, paces and splits
    come from the recorded fixes whatever the smoothing window.

    Args:
        track: Track to analyse.
        smoothing_window: Moving-average window in points (0 or 1 disables).
        config: Thresholds; defaults to ``DEFAULT_CONFIG``.

    Returns:
        A fully populated ``TrackStats``.
    """
    cfg = config or DEFAULT_CONFIG
    if track.is_degenerate:
        return TrackStats.empty()

    points = smooth_elevation(track.points, smoothing_window)

    pauses = find_pauses(
        points,
        min_duration_s=cfg.pause_min_duration_s,
        max_speed_kmh=cfg.pause_max_speed_kmh,
    )
    total_s: float = track.duration_s
    moving_s: float = max(0.0, total_s - total_pause_seconds(pauses))

    gain, loss = elevation_totals(points)
    filtered_gain, filtered_loss = elevation_hysteresis(points, cfg.elevation_hysteresis_m)

    speeds = window_speeds(points, smoothing_window)
    max_speed: float = min(cfg.max_speed_cap_kmh, float(speeds.max())) if speeds.size else 0.0

    km: float = track.total_distance
    avg_pace: float = (total_s / 60.0) / km if km > 0.0 else 0.0
    moving_pace: float = (moving_s / 60.0) / km if km > 0.0 else 0.0
    avg_speed: float = km / (moving_s / 3600.0) if km > 0.0 and moving_s > 0.0 else 0.0

    heart_rates = [p.heart_rate for p in points if p.heart_rate is not None and p.heart_rate > 0]

    splits = compute_splits(
        points,
        split_distance=cfg.split_distance_km,
        min_final_fraction=cfg.split_min_final_fraction,
        rank_fraction=cfg.split_rank_fraction,
    )

    return TrackStats(
        total_distance=km,
        total_duration_s=total_s,
        moving_duration_s=moving_s,
        elevation_gain=gain,
        elevation_loss=loss,
        avg_pace=avg_pace,
        moving_avg_pace=moving_pace,
        avg_speed=avg_speed,
        max_speed=max_speed,
        filtered_elevation_gain=filtered_gain,
        filtered_elevation_loss=filtered_loss,
        avg_heart_rate=sum(heart_rates) / len(heart_rates) if heart_rates else None,
        min_heart_rate=min(heart_rates) if heart_rates else None,
        max_heart_rate=max(heart_rates) if heart_rates else None,
        splits=tuple(splits),
        pauses=tuple(pauses),
    )


def segment_stats(track: Track, start: float, end: float) -> SegmentStats:
    """Statistics of the ``[start, end]`` km selection of *track*."""
    points = points_in_range(track, start, end)
    if len(points) < 2:
        return SegmentStats(distance=0.0, duration_s=0.0, elevation_gain=0.0, pace=0.0)

    km: float = end - start
    duration_s: float = (points[-1].timestamp - points[0].timestamp).total_seconds()
    gain, _ = elevation_totals(points)
    return SegmentStats(
        distance=km,
        duration_s=duration_s,
        elevation_gain=gain,
        pace=(duration_s / 60.0) / km if km > 0.0 else 0.0,
    )
