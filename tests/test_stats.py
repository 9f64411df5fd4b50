"""Tests for the statistics engine."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from track_engine.core.geometry import EARTH_RADIUS_KM
from track_engine.core.index import build_track
from track_engine.core.point import GeoPoint, TrackPoint
from track_engine.core.settings import EngineConfig
from track_engine.core.stats import (
    TrackStats,
    compute_stats,
    elevation_hysteresis,
    elevation_totals,
    format_pace,
    segment_stats,
    smooth_elevation,
    window_speeds,
)
from track_engine.core.track import Track

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_KM_PER_DEGREE: float = EARTH_RADIUS_KM * math.pi / 180.0
_START: datetime = datetime(2024, 7, 14, 6, 0, tzinfo=timezone.utc)


def _make_track(
    segments: list[tuple[float, float]],
    elevations: list[float] | None = None,
    heart_rates: list[int | None] | None = None,
) -> Track:
    """Northbound track from (km, seconds) segments."""
    n = len(segments) + 1
    elevations = elevations or [0.0] * n
    heart_rates = heart_rates or [None] * n
    km, seconds = 0.0, 0.0
    points: list[TrackPoint] = []
    for i in range(n):
        if i > 0:
            km += segments[i - 1][0]
            seconds += segments[i - 1][1]
        points.append(
            TrackPoint(
                latitude=km / _KM_PER_DEGREE,
                longitude=0.0,
                elevation=elevations[i],
                timestamp=_START + timedelta(seconds=seconds),
                heart_rate=heart_rates[i],
            )
        )
    return build_track("st", "Stats test", points)


# ---------------------------------------------------------------------------
# compute_stats
# ---------------------------------------------------------------------------


def test_two_point_scenario() -> None:
    """~1.11 km in 60 s is a 0.9 min/km average pace."""
    points = [
        GeoPoint(0.0, 0.0, 0.0, _START),
        GeoPoint(0.01, 0.0, 0.0, _START + timedelta(seconds=60)),
    ]
    stats = compute_stats(build_track("s", "Scenario", points))
    assert abs(stats.total_distance - 1.11) < 0.01
    assert stats.total_duration_s == 60.0
    assert abs(stats.avg_pace - 0.9) < 0.01


def test_degenerate_track_gives_zeroed_stats() -> None:
    """Zero or one point never raises."""
    assert compute_stats(_make_track([])) == TrackStats.empty()


def test_moving_duration_excludes_pauses() -> None:
    """A 60 s standstill is removed from the moving duration."""
    track = _make_track([(0.25, 75.0)] * 4 + [(0.0, 30.0)] * 2 + [(0.25, 75.0)] * 4)
    stats = compute_stats(track)
    assert stats.total_duration_s == 660.0
    assert stats.moving_duration_s == 600.0
    assert len(stats.pauses) == 1
    assert stats.avg_pace == pytest.approx(5.5, abs=1e-3)
    assert stats.moving_avg_pace == pytest.approx(5.0, abs=1e-3)
    assert stats.avg_speed == pytest.approx(12.0, abs=1e-3)


def test_elevation_gain_and_loss() -> None:
    """Gain and loss sum positive and negative deltas."""
    track = _make_track([(0.1, 30.0)] * 4, elevations=[100.0, 110.0, 104.0, 120.0, 115.0])
    stats = compute_stats(track)
    assert stats.elevation_gain == pytest.approx(26.0)
    assert stats.elevation_loss == pytest.approx(11.0)


def test_max_speed_is_capped() -> None:
    """Implausible speeds are reported at the 60 km/h ceiling."""
    track = _make_track([(0.05, 15.0), (0.5, 10.0), (0.05, 15.0)])
    assert compute_stats(track).max_speed == 60.0


def test_max_speed_uncapped_below_ceiling() -> None:
    """Plausible speeds are reported as measured."""
    track = _make_track([(0.05, 15.0), (0.05, 12.0), (0.05, 15.0)])
    assert compute_stats(track).max_speed == pytest.approx(15.0, abs=1e-6)


def test_heart_rate_aggregates() -> None:
    """Only positive heart-rate samples are aggregated."""
    track = _make_track([(0.1, 30.0)] * 3, heart_rates=[None, 140, 0, 160])
    stats = compute_stats(track)
    assert stats.avg_heart_rate == 150.0
    assert stats.min_heart_rate == 140
    assert stats.max_heart_rate == 160


def test_heart_rate_absent_is_none() -> None:
    """Tracks without heart rate report None, not zero."""
    stats = compute_stats(_make_track([(0.1, 30.0)] * 3))
    assert stats.avg_heart_rate is None
    assert stats.min_heart_rate is None
    assert stats.max_heart_rate is None


def test_zero_distance_track_has_zero_pace() -> None:
    """Division by a zero distance yields pace 0."""
    stats = compute_stats(_make_track([(0.0, 30.0)] * 3))
    assert stats.avg_pace == 0.0
    assert stats.moving_avg_pace == 0.0
    assert stats.avg_speed == 0.0


def test_smoothing_reduces_jitter_gain() -> None:
    """A moving average suppresses altimeter jitter."""
    elevations = [100.0 + (2.0 if i % 2 else 0.0) for i in range(21)]
    track = _make_track([(0.05, 15.0)] * 20, elevations=elevations)
    raw = compute_stats(track)
    smoothed = compute_stats(track, smoothing_window=5)
    assert raw.elevation_gain == pytest.approx(20.0)
    assert smoothed.elevation_gain < raw.elevation_gain


def test_smoothing_leaves_distances_untouched() -> None:
    """Elevation smoothing never moves the recorded positions."""
    elevations = [100.0 + (2.0 if i % 2 else 0.0) for i in range(21)]
    track = _make_track([(0.05, 15.0)] * 20, elevations=elevations)
    raw = compute_stats(track)
    smoothed = compute_stats(track, smoothing_window=5)
    assert smoothed.total_distance == raw.total_distance
    assert smoothed.avg_pace == raw.avg_pace
    assert [s.distance for s in smoothed.splits] == [s.distance for s in raw.splits]


def test_filtered_elevation_ignores_small_swings() -> None:
    """The filtered figures drop sub-threshold jitter the raw sums keep."""
    elevations = [100.0, 101.0, 100.0, 101.5, 100.5, 110.0, 109.0, 103.0]
    stats = compute_stats(_make_track([(0.1, 30.0)] * 7, elevations=elevations))
    assert stats.elevation_gain == pytest.approx(12.0)
    assert stats.elevation_loss == pytest.approx(9.0)
    assert stats.filtered_elevation_gain == pytest.approx(10.0)
    assert stats.filtered_elevation_loss == pytest.approx(7.0)


def test_zero_hysteresis_matches_raw_elevation() -> None:
    """With no threshold every swing counts."""
    elevations = [100.0, 101.0, 100.0, 101.5, 100.5, 110.0, 109.0, 103.0]
    track = _make_track([(0.1, 30.0)] * 7, elevations=elevations)
    stats = compute_stats(track, config=EngineConfig(elevation_hysteresis_m=0.0))
    assert stats.filtered_elevation_gain == pytest.approx(stats.elevation_gain)
    assert stats.filtered_elevation_loss == pytest.approx(stats.elevation_loss)


def test_config_controls_splits() -> None:
    """The split distance comes from the engine configuration."""
    track = _make_track([(0.25, 75.0)] * 8)
    stats = compute_stats(track, config=EngineConfig(split_distance_km=0.5))
    assert len(stats.splits) == 4
    assert stats.fastest_split is not None


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def test_smooth_elevation_widens_even_windows() -> None:
    """An even window behaves like the next odd one."""
    track = _make_track([(0.1, 30.0)] * 4, elevations=[0.0, 3.0, 6.0, 9.0, 30.0])
    even = [p.elevation for p in smooth_elevation(track.points, 2)]
    odd = [p.elevation for p in smooth_elevation(track.points, 3)]
    assert even == odd
    assert odd[0] == pytest.approx(1.5)
    assert odd[2] == pytest.approx(6.0)
    assert odd[4] == pytest.approx(19.5)


def test_smooth_elevation_keeps_positions() -> None:
    """Only elevation is smoothed."""
    track = _make_track([(0.1, 30.0)] * 4, elevations=[0.0, 3.0, 6.0, 9.0, 30.0])
    smoothed = smooth_elevation(track.points, 3)
    for before, after in zip(track.points, smoothed):
        assert before.latitude == after.latitude
        assert before.timestamp == after.timestamp
        assert before.cumulative_distance == after.cumulative_distance


def test_elevation_totals_short_input() -> None:
    """Fewer than two points have no gain or loss."""
    assert elevation_totals([]) == (0.0, 0.0)


def test_elevation_hysteresis_ignores_small_swings() -> None:
    """Swings under the threshold are not counted."""
    elevations = [100.0, 101.0, 100.0, 101.5, 100.5, 110.0, 109.0, 103.0]
    track = _make_track([(0.1, 30.0)] * 7, elevations=elevations)
    gain, loss = elevation_hysteresis(track.points, threshold_m=4.0)
    assert gain == pytest.approx(10.0)
    assert loss == pytest.approx(7.0)


def test_window_speeds_length_and_values() -> None:
    """One speed per point after the first."""
    track = _make_track([(0.1, 30.0)] * 4)
    speeds = window_speeds(track.points)
    assert speeds.shape == (4,)
    assert speeds.tolist() == pytest.approx([12.0] * 4, abs=1e-6)


@pytest.mark.parametrize(
    "pace, expected",
    [(5.5, "5:30"), (4.999, "5:00"), (0.0, "--:--"), (float("inf"), "--:--")],
)
def test_format_pace(pace: float, expected: str) -> None:
    """Paces render as minutes and zero-padded seconds."""
    assert format_pace(pace) == expected


# ---------------------------------------------------------------------------
# segment_stats
# ---------------------------------------------------------------------------


def test_segment_stats() -> None:
    """A selection reports its own distance, duration and pace."""
    track = _make_track([(0.1, 30.0)] * 10, elevations=[float(i) for i in range(11)])
    seg = segment_stats(track, 0.2, 0.6)
    assert seg.distance == pytest.approx(0.4)
    assert seg.duration_s == pytest.approx(120.0, abs=1e-3)
    assert seg.pace == pytest.approx(5.0, abs=1e-3)
    assert seg.elevation_gain == pytest.approx(4.0, abs=1e-6)


def test_segment_stats_outside_track() -> None:
    """Selections outside the track are zeroed."""
    seg = segment_stats(_make_track([(0.1, 30.0)] * 3), 5.0, 6.0)
    assert seg.distance == 0.0
    assert seg.pace == 0.0
