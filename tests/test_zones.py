"""Tests for heart-rate zone distribution."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from track_engine.core.index import build_track
from track_engine.core.point import TrackPoint
from track_engine.core.track import Track
from track_engine.core.zones import heart_rate_zones, resolve_max_hr

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_track(heart_rates: list[int | None], step_s: float = 60.0) -> Track:
    start = datetime(2024, 11, 1, 18, 0, tzinfo=timezone.utc)
    points = [
        TrackPoint(
            latitude=0.001 * i,
            longitude=0.0,
            elevation=0.0,
            timestamp=start + timedelta(seconds=step_s * i),
            heart_rate=hr,
        )
        for i, hr in enumerate(heart_rates)
    ]
    return build_track("hr", "Intervals", points)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_resolve_max_hr_precedence() -> None:
    """Explicit max beats age, which beats the observed peak."""
    track = _make_track([120, 175, 150])
    assert resolve_max_hr(track, max_hr=190, age=30) == 190
    assert resolve_max_hr(track, age=30) == 190
    assert resolve_max_hr(track, age=40) == 180
    assert resolve_max_hr(track) == 175


def test_time_is_attributed_by_segment_mean() -> None:
    """Each segment lands in the zone of its mean heart rate."""
    # Max 200: segment means 110 (Z1), 130 (Z2), 170 (Z4).
    track = _make_track([100, 120, 140, 200])
    zones = heart_rate_zones(track, max_hr=200)
    assert [z.name for z in zones] == ["Z1", "Z2", "Z3", "Z4", "Z5"]
    assert [z.duration_s for z in zones] == [60.0, 60.0, 0.0, 60.0, 0.0]
    assert sum(z.percent for z in zones) == pytest.approx(100.0)


def test_zone_bounds_follow_max_hr() -> None:
    """Zone bounds are fractions of the max heart rate."""
    zones = heart_rate_zones(_make_track([120, 130]), max_hr=200)
    assert (zones[0].lower_bpm, zones[0].upper_bpm) == (0, 120)
    assert (zones[4].lower_bpm, zones[4].upper_bpm) == (180, 200)


def test_segments_without_samples_are_skipped() -> None:
    """Only segments with heart rate at both ends count."""
    zones = heart_rate_zones(_make_track([150, None, 150, 150]), max_hr=200)
    assert sum(z.duration_s for z in zones) == 60.0


def test_no_heart_rate_gives_no_zones() -> None:
    """Without any max HR there is nothing to distribute."""
    assert heart_rate_zones(_make_track([None, None, None])) == []


def test_above_max_counts_as_top_zone() -> None:
    """Efforts above the reference max fall in Z5."""
    zones = heart_rate_zones(_make_track([210, 220]), max_hr=200)
    assert zones[4].duration_s == 60.0
