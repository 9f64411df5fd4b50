"""Tests for the point and track models."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from track_engine.core.point import TrackPoint
from track_engine.core.track import DEFAULT_COLOR, Track


def _point(seconds: float = 0.0) -> TrackPoint:
    return TrackPoint(
        latitude=46.0,
        longitude=8.0,
        elevation=400.0,
        timestamp=datetime(2024, 2, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds),
    )


def test_track_defaults() -> None:
    """A bare track is empty and degenerate."""
    track = Track(id="t", name="Empty")
    assert track.color == DEFAULT_COLOR
    assert track.is_degenerate
    assert track.duration_s == 0.0


def test_track_requires_id() -> None:
    """An empty id is rejected."""
    with pytest.raises(ValueError, match="id"):
        Track(id="", name="No id")


def test_track_rejects_negative_distance() -> None:
    """Distances cannot be negative."""
    with pytest.raises(ValueError, match="total_distance"):
        Track(id="t", name="Bad", total_distance=-1.0)


def test_models_are_immutable() -> None:
    """Points and tracks are frozen."""
    point = _point()
    with pytest.raises(FrozenInstanceError):
        point.latitude = 0.0  # type: ignore[misc]
    track = Track(id="t", name="Frozen", points=(point, _point(10.0)))
    with pytest.raises(FrozenInstanceError):
        track.name = "Thawed"  # type: ignore[misc]
    assert not track.is_degenerate
