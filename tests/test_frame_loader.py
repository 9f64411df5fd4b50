"""Tests for the pandas bridge.

Synthetic DataFrames stand in for the output of external GPX/TCX parsers
so the suite needs no sample files.
"""

from __future__ import annotations

import math

import pandas as pd
import pytest

from track_engine.core.geometry import EARTH_RADIUS_KM
from track_engine.core.race import RaceResult
from track_engine.core.stats import compute_stats
from track_engine.data_ingestion.frame_loader import (
    results_to_frame,
    splits_to_frame,
    track_from_frame,
    track_to_frame,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_KM_PER_DEGREE: float = EARTH_RADIUS_KM * math.pi / 180.0


def _make_frame(n: int = 31, with_hr: bool = True) -> pd.DataFrame:
    """Samples every 30 s at 0.1 km spacing, in reverse order."""
    rows: list[dict[str, object]] = []
    for i in range(n):
        row: dict[str, object] = {
            "lat": i * 0.1 / _KM_PER_DEGREE,
            "lon": 0.0,
            "ele": 100.0 + i,
            "time": pd.Timestamp("2024-05-01T07:00:00Z") + pd.Timedelta(seconds=30 * i),
        }
        if with_hr:
            row["hr"] = float("nan") if i == 3 else 140 + i
        rows.append(row)
    return pd.DataFrame(rows[::-1])


# ---------------------------------------------------------------------------
# Frame -> Track
# ---------------------------------------------------------------------------


def test_track_from_frame_sorts_by_time() -> None:
    """Rows are ordered chronologically before metrics are derived."""
    track = track_from_frame(_make_frame(), "f1", "Frame run")
    assert len(track.points) == 31
    assert track.points[0].elevation == 100.0
    assert abs(track.total_distance - 3.0) < 1e-6
    assert track.duration_s == 900.0


def test_missing_heart_rate_becomes_none() -> None:
    """NaN samples and absent columns become None."""
    track = track_from_frame(_make_frame(), "f1", "Frame run")
    assert track.points[3].heart_rate is None
    assert track.points[4].heart_rate == 144
    assert track.points[0].cadence is None

    bare = track_from_frame(_make_frame(with_hr=False), "f2", "No HR")
    assert all(p.heart_rate is None for p in bare.points)


def test_timestamps_are_timezone_aware() -> None:
    """Naive times are read as UTC."""
    df = _make_frame(3, with_hr=False)
    df["time"] = df["time"].dt.tz_localize(None)
    track = track_from_frame(df, "f3", "Naive")
    assert track.points[0].timestamp.tzinfo is not None


def test_missing_required_column() -> None:
    """Frames without coordinates are rejected."""
    df = _make_frame().drop(columns=["ele"])
    with pytest.raises(ValueError, match="ele"):
        track_from_frame(df, "bad", "Bad")


# ---------------------------------------------------------------------------
# Engine outputs -> frames
# ---------------------------------------------------------------------------


def test_track_to_frame_round_trip() -> None:
    """Exported points can be read back into an equivalent track."""
    track = track_from_frame(_make_frame(), "f1", "Frame run")
    df = track_to_frame(track)
    assert list(df.columns) == ["lat", "lon", "ele", "time", "hr", "cadence", "distance"]
    assert df["distance"].iloc[-1] == track.total_distance
    again = track_from_frame(df, "f1", "Frame run")
    assert abs(again.total_distance - track.total_distance) < 1e-12
    assert again.points[3].heart_rate is None


def test_splits_to_frame() -> None:
    """One row per split, indexed by split number."""
    track = track_from_frame(_make_frame(), "f1", "Frame run")
    df = splits_to_frame(compute_stats(track))
    assert list(df.index) == [1, 2, 3]
    assert df["pace"].iloc[0] == pytest.approx(5.0, abs=1e-3)


def test_splits_to_frame_empty() -> None:
    """Tracks without splits produce an empty table."""
    track = track_from_frame(_make_frame(1), "f1", "Single")
    df = splits_to_frame(compute_stats(track))
    assert df.empty
    assert "pace" in df.columns


def test_results_to_frame_orders_by_rank() -> None:
    """The classification table is sorted by rank."""
    results = [
        RaceResult(2, "b", "B", "#fff", 1800.0, 10.0, 5.0),
        RaceResult(1, "a", "A", "#000", 1500.0, 12.0, 5.0),
    ]
    df = results_to_frame(results)
    assert list(df["track_id"]) == ["a", "b"]
    assert df["finish_time_s"].iloc[0] == 1500.0
