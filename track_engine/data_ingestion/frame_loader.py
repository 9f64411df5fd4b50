"""pandas bridge between tabular track data and the engine models.

Parsers and storage layers (GPX/TCX readers, databases) live outside the
engine.  They hand over or receive plain DataFrames:

1. ``track_from_frame`` turns a table of samples into a :class:`Track`.
2. ``track_to_frame``, ``splits_to_frame`` and ``results_to_frame`` turn
   engine outputs back into tables for persistence or export.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Sequence

import pandas as pd

from track_engine.core.index import build_track
from track_engine.core.point import TrackPoint
from track_engine.core.race import RaceResult
from track_engine.core.stats import TrackStats
from track_engine.core.track import DEFAULT_COLOR, Track

_REQUIRED_COLUMNS: tuple[str, ...] = ("lat", "lon", "ele", "time")
_OPTIONAL_COLUMNS: tuple[str, ...] = ("hr", "cadence")

# ---------------------------------------------------------------------------
# Frame -> Track
# ---------------------------------------------------------------------------


def _optional_int(value: object) -> int | None:
    if value is None or pd.isna(value):
        return None
    return int(value)


def track_from_frame(
    df: pd.DataFrame,
    track_id: str,
    name: str,
    color: str = DEFAULT_COLOR,
) -> Track:
    """Build a Track from a DataFrame of samples.

    Required columns are ``lat``, ``lon``, ``ele`` and ``time``; ``hr`` and
    ``cadence`` are optional.  Rows are sorted by time.  Naive timestamps
    are taken as UTC.  Missing heart-rate or cadence values become ``None``.

    Args:
        df: Sample table.
        track_id: Id of the new track.
        name: Display name.
        color: Display colour.

    Returns:
        A Track with cumulative distances derived from the samples.

    Raises:
        ValueError: If a required column is missing.
    """
    missing = [c for c in _REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Track frame is missing required columns: {missing}")

    frame = df.copy()
    frame["time"] = pd.to_datetime(frame["time"], utc=True)
    frame = frame.sort_values("time", kind="stable").reset_index(drop=True)
    for column in _OPTIONAL_COLUMNS:
        if column not in frame.columns:
            frame[column] = None

    points: list[TrackPoint] = [
        TrackPoint(
            latitude=float(row.lat),
            longitude=float(row.lon),
            elevation=float(row.ele),
            timestamp=row.time.to_pydatetime(),
            heart_rate=_optional_int(row.hr),
            cadence=_optional_int(row.cadence),
        )
        for row in frame.itertuples(index=False)
    ]
    return build_track(track_id, name, points, color)


# ---------------------------------------------------------------------------
# Engine outputs -> frames
# ---------------------------------------------------------------------------


def track_to_frame(track: Track) -> pd.DataFrame:
    """Return one row per point, including the cumulative ``distance`` in km."""
    return pd.DataFrame(
        {
            "lat": [p.latitude for p in track.points],
            "lon": [p.longitude for p in track.points],
            "ele": [p.elevation for p in track.points],
            "time": pd.to_datetime([p.timestamp for p in track.points], utc=True),
            "hr": pd.array([p.heart_rate for p in track.points], dtype="Int64"),
            "cadence": pd.array([p.cadence for p in track.points], dtype="Int64"),
            "distance": [p.cumulative_distance for p in track.points],
        }
    )


def splits_to_frame(stats: TrackStats) -> pd.DataFrame:
    """Return one row per split, indexed by split number."""
    rows = [asdict(s) for s in stats.splits]
    if not rows:
        return pd.DataFrame(
            columns=[
                "distance",
                "duration_s",
                "pace",
                "elevation_gain",
                "elevation_loss",
                "avg_heart_rate",
                "is_fastest",
                "is_slowest",
            ],
            index=pd.Index([], name="index"),
        )
    return pd.DataFrame(rows).set_index("index")


def results_to_frame(results: Sequence[RaceResult]) -> pd.DataFrame:
    """Return the classification as a table ordered by rank."""
    columns = [
        "rank",
        "track_id",
        "name",
        "color",
        "finish_time_s",
        "avg_speed",
        "distance",
    ]
    frame = pd.DataFrame([asdict(r) for r in results], columns=columns)
    return frame.sort_values("rank").reset_index(drop=True)
