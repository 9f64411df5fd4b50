"""Point models for recorded GPS tracks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class GeoPoint:
    """A single timestamped geographic sample.

    Attributes:
        latitude: Decimal degrees.
        longitude: Decimal degrees.
        elevation: Metres above sea level.
        timestamp: Recording instant (timezone-aware).
    """

    latitude: float
    longitude: float
    elevation: float
    timestamp: datetime


@dataclass(frozen=True)
class TrackPoint(GeoPoint):
    """A GeoPoint positioned along a track.

    Attributes:
        cumulative_distance: Kilometres from the first point of the track.
            Always produced by ``recompute_metrics``; never patched by hand.
        heart_rate: Optional heart-rate sample in bpm.
        cadence: Optional cadence sample in steps (or revolutions) per minute.
    """

    cumulative_distance: float = 0.0
    heart_rate: int | None = None
    cadence: int | None = None
