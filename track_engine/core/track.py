"""Track model for the track analysis engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from track_engine.core.point import TrackPoint

DEFAULT_COLOR: str = "#06b6d4"
MERGED_COLOR: str = "#0ea5e9"


@dataclass(frozen=True)
class Track:
    """Immutable recorded activity.

    Tracks are built with ``index.build_track`` and changed only through the
    mutator functions, which always return a new instance whose distance
    and duration come from ``recompute_metrics``.

    Attributes:
        id: Stable identifier.
        name: Display name.
        color: Display colour handed to renderers.
        points: Ordered samples with cumulative distances.
        total_distance: Kilometres; equals the last point's cumulative
            distance.
        total_duration: Last timestamp minus first timestamp.
    """

    id: str
    name: str
    color: str = DEFAULT_COLOR
    points: tuple[TrackPoint, ...] = ()
    total_distance: float = 0.0
    total_duration: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        """Validate track fields."""
        if not self.id:
            raise ValueError("Track id must not be empty.")
        if self.total_distance < 0.0:
            raise ValueError("total_distance must be >= 0.0.")

    @property
    def is_degenerate(self) -> bool:
        """True when the track has fewer than two points."""
        return len(self.points) < 2

    @property
    def duration_s(self) -> float:
        """Total duration in seconds."""
        return self.total_duration.total_seconds()
