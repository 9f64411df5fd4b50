"""Heart-rate zone distribution."""

from __future__ import annotations

from dataclasses import dataclass

from track_engine.core.track import Track

# (name, upper bound as a fraction of max HR)
ZONE_THRESHOLDS: tuple[tuple[str, float], ...] = (
    ("Z1", 0.6),
    ("Z2", 0.7),
    ("Z3", 0.8),
    ("Z4", 0.9),
    ("Z5", 1.0),
)


@dataclass(frozen=True)
class HeartRateZone:
    """Time spent in one heart-rate zone.

    Attributes:
        name: Zone label (``Z1`` .. ``Z5``).
        lower_bpm: Lower bound, rounded.
        upper_bpm: Upper bound, rounded.
        duration_s: Seconds attributed to the zone.
        percent: Share of all time carrying heart-rate data.
    """

    name: str
    lower_bpm: int
    upper_bpm: int
    duration_s: float
    percent: float


def resolve_max_hr(
    track: Track, max_hr: int | None = None, age: int | None = None
) -> int:
    """Pick the max HR: explicit value, else ``220 - age``, else the track peak."""
    if max_hr:
        return max_hr
    if age:
        return 220 - age
    return max((p.heart_rate or 0 for p in track.points), default=0)


def heart_rate_zones(
    track: Track, max_hr: int | None = None, age: int | None = None
) -> list[HeartRateZone]:
    """Distribute the track's duration over five heart-rate zones.

    Each segment whose two ends both carry heart rate contributes its
    duration to the zone of the mean of the two samples.

    Returns:
        Five zones, or an empty list when no max HR can be determined.
    """
    reference = resolve_max_hr(track, max_hr, age)
    if reference <= 0:
        return []

    durations: list[float] = [0.0] * len(ZONE_THRESHOLDS)
    total: float = 0.0
    for prev, cur in zip(track.points, track.points[1:]):
        if not prev.heart_rate or not cur.heart_rate:
            continue
        ratio: float = (prev.heart_rate + cur.heart_rate) / 2.0 / reference
        seconds: float = (cur.timestamp - prev.timestamp).total_seconds()
        total += seconds
        zone = next(
            (i for i, (_, upper) in enumerate(ZONE_THRESHOLDS) if ratio < upper),
            len(ZONE_THRESHOLDS) - 1,
        )
        durations[zone] += seconds

    zones: list[HeartRateZone] = []
    lower: float = 0.0
    for (name, upper), seconds in zip(ZONE_THRESHOLDS, durations):
        zones.append(
            HeartRateZone(
                name=name,
                lower_bpm=round(lower * reference),
                upper_bpm=round(upper * reference),
                duration_s=seconds,
                percent=seconds / total * 100.0 if total > 0.0 else 0.0,
            )
        )
        lower = upper
    return zones
