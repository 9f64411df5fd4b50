"""Pure editing transforms for recorded tracks.

Every function returns a new ``Track`` built through ``recompute_metrics``;
inputs are never modified.  Invalid requests (inverted or out-of-range
selections) return the input unchanged instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Sequence

from track_engine.core.geometry import distance
from track_engine.core.index import point_at_distance, with_points
from track_engine.core.point import TrackPoint
from track_engine.core.track import MERGED_COLOR, Track

_LOG = logging.getLogger(__name__)

EPOCH: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Segments shorter than this are ignored by outlier detection (1e-6 h).
_MIN_OUTLIER_DT_S: float = 0.0036

# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OutlierCorrection:
    """Outcome of :func:`smooth_outliers`.

    Attributes:
        track: Corrected track (the input itself when nothing changed).
        corrected_count: Number of points whose position was replaced.
            Zero means nothing needed fixing.
    """

    track: Track
    corrected_count: int


# ---------------------------------------------------------------------------
# Cut / trim
# ---------------------------------------------------------------------------


def _valid_selection(track: Track, start: float, end: float) -> bool:
    return (
        not track.is_degenerate
        and 0.0 <= start < end <= track.total_distance
    )


def cut(track: Track, start: float, end: float) -> Track:
    """Remove the ``[start, end]`` km section from *track*.

    Interpolated boundary points are spliced onto both sides of the gap and
    every point after the cut is shifted back by the removed duration, so
    the timeline stays continuous.

    Args:
        track: Track to edit.
        start: Start of the removed section in km.
        end: End of the removed section in km.

    Returns:
        The edited track, renamed ``"<name> (edited)"``.  The input itself
        when the selection is inverted or outside the track.
    """
    if not _valid_selection(track, start, end):
        return track

    cut_start = point_at_distance(track, start)
    cut_end = point_at_distance(track, end)
    if cut_start is None or cut_end is None:
        return track

    removed: timedelta = cut_end.timestamp - cut_start.timestamp

    before: list[TrackPoint] = [
        p for p in track.points if p.cumulative_distance < start
    ]
    if start > 0.0:
        before.append(cut_start)

    after: list[TrackPoint] = [
        replace(p, timestamp=p.timestamp - removed)
        for p in track.points
        if p.cumulative_distance > end
    ]
    if end < track.total_distance:
        after.insert(0, replace(cut_end, timestamp=cut_end.timestamp - removed))

    _LOG.debug(
        "cut %s: removed %.3f-%.3f km (%.1f s)",
        track.id,
        start,
        end,
        removed.total_seconds(),
    )
    return with_points(track, before + after, name=f"{track.name} (edited)")


def trim(track: Track, start: float, end: float) -> Track:
    """Keep only the ``[start, end]`` km section of *track*.

    Every recorded point inside the closed range is kept, so stationary
    samples sitting on a bound survive.  A bound with no recorded point on
    it gets an interpolated one.  The first kept point is re-based to the
    epoch and to zero distance before metrics are recomputed.  Fewer than
    two kept points yields an empty track.
    """
    if not _valid_selection(track, start, end):
        return track

    kept: list[TrackPoint] = [
        p for p in track.points if start <= p.cumulative_distance <= end
    ]
    if not kept or kept[0].cumulative_distance != start:
        head = point_at_distance(track, start)
        if head is not None:
            kept.insert(0, head)
    if not kept or kept[-1].cumulative_distance != end:
        tail = point_at_distance(track, end)
        if tail is not None:
            kept.append(tail)
    if len(kept) < 2:
        return with_points(track, [])

    offset: timedelta = kept[0].timestamp - EPOCH
    first_distance: float = kept[0].cumulative_distance
    rebased: list[TrackPoint] = [
        replace(
            p,
            timestamp=p.timestamp - offset,
            cumulative_distance=p.cumulative_distance - first_distance,
        )
        for p in kept
    ]
    return with_points(track, rebased)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def merge(tracks: Sequence[Track], merge_gap_s: float = 1.0) -> Track:
    """Join several tracks into one continuous timeline.

    Tracks are ordered by start time.  Each subsequent track is shifted so
    its first point lands exactly *merge_gap_s* after the previous track's
    last point.  The gap is synthetic; it does not claim the activities were
    run back to back.
    """
    ordered: list[Track] = sorted(
        (t for t in tracks if t.points), key=lambda t: t.points[0].timestamp
    )
    gap = timedelta(seconds=merge_gap_s)

    merged: list[TrackPoint] = []
    for track in ordered:
        offset = timedelta(0)
        if merged:
            offset = merged[-1].timestamp + gap - track.points[0].timestamp
        merged.extend(replace(p, timestamp=p.timestamp + offset) for p in track.points)

    base = Track(
        id="merged-" + "+".join(t.id for t in ordered) if ordered else "merged",
        name=" + ".join(t.name for t in ordered),
        color=MERGED_COLOR,
    )
    return with_points(base, merged)


# ---------------------------------------------------------------------------
# Outlier smoothing
# ---------------------------------------------------------------------------


def _find_outliers(points: Sequence[TrackPoint], max_speed_kmh: float) -> set[int]:
    """Flag every point whose incoming segment implies an implausible speed."""
    flagged: set[int] = set()
    for i in range(1, len(points)):
        prev, point = points[i - 1], points[i]
        dt_s: float = (point.timestamp - prev.timestamp).total_seconds()
        if dt_s <= _MIN_OUTLIER_DT_S:
            continue
        if distance(prev, point) / (dt_s / 3600.0) > max_speed_kmh:
            flagged.add(i)
    return flagged


def _nearest_valid(
    points: Sequence[TrackPoint], flagged: set[int], start: int, step: int
) -> TrackPoint | None:
    j = start + step
    while 0 <= j < len(points):
        if j not in flagged:
            return points[j]
        j += step
    return None


def smooth_outliers(track: Track, max_speed_kmh: float = 50.0) -> OutlierCorrection:
    """Replace GPS spikes with positions interpolated from valid neighbours.

    A point is an outlier when the speed implied by the segment from the
    previous recorded point exceeds *max_speed_kmh*.  Only latitude, longitude
    and elevation are replaced; timestamps are trusted.

    Args:
        track: Track to correct.
        max_speed_kmh: Implausible-speed threshold.

    Returns:
        An ``OutlierCorrection`` with the corrected track and the number of
        corrected points.
    """
    points = track.points
    if len(points) < 3:
        return OutlierCorrection(track=track, corrected_count=0)

    flagged = _find_outliers(points, max_speed_kmh)
    if not flagged:
        return OutlierCorrection(track=track, corrected_count=0)

    corrected: list[TrackPoint] = []
    for i, point in enumerate(points):
        if i not in flagged:
            corrected.append(point)
            continue

        prev_point = _nearest_valid(points, flagged, i, -1)
        next_point = _nearest_valid(points, flagged, i, 1)
        if prev_point is not None and next_point is not None:
            corrected.append(
                replace(
                    point,
                    latitude=(prev_point.latitude + next_point.latitude) / 2.0,
                    longitude=(prev_point.longitude + next_point.longitude) / 2.0,
                    elevation=(prev_point.elevation + next_point.elevation) / 2.0,
                )
            )
        elif prev_point is not None or next_point is not None:
            source = prev_point if prev_point is not None else next_point
            corrected.append(
                replace(
                    point,
                    latitude=source.latitude,
                    longitude=source.longitude,
                    elevation=source.elevation,
                )
            )
        else:
            corrected.append(point)

    _LOG.debug("smooth_outliers %s: corrected %d points", track.id, len(flagged))
    return OutlierCorrection(
        track=with_points(track, corrected), corrected_count=len(flagged)
    )
