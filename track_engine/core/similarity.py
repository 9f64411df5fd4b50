"""Route similarity, grouping and duplicate detection."""

from __future__ import annotations

from collections import defaultdict
from typing import Sequence

from track_engine.core.geometry import distance
from track_engine.core.index import point_at_distance
from track_engine.core.track import Track

START_END_TOLERANCE_KM: float = 0.1
CHECKPOINT_TOLERANCE_KM: float = 0.2
DISTANCE_TOLERANCE: float = 0.02
_CHECKPOINTS: tuple[float, ...] = (0.25, 0.5, 0.75)


def track_fingerprint(track: Track) -> str:
    """Cheap identity of a recording: point count, duration and distance."""
    return f"{len(track.points)}-{track.duration_s:.3f}-{track.total_distance:.4f}"


def find_duplicate_tracks(tracks: Sequence[Track]) -> list[list[str]]:
    """Return groups of track ids sharing a fingerprint (only groups > 1)."""
    by_print: dict[str, list[str]] = defaultdict(list)
    for track in tracks:
        by_print[track_fingerprint(track)].append(track.id)
    return [ids for ids in by_print.values() if len(ids) > 1]


def are_tracks_similar(a: Track, b: Track) -> bool:
    """True when two tracks follow the same route.

    The total distances must agree within 2%.  Start and end points must
    lie within 100 m of each other, and the points at 25/50/75% of each
    track within 200 m.
    """
    if a.is_degenerate or b.is_degenerate:
        return False

    mean_km: float = (a.total_distance + b.total_distance) / 2.0
    if mean_km > 0.0 and abs(a.total_distance - b.total_distance) / mean_km > DISTANCE_TOLERANCE:
        return False

    if distance(a.points[0], b.points[0]) > START_END_TOLERANCE_KM:
        return False
    if distance(a.points[-1], b.points[-1]) > START_END_TOLERANCE_KM:
        return False

    for ratio in _CHECKPOINTS:
        pa = point_at_distance(a, a.total_distance * ratio)
        pb = point_at_distance(b, b.total_distance * ratio)
        if pa is None or pb is None:
            return False
        if distance(pa, pb) > CHECKPOINT_TOLERANCE_KM:
            return False
    return True


def group_tracks(tracks: Sequence[Track]) -> dict[str, str]:
    """Group tracks that follow the same route.

    The first member of each group (in input order) names the group.
    Tracks with no similar partner are omitted.

    Returns:
        Mapping of track id to group id.
    """
    groups: dict[str, str] = {}
    for i, anchor in enumerate(tracks):
        if anchor.id in groups:
            continue
        groups[anchor.id] = anchor.id
        for other in tracks[i + 1 :]:
            if other.id not in groups and are_tracks_similar(anchor, other):
                groups[other.id] = anchor.id

    sizes: dict[str, int] = defaultdict(int)
    for group_id in groups.values():
        sizes[group_id] += 1
    return {tid: gid for tid, gid in groups.items() if sizes[gid] > 1}
