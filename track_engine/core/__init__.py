"""Core modules for the track analysis engine."""

from track_engine.core.geometry import EARTH_RADIUS_KM, distance, distance_between
from track_engine.core.index import (
    build_track,
    elapsed_at_distance,
    interpolate,
    point_at_distance,
    point_at_elapsed,
    points_in_range,
    recompute_metrics,
    with_points,
)
from track_engine.core.mutators import (
    OutlierCorrection,
    cut,
    merge,
    smooth_outliers,
    trim,
)
from track_engine.core.pauses import PauseSegment, find_pauses, total_pause_seconds
from track_engine.core.point import GeoPoint, TrackPoint
from track_engine.core.race import (
    LapLeader,
    RaceFrame,
    RaceResult,
    RaceRunner,
    RaceSession,
    RaceState,
    rolling_pace,
    simulate_race,
)
from track_engine.core.records import (
    PR_DISTANCES,
    PersonalRecord,
    find_best_time_for_distance,
    find_personal_records,
)
from track_engine.core.settings import DEFAULT_CONFIG, EngineConfig
from track_engine.core.similarity import (
    are_tracks_similar,
    find_duplicate_tracks,
    group_tracks,
    track_fingerprint,
)
from track_engine.core.splits import Split, compute_splits
from track_engine.core.stats import (
    SegmentStats,
    TrackStats,
    compute_stats,
    format_pace,
    segment_stats,
)
from track_engine.core.track import DEFAULT_COLOR, MERGED_COLOR, Track
from track_engine.core.zones import HeartRateZone, heart_rate_zones

__all__ = [
    "DEFAULT_COLOR",
    "DEFAULT_CONFIG",
    "EARTH_RADIUS_KM",
    "EngineConfig",
    "GeoPoint",
    "HeartRateZone",
    "LapLeader",
    "MERGED_COLOR",
    "OutlierCorrection",
    "PR_DISTANCES",
    "PauseSegment",
    "PersonalRecord",
    "RaceFrame",
    "RaceResult",
    "RaceRunner",
    "RaceSession",
    "RaceState",
    "SegmentStats",
    "Split",
    "Track",
    "TrackPoint",
    "TrackStats",
    "are_tracks_similar",
    "build_track",
    "compute_splits",
    "compute_stats",
    "cut",
    "distance",
    "distance_between",
    "elapsed_at_distance",
    "find_best_time_for_distance",
    "find_duplicate_tracks",
    "find_pauses",
    "find_personal_records",
    "format_pace",
    "group_tracks",
    "heart_rate_zones",
    "interpolate",
    "merge",
    "point_at_distance",
    "point_at_elapsed",
    "points_in_range",
    "recompute_metrics",
    "rolling_pace",
    "segment_stats",
    "simulate_race",
    "smooth_outliers",
    "total_pause_seconds",
    "track_fingerprint",
    "trim",
    "with_points",
]
