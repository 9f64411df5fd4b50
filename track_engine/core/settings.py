"""Tunable thresholds for the track analysis engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Immutable set of thresholds shared by statistics, editing and racing.

    Defaults describe running activities.  Other activity types (cycling,
    hiking) are expressed as profiles in ``engine_defaults.yaml`` and loaded
    through :func:`track_engine.config.load_engine_config`.

    Attributes:
        pause_max_speed_kmh: Instantaneous speed below which a segment
            counts as stationary.
        pause_min_duration_s: Minimum length of a stationary run before it
            is reported as a pause.
        outlier_speed_kmh: Implied segment speed above which a point is
            treated as a GPS error by outlier smoothing.
        max_speed_cap_kmh: Ceiling applied to the reported max speed.
        split_distance_km: Nominal split bucket size.
        split_min_final_fraction: Fraction of the bucket size the trailing
            partial split must exceed to be reported.
        split_rank_fraction: Fraction of the bucket size a split must exceed
            to compete for fastest/slowest.
        rolling_pace_window_km: Trailing distance used for live race pace.
        lap_interval_s: Virtual-time interval between lap leader checks.
        merge_gap_s: Synthetic gap inserted between merged tracks.
        elevation_hysteresis_m: Swing an elevation change must exceed to
            count towards the filtered gain and loss.
    """

    pause_max_speed_kmh: float = 1.0
    pause_min_duration_s: float = 10.0
    outlier_speed_kmh: float = 50.0
    max_speed_cap_kmh: float = 60.0
    split_distance_km: float = 1.0
    split_min_final_fraction: float = 0.05
    split_rank_fraction: float = 0.5
    rolling_pace_window_km: float = 0.2
    lap_interval_s: float = 300.0
    merge_gap_s: float = 1.0
    elevation_hysteresis_m: float = 4.0

    def __post_init__(self) -> None:
        """Validate thresholds."""
        for name in (
            "pause_max_speed_kmh",
            "outlier_speed_kmh",
            "max_speed_cap_kmh",
            "split_distance_km",
            "rolling_pace_window_km",
            "lap_interval_s",
        ):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be > 0.")
        if self.pause_min_duration_s < 0.0:
            raise ValueError("pause_min_duration_s must be >= 0.")
        if self.merge_gap_s < 0.0:
            raise ValueError("merge_gap_s must be >= 0.")
        if self.elevation_hysteresis_m < 0.0:
            raise ValueError("elevation_hysteresis_m must be >= 0.")
        if not 0.0 < self.split_min_final_fraction <= 1.0:
            raise ValueError("split_min_final_fraction must be in (0.0, 1.0].")
        if not 0.0 < self.split_rank_fraction <= 1.0:
            raise ValueError("split_rank_fraction must be in (0.0, 1.0].")


DEFAULT_CONFIG = EngineConfig()
