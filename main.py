"""CLI entrypoint for the track analysis engine."""

from __future__ import annotations

import logging
import math
import sys
from datetime import datetime, timedelta, timezone

from track_engine import __version__
from track_engine.config import load_engine_config
from track_engine.core.geometry import EARTH_RADIUS_KM
from track_engine.core.index import build_track
from track_engine.core.mutators import merge, smooth_outliers
from track_engine.core.point import GeoPoint
from track_engine.core.race import simulate_race
from track_engine.core.records import find_personal_records
from track_engine.core.stats import compute_stats, format_pace
from track_engine.core.track import Track

_KM_PER_DEGREE: float = EARTH_RADIUS_KM * math.pi / 180.0


def _synthetic_track(track_id: str, name: str, km: float, minutes: float, color: str) -> Track:
    """A straight northbound run sampled every 10 seconds."""
    start = datetime(2024, 5, 1, 7, 0, tzinfo=timezone.utc)
    samples = int(minutes * 6)
    points = [
        GeoPoint(
            latitude=45.0 + km * i / samples / _KM_PER_DEGREE,
            longitude=7.0,
            elevation=250.0 + 15.0 * ((i // 30) % 2),
            timestamp=start + timedelta(seconds=10 * i),
        )
        for i in range(samples + 1)
    ]
    return build_track(track_id, name, points, color)


def main() -> None:
    """Run a demonstration of statistics and a two-runner race replay."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print(f"Track Analysis Engine v{__version__}")
    print("=" * 56)

    config = load_engine_config(profile="running")

    tempo = _synthetic_track("tempo", "Tempo run", 5.0, 25.0, "#ef4444")
    easy = _synthetic_track("easy", "Easy run", 5.0, 30.0, "#22c55e")

    # -- Cleaning -------------------------------------------------------------
    for track in (tempo, easy):
        correction = smooth_outliers(track, config.outlier_speed_kmh)
        print(f"{track.name}: {correction.corrected_count} GPS outliers corrected")

    combined = merge([tempo, easy], config.merge_gap_s)
    print(f"Merged \"{combined.name}\": {combined.total_distance:.2f} km")

    # -- Statistics -----------------------------------------------------------
    for track in (tempo, easy):
        stats = compute_stats(track, config=config)
        print(f"\n{track.name}: {stats.total_distance:.2f} km in {stats.total_duration_s / 60:.1f} min")
        print(f"  Avg pace  : {format_pace(stats.avg_pace)} /km")
        print(f"  Elevation : +{stats.elevation_gain:.0f} m / -{stats.elevation_loss:.0f} m")
        print(f"  {'Split':>5}  {'Pace':>6}")
        for split in stats.splits:
            print(f"  {split.index:5d}  {format_pace(split.pace):>6}")
        for record in find_personal_records(track):
            print(f"  Best {record.label}: {record.time_s:.0f} s")

    # -- Race -----------------------------------------------------------------
    print("\nRace replay (10x speed, 1 s ticks):\n")
    for result in simulate_race([tempo, easy], delta_s=1.0, speed_multiplier=10.0, config=config):
        print(
            f"  P{result.rank}  {result.name:<10}  "
            f"{result.finish_time_s / 60:6.1f} min  {result.avg_speed:5.1f} km/h"
        )

    print("\nDemo complete.")


if __name__ == "__main__":
    sys.exit(main() or 0)
