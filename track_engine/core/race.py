"""Multi-track race replay for the track analysis engine.

Several independently recorded tracks are replayed against one virtual
clock.  Each runner's position at virtual time ``t`` is the point its own
recording reached ``t`` seconds after its first sample, interpolated with
the same law as ``point_at_distance``.  The session owns no timer: an
external driver calls ``tick(delta_s)`` once per frame and receives an
immutable ``RaceFrame`` describing positions, ranks and gaps.

State machine::

    idle --start--> running <--pause/resume--> paused
    running --(every runner has a result)--> finished
    any --reset--> idle

Ticking is a no-op in ``idle`` and ``finished``; in ``paused`` the last
frame is returned unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from track_engine.core.index import elapsed_at_distance, point_at_elapsed
from track_engine.core.point import GeoPoint
from track_engine.core.settings import DEFAULT_CONFIG, EngineConfig
from track_engine.core.similarity import find_duplicate_tracks
from track_engine.core.track import Track

_LOG = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


class RaceState(Enum):
    """Lifecycle of a race session."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class RaceRunner:
    """Live snapshot of one runner, rebuilt on every tick.

    Attributes:
        track_id: Track being replayed.
        position: Interpolated position (the final point once finished).
        distance: Kilometres covered.
        progress: Fraction of the track covered (0.0-1.0).
        current_pace: Rolling pace in min/km (0 when undefined).
        current_speed: Rolling speed in km/h.
        color: Display colour of the track.
        finished: True once the runner has a ``RaceResult``.
    """

    track_id: str
    position: GeoPoint
    distance: float
    progress: float
    current_pace: float
    current_speed: float
    color: str
    finished: bool = False


@dataclass(frozen=True)
class RaceResult:
    """Final classification entry, recorded once when a runner finishes.

    Attributes:
        rank: 1-based finish position.
        track_id: Track replayed.
        name: Track name.
        color: Track colour.
        finish_time_s: Virtual time of the tick in which the runner crossed
            its own total duration.
        avg_speed: Track distance over ``finish_time_s`` in km/h.
        distance: Track distance in km.
    """

    rank: int
    track_id: str
    name: str
    color: str
    finish_time_s: float
    avg_speed: float
    distance: float


@dataclass(frozen=True)
class LapLeader:
    """Runner who covered the most ground in one lap interval."""

    lap: int
    track_id: str
    name: str
    distance: float


@dataclass(frozen=True)
class RaceFrame:
    """Everything a host needs to draw one tick.

    Attributes:
        virtual_time_s: Virtual clock after the tick.
        state: Session state after the tick.
        runners: One snapshot per selected runner, in selection order.
        ranks: track_id -> rank.  Finished runners keep their finish rank;
            the others follow by distance covered.
        gaps_to_leader: track_id -> metres behind the runner with the
            greatest distance covered.
        gaps_to_ahead: track_id -> metres behind the next runner ahead.
        distances: track_id -> kilometres covered.
        new_results: Results recorded during this tick.
        new_lap_leaders: Lap leaders decided during this tick.
    """

    virtual_time_s: float
    state: RaceState
    runners: tuple[RaceRunner, ...]
    ranks: dict[str, int]
    gaps_to_leader: dict[str, float]
    gaps_to_ahead: dict[str, float]
    distances: dict[str, float]
    new_results: tuple[RaceResult, ...] = ()
    new_lap_leaders: tuple[LapLeader, ...] = ()


# ---------------------------------------------------------------------------
# Internal per-runner state
# ---------------------------------------------------------------------------


class _RunnerState:
    """Mutable per-runner bookkeeping during a session."""

    __slots__ = ("track", "order", "result", "lap_start_distance")

    def __init__(self, track: Track, order: int) -> None:
        self.track: Track = track
        self.order: int = order
        self.result: RaceResult | None = None
        self.lap_start_distance: float = 0.0


def _distance_at(track: Track, elapsed_s: float) -> float:
    if elapsed_s >= track.duration_s:
        return track.total_distance
    point = point_at_elapsed(track, elapsed_s)
    return point.cumulative_distance if point is not None else 0.0


def rolling_pace(track: Track, elapsed_s: float, window_km: float = 0.2) -> float:
    """Pace in min/km over the last *window_km* covered by *elapsed_s*.

    The window is clipped at the start of the track.  Returns 0 when no
    distance has been covered yet.
    """
    covered: float = _distance_at(track, elapsed_s)
    if covered <= 0.0:
        return 0.0
    from_km: float = max(0.0, covered - window_km)
    from_s = elapsed_at_distance(track, from_km)
    if from_s is None:
        return 0.0
    span_km: float = covered - from_km
    span_s: float = min(elapsed_s, track.duration_s) - from_s
    if span_km <= 0.0 or span_s <= 0.0:
        return 0.0
    return (span_s / 60.0) / span_km


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class RaceSession:
    """Deterministic replay of several tracks against one virtual clock.

    Attributes:
        config: Engine thresholds (rolling pace window, lap interval).
        state: Current ``RaceState``.
        virtual_time_s: Seconds of virtual time elapsed since start.
        speed_multiplier: Virtual seconds per wall-clock second.
    """

    def __init__(
        self,
        tracks: Iterable[Track],
        config: EngineConfig | None = None,
    ) -> None:
        self.config: EngineConfig = config or DEFAULT_CONFIG
        self._tracks: dict[str, Track] = {t.id: t for t in tracks}
        self.state: RaceState = RaceState.IDLE
        self.virtual_time_s: float = 0.0
        self.speed_multiplier: float = 1.0
        self._runners: list[_RunnerState] = []
        self._results: list[RaceResult] = []
        self._lap_leaders: list[LapLeader] = []
        self._last_lap_check_s: float = 0.0
        self._last_frame: RaceFrame | None = None

    # -- Read-only views ------------------------------------------------------

    @property
    def results(self) -> tuple[RaceResult, ...]:
        """All results so far, in finish order."""
        return tuple(self._results)

    @property
    def lap_leaders(self) -> tuple[LapLeader, ...]:
        return tuple(self._lap_leaders)

    @property
    def last_frame(self) -> RaceFrame | None:
        return self._last_frame

    # -- Transitions ----------------------------------------------------------

    def start(self, track_ids: Sequence[str], speed_multiplier: float = 1.0) -> bool:
        """Begin a race between the selected tracks.

        Invalid requests are no-ops: fewer than two usable tracks, a session
        already in progress, or identical recordings in the selection.

        Args:
            track_ids: Ids of the tracks to race, in display order.
            speed_multiplier: Virtual seconds per wall-clock second (> 0).

        Returns:
            True if the session is now running.

        Raises:
            ValueError: If speed_multiplier <= 0.
        """
        if speed_multiplier <= 0.0:
            raise ValueError("speed_multiplier must be > 0.")
        if self.state in (RaceState.RUNNING, RaceState.PAUSED):
            _LOG.warning("start ignored: race already %s", self.state.value)
            return False

        selected: list[Track] = [
            self._tracks[tid]
            for tid in dict.fromkeys(track_ids)
            if tid in self._tracks and not self._tracks[tid].is_degenerate
        ]
        if len(selected) < 2:
            _LOG.warning("start ignored: %d usable tracks selected", len(selected))
            return False

        duplicates = find_duplicate_tracks(selected)
        if duplicates:
            _LOG.warning("start ignored: identical tracks selected %s", duplicates)
            return False

        self._runners = [_RunnerState(t, order) for order, t in enumerate(selected)]
        self._results = []
        self._lap_leaders = []
        self._last_lap_check_s = 0.0
        self.virtual_time_s = 0.0
        self.speed_multiplier = speed_multiplier
        self.state = RaceState.RUNNING
        self._last_frame = self._build_frame((), ())
        _LOG.info("race started with %d runners", len(selected))
        return True

    def pause(self) -> bool:
        """Freeze the virtual clock.  Only valid while running."""
        if self.state is not RaceState.RUNNING:
            return False
        self.state = RaceState.PAUSED
        return True

    def resume(self) -> bool:
        """Restart the virtual clock.  Only valid while paused."""
        if self.state is not RaceState.PAUSED:
            return False
        self.state = RaceState.RUNNING
        return True

    def reset(self) -> None:
        """Discard all progress and return to idle."""
        self.state = RaceState.IDLE
        self.virtual_time_s = 0.0
        self._runners = []
        self._results = []
        self._lap_leaders = []
        self._last_lap_check_s = 0.0
        self._last_frame = None

    def set_speed(self, multiplier: float) -> None:
        """Change the virtual-time multiplier.

        Raises:
            ValueError: If multiplier <= 0.
        """
        if multiplier <= 0.0:
            raise ValueError("speed_multiplier must be > 0.")
        self.speed_multiplier = multiplier

    # -- Tick -----------------------------------------------------------------

    def tick(self, delta_s: float) -> RaceFrame | None:
        """Advance the virtual clock by ``delta_s * speed_multiplier``.

        Per tick:
            1. Advance the virtual clock.
            2. Record a result for every runner whose recording has ended.
            3. Interpolate each unfinished runner's position by time.
            4. Compute rolling pace over the configured trailing window.
            5. Rank runners and compute gaps.
            6. Transition to ``finished`` once every runner has a result.

        Args:
            delta_s: Wall-clock seconds since the previous tick (>= 0).

        Returns:
            The new frame; the previous frame while paused; ``None`` when
            idle or finished.

        Raises:
            ValueError: If delta_s < 0.
        """
        if self.state in (RaceState.IDLE, RaceState.FINISHED):
            return None
        if self.state is RaceState.PAUSED:
            return self._last_frame
        if delta_s < 0.0:
            raise ValueError("delta_s must be >= 0.")

        self.virtual_time_s += delta_s * self.speed_multiplier

        new_results = self._record_finishers()
        new_laps = self._check_laps()

        if all(r.result is not None for r in self._runners):
            self.state = RaceState.FINISHED
            _LOG.info("race finished at %.1f s virtual time", self.virtual_time_s)

        self._last_frame = self._build_frame(new_results, new_laps)
        return self._last_frame

    # -- Internals ------------------------------------------------------------

    def _record_finishers(self) -> tuple[RaceResult, ...]:
        # Selection order breaks same-tick ties.
        crossing = [
            r
            for r in self._runners
            if r.result is None and self.virtual_time_s >= r.track.duration_s
        ]

        recorded: list[RaceResult] = []
        for runner in crossing:
            track = runner.track
            finish_s: float = self.virtual_time_s
            avg_speed: float = (
                track.total_distance / (finish_s / 3600.0) if finish_s > 0.0 else 0.0
            )
            runner.result = RaceResult(
                rank=len(self._results) + 1,
                track_id=track.id,
                name=track.name,
                color=track.color,
                finish_time_s=finish_s,
                avg_speed=avg_speed,
                distance=track.total_distance,
            )
            self._results.append(runner.result)
            recorded.append(runner.result)
            _LOG.debug("%s finished rank %d", track.id, runner.result.rank)
        return tuple(recorded)

    def _check_laps(self) -> tuple[LapLeader, ...]:
        interval: float = self.config.lap_interval_s
        decided: list[LapLeader] = []
        while self.virtual_time_s >= self._last_lap_check_s + interval:
            lap_end: float = self._last_lap_check_s + interval
            best: _RunnerState | None = None
            best_km: float = -1.0
            for runner in self._runners:
                at_end = _distance_at(runner.track, lap_end)
                lap_km = at_end - runner.lap_start_distance
                if lap_km > best_km:
                    best, best_km = runner, lap_km
                runner.lap_start_distance = at_end
            if best is not None:
                decided.append(
                    LapLeader(
                        lap=round(lap_end / interval),
                        track_id=best.track.id,
                        name=best.track.name,
                        distance=best_km,
                    )
                )
            self._last_lap_check_s = lap_end
        self._lap_leaders.extend(decided)
        return tuple(decided)

    def _snapshot(self, runner: _RunnerState) -> RaceRunner:
        track = runner.track
        if runner.result is not None:
            return RaceRunner(
                track_id=track.id,
                position=track.points[-1],
                distance=track.total_distance,
                progress=1.0,
                current_pace=0.0,
                current_speed=0.0,
                color=track.color,
                finished=True,
            )

        point = point_at_elapsed(track, self.virtual_time_s) or track.points[0]
        covered: float = point.cumulative_distance
        pace: float = rolling_pace(
            track, self.virtual_time_s, self.config.rolling_pace_window_km
        )
        return RaceRunner(
            track_id=track.id,
            position=point,
            distance=covered,
            progress=covered / track.total_distance if track.total_distance > 0.0 else 0.0,
            current_pace=pace,
            current_speed=60.0 / pace if pace > 0.0 else 0.0,
            color=track.color,
        )

    def _build_frame(
        self,
        new_results: tuple[RaceResult, ...],
        new_laps: tuple[LapLeader, ...],
    ) -> RaceFrame:
        snapshots = [self._snapshot(r) for r in self._runners]
        distances: dict[str, float] = {s.track_id: s.distance for s in snapshots}

        ranks: dict[str, int] = {
            r.track.id: r.result.rank for r in self._runners if r.result is not None
        }
        live = sorted(
            (r for r in self._runners if r.result is None),
            key=lambda r: (-distances[r.track.id], r.order),
        )
        for position, runner in enumerate(live, start=len(ranks) + 1):
            ranks[runner.track.id] = position

        leader_km: float = max(distances.values(), default=0.0)
        gaps_to_leader: dict[str, float] = {
            tid: (leader_km - km) * 1000.0 for tid, km in distances.items()
        }

        gaps_to_ahead: dict[str, float] = {}
        by_distance = sorted(distances, key=lambda tid: (-distances[tid], ranks[tid]))
        for i, tid in enumerate(by_distance):
            ahead_km = distances[by_distance[i - 1]] if i > 0 else distances[tid]
            gaps_to_ahead[tid] = (ahead_km - distances[tid]) * 1000.0

        return RaceFrame(
            virtual_time_s=self.virtual_time_s,
            state=self.state,
            runners=tuple(snapshots),
            ranks=ranks,
            gaps_to_leader=gaps_to_leader,
            gaps_to_ahead=gaps_to_ahead,
            distances=distances,
            new_results=new_results,
            new_lap_leaders=new_laps,
        )


# ---------------------------------------------------------------------------
# Convenience driver
# ---------------------------------------------------------------------------


def simulate_race(
    tracks: Sequence[Track],
    delta_s: float,
    speed_multiplier: float = 1.0,
    config: EngineConfig | None = None,
    max_ticks: int = 1_000_000,
) -> list[RaceResult]:
    """Replay *tracks* with fixed ticks until every runner finishes.

    Args:
        tracks: Tracks to race (>= 2, distinct recordings).
        delta_s: Wall-clock seconds per tick (> 0).
        speed_multiplier: Virtual seconds per wall-clock second.
        config: Engine thresholds.
        max_ticks: Safety bound on the number of ticks.

    Returns:
        Results in finish order; empty if the race could not start.

    Raises:
        ValueError: If delta_s <= 0.
    """
    if delta_s <= 0.0:
        raise ValueError("delta_s must be > 0.")

    session = RaceSession(tracks, config)
    if not session.start([t.id for t in tracks], speed_multiplier):
        return []
    for _ in range(max_ticks):
        session.tick(delta_s)
        if session.state is RaceState.FINISHED:
            break
    return list(session.results)
