"""PlaybackController — run/pause, speed, step and reset over a replay timeline."""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from race_replay.simulation.board import BoardRow, build_board
from race_replay.simulation.cursor import (
    AdvanceResult,
    BatchAdvancer,
    Clock,
    MessageHook,
    PlaybackCursor,
)
from race_replay.simulation.snapshot import RaceStateSnapshot, initial_snapshot
from race_replay.simulation.timer import IntervalTimer
from race_replay.timeline.merge import build_timeline
from race_replay.timeline.models import Competitor, PositionRecord
from race_replay.timeline.parser import RecordParser
from race_replay.timing.best_times import (
    DEFAULT_EPSILON_S,
    BestTimeTracker,
    LapClassification,
    Metric,
)
from race_replay.timing.deltas import PositionChange, classify_positions, position_map

_logger = logging.getLogger(__name__)

_CYCLE_MAX_SPEED = 3  # the speed button cycles 1x → 2x → 3x → 1x

TimerFactory = Callable[[float, Callable[[IntervalTimer], None]], IntervalTimer]


class PlaybackState(str, enum.Enum):
    RUNNING = "running"
    PAUSED = "paused"


@dataclass
class PlaybackConfig:
    """Timing settings for playback."""

    base_interval_s: float = 2.0   # tick period at 1x speed
    max_batch_size: int = 3        # events consumed per tick never exceed this
    epsilon_s: float = DEFAULT_EPSILON_S


@dataclass(frozen=True)
class PlaybackView:
    """Everything a renderer needs, captured under one lock acquisition."""

    state: PlaybackState
    speed: int
    period_s: float
    snapshot: RaceStateSnapshot
    cursor: PlaybackCursor
    board: list[BoardRow]
    overall_best: dict[Metric, float | None]


class PlaybackController:
    """Drives a :class:`BatchAdvancer` from a single periodic timer.

    The tick period is ``base_interval_s / speed`` and each tick consumes
    ``min(speed, max_batch_size)`` events.  At most one timer exists at a
    time; every state transition happens under one lock so a timer tick and
    a host call never interleave.

    Parameters
    ----------
    config:
        Timing settings; defaults to :class:`PlaybackConfig`.
    on_message:
        Called with the text of every race-control message consumed.
    clock:
        Simulated "now" for stamping applied events (tests inject a fixed one).
    timer_factory:
        ``factory(interval_s, callback) -> timer`` with ``start``/``cancel``/
        ``join``; defaults to :class:`IntervalTimer`.
    """

    def __init__(
        self,
        config: PlaybackConfig | None = None,
        on_message: MessageHook | None = None,
        clock: Clock | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._cfg = config or PlaybackConfig()
        self._timer_factory = timer_factory or IntervalTimer
        self._parser = RecordParser()
        self._tracker = BestTimeTracker(self._cfg.epsilon_s)
        self._advancer = BatchAdvancer(self._tracker, on_message=on_message, clock=clock)
        self._lock = threading.RLock()

        self._roster: tuple[Competitor, ...] = ()
        self._positions: tuple[PositionRecord, ...] = ()
        self._cursor = PlaybackCursor()
        self._snapshot = RaceStateSnapshot()
        self._previous: dict[int, int] = {}
        self._last_lap_results: list[LapClassification] = []

        self._state = PlaybackState.PAUSED
        self._speed = 1
        self._timer: IntervalTimer | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def load_data(self, roster: Any, positions: Any, laps: Any, messages: Any) -> None:
        """Replace the session data and reset playback.

        Raises
        ------
        ReplayInputError
            If any argument is not a list of records or a record is malformed.
        """
        parsed_roster = tuple(self._parser.parse_roster(roster))
        parsed_positions = tuple(self._parser.parse_positions(positions))
        parsed_laps = self._parser.parse_laps(laps)
        parsed_messages = self._parser.parse_messages(messages)
        timeline = build_timeline(parsed_positions, parsed_laps, parsed_messages)

        with self._lock:
            self._roster = parsed_roster
            self._positions = parsed_positions
            self._cursor = PlaybackCursor.over(timeline)
            _logger.info(
                "Loaded %d competitors, %d positions, %d laps, %d messages (%d timeline events)",
                len(parsed_roster),
                len(parsed_positions),
                len(parsed_laps),
                len(parsed_messages),
                len(timeline),
            )
            stale = self._reset()
        _join(stale)

    def initialize(self) -> None:
        """Build the initial snapshot and place the cursor after the first timeline slice.

        The first slice is every event sharing the earliest timestamp; it is
        applied like a normal batch so its laps and messages are observed.
        """
        with self._lock:
            self._tracker.clear()
            self._last_lap_results = []
            self._cursor = self._cursor.rewound()
            self._snapshot = initial_snapshot(self._roster, self._positions)

            timeline = self._cursor.timeline
            if timeline:
                first = timeline[0].timestamp
                slice_len = sum(1 for e in timeline if e.timestamp == first)
                result = self._advancer.advance(self._snapshot, self._cursor, slice_len)
                self._apply(result)

            self._previous = position_map(self._snapshot)

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def tick(self) -> AdvanceResult:
        """Advance one batch (the scheduled operation)."""
        with self._lock:
            return self._advance()

    def step(self) -> AdvanceResult:
        """Advance one batch manually; the run state and timer are untouched."""
        with self._lock:
            return self._advance()

    def set_running(self, running: bool) -> None:
        with self._lock:
            stale = self._set_running(running)
        _join(stale)

    def toggle_running(self) -> PlaybackState:
        with self._lock:
            stale = self._set_running(not self.is_running)
            state = self._state
        _join(stale)
        return state

    def set_speed(self, speed: int) -> None:
        """Change the speed multiplier; the run state is kept.

        Raises
        ------
        ValueError
            If *speed* is not a positive integer.
        """
        _check_speed(speed)
        with self._lock:
            stale = self._set_speed(speed)
        _join(stale)

    def cycle_speed(self) -> int:
        """Step the speed 1 → 2 → 3 → 1 and return the new value."""
        with self._lock:
            speed = 1 if self._speed >= _CYCLE_MAX_SPEED else self._speed + 1
            stale = self._set_speed(speed)
        _join(stale)
        return speed

    def reset(self) -> None:
        """Rewind to the start, clear derived state and re-initialize.

        A running controller restarts its timer at the current speed.
        """
        with self._lock:
            stale = self._reset()
        _join(stale)

    def close(self) -> None:
        """Cancel the timer and wait for it; the controller cannot run again."""
        with self._lock:
            self._closed = True
            self._state = PlaybackState.PAUSED
            stale = self._stop_timer()
        _join(stale)

    def __enter__(self) -> PlaybackController:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> RaceStateSnapshot:
        return self._snapshot

    @property
    def cursor(self) -> PlaybackCursor:
        return self._cursor

    @property
    def tracker(self) -> BestTimeTracker:
        return self._tracker

    @property
    def previous_positions(self) -> dict[int, int]:
        with self._lock:
            return dict(self._previous)

    @property
    def last_lap_results(self) -> list[LapClassification]:
        """Classifications of the laps consumed by the most recent advance."""
        with self._lock:
            return list(self._last_lap_results)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PlaybackState.RUNNING

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def period_s(self) -> float:
        return self._cfg.base_interval_s / self._speed

    @property
    def batch_size(self) -> int:
        return min(self._speed, self._cfg.max_batch_size)

    @property
    def timer_active(self) -> bool:
        return self._timer is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def position_changes(self) -> dict[int, PositionChange]:
        with self._lock:
            return classify_positions(self._previous, self._snapshot)

    def board(self) -> list[BoardRow]:
        with self._lock:
            return build_board(self._snapshot, self._previous, self._tracker)

    def view(self) -> PlaybackView:
        """Return a consistent picture of the controller; no tick can land halfway through it."""
        with self._lock:
            return PlaybackView(
                state=self._state,
                speed=self._speed,
                period_s=self.period_s,
                snapshot=self._snapshot,
                cursor=self._cursor,
                board=build_board(self._snapshot, self._previous, self._tracker),
                overall_best={m: self._tracker.overall_best(m) for m in Metric},
            )

    # ------------------------------------------------------------------
    # Internal (callers hold the lock and join the returned stale timer
    # after releasing it)
    # ------------------------------------------------------------------

    def _set_running(self, running: bool) -> IntervalTimer | None:
        if running and self._closed:
            raise RuntimeError("PlaybackController is closed")
        self._state = PlaybackState.RUNNING if running else PlaybackState.PAUSED
        _logger.info("Playback %s at %dx", self._state.value, self._speed)
        return self._start_timer() if running else self._stop_timer()

    def _set_speed(self, speed: int) -> IntervalTimer | None:
        self._speed = speed
        if self.is_running and not self._closed:
            return self._start_timer()
        return None

    def _reset(self) -> IntervalTimer | None:
        stale = self._stop_timer()
        self._previous = {}
        self.initialize()
        if self.is_running and not self._closed:
            self._start_timer()
        _logger.info("Playback reset (%d timeline events)", len(self._cursor.timeline))
        return stale

    def _advance(self) -> AdvanceResult:
        if not self._cursor.timeline:
            return AdvanceResult(snapshot=self._snapshot, cursor=self._cursor)
        self._previous = position_map(self._snapshot)
        result = self._advancer.advance(self._snapshot, self._cursor, self.batch_size)
        self._apply(result)
        return result

    def _apply(self, result: AdvanceResult) -> None:
        self._snapshot = result.snapshot
        self._cursor = result.cursor
        self._last_lap_results = result.lap_results

    def _on_timer(self, timer: IntervalTimer) -> None:
        with self._lock:
            # A timer replaced while it was waking must not tick.
            if timer is not self._timer:
                return
            self._advance()

    def _start_timer(self) -> IntervalTimer | None:
        """Replace any existing timer with one at the current period; return the old one."""
        stale = self._stop_timer()
        timer = self._timer_factory(self.period_s, self._on_timer)
        self._timer = timer
        timer.start()
        _logger.debug("Timer started, period %.3fs", self.period_s)
        return stale

    def _stop_timer(self) -> IntervalTimer | None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            _logger.debug("Timer cancelled")
        return timer


def _check_speed(speed: Any) -> None:
    if isinstance(speed, bool) or not isinstance(speed, int) or speed < 1:
        raise ValueError(f"speed must be a positive integer, got {speed!r}")


def _join(timer: IntervalTimer | None) -> None:
    if timer is not None:
        timer.join()
