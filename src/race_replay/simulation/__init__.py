"""Timeline replay: snapshots, batch advancing and the playback controller.

Public API
----------
RaceStateSnapshot   - immutable race state for one tick
initial_snapshot    - roster + earliest positions → first snapshot
apply_event         - pure (snapshot, event) → snapshot transition
PlaybackCursor      - position in a timeline (wraps when exhausted)
BatchAdvancer       - consumes event batches, tracks best times, fires the hook
AdvanceResult       - snapshot/cursor/lap classifications from one advance
PlaybackController  - run/pause, speed, step, reset on a single timer
PlaybackConfig      - base interval, max batch size, best-time epsilon
PlaybackState       - RUNNING, PAUSED
PlaybackView        - state, snapshot, cursor and board read under one lock
IntervalTimer       - cancellable periodic callback thread
BoardRow            - one rendered line of the position board
build_board         - snapshot + previous positions + tracker → board rows
"""

from race_replay.simulation.board import BoardRow, build_board
from race_replay.simulation.controller import (
    PlaybackConfig,
    PlaybackController,
    PlaybackState,
    PlaybackView,
)
from race_replay.simulation.cursor import AdvanceResult, BatchAdvancer, PlaybackCursor
from race_replay.simulation.snapshot import RaceStateSnapshot, apply_event, initial_snapshot
from race_replay.simulation.timer import IntervalTimer

__all__ = [
    "AdvanceResult",
    "BatchAdvancer",
    "BoardRow",
    "IntervalTimer",
    "PlaybackConfig",
    "PlaybackController",
    "PlaybackCursor",
    "PlaybackState",
    "PlaybackView",
    "RaceStateSnapshot",
    "apply_event",
    "build_board",
    "initial_snapshot",
]
