"""PlaybackCursor and BatchAdvancer — consume the timeline a batch at a time."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from race_replay.simulation.snapshot import RaceStateSnapshot, apply_event
from race_replay.timeline.models import EventKind, TimelineEvent
from race_replay.timing.best_times import BestTimeTracker, LapClassification

_logger = logging.getLogger(__name__)

MessageHook = Callable[[str], None]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PlaybackCursor:
    """A position in a timeline.  ``0 <= index <= len(timeline)``."""

    timeline: tuple[TimelineEvent, ...] = ()
    index: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.index <= len(self.timeline):
            raise ValueError(
                f"cursor index {self.index} outside timeline of length {len(self.timeline)}"
            )

    @classmethod
    def over(cls, events: Sequence[TimelineEvent], index: int = 0) -> PlaybackCursor:
        return cls(timeline=tuple(events), index=index)

    @property
    def exhausted(self) -> bool:
        return self.index >= len(self.timeline)

    @property
    def remaining(self) -> int:
        return len(self.timeline) - self.index

    def rewound(self) -> PlaybackCursor:
        return PlaybackCursor(timeline=self.timeline, index=0)


@dataclass
class AdvanceResult:
    """Outcome of one :meth:`BatchAdvancer.advance` call."""

    snapshot: RaceStateSnapshot
    cursor: PlaybackCursor
    consumed: int = 0
    lap_results: list[LapClassification] = field(default_factory=list)


class BatchAdvancer:
    """Applies batches of timeline events to snapshots.

    Owns the side effects of replay: lap events are folded into the
    :class:`BestTimeTracker` and each consumed message event calls
    *on_message* exactly once with its text.

    Parameters
    ----------
    tracker:
        Best-time state, updated as lap events are consumed.
    on_message:
        Notification hook, ``on_message(text)``.  Exceptions it raises are
        logged and do not interrupt the batch.
    clock:
        Returns the simulated "now" used to stamp applied positions and
        messages.  Defaults to the current UTC time.
    """

    def __init__(
        self,
        tracker: BestTimeTracker,
        on_message: MessageHook | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.tracker = tracker
        self._on_message = on_message
        self._clock = clock or utc_now

    def advance(
        self,
        snapshot: RaceStateSnapshot,
        cursor: PlaybackCursor,
        batch_size: int,
    ) -> AdvanceResult:
        """Consume up to *batch_size* events from *cursor*.

        The batch stops early at the end of the timeline, and an exhausted
        cursor wraps back to index 0.  ``batch_size == 0`` returns the input
        snapshot and cursor untouched.
        """
        if batch_size < 0:
            raise ValueError(f"batch_size must be >= 0, got {batch_size}")

        if batch_size == 0 or not cursor.timeline:
            return AdvanceResult(snapshot=snapshot, cursor=cursor)
        if cursor.exhausted:
            cursor = cursor.rewound()

        result = AdvanceResult(snapshot=snapshot, cursor=cursor)
        end = min(cursor.index + batch_size, len(cursor.timeline))
        now = self._clock()

        for event in cursor.timeline[cursor.index:end]:
            result.snapshot = self._consume(result.snapshot, event, now, result)
            result.consumed += 1

        index = 0 if end >= len(cursor.timeline) else end
        result.cursor = PlaybackCursor(timeline=cursor.timeline, index=index)
        if index == 0:
            _logger.debug("Timeline exhausted after %d events; wrapping", len(cursor.timeline))
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _consume(
        self,
        snapshot: RaceStateSnapshot,
        event: TimelineEvent,
        now: datetime,
        result: AdvanceResult,
    ) -> RaceStateSnapshot:
        if event.kind is EventKind.LAP and snapshot.knows(event.payload.competitor_id):
            result.lap_results.append(self.tracker.observe(event.payload))

        snapshot = apply_event(snapshot, event, now)

        if event.kind is EventKind.MESSAGE:
            self._notify(event.payload.free_text)
        return snapshot

    def _notify(self, text: str) -> None:
        if self._on_message is None:
            return
        try:
            self._on_message(text)
        except Exception:
            _logger.exception("Message hook failed for %r", text)
