"""RaceStateSnapshot — the immutable race state handed to renderers.

:func:`apply_event` is the pure transition ``(snapshot, event) -> snapshot``;
all bookkeeping with side effects (best times, notifications) lives in
:mod:`race_replay.simulation.cursor`.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from race_replay.timeline.merge import parse_timestamp
from race_replay.timeline.models import (
    Competitor,
    EventKind,
    LapRecord,
    PositionRecord,
    RaceControlMessage,
    TimelineEvent,
)


def _position_sort_key(p: PositionRecord) -> tuple[int, int]:
    # Source data may repeat or skip positions; competitor_id breaks ties.
    return (p.position, p.competitor_id)


@dataclass(frozen=True)
class RaceStateSnapshot:
    """Race state at one simulated instant.

    ``positions`` holds one entry per roster competitor, sorted by position;
    ``messages`` is newest-first.  Never mutate a snapshot: transitions
    return a new value.
    """

    competitors: tuple[Competitor, ...] = ()
    positions: tuple[PositionRecord, ...] = ()
    latest_lap_by_competitor: Mapping[int, LapRecord] = field(default_factory=dict)
    messages: tuple[RaceControlMessage, ...] = ()

    def competitor(self, competitor_id: int) -> Competitor | None:
        for c in self.competitors:
            if c.driver_number == competitor_id:
                return c
        return None

    def knows(self, competitor_id: int) -> bool:
        """True if *competitor_id* is on the roster."""
        return self.competitor(competitor_id) is not None

    def position_of(self, competitor_id: int) -> int | None:
        for p in self.positions:
            if p.competitor_id == competitor_id:
                return p.position
        return None

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict (timestamps as strings)."""
        return _jsonable(dataclasses.asdict(self))


def _jsonable(value):
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def initial_snapshot(
    roster: Iterable[Competitor],
    positions: Iterable[PositionRecord],
) -> RaceStateSnapshot:
    """Seed a snapshot from the roster and the earliest position of each competitor.

    Competitors with no usable position record are placed after the highest
    seeded position, in roster order.  Laps and messages start empty.
    """
    roster = tuple(roster)
    known = {c.driver_number for c in roster}

    earliest: dict[int, tuple[float, PositionRecord]] = {}
    for rec in positions:
        if rec.competitor_id not in known:
            continue
        ts = parse_timestamp(rec.timestamp)
        if ts is None:
            continue
        current = earliest.get(rec.competitor_id)
        if current is None or ts < current[0]:
            earliest[rec.competitor_id] = (ts, rec)

    seeded = [rec for _ts, rec in earliest.values()]
    next_position = max((r.position for r in seeded), default=0) + 1
    for c in roster:
        if c.driver_number not in earliest:
            seeded.append(
                PositionRecord(timestamp=None, competitor_id=c.driver_number, position=next_position)
            )
            next_position += 1

    return RaceStateSnapshot(
        competitors=roster,
        positions=tuple(sorted(seeded, key=_position_sort_key)),
    )


def apply_event(snapshot: RaceStateSnapshot, event: TimelineEvent, now: datetime) -> RaceStateSnapshot:
    """Return the snapshot that results from applying *event* at simulated time *now*.

    Events for competitors that are not on the roster leave the snapshot
    unchanged.
    """
    if event.kind is EventKind.POSITION:
        rec: PositionRecord = event.payload
        if not any(p.competitor_id == rec.competitor_id for p in snapshot.positions):
            return snapshot
        positions = [
            dataclasses.replace(p, position=rec.position, timestamp=now)
            if p.competitor_id == rec.competitor_id
            else p
            for p in snapshot.positions
        ]
        positions.sort(key=_position_sort_key)
        return dataclasses.replace(snapshot, positions=tuple(positions))

    if event.kind is EventKind.LAP:
        lap: LapRecord = event.payload
        if not snapshot.knows(lap.competitor_id):
            return snapshot
        laps = dict(snapshot.latest_lap_by_competitor)
        laps[lap.competitor_id] = lap
        return dataclasses.replace(snapshot, latest_lap_by_competitor=laps)

    if event.kind is EventKind.MESSAGE:
        msg: RaceControlMessage = event.payload
        stamped = dataclasses.replace(msg, timestamp=now)
        return dataclasses.replace(snapshot, messages=(stamped, *snapshot.messages))

    raise ValueError(f"Unknown event kind: {event.kind!r}")
