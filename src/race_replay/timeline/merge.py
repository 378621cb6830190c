"""Timeline merge — combines positions, laps and messages into one sorted sequence."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone

from race_replay.timeline.models import (
    EventKind,
    LapRecord,
    Payload,
    PositionRecord,
    RaceControlMessage,
    TimelineEvent,
)

_logger = logging.getLogger(__name__)


def parse_timestamp(value: object) -> float | None:
    """Return *value* as seconds since the Unix epoch, or None if it cannot be placed.

    Accepts ISO-8601 strings (``Z`` suffix or explicit offset; naive values
    are taken as UTC), ``datetime`` objects and finite numbers of epoch
    seconds.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            seconds = float(value)
        except OverflowError:
            return None
        return seconds if math.isfinite(seconds) else None
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _tag(kind: EventKind, records: Iterable[Payload]) -> list[TimelineEvent]:
    events: list[TimelineEvent] = []
    for record in records:
        ts = parse_timestamp(record.timestamp)
        if ts is None:
            _logger.debug("Dropping %s record with unparseable timestamp %r", kind.value, record.timestamp)
            continue
        events.append(TimelineEvent(kind=kind, timestamp=ts, payload=record))
    return events


def build_timeline(
    positions: Iterable[PositionRecord],
    laps: Iterable[LapRecord],
    messages: Iterable[RaceControlMessage],
) -> list[TimelineEvent]:
    """Merge the three record streams into one timeline sorted by timestamp.

    The sort is stable over ``positions + laps + messages``, so equal
    timestamps keep that order and identical inputs always give identical
    output.  Records whose timestamp cannot be parsed are left out.
    """
    events = (
        _tag(EventKind.POSITION, positions)
        + _tag(EventKind.LAP, laps)
        + _tag(EventKind.MESSAGE, messages)
    )
    events.sort(key=lambda e: e.timestamp)
    return events
