"""Session timeline: records, parsing and chronological merge.

Public API
----------
Competitor          - roster entry
PositionRecord      - running-order rank at a point in time
LapRecord           - lap and sector durations for one competitor
RaceControlMessage  - informational race-control message
TimelineEvent       - tagged record placed on the timeline
EventKind           - position | lap | message
RecordParser        - raw OpenF1 dicts → records
ReplayInputError    - raised on wrongly-shaped input
build_timeline      - stable chronological merge of the three streams
parse_timestamp     - ISO-8601 / epoch / datetime → epoch seconds
"""

from race_replay.timeline.merge import build_timeline, parse_timestamp
from race_replay.timeline.models import (
    Competitor,
    EventKind,
    LapRecord,
    PositionRecord,
    RaceControlMessage,
    TimelineEvent,
)
from race_replay.timeline.parser import RecordParser, ReplayInputError

__all__ = [
    "Competitor",
    "EventKind",
    "LapRecord",
    "PositionRecord",
    "RaceControlMessage",
    "RecordParser",
    "ReplayInputError",
    "TimelineEvent",
    "build_timeline",
    "parse_timestamp",
]
