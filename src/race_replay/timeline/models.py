"""Timeline data models — roster, telemetry records and the tagged event."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Union

Timestamp = Union[str, float, int, datetime]
"""A record timestamp as supplied by the caller; parsed when the timeline is built."""


@dataclass(frozen=True)
class Competitor:
    """A driver entry from the session roster."""

    driver_number: int
    name_acronym: str = ""
    full_name: str = ""
    broadcast_name: str = ""
    team_name: str = ""
    team_colour: str = ""
    """Hex colour, with or without a leading ``#``."""
    headshot_url: str = ""
    country_code: str = ""

    @property
    def label(self) -> str:
        """Short display label: acronym if known, else ``#<number>``."""
        return self.name_acronym or f"#{self.driver_number}"


@dataclass(frozen=True)
class PositionRecord:
    """One competitor's running-order rank at a point in time."""

    timestamp: Timestamp
    competitor_id: int
    position: int
    """1 = leader."""


@dataclass(frozen=True)
class LapRecord:
    """A completed (or in-progress) lap for one competitor.

    Durations are in seconds; ``None`` means the lap or sector was not timed.
    """

    timestamp: Timestamp
    """Lap start time."""

    competitor_id: int
    lap_number: int
    lap_duration: float | None = None
    sector_1_duration: float | None = None
    sector_2_duration: float | None = None
    sector_3_duration: float | None = None
    is_pit_out_lap: bool = False


@dataclass(frozen=True)
class RaceControlMessage:
    """An informational message from race control."""

    timestamp: Timestamp
    category: str = "Race Control"
    flag: str = "none"
    free_text: str = ""


class EventKind(str, enum.Enum):
    POSITION = "position"
    LAP = "lap"
    MESSAGE = "message"


Payload = Union[PositionRecord, LapRecord, RaceControlMessage]


@dataclass(frozen=True)
class TimelineEvent:
    """A record tagged with its kind and placed on the session timeline."""

    kind: EventKind
    timestamp: float
    """Seconds since the Unix epoch (UTC)."""
    payload: Payload
