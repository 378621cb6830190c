"""RecordParser — converts raw OpenF1-shaped dicts to timeline records.

Every ``parse_*`` method also accepts an already-built record and returns it
unchanged, so callers may mix parsed and raw data.  Timestamps are *not*
validated here; a record with a bad timestamp is dropped later, when the
timeline is built.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from race_replay.timeline.models import (
    Competitor,
    LapRecord,
    PositionRecord,
    RaceControlMessage,
)


class ReplayInputError(TypeError):
    """Raised when replay input has the wrong shape (a caller bug, not noisy data)."""


# OpenF1 field name → record field name.  Our own field names are accepted too.
_POSITION_KEYS = {"date": "timestamp", "driver_number": "competitor_id"}
_LAP_KEYS = {
    "date_start": "timestamp",
    "driver_number": "competitor_id",
    "duration_sector_1": "sector_1_duration",
    "duration_sector_2": "sector_2_duration",
    "duration_sector_3": "sector_3_duration",
}
_MESSAGE_KEYS = {"date": "timestamp", "message": "free_text"}


def _rename(raw: Mapping[str, Any], keys: dict[str, str]) -> dict[str, Any]:
    return {keys.get(k, k): v for k, v in raw.items()}


def _require(d: Mapping[str, Any], field: str, kind: str) -> Any:
    value = d.get(field)
    if value is None:
        raise ReplayInputError(f"{kind} record is missing required field {field!r}: {dict(d)!r}")
    return value


def _as_int(value: Any, field: str, kind: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ReplayInputError(f"{kind} field {field!r} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ReplayInputError(
            f"{kind} field {field!r} must be an integer, got {value!r}"
        ) from exc


def _duration(value: Any) -> float | None:
    """Return a positive finite duration in seconds, or None for "no data"."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(seconds) or seconds <= 0.0:
        return None
    return seconds


def _ensure_sequence(items: Any, name: str) -> list:
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise ReplayInputError(f"{name} must be a list of records, got {type(items).__name__}")
    return list(items)


def _ensure_mapping(raw: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ReplayInputError(f"{kind} record must be a mapping, got {type(raw).__name__}")
    return raw


class RecordParser:
    """Parses OpenF1 API rows (``drivers``, ``position``, ``laps``,
    ``race_control``) into :mod:`race_replay.timeline.models` records.

    Missing required fields raise :class:`ReplayInputError`; optional duration
    fields that are absent, zero or non-numeric become ``None``.
    """

    def parse_competitor(self, raw: Any) -> Competitor:
        if isinstance(raw, Competitor):
            return raw
        d = _ensure_mapping(raw, "driver")
        number = _as_int(_require(d, "driver_number", "driver"), "driver_number", "driver")
        return Competitor(
            driver_number=number,
            name_acronym=str(d.get("name_acronym") or ""),
            full_name=str(d.get("full_name") or ""),
            broadcast_name=str(d.get("broadcast_name") or ""),
            team_name=str(d.get("team_name") or ""),
            team_colour=str(d.get("team_colour") or ""),
            headshot_url=str(d.get("headshot_url") or ""),
            country_code=str(d.get("country_code") or ""),
        )

    def parse_position(self, raw: Any) -> PositionRecord:
        if isinstance(raw, PositionRecord):
            return raw
        d = _rename(_ensure_mapping(raw, "position"), _POSITION_KEYS)
        position = _as_int(_require(d, "position", "position"), "position", "position")
        if position < 1:
            raise ReplayInputError(f"position field 'position' must be >= 1, got {position}")
        return PositionRecord(
            timestamp=d.get("timestamp"),
            competitor_id=_as_int(
                _require(d, "competitor_id", "position"), "driver_number", "position"
            ),
            position=position,
        )

    def parse_lap(self, raw: Any) -> LapRecord:
        if isinstance(raw, LapRecord):
            return raw
        d = _rename(_ensure_mapping(raw, "lap"), _LAP_KEYS)
        return LapRecord(
            timestamp=d.get("timestamp"),
            competitor_id=_as_int(_require(d, "competitor_id", "lap"), "driver_number", "lap"),
            lap_number=_as_int(d.get("lap_number") or 0, "lap_number", "lap"),
            lap_duration=_duration(d.get("lap_duration")),
            sector_1_duration=_duration(d.get("sector_1_duration")),
            sector_2_duration=_duration(d.get("sector_2_duration")),
            sector_3_duration=_duration(d.get("sector_3_duration")),
            is_pit_out_lap=bool(d.get("is_pit_out_lap") or False),
        )

    def parse_message(self, raw: Any) -> RaceControlMessage:
        if isinstance(raw, RaceControlMessage):
            return raw
        d = _rename(_ensure_mapping(raw, "race control"), _MESSAGE_KEYS)
        return RaceControlMessage(
            timestamp=d.get("timestamp"),
            category=str(d.get("category") or "Race Control"),
            flag=str(d.get("flag") or "none"),
            free_text=str(d.get("free_text") or ""),
        )

    # ------------------------------------------------------------------
    # Batch helpers
    # ------------------------------------------------------------------

    def parse_roster(self, items: Any) -> list[Competitor]:
        return [self.parse_competitor(r) for r in _ensure_sequence(items, "roster")]

    def parse_positions(self, items: Any) -> list[PositionRecord]:
        return [self.parse_position(r) for r in _ensure_sequence(items, "positions")]

    def parse_laps(self, items: Any) -> list[LapRecord]:
        return [self.parse_lap(r) for r in _ensure_sequence(items, "laps")]

    def parse_messages(self, items: Any) -> list[RaceControlMessage]:
        return [self.parse_message(r) for r in _ensure_sequence(items, "messages")]
