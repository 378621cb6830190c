"""Tests for parse_timestamp and build_timeline."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from race_replay.timeline.merge import build_timeline, parse_timestamp
from race_replay.timeline.models import (
    EventKind,
    LapRecord,
    PositionRecord,
    RaceControlMessage,
)


def _pos(ts, driver=1, position=1) -> PositionRecord:
    return PositionRecord(timestamp=ts, competitor_id=driver, position=position)


def _lap(ts, driver=1, lap=1, duration=90.0) -> LapRecord:
    return LapRecord(timestamp=ts, competitor_id=driver, lap_number=lap, lap_duration=duration)


def _msg(ts, text="GREEN LIGHT - PIT EXIT OPEN") -> RaceControlMessage:
    return RaceControlMessage(timestamp=ts, free_text=text)


# ---------------------------------------------------------------------------
# parse_timestamp
# ---------------------------------------------------------------------------

def test_parse_iso_with_offset():
    ts = parse_timestamp("2023-09-16T13:03:35.292000+00:00")
    expected = datetime(2023, 9, 16, 13, 3, 35, 292000, tzinfo=timezone.utc).timestamp()
    assert ts == pytest.approx(expected)


def test_parse_iso_z_suffix_equals_offset():
    assert parse_timestamp("2023-09-16T13:00:00Z") == parse_timestamp("2023-09-16T13:00:00+00:00")


def test_parse_naive_iso_is_utc():
    assert parse_timestamp("2023-09-16T13:00:00") == parse_timestamp("2023-09-16T13:00:00+00:00")


def test_parse_non_utc_offset():
    a = parse_timestamp("2023-09-16T15:00:00+02:00")
    b = parse_timestamp("2023-09-16T13:00:00+00:00")
    assert a == b


def test_parse_numbers_and_datetimes():
    assert parse_timestamp(12) == 12.0
    assert parse_timestamp(12.5) == 12.5
    dt = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp(dt) == dt.timestamp()
    assert parse_timestamp(dt.replace(tzinfo=timezone(timedelta(hours=1)))) == dt.timestamp() - 3600


@pytest.mark.parametrize(
    "value",
    [
        None, "", "   ", "not a date", "2023-13-45T99:00:00",
        float("nan"), float("inf"), 10**400, -(10**400), True, [], {},
    ],
)
def test_parse_rejects_malformed(value):
    assert parse_timestamp(value) is None


# ---------------------------------------------------------------------------
# build_timeline
# ---------------------------------------------------------------------------

def test_merge_sorts_by_timestamp_across_sources():
    events = build_timeline(
        positions=[_pos(30), _pos(10)],
        laps=[_lap(20)],
        messages=[_msg(5)],
    )
    assert [e.timestamp for e in events] == [5, 10, 20, 30]
    assert [e.kind for e in events] == [
        EventKind.MESSAGE,
        EventKind.POSITION,
        EventKind.LAP,
        EventKind.POSITION,
    ]


def test_merge_is_non_decreasing():
    positions = [_pos(t % 7, driver=t) for t in range(20)]
    laps = [_lap((t * 3) % 11, driver=t) for t in range(15)]
    messages = [_msg(t % 5, text=str(t)) for t in range(10)]
    events = build_timeline(positions, laps, messages)
    assert len(events) == 45
    for a, b in zip(events, events[1:]):
        assert a.timestamp <= b.timestamp


def test_merge_ties_keep_position_lap_message_then_source_order():
    events = build_timeline(
        positions=[_pos(1, driver=44), _pos(1, driver=1)],
        laps=[_lap(1, driver=16)],
        messages=[_msg(1, "first"), _msg(1, "second")],
    )
    assert [e.kind for e in events] == [
        EventKind.POSITION,
        EventKind.POSITION,
        EventKind.LAP,
        EventKind.MESSAGE,
        EventKind.MESSAGE,
    ]
    assert events[0].payload.competitor_id == 44
    assert events[1].payload.competitor_id == 1
    assert events[3].payload.free_text == "first"


def test_merge_is_deterministic():
    positions = [_pos("2023-09-16T13:00:0%dZ" % (i % 3), driver=i) for i in range(9)]
    laps = [_lap("2023-09-16T13:00:01Z", driver=i) for i in range(4)]
    messages = [_msg("2023-09-16T13:00:02Z", text=f"m{i}") for i in range(3)]
    first = build_timeline(positions, laps, messages)
    second = build_timeline(positions, laps, messages)
    assert first == second
    assert repr(first) == repr(second)


def test_merge_keeps_duplicates():
    p = _pos(10)
    events = build_timeline([p, p], [], [])
    assert len(events) == 2


def test_merge_drops_only_malformed_timestamps(caplog):
    with caplog.at_level(logging.DEBUG, logger="race_replay.timeline.merge"):
        events = build_timeline(
            positions=[_pos("garbage"), _pos(2)],
            laps=[_lap(None), _lap(1)],
            messages=[_msg(""), _msg(3)],
        )
    assert [e.timestamp for e in events] == [1, 2, 3]
    assert "unparseable timestamp" in caplog.text


def test_merge_empty_inputs():
    assert build_timeline([], [], []) == []


def test_merge_accepts_iterators():
    events = build_timeline(iter([_pos(2)]), (lap for lap in [_lap(1)]), iter([]))
    assert [e.kind for e in events] == [EventKind.LAP, EventKind.POSITION]


def test_merge_drops_overflowing_timestamp_and_keeps_the_rest():
    events = build_timeline(
        positions=[_pos(10**400, driver=1), _pos(1, driver=2)],
        laps=[],
        messages=[],
    )
    assert [e.payload.competitor_id for e in events] == [2]
