"""Tests for build_board."""

from __future__ import annotations

from datetime import datetime, timezone

from race_replay.simulation.board import build_board
from race_replay.simulation.snapshot import RaceStateSnapshot
from race_replay.timeline.models import Competitor, LapRecord, PositionRecord
from race_replay.timing.best_times import BestTimeTracker, Metric, TimeClass
from race_replay.timing.deltas import PositionChange

NOW = datetime(2024, 3, 2, 15, 0, tzinfo=timezone.utc)


def _snapshot(laps: dict[int, LapRecord]) -> RaceStateSnapshot:
    return RaceStateSnapshot(
        competitors=(
            Competitor(driver_number=1, name_acronym="VER", team_name="Red Bull Racing", team_colour="3671C6"),
            Competitor(driver_number=44),
        ),
        positions=(
            PositionRecord(timestamp=NOW, competitor_id=44, position=1),
            PositionRecord(timestamp=NOW, competitor_id=1, position=2),
        ),
        latest_lap_by_competitor=laps,
    )


def test_rows_follow_snapshot_order_with_changes():
    rows = build_board(_snapshot({}), {1: 1, 44: 2}, BestTimeTracker())
    assert [r.competitor_id for r in rows] == [44, 1]
    assert [r.change for r in rows] == [PositionChange.IMPROVED, PositionChange.WORSENED]
    assert rows[0].label == "#44"
    assert rows[1].label == "VER"
    assert rows[1].team_colour == "3671C6"


def test_rows_without_laps_show_no_times():
    rows = build_board(_snapshot({}), {}, BestTimeTracker())
    assert rows[0].lap is None
    assert rows[0].lap_classes is None
    assert set(rows[0].formatted_times().values()) == {"-"}


def test_lap_classes_reflect_current_bests():
    tracker = BestTimeTracker()
    ver = LapRecord(timestamp=1, competitor_id=1, lap_number=3, lap_duration=92.5, sector_1_duration=30.0)
    ham = LapRecord(timestamp=2, competitor_id=44, lap_number=3, lap_duration=91.9, sector_1_duration=30.4)
    tracker.observe(ver)
    tracker.observe(ham)

    rows = {r.competitor_id: r for r in build_board(_snapshot({1: ver, 44: ham}), {}, tracker)}
    assert rows[44].lap_classes[Metric.LAP] is TimeClass.OVERALL_BEST
    assert rows[1].lap_classes[Metric.LAP] is TimeClass.PERSONAL_BEST
    assert rows[1].lap_classes[Metric.S1] is TimeClass.OVERALL_BEST
    assert rows[44].lap_classes[Metric.S2] is TimeClass.ORDINARY
    assert rows[1].formatted_times()[Metric.LAP] == "1:32.500"
