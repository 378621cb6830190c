"""End-to-end replay of a tiny two-car session through PlaybackController."""

from __future__ import annotations

import pytest

from race_replay.simulation.controller import PlaybackController
from race_replay.timing.best_times import Metric, TimeClass
from race_replay.timing.deltas import PositionChange
from race_replay.timing.formatter import format_lap_time

A, B = 10, 20


@pytest.fixture
def controller():
    c = PlaybackController()
    c.load_data(
        roster=[{"driver_number": A, "name_acronym": "AAA"}, {"driver_number": B, "name_acronym": "BBB"}],
        positions=[
            {"date": 0, "driver_number": A, "position": 1},
            {"date": 0, "driver_number": B, "position": 2},
            {"date": 10, "driver_number": A, "position": 2},
            {"date": 10, "driver_number": B, "position": 1},
        ],
        laps=[
            {"date_start": 5, "driver_number": A, "lap_number": 1, "lap_duration": 62.345,
             "duration_sector_1": 20.1, "duration_sector_2": 22.1, "duration_sector_3": 20.145},
        ],
        messages=[],
    )
    yield c
    c.close()


def _order(c):
    return [(p.competitor_id, p.position) for p in c.snapshot.positions]


def test_initialize_applies_first_slice(controller):
    assert _order(controller) == [(A, 1), (B, 2)]
    assert controller.cursor.remaining == 3


def test_one_batch_of_three(controller):
    controller.set_speed(3)
    result = controller.step()

    assert result.consumed == 3
    assert _order(controller) == [(B, 1), (A, 2)]
    assert controller.snapshot.latest_lap_by_competitor[A].lap_duration == 62.345

    (lap_result,) = result.lap_results
    for metric in Metric:
        assert lap_result[metric] is TimeClass.OVERALL_BEST

    assert controller.position_changes() == {A: PositionChange.WORSENED, B: PositionChange.IMPROVED}

    rows = controller.board()
    assert [r.label for r in rows] == ["BBB", "AAA"]
    assert rows[1].formatted_times()[Metric.LAP] == format_lap_time(62.345) == "1:02.345"


def test_batch_notifies_each_message_once():
    texts = []
    c = PlaybackController(on_message=texts.append)
    c.load_data(
        roster=[{"driver_number": A}],
        positions=[{"date": 0, "driver_number": A, "position": 1}],
        laps=[],
        messages=[
            {"date": 1, "message": "YELLOW FLAG IN SECTOR 1"},
            {"date": 2, "message": "CLEAR IN SECTOR 1"},
        ],
    )
    c.set_speed(3)
    c.step()
    c.close()
    assert texts == ["YELLOW FLAG IN SECTOR 1", "CLEAR IN SECTOR 1"]
    assert [m.free_text for m in c.snapshot.messages] == ["CLEAR IN SECTOR 1", "YELLOW FLAG IN SECTOR 1"]
