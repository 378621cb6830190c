"""Tests for position-delta classification."""

from __future__ import annotations

import pytest

from race_replay.simulation.snapshot import RaceStateSnapshot
from race_replay.timeline.models import Competitor, PositionRecord
from race_replay.timing.deltas import (
    PositionChange,
    classify_position_change,
    classify_positions,
    position_map,
)


@pytest.mark.parametrize("position", [1, 5, 20])
def test_first_observation_is_unchanged(position):
    assert classify_position_change({}, 44, position) is PositionChange.UNCHANGED


def test_lower_number_is_improved():
    assert classify_position_change({44: 3}, 44, 2) is PositionChange.IMPROVED


def test_higher_number_is_worsened():
    assert classify_position_change({44: 3}, 44, 7) is PositionChange.WORSENED


def test_same_position_is_unchanged():
    assert classify_position_change({44: 3}, 44, 3) is PositionChange.UNCHANGED


def test_other_competitors_do_not_count():
    assert classify_position_change({1: 5}, 44, 2) is PositionChange.UNCHANGED


def _snapshot(*pairs: tuple[int, int]) -> RaceStateSnapshot:
    return RaceStateSnapshot(
        competitors=tuple(Competitor(driver_number=d) for d, _ in pairs),
        positions=tuple(PositionRecord(timestamp=0, competitor_id=d, position=p) for d, p in pairs),
    )


def test_position_map():
    assert position_map(_snapshot((1, 2), (44, 1))) == {1: 2, 44: 1}


def test_classify_positions():
    changes = classify_positions({1: 1, 44: 2}, _snapshot((44, 1), (1, 2), (16, 3)))
    assert changes == {
        44: PositionChange.IMPROVED,
        1: PositionChange.WORSENED,
        16: PositionChange.UNCHANGED,
    }
