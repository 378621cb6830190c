"""Position-delta classification between successive snapshots."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from race_replay.simulation.snapshot import RaceStateSnapshot


class PositionChange(str, enum.Enum):
    IMPROVED = "improved"
    WORSENED = "worsened"
    UNCHANGED = "unchanged"


def classify_position_change(
    previous: Mapping[int, int],
    competitor_id: int,
    current_position: int,
) -> PositionChange:
    """Compare *current_position* with the competitor's entry in *previous*.

    A lower number is a better place.  A competitor with no previous entry is
    ``UNCHANGED``.
    """
    prev = previous.get(competitor_id)
    if prev is None or current_position == prev:
        return PositionChange.UNCHANGED
    if current_position < prev:
        return PositionChange.IMPROVED
    return PositionChange.WORSENED


def position_map(snapshot: RaceStateSnapshot) -> dict[int, int]:
    """Return ``competitor_id → position`` for every entry in *snapshot*."""
    return {p.competitor_id: p.position for p in snapshot.positions}


def classify_positions(
    previous: Mapping[int, int],
    snapshot: RaceStateSnapshot,
) -> dict[int, PositionChange]:
    """Classify every competitor in *snapshot* against *previous*."""
    return {
        p.competitor_id: classify_position_change(previous, p.competitor_id, p.position)
        for p in snapshot.positions
    }
