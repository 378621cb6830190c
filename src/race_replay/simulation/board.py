"""Position board rows — what a renderer needs for each competitor."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from race_replay.simulation.snapshot import RaceStateSnapshot
from race_replay.timeline.models import Competitor, LapRecord
from race_replay.timing.best_times import BestTimeTracker, LapClassification, Metric
from race_replay.timing.deltas import PositionChange, classify_position_change
from race_replay.timing.formatter import format_lap_time


@dataclass
class BoardRow:
    """One line of the position board."""

    position: int
    competitor_id: int
    label: str
    team_name: str
    team_colour: str
    change: PositionChange
    lap: LapRecord | None = None
    lap_classes: LapClassification | None = None
    """Classification of ``lap`` against the *current* best times."""

    def formatted_times(self) -> dict[Metric, str]:
        lap = self.lap
        return {
            Metric.LAP: format_lap_time(lap.lap_duration if lap else None),
            Metric.S1: format_lap_time(lap.sector_1_duration if lap else None),
            Metric.S2: format_lap_time(lap.sector_2_duration if lap else None),
            Metric.S3: format_lap_time(lap.sector_3_duration if lap else None),
        }


def build_board(
    snapshot: RaceStateSnapshot,
    previous_positions: Mapping[int, int],
    tracker: BestTimeTracker,
) -> list[BoardRow]:
    """Return one :class:`BoardRow` per entry in ``snapshot.positions``, in order."""
    rows: list[BoardRow] = []
    for p in snapshot.positions:
        competitor = snapshot.competitor(p.competitor_id) or Competitor(driver_number=p.competitor_id)
        lap = snapshot.latest_lap_by_competitor.get(p.competitor_id)
        rows.append(
            BoardRow(
                position=p.position,
                competitor_id=p.competitor_id,
                label=competitor.label,
                team_name=competitor.team_name,
                team_colour=competitor.team_colour,
                change=classify_position_change(previous_positions, p.competitor_id, p.position),
                lap=lap,
                lap_classes=tracker.classify_lap(lap) if lap is not None else None,
            )
        )
    return rows
