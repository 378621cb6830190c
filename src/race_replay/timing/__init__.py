"""Derived timing state: best times, position deltas and lap-time formatting.

Public API
----------
BestTimeTracker            - personal/overall best lap and sector times
LapClassification          - per-metric TimeClass for one lap
Metric                     - LAP, S1, S2, S3
TimeClass                  - OVERALL_BEST, PERSONAL_BEST, ORDINARY
PositionChange             - IMPROVED, WORSENED, UNCHANGED
classify_position_change   - compare one competitor with the previous snapshot
classify_positions         - classify every competitor in a snapshot
position_map               - snapshot → competitor_id → position
format_lap_time            - seconds → "M:SS.mmm"
"""

from race_replay.timing.best_times import (
    BestTimeTracker,
    LapClassification,
    Metric,
    TimeClass,
    metric_value,
)
from race_replay.timing.deltas import (
    PositionChange,
    classify_position_change,
    classify_positions,
    position_map,
)
from race_replay.timing.formatter import format_gap, format_lap_time

__all__ = [
    "BestTimeTracker",
    "LapClassification",
    "Metric",
    "PositionChange",
    "TimeClass",
    "classify_position_change",
    "classify_positions",
    "format_gap",
    "format_lap_time",
    "metric_value",
    "position_map",
]
