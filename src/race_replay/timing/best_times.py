"""BestTimeTracker — incremental personal and overall best lap/sector times."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field

from race_replay.timeline.models import LapRecord

DEFAULT_EPSILON_S = 0.001  # durations closer than 1 ms are the same time


class Metric(str, enum.Enum):
    LAP = "lap"
    S1 = "s1"
    S2 = "s2"
    S3 = "s3"


class TimeClass(str, enum.Enum):
    """How a time compares with the bests, in render priority order."""

    OVERALL_BEST = "overall_best"
    PERSONAL_BEST = "personal_best"
    ORDINARY = "ordinary"


_LAP_FIELDS: tuple[tuple[Metric, str], ...] = (
    (Metric.LAP, "lap_duration"),
    (Metric.S1, "sector_1_duration"),
    (Metric.S2, "sector_2_duration"),
    (Metric.S3, "sector_3_duration"),
)


def metric_value(lap: LapRecord, metric: Metric) -> float | None:
    """Return the duration *lap* carries for *metric*, or None if it has none."""
    for m, attr in _LAP_FIELDS:
        if m is metric:
            return _usable(getattr(lap, attr))
    raise KeyError(metric)


def _usable(value: float | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if not math.isfinite(value) or value <= 0.0:
        return None
    return float(value)


@dataclass
class LapClassification:
    """Per-metric :class:`TimeClass` for one lap."""

    competitor_id: int
    lap_number: int
    classes: dict[Metric, TimeClass] = field(default_factory=dict)

    def __getitem__(self, metric: Metric) -> TimeClass:
        return self.classes.get(metric, TimeClass.ORDINARY)


class BestTimeTracker:
    """Tracks, per competitor and globally, the best lap and sector times seen so far.

    Only strictly usable durations (present, finite, > 0) are considered.
    Personal bests are replaced by equal-or-faster times; the overall best
    only by strictly faster personal bests, so it never regresses.

    Args:
        epsilon_s: Tolerance for deciding a time *is* the overall best.
    """

    def __init__(self, epsilon_s: float = DEFAULT_EPSILON_S) -> None:
        self.epsilon_s = epsilon_s
        self._personal: dict[int, dict[Metric, float]] = {}
        self._overall: dict[Metric, float] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def observe(self, lap: LapRecord) -> LapClassification:
        """Fold *lap* into the tables and classify each of its metrics."""
        personal = self._personal.setdefault(lap.competitor_id, {})
        result = LapClassification(competitor_id=lap.competitor_id, lap_number=lap.lap_number)

        for metric, _attr in _LAP_FIELDS:
            value = metric_value(lap, metric)
            if value is None:
                result.classes[metric] = TimeClass.ORDINARY
                continue

            improved = False
            best = personal.get(metric)
            if best is None or value <= best:
                personal[metric] = value
                improved = True
                overall = self._overall.get(metric)
                if overall is None or value < overall:
                    self._overall[metric] = value

            if self._is_overall_best(metric, value):
                result.classes[metric] = TimeClass.OVERALL_BEST
            elif improved:
                result.classes[metric] = TimeClass.PERSONAL_BEST
            else:
                result.classes[metric] = TimeClass.ORDINARY

        return result

    def classify(self, competitor_id: int, metric: Metric, value: float | None) -> TimeClass:
        """Classify *value* against the tables as they stand now, without updating them."""
        value = _usable(value)
        if value is None:
            return TimeClass.ORDINARY
        if self._is_overall_best(metric, value):
            return TimeClass.OVERALL_BEST
        best = self.personal_best(competitor_id, metric)
        if best is not None and value <= best + self.epsilon_s:
            return TimeClass.PERSONAL_BEST
        return TimeClass.ORDINARY

    def classify_lap(self, lap: LapRecord) -> LapClassification:
        """:meth:`classify` every metric of *lap*."""
        return LapClassification(
            competitor_id=lap.competitor_id,
            lap_number=lap.lap_number,
            classes={
                metric: self.classify(lap.competitor_id, metric, metric_value(lap, metric))
                for metric, _attr in _LAP_FIELDS
            },
        )

    def personal_best(self, competitor_id: int, metric: Metric) -> float | None:
        return self._personal.get(competitor_id, {}).get(metric)

    def overall_best(self, metric: Metric) -> float | None:
        return self._overall.get(metric)

    def clear(self) -> None:
        """Forget every best time (used on reset)."""
        self._personal.clear()
        self._overall.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _is_overall_best(self, metric: Metric, value: float) -> bool:
        overall = self._overall.get(metric)
        return overall is not None and abs(value - overall) < self.epsilon_s
