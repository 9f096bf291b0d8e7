"""
Benchmark evaluation against fixed performance targets.

Each metric is compared with a "good" and an "excellent" threshold:

    Metric            Good    Excellent
    completionRate    70      90
    overallScore      65      80
    quality           70      85
    velocity          3       7     (controls per week)

A value at or above the excellent threshold is excellent, at or above the
good threshold is good, anything lower needs improvement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from csfassess.catalog.framework import FrameworkCatalog
from csfassess.scoring.models import CompletionResult

logger = logging.getLogger(__name__)

# Functions with completion strictly between 0 and this value need attention
LOW_COMPLETION_THRESHOLD = 30.0

# Functions above this completion with a low score need attention
HIGH_COMPLETION_THRESHOLD = 70.0
LOW_SCORE_THRESHOLD = 50.0

METRICS = ("completionRate", "overallScore", "quality", "velocity")


class PerformanceLevel(str, Enum):
    """Benchmark classification for one metric."""

    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


class AttentionPriority(str, Enum):
    """Priority of an area needing attention."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER = {
    AttentionPriority.HIGH: 3,
    AttentionPriority.MEDIUM: 2,
    AttentionPriority.LOW: 1,
}


@dataclass
class BenchmarkTarget:
    """Good and excellent thresholds for one metric."""

    good: float
    excellent: float

    def classify(self, value: float) -> PerformanceLevel:
        """Classify a metric value against this target."""
        if value >= self.excellent:
            return PerformanceLevel.EXCELLENT
        if value >= self.good:
            return PerformanceLevel.GOOD
        return PerformanceLevel.NEEDS_IMPROVEMENT

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {"good": self.good, "excellent": self.excellent}


def _default_targets() -> dict[str, BenchmarkTarget]:
    return {
        "completionRate": BenchmarkTarget(good=70, excellent=90),
        "overallScore": BenchmarkTarget(good=65, excellent=80),
        "quality": BenchmarkTarget(good=70, excellent=85),
        "velocity": BenchmarkTarget(good=3, excellent=7),
    }


@dataclass
class BenchmarkConfig:
    """
    Benchmark targets per metric.

    Attributes:
        targets: Mapping of metric name to its thresholds.
    """

    targets: dict[str, BenchmarkTarget] = field(default_factory=_default_targets)

    @classmethod
    def from_overrides(cls, overrides: dict[str, Any] | None) -> BenchmarkConfig:
        """
        Build a config with some thresholds replaced.

        Args:
            overrides: Mapping like {"velocity": {"good": 5}}. Metrics and
                keys not given keep their defaults.

        Raises:
            ValueError: If a metric is unknown, a threshold is not numeric,
                or good exceeds excellent.
        """
        config = cls()
        for metric, values in (overrides or {}).items():
            if metric not in config.targets:
                raise ValueError(f"Unknown benchmark metric: {metric}")
            if not isinstance(values, dict):
                raise ValueError(f"Benchmark '{metric}' must be a mapping")

            target = config.targets[metric]
            good = float(values.get("good", target.good))
            excellent = float(values.get("excellent", target.excellent))
            if good > excellent:
                raise ValueError(
                    f"Benchmark '{metric}': good ({good}) exceeds excellent ({excellent})"
                )
            config.targets[metric] = BenchmarkTarget(good=good, excellent=excellent)
        return config


@dataclass
class BenchmarkResult:
    """
    Current metrics classified against the targets.

    Attributes:
        targets: Thresholds used.
        current: Metric values evaluated.
        performance_level: Classification per metric.
    """

    targets: dict[str, BenchmarkTarget]
    current: dict[str, float]
    performance_level: dict[str, PerformanceLevel]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "targets": {m: t.to_dict() for m, t in self.targets.items()},
            "current": {m: round(v, 2) for m, v in self.current.items()},
            "performanceLevel": {m: p.value for m, p in self.performance_level.items()},
        }


@dataclass
class TopPerformer:
    """A function ranked by its average score."""

    id: str
    name: str
    completion: float
    score: float
    type: str = "function"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "completion": round(self.completion, 2),
            "score": round(self.score, 2),
        }


@dataclass
class AttentionArea:
    """
    A function flagged for follow-up.

    Attributes:
        type: "low_completion" or "low_quality".
        area: Display label, e.g. "GV (Govern)".
        function_id: Flagged function.
        priority: Attention priority.
        completion: Function completion for low_completion areas.
        score: Function average score for low_quality areas.
    """

    type: str
    area: str
    function_id: str
    priority: AttentionPriority
    completion: float | None = None
    score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "type": self.type,
            "area": self.area,
            "functionId": self.function_id,
            "priority": self.priority.value,
        }
        if self.completion is not None:
            result["completion"] = round(self.completion, 2)
        if self.score is not None:
            result["score"] = round(self.score, 2)
        return result


class BenchmarkEvaluator:
    """
    Classifies metrics against benchmarks and ranks functions.

    Example:
        evaluator = BenchmarkEvaluator(get_catalog())
        result = evaluator.evaluate(
            completion_rate=72.0,
            overall_score=60.0,
            quality=88.0,
            velocity=4.0,
        )
        print(result.performance_level["quality"])

        top = evaluator.get_top_performers(breakdown.function_completion)
    """

    def __init__(
        self,
        catalog: FrameworkCatalog,
        config: BenchmarkConfig | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or BenchmarkConfig()

    def evaluate(
        self,
        completion_rate: float,
        overall_score: float,
        quality: float,
        velocity: float,
    ) -> BenchmarkResult:
        """
        Classify current metrics.

        Args:
            completion_rate: Overall completion (0-100).
            overall_score: Overall average score (0-100).
            quality: Overall quality (0-100).
            velocity: Controls assessed per week.

        Returns:
            BenchmarkResult with a level per metric.
        """
        current = {
            "completionRate": completion_rate,
            "overallScore": overall_score,
            "quality": quality,
            "velocity": velocity,
        }
        levels = {
            metric: self.config.targets[metric].classify(current[metric])
            for metric in METRICS
        }
        logger.debug(
            "Benchmark levels: %s",
            ", ".join(f"{m}={p.value}" for m, p in levels.items()),
        )
        return BenchmarkResult(
            targets=dict(self.config.targets),
            current=current,
            performance_level=levels,
        )

    def get_top_performers(
        self,
        function_completions: dict[str, CompletionResult],
        limit: int = 3,
    ) -> list[TopPerformer]:
        """
        Functions with the highest average score.

        Args:
            function_completions: Completion per function id.
            limit: Maximum number of functions returned.

        Returns:
            Best functions first. Ties keep catalog order.
        """
        performers = [
            TopPerformer(
                id=function_id,
                name=self._function_name(function_id),
                completion=result.completion,
                score=result.average_score,
            )
            for function_id, result in function_completions.items()
        ]
        performers.sort(key=lambda p: p.score, reverse=True)
        return performers[:limit]

    def get_areas_needing_attention(
        self,
        function_completions: dict[str, CompletionResult],
    ) -> list[AttentionArea]:
        """
        Functions that are barely started or complete but weakly scored.

        A function with completion strictly between 0 and 30 is a
        high-priority low_completion area. A function above 70 completion
        with an average score below 50 is a medium-priority low_quality
        area.

        Returns:
            Areas sorted by priority, high first.
        """
        areas: list[AttentionArea] = []

        for function_id, result in function_completions.items():
            if 0 < result.completion < LOW_COMPLETION_THRESHOLD:
                areas.append(
                    AttentionArea(
                        type="low_completion",
                        area=self._area_label(function_id),
                        function_id=function_id,
                        priority=AttentionPriority.HIGH,
                        completion=result.completion,
                    )
                )

        for function_id, result in function_completions.items():
            if (
                result.completion > HIGH_COMPLETION_THRESHOLD
                and result.average_score < LOW_SCORE_THRESHOLD
            ):
                areas.append(
                    AttentionArea(
                        type="low_quality",
                        area=self._area_label(function_id),
                        function_id=function_id,
                        priority=AttentionPriority.MEDIUM,
                        score=result.average_score,
                    )
                )

        areas.sort(key=lambda a: PRIORITY_ORDER[a.priority], reverse=True)
        return areas

    def _function_name(self, function_id: str) -> str:
        function = self.catalog.get_function(function_id)
        return function.name if function else function_id

    def _area_label(self, function_id: str) -> str:
        return f"{function_id} ({self._function_name(function_id)})"
