"""
Trend analysis over assessment progress snapshots.

Compares the two most recent snapshots to measure how completion and
score are moving and how many controls are assessed per week, and
projects a completion date from that velocity.

Overall Trend (completion change between the last two snapshots):
    - improving: more than +2 points
    - declining: less than -2 points
    - stable: otherwise

Velocity Analysis (controls assessed per week):
    - accelerating: > 5
    - steady_progress: > 2
    - slow_progress: > 0
    - stalled: = 0
    - regressing: < 0
    - insufficient_data: fewer than two snapshots
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from csfassess.storage.models import Snapshot

logger = logging.getLogger(__name__)

SECONDS_PER_WEEK = 7 * 24 * 60 * 60

PERIOD_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
}


class TrendDirection(str, Enum):
    """Direction of the completion trend."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class VelocityTrend(str, Enum):
    """Classification of assessment velocity."""

    ACCELERATING = "accelerating"
    STEADY_PROGRESS = "steady_progress"
    SLOW_PROGRESS = "slow_progress"
    STALLED = "stalled"
    REGRESSING = "regressing"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass
class TrendConfig:
    """
    Thresholds for trend classification.

    Attributes:
        completion_change_threshold: Completion change (points) beyond
            which the trend is improving or declining.
        accelerating_velocity: Velocity above which progress accelerates.
        steady_velocity: Velocity above which progress is steady.
        min_snapshots: Snapshots needed for analysis.
    """

    completion_change_threshold: float = 2.0
    accelerating_velocity: float = 5.0
    steady_velocity: float = 2.0
    min_snapshots: int = 2


@dataclass
class TrendResult:
    """
    Trend analysis results.

    Attributes:
        overall_trend: Direction of the completion trend.
        completion_trend: Completion change between the last two snapshots.
        score_trend: Score change between the last two snapshots.
        velocity: Controls assessed per week.
        projected_completion: Projected date all controls are assessed.
        trend_analysis: Velocity classification.
    """

    overall_trend: TrendDirection
    completion_trend: float
    score_trend: float
    velocity: float
    projected_completion: datetime | None
    trend_analysis: VelocityTrend

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "overallTrend": self.overall_trend.value,
            "completionTrend": round(self.completion_trend, 2),
            "scoreTrend": round(self.score_trend, 2),
            "velocity": round(self.velocity, 2),
            "projectedCompletion": (
                self.projected_completion.isoformat()
                if self.projected_completion
                else None
            ),
            "trendAnalysis": self.trend_analysis.value,
        }


def weeks_between(start: datetime, end: datetime) -> float:
    """Real-valued number of weeks from start to end."""
    return (end - start).total_seconds() / SECONDS_PER_WEEK


class TrendAnalyzer:
    """
    Analyzer for assessment progress over time.

    Example:
        analyzer = TrendAnalyzer()
        trends = analyzer.analyze(
            snapshots,
            total_controls=106,
            assessed_controls=40,
        )
        print(trends.trend_analysis, trends.projected_completion)

    Attributes:
        config: TrendConfig with classification thresholds.
    """

    def __init__(self, config: TrendConfig | None = None) -> None:
        self.config = config or TrendConfig()

    def analyze(
        self,
        snapshots: list[Snapshot],
        total_controls: int,
        assessed_controls: int,
        now: datetime | None = None,
    ) -> TrendResult:
        """
        Analyze the snapshot history.

        Args:
            snapshots: Snapshot history in any order.
            total_controls: Controls in the catalog (current progress).
            assessed_controls: Controls completed now (current progress).
            now: Reference time for the projection, defaults to now.

        Returns:
            TrendResult for the two most recent snapshots.
        """
        if len(snapshots) < self.config.min_snapshots:
            return self._insufficient_data()

        ordered = sorted(snapshots, key=lambda s: s.date)
        previous, latest = ordered[-2], ordered[-1]

        completion_trend = latest.completion_rate - previous.completion_rate
        score_trend = latest.overall_score - previous.overall_score

        elapsed_weeks = weeks_between(previous.date, latest.date)
        controls_delta = latest.assessed_controls - previous.assessed_controls
        velocity = controls_delta / elapsed_weeks if elapsed_weeks > 0 else 0.0

        projected_completion = None
        if velocity > 0 and latest.completion_rate < 100:
            remaining = total_controls - assessed_controls
            reference = now or datetime.now(UTC)
            projected_completion = reference + timedelta(weeks=remaining / velocity)

        result = TrendResult(
            overall_trend=self._direction(completion_trend),
            completion_trend=completion_trend,
            score_trend=score_trend,
            velocity=velocity,
            projected_completion=projected_completion,
            trend_analysis=self._classify_velocity(velocity),
        )

        logger.info(
            "Trend analysis: %s, velocity %.2f controls/week (%s)",
            result.overall_trend.value,
            velocity,
            result.trend_analysis.value,
        )
        return result

    def _direction(self, completion_trend: float) -> TrendDirection:
        threshold = self.config.completion_change_threshold
        if completion_trend > threshold:
            return TrendDirection.IMPROVING
        if completion_trend < -threshold:
            return TrendDirection.DECLINING
        return TrendDirection.STABLE

    def _classify_velocity(self, velocity: float) -> VelocityTrend:
        if velocity > self.config.accelerating_velocity:
            return VelocityTrend.ACCELERATING
        if velocity > self.config.steady_velocity:
            return VelocityTrend.STEADY_PROGRESS
        if velocity > 0:
            return VelocityTrend.SLOW_PROGRESS
        if velocity == 0:
            return VelocityTrend.STALLED
        return VelocityTrend.REGRESSING

    @staticmethod
    def _insufficient_data() -> TrendResult:
        return TrendResult(
            overall_trend=TrendDirection.STABLE,
            completion_trend=0.0,
            score_trend=0.0,
            velocity=0.0,
            projected_completion=None,
            trend_analysis=VelocityTrend.INSUFFICIENT_DATA,
        )


def progress_by_period(
    snapshots: list[Snapshot],
    period: str = "week",
    now: datetime | None = None,
) -> list[Snapshot]:
    """
    Snapshots taken within a recent period, oldest first.

    Args:
        snapshots: Snapshot history.
        period: "week", "month", or "quarter". Unknown periods fall back
            to a week.
        now: Reference time, defaults to now.

    Returns:
        Snapshots on or after the period cutoff.
    """
    if not snapshots:
        return []

    days = PERIOD_DAYS.get(period, PERIOD_DAYS["week"])
    cutoff = (now or datetime.now(UTC)) - timedelta(days=days)
    return sorted((s for s in snapshots if s.date >= cutoff), key=lambda s: s.date)
