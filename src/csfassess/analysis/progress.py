"""
Framework progress summary.

Runs scoring, quality, trend, and benchmark analysis over one assessment
map and its snapshot history, and derives the summary flags shown on a
progress overview.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from csfassess.analysis.benchmark import (
    AttentionArea,
    BenchmarkConfig,
    BenchmarkEvaluator,
    BenchmarkResult,
    TopPerformer,
)
from csfassess.analysis.quality import QualityAnalyzer, QualityMetrics
from csfassess.analysis.trend_tracker import TrendAnalyzer, TrendResult
from csfassess.scoring.engine import ScoringEngine
from csfassess.scoring.models import AssessmentRecord, ScoringBreakdown
from csfassess.storage.models import Snapshot

logger = logging.getLogger(__name__)

HIGH_QUALITY_THRESHOLD = 80.0
LOW_QUALITY_THRESHOLD = 50.0
NEAR_COMPLETION_THRESHOLD = 80.0


@dataclass
class ProgressFlags:
    """Summary flags derived from progress, quality, and trends."""

    is_on_track: bool = False
    needs_attention: bool = False
    is_high_quality: bool = False
    is_near_completion: bool = False

    def to_dict(self) -> dict[str, bool]:
        """Convert to dictionary."""
        return {
            "isOnTrack": self.is_on_track,
            "needsAttention": self.needs_attention,
            "isHighQuality": self.is_high_quality,
            "isNearCompletion": self.is_near_completion,
        }


@dataclass
class FrameworkProgress:
    """
    Everything known about the progress of one assessment.

    Attributes:
        breakdown: Scores and completion at every level.
        trends: Trend analysis over the snapshot history.
        quality: Quality metrics of the assessed controls.
        benchmarks: Metrics classified against the targets.
        top_performers: Best scoring functions.
        attention_areas: Functions needing follow-up.
        flags: Summary flags.
    """

    breakdown: ScoringBreakdown
    trends: TrendResult
    quality: QualityMetrics
    benchmarks: BenchmarkResult
    top_performers: list[TopPerformer] = field(default_factory=list)
    attention_areas: list[AttentionArea] = field(default_factory=list)
    flags: ProgressFlags = field(default_factory=ProgressFlags)

    @property
    def estimated_completion_date(self) -> datetime | None:
        """Projected date all controls are assessed."""
        return self.trends.projected_completion

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "progress": self.breakdown.to_dict(),
            "trends": self.trends.to_dict(),
            "quality": self.quality.to_dict(),
            "benchmarks": self.benchmarks.to_dict(),
            "topPerformers": [p.to_dict() for p in self.top_performers],
            "attentionAreas": [a.to_dict() for a in self.attention_areas],
            "flags": self.flags.to_dict(),
        }


def derive_flags(
    breakdown: ScoringBreakdown,
    trends: TrendResult,
    quality: QualityMetrics,
) -> ProgressFlags:
    """
    Compute the summary flags.

    Returns:
        ProgressFlags where on track means started with positive velocity,
        needs attention means low quality or zero velocity, high quality is
        at least 80, and near completion is at least 80 percent complete.
    """
    completion = breakdown.overall_completion.completion
    return ProgressFlags(
        is_on_track=completion > 0 and trends.velocity > 0,
        needs_attention=(
            quality.overall_quality < LOW_QUALITY_THRESHOLD or trends.velocity == 0
        ),
        is_high_quality=quality.overall_quality >= HIGH_QUALITY_THRESHOLD,
        is_near_completion=completion >= NEAR_COMPLETION_THRESHOLD,
    )


class ProgressAnalyzer:
    """
    Combines every analysis into one FrameworkProgress.

    Example:
        analyzer = ProgressAnalyzer(ScoringEngine(get_catalog()))
        progress = analyzer.analyze(assessments, snapshots)
        if progress.flags.needs_attention:
            ...
    """

    def __init__(
        self,
        engine: ScoringEngine,
        quality_analyzer: QualityAnalyzer | None = None,
        trend_analyzer: TrendAnalyzer | None = None,
        benchmark_config: BenchmarkConfig | None = None,
    ) -> None:
        self.engine = engine
        self.quality_analyzer = quality_analyzer or QualityAnalyzer()
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.benchmarks = BenchmarkEvaluator(engine.catalog, benchmark_config)

    def analyze(
        self,
        assessments: dict[str, AssessmentRecord],
        snapshots: list[Snapshot] | None = None,
        breakdown: ScoringBreakdown | None = None,
        now: datetime | None = None,
    ) -> FrameworkProgress:
        """
        Analyze an assessment and its history.

        Args:
            assessments: Assessment map.
            snapshots: Snapshot history, may be empty.
            breakdown: Precomputed breakdown for these assessments.
            now: Reference time for the completion projection.

        Returns:
            FrameworkProgress.
        """
        breakdown = breakdown or self.engine.calculate_all(assessments)
        trends = self.trend_analyzer.analyze(
            snapshots or [],
            total_controls=breakdown.total_controls,
            assessed_controls=breakdown.completed_controls,
            now=now,
        )
        quality = self.quality_analyzer.analyze(assessments)
        benchmarks = self.benchmarks.evaluate(
            completion_rate=breakdown.overall_completion.completion,
            overall_score=breakdown.overall_completion.average_score,
            quality=quality.overall_quality,
            velocity=trends.velocity,
        )

        progress = FrameworkProgress(
            breakdown=breakdown,
            trends=trends,
            quality=quality,
            benchmarks=benchmarks,
            top_performers=self.benchmarks.get_top_performers(
                breakdown.function_completion
            ),
            attention_areas=self.benchmarks.get_areas_needing_attention(
                breakdown.function_completion
            ),
            flags=derive_flags(breakdown, trends, quality),
        )
        logger.info(
            "Progress: %.1f%% complete, quality %.1f%%, %d attention areas",
            breakdown.overall_completion.completion,
            quality.overall_quality,
            len(progress.attention_areas),
        )
        return progress
