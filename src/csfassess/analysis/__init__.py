"""
Analysis of assessment results.

Modules:
    - quality: consistency, documentation, completeness, evidence quality
    - validation: per-control issues (incomplete, inconsistent, missing evidence)
    - rankings: highest, lowest, and attention-worthy controls
    - trend_tracker: completion/score deltas, velocity, projected completion
    - benchmark: performance levels, top performers, areas needing attention
    - progress: combined progress summary with flags
"""

from csfassess.analysis.benchmark import (
    AttentionArea,
    AttentionPriority,
    BenchmarkConfig,
    BenchmarkEvaluator,
    BenchmarkResult,
    BenchmarkTarget,
    PerformanceLevel,
    TopPerformer,
)
from csfassess.analysis.progress import (
    FrameworkProgress,
    ProgressAnalyzer,
    ProgressFlags,
)
from csfassess.analysis.quality import QualityAnalyzer, QualityConfig, QualityMetrics
from csfassess.analysis.rankings import (
    RankedControl,
    controls_requiring_attention,
    highest_scoring_controls,
    lowest_scoring_controls,
)
from csfassess.analysis.trend_tracker import (
    TrendAnalyzer,
    TrendConfig,
    TrendDirection,
    TrendResult,
    VelocityTrend,
    progress_by_period,
)
from csfassess.analysis.validation import (
    IssueType,
    Severity,
    ValidationEngine,
    ValidationIssue,
    summarize_issues,
)

__all__ = [
    # Quality
    "QualityAnalyzer",
    "QualityConfig",
    "QualityMetrics",
    # Validation
    "ValidationEngine",
    "ValidationIssue",
    "IssueType",
    "Severity",
    "summarize_issues",
    # Rankings
    "RankedControl",
    "highest_scoring_controls",
    "lowest_scoring_controls",
    "controls_requiring_attention",
    # Trends
    "TrendAnalyzer",
    "TrendConfig",
    "TrendDirection",
    "TrendResult",
    "VelocityTrend",
    "progress_by_period",
    # Benchmarks
    "BenchmarkEvaluator",
    "BenchmarkConfig",
    "BenchmarkTarget",
    "BenchmarkResult",
    "PerformanceLevel",
    "AttentionArea",
    "AttentionPriority",
    "TopPerformer",
    # Progress
    "ProgressAnalyzer",
    "FrameworkProgress",
    "ProgressFlags",
]
