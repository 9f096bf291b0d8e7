"""
Assessment quality metrics for the rubric strategy.

Quality is measured over every record that has any dimension above zero.
Four criteria are evaluated per record and reported as the percentage of
assessed records meeting them:

    - consistency: no dimension is more than 1 point from the record mean
    - documentation: notes are at least 20 characters long
    - completeness: all four dimensions are above zero
    - evidence_quality: evidence >= 2 and notes at least 10 characters long

The overall quality is the unweighted mean of the four percentages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from csfassess.scoring.models import AssessmentRecord, RubricAssessment

logger = logging.getLogger(__name__)

# Notes length needed to count as documented
DOCUMENTATION_MIN_LENGTH = 20

# Notes length needed for the good-evidence check
EVIDENCE_NOTES_MIN_LENGTH = 10

# Maximum deviation of a dimension from the mean for a consistent record
CONSISTENCY_MAX_DEVIATION = 1.0

# Minimum evidence dimension for the good-evidence check
EVIDENCE_MIN_SCORE = 2


@dataclass
class QualityConfig:
    """
    Thresholds for quality metrics.

    The documentation check and the good-evidence check use different
    notes-length limits.
    """

    documentation_min_length: int = DOCUMENTATION_MIN_LENGTH
    evidence_notes_min_length: int = EVIDENCE_NOTES_MIN_LENGTH
    consistency_max_deviation: float = CONSISTENCY_MAX_DEVIATION
    evidence_min_score: float = EVIDENCE_MIN_SCORE


@dataclass
class QualityMetrics:
    """
    Quality percentages over the assessed records.

    Attributes:
        consistency: Percentage of consistent records.
        documentation: Percentage of documented records.
        completeness: Percentage of fully scored records.
        evidence_quality: Percentage of records with good evidence.
        overall_quality: Mean of the four percentages.
        assessed_controls: Number of records evaluated.
    """

    consistency: float = 0.0
    documentation: float = 0.0
    completeness: float = 0.0
    evidence_quality: float = 0.0
    overall_quality: float = 0.0
    assessed_controls: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "consistency": round(self.consistency, 2),
            "documentation": round(self.documentation, 2),
            "completeness": round(self.completeness, 2),
            "evidenceQuality": round(self.evidence_quality, 2),
            "overallQuality": round(self.overall_quality, 2),
            "assessedControls": self.assessed_controls,
        }


class QualityAnalyzer:
    """
    Analyzer for rubric assessment quality.

    Example:
        analyzer = QualityAnalyzer()
        metrics = analyzer.analyze(assessments)
        print(metrics.overall_quality)
    """

    def __init__(self, config: QualityConfig | None = None) -> None:
        self.config = config or QualityConfig()

    def is_consistent(self, record: RubricAssessment) -> bool:
        """True if no dimension strays more than the limit from the mean."""
        return record.max_deviation <= self.config.consistency_max_deviation

    def is_documented(self, record: RubricAssessment) -> bool:
        """True if the notes meet the documentation length."""
        return record.notes_length >= self.config.documentation_min_length

    def is_complete(self, record: RubricAssessment) -> bool:
        """True if every dimension is scored."""
        return all(d > 0 for d in record.dimensions)

    def has_good_evidence(self, record: RubricAssessment) -> bool:
        """True if evidence is strong and briefly documented."""
        return (
            record.evidence >= self.config.evidence_min_score
            and record.notes_length >= self.config.evidence_notes_min_length
        )

    def analyze(self, assessments: dict[str, AssessmentRecord]) -> QualityMetrics:
        """
        Calculate quality metrics.

        Args:
            assessments: Assessment map. Non-rubric and unscored records are
                ignored.

        Returns:
            QualityMetrics; all zeros if nothing has been assessed.
        """
        assessed = [
            r
            for r in assessments.values()
            if isinstance(r, RubricAssessment) and r.has_any_score
        ]
        if not assessed:
            return QualityMetrics()

        total = len(assessed)
        consistency = sum(1 for r in assessed if self.is_consistent(r)) / total * 100
        documentation = sum(1 for r in assessed if self.is_documented(r)) / total * 100
        completeness = sum(1 for r in assessed if self.is_complete(r)) / total * 100
        evidence_quality = (
            sum(1 for r in assessed if self.has_good_evidence(r)) / total * 100
        )

        metrics = QualityMetrics(
            consistency=consistency,
            documentation=documentation,
            completeness=completeness,
            evidence_quality=evidence_quality,
            overall_quality=(
                consistency + documentation + completeness + evidence_quality
            ) / 4,
            assessed_controls=total,
        )
        logger.debug(
            "Quality over %d assessed controls: %.1f%%",
            total,
            metrics.overall_quality,
        )
        return metrics
