"""
Control rankings for the rubric strategy.

Lists the best and worst scored controls and the controls that need
attention because of a low average or uneven dimension scores.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from csfassess.catalog.framework import ControlRef, FrameworkCatalog
from csfassess.scoring.models import AssessmentRecord, RubricAssessment

ATTENTION_MAX_AVERAGE = 1.5
ATTENTION_MIN_DEVIATION = 1.5


@dataclass
class RankedControl:
    """
    A control with its rubric average.

    Attributes:
        control: Catalog entry for the control.
        score: Mean of the four dimensions (0-3).
        variance: Largest deviation of a dimension from the mean.
        assessment: The underlying record.
    """

    control: ControlRef
    score: float
    variance: float
    assessment: RubricAssessment

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            **self.control.to_dict(),
            "score": round(self.score, 2),
            "variance": round(self.variance, 2),
            "assessment": self.assessment.to_dict(),
        }


def _ranked(
    catalog: FrameworkCatalog,
    assessments: dict[str, AssessmentRecord],
) -> list[RankedControl]:
    ranked = []
    for control in catalog.all_subcategories():
        record = assessments.get(control.id)
        if isinstance(record, RubricAssessment):
            ranked.append(
                RankedControl(
                    control=control,
                    score=record.average,
                    variance=record.max_deviation,
                    assessment=record,
                )
            )
    return ranked


def highest_scoring_controls(
    catalog: FrameworkCatalog,
    assessments: dict[str, AssessmentRecord],
    limit: int = 10,
) -> list[RankedControl]:
    """Scored controls with the highest averages, best first."""
    scored = [r for r in _ranked(catalog, assessments) if r.score > 0]
    return sorted(scored, key=lambda r: r.score, reverse=True)[:limit]


def lowest_scoring_controls(
    catalog: FrameworkCatalog,
    assessments: dict[str, AssessmentRecord],
    limit: int = 10,
) -> list[RankedControl]:
    """Scored controls with the lowest averages, worst first."""
    scored = [r for r in _ranked(catalog, assessments) if r.score > 0]
    return sorted(scored, key=lambda r: r.score)[:limit]


def controls_requiring_attention(
    catalog: FrameworkCatalog,
    assessments: dict[str, AssessmentRecord],
) -> list[RankedControl]:
    """
    Controls with a low average or uneven dimension scores.

    A control is flagged when its average is below 1.5 or a dimension
    deviates from the average by more than 1.5. Records with all
    dimensions at zero are included since their average is zero.

    Returns:
        Flagged controls sorted by average, lowest first.
    """
    flagged = [
        r
        for r in _ranked(catalog, assessments)
        if r.score < ATTENTION_MAX_AVERAGE or r.variance > ATTENTION_MIN_DEVIATION
    ]
    return sorted(flagged, key=lambda r: r.score)
