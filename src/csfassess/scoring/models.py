"""
Assessment record and score result models.

An assessment map is a plain dict from control id to one record. Records
take one of two forms depending on the active response strategy:

    - Quaternary: a single QuaternaryResponse (Yes / Partial / No / N/A)
    - Rubric: a RubricAssessment scoring four dimensions on a 0-3 scale

Missing keys in the map mean the control has not been started.

Wire Format:
    Rubric records serialize with camelCase keys (evidenceLinks,
    lastUpdated) so exported bundles stay compatible with previously
    exported assessment data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

RUBRIC_DIMENSIONS = ("maturity", "implementation", "evidence", "testing")
RUBRIC_MIN = 0
RUBRIC_MAX = 3


class AssessmentError(Exception):
    """Base exception for assessment data errors."""

    pass


class InvalidAssessmentError(AssessmentError, ValueError):
    """Raised when an assessment record has an invalid shape or value."""

    pass


class UnknownControlError(AssessmentError, KeyError):
    """Raised when writing an assessment for a control not in the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class QuaternaryResponse(str, Enum):
    """Single-answer response used by the quaternary strategy."""

    YES = "Yes"
    PARTIAL = "Partial"
    NO = "No"
    NOT_APPLICABLE = "N/A"


def _coerce_dimension(name: str, value: Any) -> int | float:
    """Validate one rubric dimension value."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidAssessmentError(
            f"Dimension '{name}' must be a number, got {type(value).__name__}"
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidAssessmentError(f"Dimension '{name}' must be a finite number, got {value}")
    if value < RUBRIC_MIN or value > RUBRIC_MAX:
        raise InvalidAssessmentError(
            f"Dimension '{name}' must be between {RUBRIC_MIN} and {RUBRIC_MAX}, "
            f"got {value}"
        )
    return value


@dataclass
class RubricAssessment:
    """
    Four-dimension assessment of a single control.

    Attributes:
        maturity: Process maturity (0-3).
        implementation: Degree of implementation (0-3).
        evidence: Strength of supporting evidence (0-3).
        testing: Degree of testing/validation (0-3).
        notes: Free-text assessor notes.
        evidence_links: Links to supporting evidence.
        last_updated: ISO timestamp of the last change.
        assessor: Identifier of the assessor, if known.
    """

    maturity: int | float = 0
    implementation: int | float = 0
    evidence: int | float = 0
    testing: int | float = 0
    notes: str = ""
    evidence_links: list[str] = field(default_factory=list)
    last_updated: str | None = None
    assessor: str | None = None

    def __post_init__(self) -> None:
        for name in RUBRIC_DIMENSIONS:
            _coerce_dimension(name, getattr(self, name))
        if self.notes is None:
            self.notes = ""
        if not isinstance(self.notes, str):
            raise InvalidAssessmentError("Field 'notes' must be a string")
        if not isinstance(self.evidence_links, list) or not all(
            isinstance(link, str) for link in self.evidence_links
        ):
            raise InvalidAssessmentError("Field 'evidenceLinks' must be a list of strings")
        for name, wire_name in (("last_updated", "lastUpdated"), ("assessor", "assessor")):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise InvalidAssessmentError(
                    f"Field '{wire_name}' must be a string, got {type(value).__name__}"
                )

    @property
    def dimensions(self) -> tuple[int | float, ...]:
        """The four dimension values in canonical order."""
        return (self.maturity, self.implementation, self.evidence, self.testing)

    @property
    def average(self) -> float:
        """Mean of the four dimensions."""
        return sum(self.dimensions) / len(RUBRIC_DIMENSIONS)

    @property
    def max_deviation(self) -> float:
        """Largest absolute distance of a dimension from the mean."""
        avg = self.average
        return max(abs(d - avg) for d in self.dimensions)

    @property
    def has_any_score(self) -> bool:
        """True if any dimension is above zero."""
        return any(d > 0 for d in self.dimensions)

    @property
    def notes_length(self) -> int:
        """Length of the notes ignoring surrounding whitespace."""
        return len(self.notes.strip())

    def merged(self, updates: dict[str, Any]) -> RubricAssessment:
        """
        Return a copy with the given fields replaced.

        Accepts both snake_case and wire (camelCase) field names.

        Raises:
            InvalidAssessmentError: For unknown fields or invalid values.
        """
        data = self.to_dict()
        for key, value in updates.items():
            wire_key = _SNAKE_TO_WIRE.get(key, key)
            if wire_key not in data:
                raise InvalidAssessmentError(f"Unknown assessment field: {key}")
            data[wire_key] = value
        return RubricAssessment.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dictionary."""
        return {
            "maturity": self.maturity,
            "implementation": self.implementation,
            "evidence": self.evidence,
            "testing": self.testing,
            "notes": self.notes,
            "evidenceLinks": list(self.evidence_links),
            "lastUpdated": self.last_updated,
            "assessor": self.assessor,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RubricAssessment:
        """
        Create from a wire dictionary.

        Missing dimensions default to 0, missing metadata to empty values.

        Raises:
            InvalidAssessmentError: If the data is not a valid record.
        """
        if not isinstance(data, dict):
            raise InvalidAssessmentError(
                f"Rubric assessment must be an object, got {type(data).__name__}"
            )
        return cls(
            maturity=data.get("maturity", 0),
            implementation=data.get("implementation", 0),
            evidence=data.get("evidence", 0),
            testing=data.get("testing", 0),
            notes=data.get("notes") or "",
            evidence_links=_copy_list(data.get("evidenceLinks")),
            last_updated=data.get("lastUpdated"),
            assessor=data.get("assessor"),
        )


def _copy_list(value: Any) -> Any:
    """Copy list values; anything else is passed through for validation."""
    if value is None:
        return []
    return list(value) if isinstance(value, list) else value


_SNAKE_TO_WIRE = {
    "evidence_links": "evidenceLinks",
    "last_updated": "lastUpdated",
}


AssessmentRecord = Union[RubricAssessment, QuaternaryResponse]
AssessmentMap = dict[str, AssessmentRecord]


@dataclass
class ScoreAggregate:
    """
    Score at one aggregation level (control, category, function, overall).

    Attributes:
        score: Sum of per-control values.
        max_score: Maximum reachable score (one per control).
        percentage: 100 * score / max_score, 0 when max_score is 0.
    """

    score: float
    max_score: float
    percentage: float

    @classmethod
    def from_totals(cls, score: float, max_score: float) -> ScoreAggregate:
        """Build an aggregate, guarding the division."""
        return cls(
            score=score,
            max_score=max_score,
            percentage=(score / max_score) * 100 if max_score > 0 else 0.0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "score": round(self.score, 4),
            "maxScore": self.max_score,
            "percentage": round(self.percentage, 2),
        }


@dataclass
class CompletionResult:
    """
    Completion and average score for a category, function, or overall.

    Attributes:
        completion: Percentage of controls completed (0-100).
        average_score: Mean control average among completed controls,
            scaled to 0-100.
        completed_controls: Number of completed controls.
        total_controls: Number of controls in scope.
    """

    completion: float
    average_score: float
    completed_controls: int = 0
    total_controls: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "completion": round(self.completion, 2),
            "averageScore": round(self.average_score, 2),
            "completedControls": self.completed_controls,
            "totalControls": self.total_controls,
        }


@dataclass
class ScoringBreakdown:
    """
    Complete scoring results for one assessment map.

    Attributes:
        timestamp: When the breakdown was calculated.
        strategy: Name of the response strategy used.
        overall_score: Overall score aggregate.
        overall_completion: Overall completion/average.
        by_function: Score aggregate per function.
        by_category: Score aggregate per category, nested by function id.
        function_completion: Completion per function.
        category_completion: Completion per category, nested by function id.
        completed_controls: Number of completed controls in the catalog.
        total_controls: Number of controls in the catalog.
        completion_percentage: 100 * completed / total over the catalog.
    """

    timestamp: datetime
    strategy: str
    overall_score: ScoreAggregate
    overall_completion: CompletionResult
    by_function: dict[str, ScoreAggregate]
    by_category: dict[str, dict[str, ScoreAggregate]]
    function_completion: dict[str, CompletionResult]
    category_completion: dict[str, dict[str, CompletionResult]]
    completed_controls: int
    total_controls: int
    completion_percentage: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "strategy": self.strategy,
            "overall": {
                **self.overall_score.to_dict(),
                **self.overall_completion.to_dict(),
            },
            "byFunction": {
                fid: {
                    **self.by_function[fid].to_dict(),
                    **self.function_completion[fid].to_dict(),
                }
                for fid in self.by_function
            },
            "byCategory": {
                fid: {
                    cid: {
                        **agg.to_dict(),
                        **self.category_completion[fid][cid].to_dict(),
                    }
                    for cid, agg in cats.items()
                }
                for fid, cats in self.by_category.items()
            },
            "completedControls": self.completed_controls,
            "totalControls": self.total_controls,
            "completionPercentage": round(self.completion_percentage, 2),
        }
