"""
Validation of rubric assessments.

Every started control in the catalog is checked for three problems:

    - incomplete (warning): scoring started but a dimension is still 0
    - inconsistent (info): a dimension is more than 2 points from the mean
    - missing_evidence (warning): a dimension is at 3 but the notes are
      shorter than 10 characters

Controls with no score at all produce no issues.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any

from csfassess.catalog.framework import FrameworkCatalog
from csfassess.scoring.models import RUBRIC_MAX, AssessmentRecord, RubricAssessment

logger = logging.getLogger(__name__)

INCONSISTENCY_MIN_DEVIATION = 2.0
EVIDENCE_NOTES_MIN_LENGTH = 10


class IssueType(str, Enum):
    """Kind of validation issue."""

    INCOMPLETE = "incomplete"
    INCONSISTENT = "inconsistent"
    MISSING_EVIDENCE = "missing_evidence"


class Severity(str, Enum):
    """Severity of a validation issue."""

    WARNING = "warning"
    INFO = "info"


ISSUE_MESSAGES = {
    IssueType.INCOMPLETE: "Assessment started but not all dimensions scored",
    IssueType.INCONSISTENT: "Large variance between dimension scores",
    IssueType.MISSING_EVIDENCE: "High score without sufficient evidence documentation",
}


@dataclass(frozen=True)
class ValidationIssue:
    """
    A problem found in one control's assessment.

    Attributes:
        type: Issue kind.
        control_id: Control the issue refers to.
        message: Human-readable description.
        severity: Issue severity.
    """

    type: IssueType
    control_id: str
    message: str
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dictionary."""
        return {
            "type": self.type.value,
            "controlId": self.control_id,
            "message": self.message,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationIssue:
        """Create from wire dictionary."""
        return cls(
            type=IssueType(data["type"]),
            control_id=data["controlId"],
            message=data.get("message", ""),
            severity=Severity(data["severity"]),
        )


class ValidationEngine:
    """
    Checks rubric assessments for incomplete or questionable scoring.

    Example:
        engine = ValidationEngine(get_catalog())
        issues = engine.validate(assessments)
        warnings = [i for i in issues if i.severity == Severity.WARNING]
    """

    def __init__(
        self,
        catalog: FrameworkCatalog,
        inconsistency_min_deviation: float = INCONSISTENCY_MIN_DEVIATION,
        evidence_notes_min_length: int = EVIDENCE_NOTES_MIN_LENGTH,
    ) -> None:
        self.catalog = catalog
        self.inconsistency_min_deviation = inconsistency_min_deviation
        self.evidence_notes_min_length = evidence_notes_min_length

    def validate_control(
        self,
        control_id: str,
        record: AssessmentRecord | None,
    ) -> list[ValidationIssue]:
        """
        Check one control's record.

        Returns:
            Issues found, empty for unscored or non-rubric records.
        """
        if not isinstance(record, RubricAssessment) or not record.has_any_score:
            return []

        issues = []
        if any(d == 0 for d in record.dimensions):
            issues.append(self._issue(IssueType.INCOMPLETE, control_id, Severity.WARNING))

        if record.max_deviation > self.inconsistency_min_deviation:
            issues.append(self._issue(IssueType.INCONSISTENT, control_id, Severity.INFO))

        if (
            max(record.dimensions) >= RUBRIC_MAX
            and record.notes_length < self.evidence_notes_min_length
        ):
            issues.append(
                self._issue(IssueType.MISSING_EVIDENCE, control_id, Severity.WARNING)
            )

        return issues

    def validate(self, assessments: dict[str, AssessmentRecord]) -> list[ValidationIssue]:
        """
        Check every catalog control.

        Args:
            assessments: Assessment map.

        Returns:
            Issues in catalog order.
        """
        issues: list[ValidationIssue] = []
        for control in self.catalog.all_subcategories():
            issues.extend(self.validate_control(control.id, assessments.get(control.id)))

        if issues:
            logger.debug("Validation found %d issues", len(issues))
        return issues

    @staticmethod
    def _issue(issue_type: IssueType, control_id: str, severity: Severity) -> ValidationIssue:
        return ValidationIssue(
            type=issue_type,
            control_id=control_id,
            message=ISSUE_MESSAGES[issue_type],
            severity=severity,
        )


def summarize_issues(issues: list[ValidationIssue]) -> dict[str, Any]:
    """
    Count issues by severity and type.

    Returns:
        Dictionary with "total", "by_severity", and "by_type" counts.
    """
    return {
        "total": len(issues),
        "by_severity": dict(Counter(i.severity.value for i in issues)),
        "by_type": dict(Counter(i.type.value for i in issues)),
    }
