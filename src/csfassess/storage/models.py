"""
Data models for persisted assessment state.

Schema Design Decisions:
    - Timestamps are stored as ISO format strings in UTC
    - Keys use camelCase on the wire so stored documents match the
      exported JSON bundle format
    - Snapshots are immutable and only ever appended
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from csfassess.scoring.models import ScoringBreakdown


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse an ISO timestamp, treating naive values as UTC.

    Args:
        value: ISO 8601 string (a trailing "Z" is accepted) or datetime.

    Returns:
        Timezone-aware datetime.

    Raises:
        ValueError: If the string is not a valid timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class AssessmentMeta:
    """
    Metadata stored alongside one framework's assessment.

    Attributes:
        last_updated: When the assessment was last saved.
        user_title: Title of the person performing the assessment.
        user_role: Role of the person performing the assessment.
    """

    last_updated: str | None = None
    user_title: str = ""
    user_role: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dictionary."""
        return {
            "lastUpdated": self.last_updated,
            "userTitle": self.user_title,
            "userRole": self.user_role,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssessmentMeta:
        """Create from wire dictionary."""
        return cls(
            last_updated=data.get("lastUpdated"),
            user_title=data.get("userTitle") or "",
            user_role=data.get("userRole") or "",
        )


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time summary of assessment progress.

    Snapshots form an append-only history used for trend analysis.

    Attributes:
        date: When the snapshot was taken (UTC).
        completion_rate: Overall completion percentage (0-100).
        overall_score: Overall average score (0-100).
        assessed_controls: Number of completed controls.
    """

    date: datetime
    completion_rate: float
    overall_score: float
    assessed_controls: int

    @classmethod
    def from_breakdown(
        cls,
        breakdown: ScoringBreakdown,
        date: datetime | None = None,
    ) -> Snapshot:
        """
        Summarize a scoring breakdown.

        Args:
            breakdown: Current scoring results.
            date: Snapshot time, defaults to now.

        Returns:
            New Snapshot.
        """
        return cls(
            date=date or datetime.now(UTC),
            completion_rate=breakdown.overall_completion.completion,
            overall_score=breakdown.overall_completion.average_score,
            assessed_controls=breakdown.completed_controls,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dictionary."""
        return {
            "date": self.date.isoformat(),
            "completionRate": self.completion_rate,
            "overallScore": self.overall_score,
            "assessedControls": self.assessed_controls,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        """
        Create from wire dictionary.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If the date is malformed.
        """
        return cls(
            date=parse_timestamp(data["date"]),
            completion_rate=float(data["completionRate"]),
            overall_score=float(data["overallScore"]),
            assessed_controls=int(data["assessedControls"]),
        )
