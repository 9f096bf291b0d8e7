"""
Response strategies.

A response strategy decides how one control's record is parsed, valued,
and counted. The aggregation algorithm in ScoringEngine is identical for
every strategy and only calls through this interface.

Strategies:
    - quaternary: one answer per control (Yes=1, Partial=0.5, No=0, N/A=0).
      N/A is scored 0 and is not counted as completed.
    - rubric: four dimensions scored 0-3. A control is completed once any
      dimension is above zero. Its average is the mean of the dimensions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from csfassess.scoring.models import (
    RUBRIC_MAX,
    AssessmentRecord,
    InvalidAssessmentError,
    QuaternaryResponse,
    RubricAssessment,
)

QUATERNARY_VALUES: dict[QuaternaryResponse, float] = {
    QuaternaryResponse.YES: 1.0,
    QuaternaryResponse.PARTIAL: 0.5,
    QuaternaryResponse.NO: 0.0,
    QuaternaryResponse.NOT_APPLICABLE: 0.0,
}


class ResponseStrategy(ABC):
    """
    Interface for per-control valuation.

    Attributes:
        name: Strategy identifier used in configuration.
        average_scale: Multiplier turning a control average into 0-100.
        max_value: Largest value a single control can contribute.
    """

    name: str = ""
    average_scale: float = 100.0
    max_value: float = 1.0

    @abstractmethod
    def parse_record(self, raw: Any) -> AssessmentRecord:
        """
        Parse a wire value into a record.

        Raises:
            InvalidAssessmentError: If the value is not a valid record.
        """

    @abstractmethod
    def serialize_record(self, record: AssessmentRecord) -> Any:
        """Convert a record to its wire value."""

    @abstractmethod
    def control_value(self, record: AssessmentRecord | None) -> float:
        """Value of one control in [0, 1], used for score aggregates."""

    @abstractmethod
    def control_average(self, record: AssessmentRecord | None) -> float:
        """Average of one control on the strategy's native scale."""

    @abstractmethod
    def is_completed(self, record: AssessmentRecord | None) -> bool:
        """True if the control counts toward completion."""

    def parse_map(self, raw: dict[str, Any]) -> dict[str, AssessmentRecord]:
        """
        Parse a whole wire assessment map.

        Raises:
            InvalidAssessmentError: If the map or any record is invalid.
        """
        if not isinstance(raw, dict):
            raise InvalidAssessmentError(
                f"Assessment data must be an object, got {type(raw).__name__}"
            )
        parsed: dict[str, AssessmentRecord] = {}
        for control_id, value in raw.items():
            try:
                parsed[str(control_id)] = self.parse_record(value)
            except InvalidAssessmentError as e:
                raise InvalidAssessmentError(f"{control_id}: {e}") from e
        return parsed

    def serialize_map(self, assessments: dict[str, AssessmentRecord]) -> dict[str, Any]:
        """Convert an assessment map to its wire form."""
        return {cid: self.serialize_record(r) for cid, r in assessments.items()}


class QuaternaryStrategy(ResponseStrategy):
    """Yes / Partial / No / N/A responses."""

    name = "quaternary"
    average_scale = 100.0

    def parse_record(self, raw: Any) -> QuaternaryResponse:
        if isinstance(raw, QuaternaryResponse):
            return raw
        try:
            return QuaternaryResponse(raw)
        except ValueError as e:
            allowed = ", ".join(r.value for r in QuaternaryResponse)
            raise InvalidAssessmentError(
                f"Invalid response {raw!r}; expected one of: {allowed}"
            ) from e

    def serialize_record(self, record: AssessmentRecord) -> str:
        return self.parse_record(record).value

    def control_value(self, record: AssessmentRecord | None) -> float:
        if not isinstance(record, QuaternaryResponse):
            return 0.0
        return QUATERNARY_VALUES[record]

    def control_average(self, record: AssessmentRecord | None) -> float:
        return self.control_value(record)

    def is_completed(self, record: AssessmentRecord | None) -> bool:
        return (
            isinstance(record, QuaternaryResponse)
            and record != QuaternaryResponse.NOT_APPLICABLE
        )


class RubricStrategy(ResponseStrategy):
    """Four dimensions scored 0-3."""

    name = "rubric"
    average_scale = 100.0 / RUBRIC_MAX

    def parse_record(self, raw: Any) -> RubricAssessment:
        if isinstance(raw, RubricAssessment):
            return raw
        return RubricAssessment.from_dict(raw)

    def serialize_record(self, record: AssessmentRecord) -> dict[str, Any]:
        return self.parse_record(record).to_dict()

    def control_value(self, record: AssessmentRecord | None) -> float:
        return self.control_average(record) / RUBRIC_MAX

    def control_average(self, record: AssessmentRecord | None) -> float:
        if not isinstance(record, RubricAssessment):
            return 0.0
        return record.average

    def is_completed(self, record: AssessmentRecord | None) -> bool:
        return isinstance(record, RubricAssessment) and record.has_any_score


STRATEGIES: dict[str, type[ResponseStrategy]] = {
    QuaternaryStrategy.name: QuaternaryStrategy,
    RubricStrategy.name: RubricStrategy,
}


def get_strategy(name: str) -> ResponseStrategy:
    """
    Get a strategy instance by name.

    Args:
        name: "rubric" or "quaternary".

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown response strategy: {name}. "
            f"Must be one of: {', '.join(sorted(STRATEGIES))}"
        ) from None
