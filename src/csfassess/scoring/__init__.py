"""
Assessment records, response strategies, and the scoring engine.

Two response strategies share one aggregation algorithm:

    - RubricStrategy: maturity, implementation, evidence, testing (0-3 each)
    - QuaternaryStrategy: Yes / Partial / No / N/A

The ScoringEngine rolls control values up through categories and
functions to an overall score and completion percentage. Every
calculation guards division by zero and returns 0 instead.
"""

from csfassess.scoring.engine import OverallMode, ScoringEngine
from csfassess.scoring.models import (
    RUBRIC_DIMENSIONS,
    RUBRIC_MAX,
    AssessmentError,
    AssessmentMap,
    AssessmentRecord,
    CompletionResult,
    InvalidAssessmentError,
    QuaternaryResponse,
    RubricAssessment,
    ScoreAggregate,
    ScoringBreakdown,
    UnknownControlError,
)
from csfassess.scoring.strategies import (
    QUATERNARY_VALUES,
    QuaternaryStrategy,
    ResponseStrategy,
    RubricStrategy,
    get_strategy,
)

__all__ = [
    # Engine
    "ScoringEngine",
    "OverallMode",
    # Records
    "RubricAssessment",
    "QuaternaryResponse",
    "AssessmentRecord",
    "AssessmentMap",
    "RUBRIC_DIMENSIONS",
    "RUBRIC_MAX",
    # Results
    "ScoreAggregate",
    "CompletionResult",
    "ScoringBreakdown",
    # Strategies
    "ResponseStrategy",
    "RubricStrategy",
    "QuaternaryStrategy",
    "QUATERNARY_VALUES",
    "get_strategy",
    # Errors
    "AssessmentError",
    "InvalidAssessmentError",
    "UnknownControlError",
]
