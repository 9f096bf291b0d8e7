"""
Stateful assessment management.

The AssessmentManager ties a framework catalog, a response strategy, and
an AssessmentStore together and keeps the in-memory assessment map for
one framework instance.
"""

from csfassess.assessment.manager import (
    LOAD_ERROR_MESSAGE,
    RESET_ERROR_MESSAGE,
    SAVE_ERROR_MESSAGE,
    AssessmentManager,
    ImportResult,
)

__all__ = [
    "AssessmentManager",
    "ImportResult",
    "LOAD_ERROR_MESSAGE",
    "SAVE_ERROR_MESSAGE",
    "RESET_ERROR_MESSAGE",
]
