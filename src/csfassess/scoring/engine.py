"""
Hierarchical scoring engine.

Turns an assessment map into scores and completion percentages for every
level of the catalog. All calculations are pure functions of the catalog,
the active response strategy, and the assessment map passed in.

Scoring Algorithm:
    1. Category score is the sum of control values in the category, with a
       maximum of one point per control.
    2. Function score sums its category scores and maxima.
    3. Function completion is the share of completed controls. The average
       score is the mean control average among completed controls, scaled
       to 0-100 by the strategy.
    4. Overall completion is the unweighted mean of function completions
       and averages (FUNCTION_MEAN). CONTROL_WEIGHTED pools all controls
       instead. The unweighted mean gives a small function the same pull
       as a large one, which is the observed behavior and stays the default.

Any ratio with a zero denominator is 0.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from csfassess.catalog.framework import ControlRef, FrameworkCatalog
from csfassess.scoring.models import (
    AssessmentRecord,
    CompletionResult,
    ScoreAggregate,
    ScoringBreakdown,
)
from csfassess.scoring.strategies import ResponseStrategy, RubricStrategy

logger = logging.getLogger(__name__)


class OverallMode(str, Enum):
    """How function results roll up into the overall completion."""

    FUNCTION_MEAN = "function_mean"
    CONTROL_WEIGHTED = "control_weighted"


class ScoringEngine:
    """
    Calculator for completion and scores over a framework catalog.

    Example:
        engine = ScoringEngine(get_catalog(), RubricStrategy())

        govern = engine.calculate_function_completion(assessments, "GV")
        overall = engine.calculate_overall_completion(assessments)
        breakdown = engine.calculate_all(assessments)

    Attributes:
        catalog: Framework catalog being scored.
        strategy: Response strategy valuing each control.
        overall_mode: Roll-up used for overall completion.
    """

    def __init__(
        self,
        catalog: FrameworkCatalog,
        strategy: ResponseStrategy | None = None,
        overall_mode: OverallMode = OverallMode.FUNCTION_MEAN,
    ) -> None:
        self.catalog = catalog
        self.strategy = strategy or RubricStrategy()
        self.overall_mode = OverallMode(overall_mode)

    # -------------------------------------------------------------------------
    # Score aggregates
    # -------------------------------------------------------------------------

    def calculate_control_score(
        self,
        assessments: dict[str, AssessmentRecord],
        control_id: str,
    ) -> ScoreAggregate:
        """Score aggregate for one control. Unknown ids score 0/0."""
        if control_id not in self.catalog:
            return ScoreAggregate.from_totals(0.0, 0.0)
        value = self.strategy.control_value(assessments.get(control_id))
        return ScoreAggregate.from_totals(value, self.strategy.max_value)

    def calculate_category_score(
        self,
        assessments: dict[str, AssessmentRecord],
        function_id: str,
        category_id: str,
    ) -> ScoreAggregate:
        """Score aggregate for one category."""
        controls = self.catalog.subcategories_of_category(function_id, category_id)
        return self._aggregate(assessments, controls)

    def calculate_function_score(
        self,
        assessments: dict[str, AssessmentRecord],
        function_id: str,
    ) -> ScoreAggregate:
        """Score aggregate for one function (sum over its categories)."""
        function = self.catalog.get_function(function_id)
        if function is None:
            return ScoreAggregate.from_totals(0.0, 0.0)

        score = 0.0
        max_score = 0.0
        for category in function.categories:
            agg = self.calculate_category_score(assessments, function_id, category.id)
            score += agg.score
            max_score += agg.max_score
        return ScoreAggregate.from_totals(score, max_score)

    def calculate_overall_score(
        self,
        assessments: dict[str, AssessmentRecord],
    ) -> ScoreAggregate:
        """Score aggregate over the whole catalog (sum over functions)."""
        score = 0.0
        max_score = 0.0
        for function in self.catalog.functions:
            agg = self.calculate_function_score(assessments, function.id)
            score += agg.score
            max_score += agg.max_score
        return ScoreAggregate.from_totals(score, max_score)

    def _aggregate(
        self,
        assessments: dict[str, AssessmentRecord],
        controls: list[ControlRef],
    ) -> ScoreAggregate:
        score = sum(self.strategy.control_value(assessments.get(c.id)) for c in controls)
        return ScoreAggregate.from_totals(score, len(controls) * self.strategy.max_value)

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def calculate_category_completion(
        self,
        assessments: dict[str, AssessmentRecord],
        function_id: str,
        category_id: str,
    ) -> CompletionResult:
        """Completion and average score for one category."""
        controls = self.catalog.subcategories_of_category(function_id, category_id)
        return self._completion(assessments, controls)

    def calculate_function_completion(
        self,
        assessments: dict[str, AssessmentRecord],
        function_id: str,
    ) -> CompletionResult:
        """
        Completion and average score for one function.

        Args:
            assessments: Assessment map.
            function_id: Function identifier.

        Returns:
            CompletionResult; zeros for unknown or empty functions.
        """
        controls = self.catalog.subcategories_of_function(function_id)
        return self._completion(assessments, controls)

    def calculate_overall_completion(
        self,
        assessments: dict[str, AssessmentRecord],
    ) -> CompletionResult:
        """
        Overall completion and average score.

        With FUNCTION_MEAN this is the plain mean of each function's
        completion and average score, regardless of function size.
        """
        if self.overall_mode == OverallMode.CONTROL_WEIGHTED:
            return self._completion(assessments, self.catalog.all_subcategories())

        results = [
            self.calculate_function_completion(assessments, f.id)
            for f in self.catalog.functions
        ]
        completed = sum(r.completed_controls for r in results)
        total = sum(r.total_controls for r in results)
        if not results:
            return CompletionResult(0.0, 0.0, completed, total)

        return CompletionResult(
            completion=sum(r.completion for r in results) / len(results),
            average_score=sum(r.average_score for r in results) / len(results),
            completed_controls=completed,
            total_controls=total,
        )

    def _completion(
        self,
        assessments: dict[str, AssessmentRecord],
        controls: list[ControlRef],
    ) -> CompletionResult:
        if not controls:
            return CompletionResult(0.0, 0.0, 0, 0)

        completed = 0
        total_average = 0.0
        for control in controls:
            record = assessments.get(control.id)
            if self.strategy.is_completed(record):
                completed += 1
                total_average += self.strategy.control_average(record)

        average_score = (
            (total_average / completed) * self.strategy.average_scale
            if completed > 0
            else 0.0
        )
        return CompletionResult(
            completion=(completed / len(controls)) * 100,
            average_score=average_score,
            completed_controls=completed,
            total_controls=len(controls),
        )

    # -------------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------------

    def count_completed(self, assessments: dict[str, AssessmentRecord]) -> int:
        """Number of catalog controls that count as completed."""
        return sum(
            1
            for control_id in self.catalog.control_ids
            if self.strategy.is_completed(assessments.get(control_id))
        )

    def completion_percentage(self, assessments: dict[str, AssessmentRecord]) -> float:
        """Completed controls as a percentage of the whole catalog."""
        total = self.catalog.total_controls
        if total == 0:
            return 0.0
        return (self.count_completed(assessments) / total) * 100

    # -------------------------------------------------------------------------
    # Full breakdown
    # -------------------------------------------------------------------------

    def calculate_all(self, assessments: dict[str, AssessmentRecord]) -> ScoringBreakdown:
        """
        Calculate every level of scores and completion.

        Args:
            assessments: Assessment map.

        Returns:
            ScoringBreakdown with all results.
        """
        by_function: dict[str, ScoreAggregate] = {}
        by_category: dict[str, dict[str, ScoreAggregate]] = {}
        function_completion: dict[str, CompletionResult] = {}
        category_completion: dict[str, dict[str, CompletionResult]] = {}

        for function in self.catalog.functions:
            by_function[function.id] = self.calculate_function_score(
                assessments, function.id
            )
            function_completion[function.id] = self.calculate_function_completion(
                assessments, function.id
            )
            by_category[function.id] = {}
            category_completion[function.id] = {}
            for category in function.categories:
                by_category[function.id][category.id] = self.calculate_category_score(
                    assessments, function.id, category.id
                )
                category_completion[function.id][category.id] = (
                    self.calculate_category_completion(
                        assessments, function.id, category.id
                    )
                )

        completed = self.count_completed(assessments)
        total = self.catalog.total_controls
        breakdown = ScoringBreakdown(
            timestamp=datetime.now(UTC),
            strategy=self.strategy.name,
            overall_score=self.calculate_overall_score(assessments),
            overall_completion=self.calculate_overall_completion(assessments),
            by_function=by_function,
            by_category=by_category,
            function_completion=function_completion,
            category_completion=category_completion,
            completed_controls=completed,
            total_controls=total,
            completion_percentage=(completed / total) * 100 if total else 0.0,
        )

        logger.debug(
            "Scored %d/%d controls (%s strategy): completion %.1f%%, score %.1f",
            completed,
            total,
            self.strategy.name,
            breakdown.overall_completion.completion,
            breakdown.overall_completion.average_score,
        )
        return breakdown
