"""
Tests for the analysis modules.

Uses Python's unittest module.
Tests quality metrics, validation issues, control rankings, trend analysis,
benchmark evaluation, and the combined progress summary.
"""

from __future__ import annotations

import unittest
from datetime import UTC, datetime, timedelta

from csfassess.analysis import (
    AttentionPriority,
    BenchmarkConfig,
    BenchmarkEvaluator,
    BenchmarkTarget,
    IssueType,
    PerformanceLevel,
    ProgressAnalyzer,
    QualityAnalyzer,
    QualityConfig,
    Severity,
    TrendAnalyzer,
    TrendDirection,
    ValidationEngine,
    VelocityTrend,
    controls_requiring_attention,
    highest_scoring_controls,
    lowest_scoring_controls,
    progress_by_period,
    summarize_issues,
)
from csfassess.analysis.progress import derive_flags
from csfassess.catalog import get_catalog
from csfassess.scoring import (
    CompletionResult,
    QuaternaryResponse,
    RubricAssessment,
    ScoringEngine,
)
from csfassess.storage.models import Snapshot

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
GOOD_NOTES = "Documented in the security policy wiki"


def rubric(m: int = 0, i: int = 0, e: int = 0, t: int = 0, notes: str = "") -> RubricAssessment:
    return RubricAssessment(maturity=m, implementation=i, evidence=e, testing=t, notes=notes)


def snapshot(days_ago: float, assessed: int, completion: float | None = None, score: float = 50.0) -> Snapshot:
    if completion is None:
        completion = assessed / 106 * 100
    return Snapshot(
        date=NOW - timedelta(days=days_ago),
        completion_rate=completion,
        overall_score=score,
        assessed_controls=assessed,
    )


class TestQualityAnalyzer(unittest.TestCase):
    """Tests for QualityAnalyzer."""

    def setUp(self) -> None:
        """Create analyzer."""
        self.analyzer = QualityAnalyzer()

    def test_empty_assessment(self) -> None:
        """Test that nothing assessed yields zero metrics."""
        metrics = self.analyzer.analyze({})

        self.assertEqual(metrics.overall_quality, 0)
        self.assertEqual(metrics.assessed_controls, 0)

    def test_mixed_records(self) -> None:
        """Test percentages over assessed records only."""
        assessments = {
            "A": rubric(2, 2, 2, 2, notes=GOOD_NOTES),
            "B": rubric(3, 0, 0, 0),
            "C": rubric(),
            "D": QuaternaryResponse.YES,
        }
        metrics = self.analyzer.analyze(assessments)

        self.assertEqual(metrics.assessed_controls, 2)
        self.assertAlmostEqual(metrics.consistency, 50.0)
        self.assertAlmostEqual(metrics.documentation, 50.0)
        self.assertAlmostEqual(metrics.completeness, 50.0)
        self.assertAlmostEqual(metrics.evidence_quality, 50.0)
        self.assertAlmostEqual(metrics.overall_quality, 50.0)

    def test_notes_thresholds_are_separate(self) -> None:
        """Test that 15 characters pass the evidence check but not documentation."""
        record = rubric(2, 2, 2, 2, notes="x" * 15)

        self.assertFalse(self.analyzer.is_documented(record))
        self.assertTrue(self.analyzer.has_good_evidence(record))

    def test_notes_length_ignores_whitespace(self) -> None:
        """Test that padding does not count toward notes length."""
        self.assertTrue(self.analyzer.has_good_evidence(rubric(1, 1, 2, 1, notes="   short note   ")))
        self.assertFalse(self.analyzer.has_good_evidence(rubric(1, 1, 2, 1, notes="  too short  ")))

    def test_evidence_below_two(self) -> None:
        """Test that weak evidence fails the good-evidence check."""
        self.assertFalse(self.analyzer.has_good_evidence(rubric(3, 3, 1, 3, notes=GOOD_NOTES)))

    def test_consistency_boundary(self) -> None:
        """Test that a deviation of exactly 1 is still consistent."""
        self.assertTrue(self.analyzer.is_consistent(rubric(1, 1, 3, 3)))
        self.assertFalse(self.analyzer.is_consistent(rubric(0, 3, 3, 3)))

    def test_custom_config(self) -> None:
        """Test overriding a threshold."""
        analyzer = QualityAnalyzer(QualityConfig(documentation_min_length=5))
        self.assertTrue(analyzer.is_documented(rubric(1, 1, 1, 1, notes="short")))

    def test_to_dict(self) -> None:
        """Test dictionary keys."""
        data = self.analyzer.analyze({"A": rubric(2, 2, 2, 2, notes=GOOD_NOTES)}).to_dict()

        self.assertEqual(data["overallQuality"], 100.0)
        self.assertEqual(data["evidenceQuality"], 100.0)
        self.assertEqual(data["assessedControls"], 1)


class TestValidationEngine(unittest.TestCase):
    """Tests for ValidationEngine."""

    def setUp(self) -> None:
        """Create engine over the packaged catalog."""
        self.engine = ValidationEngine(get_catalog())

    def _types(self, record: RubricAssessment) -> list[IssueType]:
        return [i.type for i in self.engine.validate_control("GV.OC-01", record)]

    def test_unscored_control_has_no_issues(self) -> None:
        """Test that untouched controls are skipped."""
        self.assertEqual(self._types(rubric()), [])
        self.assertEqual(self.engine.validate_control("GV.OC-01", None), [])

    def test_well_documented_control(self) -> None:
        """Test a maxed control with enough notes."""
        self.assertEqual(self._types(rubric(3, 3, 3, 3, notes="Reviewed by audit")), [])

    def test_high_score_without_notes(self) -> None:
        """Test missing evidence documentation."""
        issues = self.engine.validate_control("GV.OC-01", rubric(3, 3, 3, 3))

        self.assertEqual([i.type for i in issues], [IssueType.MISSING_EVIDENCE])
        self.assertEqual(issues[0].severity, Severity.WARNING)

    def test_incomplete(self) -> None:
        """Test a partially scored control."""
        self.assertEqual(self._types(rubric(1, 1, 1, 0)), [IssueType.INCOMPLETE])

    def test_all_issues(self) -> None:
        """Test a control triggering every rule."""
        issues = self.engine.validate_control("GV.OC-01", rubric(3, 0, 0, 0))

        self.assertEqual(
            [i.type for i in issues],
            [IssueType.INCOMPLETE, IssueType.INCONSISTENT, IssueType.MISSING_EVIDENCE],
        )
        self.assertEqual(issues[1].severity, Severity.INFO)

    def test_validate_catalog_order_and_unknown_ids(self) -> None:
        """Test that issues follow catalog order and ignore unknown controls."""
        assessments = {
            "GV.OC-03": rubric(1, 0, 0, 0),
            "GV.OC-01": rubric(2, 0, 0, 0),
            "ZZ.ZZ-01": rubric(1, 0, 0, 0),
        }
        issues = self.engine.validate(assessments)

        self.assertEqual([i.control_id for i in issues], ["GV.OC-01", "GV.OC-03"])

    def test_issue_to_dict(self) -> None:
        """Test the wire dictionary."""
        issue = self.engine.validate_control("GV.OC-02", rubric(1, 0, 0, 0))[0]

        self.assertEqual(issue.to_dict(), {
            "type": "incomplete",
            "controlId": "GV.OC-02",
            "message": "Assessment started but not all dimensions scored",
            "severity": "warning",
        })

    def test_summarize_issues(self) -> None:
        """Test issue counts."""
        issues = self.engine.validate({"GV.OC-01": rubric(3, 0, 0, 0), "GV.OC-02": rubric(1, 0, 0, 0)})
        summary = summarize_issues(issues)

        self.assertEqual(summary["total"], 4)
        self.assertEqual(summary["by_severity"], {"warning": 3, "info": 1})
        self.assertEqual(summary["by_type"]["incomplete"], 2)


class TestRankings(unittest.TestCase):
    """Tests for control rankings."""

    def setUp(self) -> None:
        """Create scored controls."""
        self.catalog = get_catalog()
        self.assessments = {
            "GV.OC-01": rubric(3, 3, 3, 3),
            "GV.OC-02": rubric(1, 1, 1, 1),
            "GV.OC-03": rubric(3, 3, 0, 0),
            "GV.OC-04": rubric(3, 0, 3, 3),
            "GV.OC-05": rubric(),
        }

    def test_highest(self) -> None:
        """Test best controls first."""
        ranked = highest_scoring_controls(self.catalog, self.assessments)
        self.assertEqual(
            [r.control.id for r in ranked],
            ["GV.OC-01", "GV.OC-04", "GV.OC-03", "GV.OC-02"],
        )

    def test_highest_limit(self) -> None:
        """Test the limit."""
        ranked = highest_scoring_controls(self.catalog, self.assessments, limit=2)
        self.assertEqual([r.control.id for r in ranked], ["GV.OC-01", "GV.OC-04"])

    def test_lowest(self) -> None:
        """Test worst scored controls first, unscored excluded."""
        ranked = lowest_scoring_controls(self.catalog, self.assessments)
        self.assertEqual(
            [r.control.id for r in ranked],
            ["GV.OC-02", "GV.OC-03", "GV.OC-04", "GV.OC-01"],
        )

    def test_requiring_attention(self) -> None:
        """Test low average or high deviation."""
        ranked = controls_requiring_attention(self.catalog, self.assessments)
        self.assertEqual(
            [r.control.id for r in ranked],
            ["GV.OC-05", "GV.OC-02", "GV.OC-04"],
        )

    def test_to_dict(self) -> None:
        """Test the ranked control dictionary."""
        data = highest_scoring_controls(self.catalog, self.assessments, limit=1)[0].to_dict()

        self.assertEqual(data["id"], "GV.OC-01")
        self.assertEqual(data["score"], 3.0)
        self.assertEqual(data["variance"], 0.0)
        self.assertEqual(data["assessment"]["maturity"], 3)


class TestTrendAnalyzer(unittest.TestCase):
    """Tests for TrendAnalyzer."""

    def setUp(self) -> None:
        """Create analyzer."""
        self.analyzer = TrendAnalyzer()

    def test_single_snapshot_insufficient(self) -> None:
        """Test the trend floor."""
        result = self.analyzer.analyze([snapshot(0, 10)], total_controls=106, assessed_controls=10)

        self.assertEqual(result.trend_analysis, VelocityTrend.INSUFFICIENT_DATA)
        self.assertIsNone(result.projected_completion)
        self.assertEqual(result.velocity, 0)

    def test_no_snapshots(self) -> None:
        """Test an empty history."""
        result = self.analyzer.analyze([], total_controls=106, assessed_controls=0)
        self.assertEqual(result.trend_analysis, VelocityTrend.INSUFFICIENT_DATA)

    def test_accelerating(self) -> None:
        """Test seven controls in one week."""
        result = self.analyzer.analyze(
            [snapshot(7, 10), snapshot(0, 17)],
            total_controls=106,
            assessed_controls=17,
            now=NOW,
        )

        self.assertAlmostEqual(result.velocity, 7.0)
        self.assertEqual(result.trend_analysis, VelocityTrend.ACCELERATING)
        self.assertEqual(result.overall_trend, TrendDirection.IMPROVING)
        self.assertEqual(result.projected_completion, NOW + timedelta(weeks=89 / 7))

    def test_order_independent(self) -> None:
        """Test that snapshots are sorted by date."""
        result = self.analyzer.analyze(
            [snapshot(0, 17), snapshot(30, 2), snapshot(7, 10)],
            total_controls=106,
            assessed_controls=17,
        )
        self.assertAlmostEqual(result.velocity, 7.0)

    def test_velocity_over_two_weeks(self) -> None:
        """Test real-valued week differences."""
        result = self.analyzer.analyze(
            [snapshot(14, 10), snapshot(0, 24)],
            total_controls=106,
            assessed_controls=24,
        )
        self.assertAlmostEqual(result.velocity, 7.0)

    def test_velocity_classification(self) -> None:
        """Test each velocity band."""
        cases = [
            (5, VelocityTrend.STEADY_PROGRESS),
            (3, VelocityTrend.STEADY_PROGRESS),
            (2, VelocityTrend.SLOW_PROGRESS),
            (1, VelocityTrend.SLOW_PROGRESS),
            (0, VelocityTrend.STALLED),
            (-5, VelocityTrend.REGRESSING),
        ]
        for delta, expected in cases:
            with self.subTest(delta=delta):
                result = self.analyzer.analyze(
                    [snapshot(7, 20), snapshot(0, 20 + delta)],
                    total_controls=106,
                    assessed_controls=20 + delta,
                )
                self.assertEqual(result.trend_analysis, expected)

    def test_declining_and_stable(self) -> None:
        """Test trend direction thresholds."""
        declining = self.analyzer.analyze(
            [snapshot(7, 20, completion=40.0), snapshot(0, 15, completion=35.0)],
            total_controls=106,
            assessed_controls=15,
        )
        stable = self.analyzer.analyze(
            [snapshot(7, 20, completion=40.0), snapshot(0, 21, completion=42.0)],
            total_controls=106,
            assessed_controls=21,
        )

        self.assertEqual(declining.overall_trend, TrendDirection.DECLINING)
        self.assertIsNone(declining.projected_completion)
        self.assertEqual(stable.overall_trend, TrendDirection.STABLE)

    def test_same_timestamp_velocity_zero(self) -> None:
        """Test that zero elapsed time does not divide by zero."""
        result = self.analyzer.analyze(
            [snapshot(0, 10), snapshot(0, 20)],
            total_controls=106,
            assessed_controls=20,
        )

        self.assertEqual(result.velocity, 0)
        self.assertEqual(result.trend_analysis, VelocityTrend.STALLED)
        self.assertIsNone(result.projected_completion)

    def test_complete_has_no_projection(self) -> None:
        """Test that a finished assessment is not projected."""
        result = self.analyzer.analyze(
            [snapshot(7, 100, completion=95.0), snapshot(0, 106, completion=100.0)],
            total_controls=106,
            assessed_controls=106,
        )
        self.assertIsNone(result.projected_completion)

    def test_score_trend(self) -> None:
        """Test the score delta."""
        result = self.analyzer.analyze(
            [snapshot(7, 10, score=40.0), snapshot(0, 12, score=55.5)],
            total_controls=106,
            assessed_controls=12,
        )
        self.assertAlmostEqual(result.score_trend, 15.5)

    def test_to_dict(self) -> None:
        """Test dictionary keys."""
        data = self.analyzer.analyze(
            [snapshot(7, 10), snapshot(0, 17)],
            total_controls=106,
            assessed_controls=17,
            now=NOW,
        ).to_dict()

        self.assertEqual(data["trendAnalysis"], "accelerating")
        self.assertEqual(data["overallTrend"], "improving")
        self.assertEqual(data["velocity"], 7.0)
        self.assertTrue(data["projectedCompletion"].startswith("2024-0"))


class TestProgressByPeriod(unittest.TestCase):
    """Tests for progress_by_period."""

    def setUp(self) -> None:
        """Create a history."""
        self.snapshots = [snapshot(100, 1), snapshot(60, 2), snapshot(20, 3), snapshot(3, 4)]

    def test_periods(self) -> None:
        """Test week, month, and quarter windows."""
        self.assertEqual(len(progress_by_period(self.snapshots, "week", now=NOW)), 1)
        self.assertEqual(len(progress_by_period(self.snapshots, "month", now=NOW)), 2)
        self.assertEqual(len(progress_by_period(self.snapshots, "quarter", now=NOW)), 3)

    def test_oldest_first(self) -> None:
        """Test result ordering."""
        result = progress_by_period(list(reversed(self.snapshots)), "quarter", now=NOW)
        self.assertEqual([s.assessed_controls for s in result], [2, 3, 4])

    def test_unknown_period_defaults_to_week(self) -> None:
        """Test the fallback period."""
        self.assertEqual(len(progress_by_period(self.snapshots, "decade", now=NOW)), 1)

    def test_empty(self) -> None:
        """Test an empty history."""
        self.assertEqual(progress_by_period([], "month"), [])


class TestBenchmarkEvaluator(unittest.TestCase):
    """Tests for benchmark evaluation."""

    def setUp(self) -> None:
        """Create evaluator over the packaged catalog."""
        self.evaluator = BenchmarkEvaluator(get_catalog())

    def test_target_classification(self) -> None:
        """Test threshold boundaries."""
        target = BenchmarkTarget(good=70, excellent=90)

        self.assertEqual(target.classify(90), PerformanceLevel.EXCELLENT)
        self.assertEqual(target.classify(70), PerformanceLevel.GOOD)
        self.assertEqual(target.classify(69.9), PerformanceLevel.NEEDS_IMPROVEMENT)

    def test_evaluate(self) -> None:
        """Test classifying all metrics."""
        result = self.evaluator.evaluate(
            completion_rate=95.0,
            overall_score=70.0,
            quality=40.0,
            velocity=7.0,
        )

        self.assertEqual(result.performance_level["completionRate"], PerformanceLevel.EXCELLENT)
        self.assertEqual(result.performance_level["overallScore"], PerformanceLevel.GOOD)
        self.assertEqual(result.performance_level["quality"], PerformanceLevel.NEEDS_IMPROVEMENT)
        self.assertEqual(result.performance_level["velocity"], PerformanceLevel.EXCELLENT)

        data = result.to_dict()
        self.assertEqual(data["targets"]["velocity"], {"good": 3, "excellent": 7})
        self.assertEqual(data["performanceLevel"]["quality"], "needs_improvement")

    def test_overrides(self) -> None:
        """Test replacing some thresholds."""
        config = BenchmarkConfig.from_overrides({"velocity": {"good": 5}})

        self.assertEqual(config.targets["velocity"].good, 5)
        self.assertEqual(config.targets["velocity"].excellent, 7)
        self.assertEqual(config.targets["quality"].good, 70)

    def test_invalid_overrides(self) -> None:
        """Test rejected overrides."""
        with self.assertRaises(ValueError):
            BenchmarkConfig.from_overrides({"speed": {"good": 1}})
        with self.assertRaises(ValueError):
            BenchmarkConfig.from_overrides({"velocity": 5})
        with self.assertRaises(ValueError):
            BenchmarkConfig.from_overrides({"quality": {"good": 95}})

    def test_top_performers(self) -> None:
        """Test functions ranked by average score, ties in order."""
        completions = {
            "GV": CompletionResult(50.0, 40.0),
            "ID": CompletionResult(50.0, 80.0),
            "PR": CompletionResult(50.0, 60.0),
            "DE": CompletionResult(50.0, 80.0),
        }
        performers = self.evaluator.get_top_performers(completions)

        self.assertEqual([p.id for p in performers], ["ID", "DE", "PR"])
        self.assertEqual(performers[0].name, "Identify")
        self.assertEqual(performers[0].to_dict()["type"], "function")

    def test_areas_needing_attention(self) -> None:
        """Test low completion and low quality areas."""
        completions = {
            "PR": CompletionResult(90.0, 40.0),
            "GV": CompletionResult(20.0, 90.0),
            "ID": CompletionResult(0.0, 0.0),
            "DE": CompletionResult(30.0, 10.0),
            "RS": CompletionResult(100.0, 75.0),
        }
        areas = self.evaluator.get_areas_needing_attention(completions)

        self.assertEqual([(a.function_id, a.type) for a in areas], [
            ("GV", "low_completion"),
            ("PR", "low_quality"),
        ])
        self.assertEqual(areas[0].priority, AttentionPriority.HIGH)
        self.assertEqual(areas[0].area, "GV (Govern)")
        self.assertEqual(areas[1].priority, AttentionPriority.MEDIUM)
        self.assertEqual(areas[1].to_dict()["score"], 40.0)
        self.assertNotIn("score", areas[0].to_dict())


class TestProgressAnalyzer(unittest.TestCase):
    """Tests for the combined progress summary."""

    def setUp(self) -> None:
        """Create analyzer over the packaged catalog."""
        self.analyzer = ProgressAnalyzer(ScoringEngine(get_catalog()))
        self.assessments = {
            "GV.OC-01": rubric(2, 2, 2, 2, notes=GOOD_NOTES),
            "GV.OC-02": rubric(3, 3, 3, 3, notes=GOOD_NOTES),
        }

    def test_on_track_with_history(self) -> None:
        """Test flags for a progressing, well documented assessment."""
        progress = self.analyzer.analyze(
            self.assessments,
            [snapshot(7, 0), snapshot(0, 2)],
            now=NOW,
        )

        self.assertTrue(progress.flags.is_on_track)
        self.assertFalse(progress.flags.needs_attention)
        self.assertTrue(progress.flags.is_high_quality)
        self.assertFalse(progress.flags.is_near_completion)
        self.assertIsNotNone(progress.estimated_completion_date)
        self.assertEqual(progress.benchmarks.current["velocity"], progress.trends.velocity)

    def test_without_history(self) -> None:
        """Test that zero velocity needs attention."""
        progress = self.analyzer.analyze(self.assessments)

        self.assertFalse(progress.flags.is_on_track)
        self.assertTrue(progress.flags.needs_attention)
        self.assertEqual(progress.trends.trend_analysis, VelocityTrend.INSUFFICIENT_DATA)

    def test_attention_areas_from_breakdown(self) -> None:
        """Test that a barely started function is flagged."""
        progress = self.analyzer.analyze(self.assessments)

        self.assertEqual([a.function_id for a in progress.attention_areas], ["GV"])
        self.assertEqual(progress.top_performers[0].id, "GV")

    def test_to_dict(self) -> None:
        """Test the summary dictionary keys."""
        data = self.analyzer.analyze(self.assessments).to_dict()

        self.assertEqual(
            set(data),
            {"progress", "trends", "quality", "benchmarks", "topPerformers", "attentionAreas", "flags"},
        )
        self.assertIn("isOnTrack", data["flags"])

    def test_near_completion_flag(self) -> None:
        """Test derive_flags on a nearly complete assessment."""
        catalog = get_catalog()
        engine = ScoringEngine(catalog)
        assessments = {cid: rubric(1, 1, 1, 1) for cid in catalog.control_ids}
        breakdown = engine.calculate_all(assessments)
        trends = TrendAnalyzer().analyze([], catalog.total_controls, catalog.total_controls)
        quality = QualityAnalyzer().analyze(assessments)

        flags = derive_flags(breakdown, trends, quality)

        self.assertTrue(flags.is_near_completion)
        self.assertTrue(flags.needs_attention)
        self.assertFalse(flags.is_high_quality)


if __name__ == "__main__":
    unittest.main()
