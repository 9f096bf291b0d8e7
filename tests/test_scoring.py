"""
Tests for assessment records, response strategies, and the scoring engine.

Uses Python's unittest module.
Tests hierarchical aggregation, completion, both response strategies, and
division safety.
"""

from __future__ import annotations

import math
import unittest

from csfassess.catalog import FrameworkCatalog, get_catalog
from csfassess.scoring import (
    InvalidAssessmentError,
    OverallMode,
    QuaternaryResponse,
    QuaternaryStrategy,
    RubricAssessment,
    RubricStrategy,
    ScoringEngine,
    get_strategy,
)


def make_catalog(*function_sizes: int) -> FrameworkCatalog:
    """Build a catalog with one category per function and the given control counts."""
    functions = []
    for index, size in enumerate(function_sizes):
        fid = f"F{index + 1}"
        functions.append({
            "id": fid,
            "name": f"Function {index + 1}",
            "categories": [
                {
                    "id": f"{fid}.CA",
                    "name": f"Category {index + 1}",
                    "subcategories": [
                        {"id": f"{fid}.CA-{n:02d}", "name": f"Control {n}"}
                        for n in range(1, size + 1)
                    ],
                }
            ],
        })
    return FrameworkCatalog.from_dict({"id": "test", "name": "Test", "functions": functions})


def rubric(m: int = 0, i: int = 0, e: int = 0, t: int = 0, notes: str = "") -> RubricAssessment:
    return RubricAssessment(maturity=m, implementation=i, evidence=e, testing=t, notes=notes)


class TestRubricAssessment(unittest.TestCase):
    """Tests for the RubricAssessment record."""

    def test_average_and_deviation(self) -> None:
        """Test derived values."""
        record = rubric(3, 1, 2, 2)

        self.assertEqual(record.average, 2.0)
        self.assertEqual(record.max_deviation, 1.0)
        self.assertTrue(record.has_any_score)

    def test_defaults_not_scored(self) -> None:
        """Test that a default record has no score."""
        self.assertFalse(RubricAssessment().has_any_score)

    def test_dimension_out_of_range(self) -> None:
        """Test that dimensions outside 0-3 are rejected."""
        with self.assertRaises(InvalidAssessmentError):
            rubric(4, 0, 0, 0)
        with self.assertRaises(InvalidAssessmentError):
            rubric(0, -1, 0, 0)

    def test_dimension_must_be_numeric(self) -> None:
        """Test that non-numeric dimensions are rejected."""
        with self.assertRaises(InvalidAssessmentError):
            RubricAssessment.from_dict({"maturity": "3"})
        with self.assertRaises(InvalidAssessmentError):
            RubricAssessment.from_dict({"maturity": True})

    def test_dimension_must_be_finite(self) -> None:
        """Test that NaN and infinity are rejected."""
        for value in (float("nan"), float("inf"), float("-inf")):
            with self.assertRaises(InvalidAssessmentError):
                RubricAssessment.from_dict({"maturity": value})

    def test_field_types(self) -> None:
        """Test that metadata fields must have the wire types."""
        for data in (
            {"evidenceLinks": 5},
            {"evidenceLinks": "https://example.com"},
            {"evidenceLinks": ["https://example.com", None]},
            {"assessor": 12},
            {"lastUpdated": {"at": "2024-05-01"}},
        ):
            with self.assertRaises(InvalidAssessmentError):
                RubricAssessment.from_dict(data)

    def test_invalid_error_is_value_error(self) -> None:
        """Test the exception hierarchy."""
        with self.assertRaises(ValueError):
            RubricAssessment.from_dict({"testing": 9})

    def test_wire_format_camel_case(self) -> None:
        """Test the serialized keys."""
        record = RubricAssessment(
            maturity=2,
            implementation=1,
            evidence=3,
            testing=0,
            notes="Policy approved",
            evidence_links=["https://example.com/policy"],
            last_updated="2024-05-01T10:00:00+00:00",
            assessor="a.patel",
        )
        data = record.to_dict()

        self.assertEqual(data["evidenceLinks"], ["https://example.com/policy"])
        self.assertEqual(data["lastUpdated"], "2024-05-01T10:00:00+00:00")
        self.assertEqual(RubricAssessment.from_dict(data), record)

    def test_from_dict_fills_missing_fields(self) -> None:
        """Test that missing keys default to empty values."""
        record = RubricAssessment.from_dict({"maturity": 2})

        self.assertEqual(record.dimensions, (2, 0, 0, 0))
        self.assertEqual(record.notes, "")
        self.assertEqual(record.evidence_links, [])
        self.assertIsNone(record.assessor)

    def test_merged_keeps_other_fields(self) -> None:
        """Test per-field merge."""
        record = rubric(1, 2, 3, 0, notes="Initial review")
        updated = record.merged({"testing": 2, "evidence_links": ["x"]})

        self.assertEqual(updated.dimensions, (1, 2, 3, 2))
        self.assertEqual(updated.notes, "Initial review")
        self.assertEqual(updated.evidence_links, ["x"])
        self.assertEqual(record.testing, 0)

    def test_merged_accepts_wire_names(self) -> None:
        """Test merging with camelCase keys."""
        updated = rubric().merged({"lastUpdated": "2024-01-01T00:00:00+00:00"})
        self.assertEqual(updated.last_updated, "2024-01-01T00:00:00+00:00")

    def test_merged_unknown_field(self) -> None:
        """Test that unknown fields are rejected."""
        with self.assertRaises(InvalidAssessmentError):
            rubric().merged({"colour": "blue"})


class TestStrategies(unittest.TestCase):
    """Tests for response strategies."""

    def test_get_strategy(self) -> None:
        """Test looking up strategies by name."""
        self.assertIsInstance(get_strategy("rubric"), RubricStrategy)
        self.assertIsInstance(get_strategy("quaternary"), QuaternaryStrategy)

    def test_get_strategy_unknown(self) -> None:
        """Test that unknown names raise ValueError."""
        with self.assertRaises(ValueError):
            get_strategy("likert")

    def test_quaternary_values(self) -> None:
        """Test Yes/Partial/No/N/A values and completion."""
        strategy = QuaternaryStrategy()

        self.assertEqual(strategy.control_value(QuaternaryResponse.YES), 1.0)
        self.assertEqual(strategy.control_value(QuaternaryResponse.PARTIAL), 0.5)
        self.assertEqual(strategy.control_value(QuaternaryResponse.NO), 0.0)
        self.assertEqual(strategy.control_value(QuaternaryResponse.NOT_APPLICABLE), 0.0)
        self.assertEqual(strategy.control_value(None), 0.0)

        self.assertTrue(strategy.is_completed(QuaternaryResponse.NO))
        self.assertFalse(strategy.is_completed(QuaternaryResponse.NOT_APPLICABLE))
        self.assertFalse(strategy.is_completed(None))

    def test_quaternary_parse(self) -> None:
        """Test parsing wire responses."""
        strategy = QuaternaryStrategy()

        self.assertEqual(strategy.parse_record("N/A"), QuaternaryResponse.NOT_APPLICABLE)
        self.assertEqual(strategy.serialize_record(QuaternaryResponse.PARTIAL), "Partial")
        with self.assertRaises(InvalidAssessmentError):
            strategy.parse_record("Maybe")
        with self.assertRaises(InvalidAssessmentError):
            strategy.parse_record({"maturity": 1})

    def test_rubric_values(self) -> None:
        """Test rubric value, average, and completion."""
        strategy = RubricStrategy()
        record = rubric(3, 3, 3, 0)

        self.assertAlmostEqual(strategy.control_average(record), 2.25)
        self.assertAlmostEqual(strategy.control_value(record), 0.75)
        self.assertTrue(strategy.is_completed(record))
        self.assertFalse(strategy.is_completed(rubric()))
        self.assertAlmostEqual(strategy.average_scale, 100 / 3)

    def test_rubric_parse_rejects_non_object(self) -> None:
        """Test that a rubric record must be an object."""
        with self.assertRaises(InvalidAssessmentError):
            RubricStrategy().parse_record("Yes")

    def test_parse_map_reports_control_id(self) -> None:
        """Test that map parse errors name the offending control."""
        with self.assertRaises(InvalidAssessmentError) as ctx:
            RubricStrategy().parse_map({"A-01": {"maturity": 1}, "A-02": {"maturity": 7}})
        self.assertIn("A-02", str(ctx.exception))

    def test_serialize_map(self) -> None:
        """Test serializing a whole map."""
        data = QuaternaryStrategy().serialize_map({"A-01": QuaternaryResponse.YES})
        self.assertEqual(data, {"A-01": "Yes"})


class TestScoringEngineRubric(unittest.TestCase):
    """Tests for the scoring engine with the rubric strategy."""

    def setUp(self) -> None:
        """One function, one category, two controls."""
        self.catalog = make_catalog(2)
        self.engine = ScoringEngine(self.catalog, RubricStrategy())

    def test_empty_assessment(self) -> None:
        """Test that an empty map scores zero everywhere."""
        result = self.engine.calculate_function_completion({}, "F1")

        self.assertEqual(result.completion, 0)
        self.assertEqual(result.average_score, 0)

    def test_one_of_two_controls_fully_scored(self) -> None:
        """Test completion 50 and average 100 for one maxed control."""
        assessments = {"F1.CA-01": rubric(3, 3, 3, 3)}
        result = self.engine.calculate_function_completion(assessments, "F1")

        self.assertAlmostEqual(result.completion, 50.0)
        self.assertAlmostEqual(result.average_score, 100.0)
        self.assertEqual(result.completed_controls, 1)
        self.assertEqual(result.total_controls, 2)

    def test_score_aggregates(self) -> None:
        """Test control, category, function, and overall aggregates."""
        assessments = {"F1.CA-01": rubric(3, 3, 3, 3), "F1.CA-02": rubric(0, 0, 0, 0)}

        control = self.engine.calculate_control_score(assessments, "F1.CA-01")
        category = self.engine.calculate_category_score(assessments, "F1", "F1.CA")
        function = self.engine.calculate_function_score(assessments, "F1")
        overall = self.engine.calculate_overall_score(assessments)

        self.assertAlmostEqual(control.score, 1.0)
        self.assertEqual(control.max_score, 1.0)
        self.assertAlmostEqual(category.percentage, 50.0)
        self.assertAlmostEqual(function.score, 1.0)
        self.assertEqual(function.max_score, 2.0)
        self.assertAlmostEqual(overall.percentage, 50.0)

    def test_all_zero_record_not_completed(self) -> None:
        """Test that a record with every dimension at 0 does not count."""
        result = self.engine.calculate_function_completion({"F1.CA-01": rubric()}, "F1")
        self.assertEqual(result.completed_controls, 0)

    def test_unknown_ids_are_ignored(self) -> None:
        """Test that controls outside the catalog do not affect results."""
        assessments = {"ZZ.ZZ-01": rubric(3, 3, 3, 3)}

        self.assertEqual(self.engine.count_completed(assessments), 0)
        self.assertEqual(self.engine.calculate_function_completion(assessments, "ZZ").completion, 0)
        unknown = self.engine.calculate_control_score(assessments, "ZZ.ZZ-01")
        self.assertEqual((unknown.score, unknown.max_score, unknown.percentage), (0, 0, 0))

    def test_raising_dimensions_never_lowers_contribution(self) -> None:
        """Test that scoring more dimensions higher is monotonic."""
        steps = [rubric(1), rubric(1, 1), rubric(2, 1), rubric(2, 2, 1), rubric(3, 3, 3, 3)]
        previous_completion = -1.0
        previous_score = -1.0

        for record in steps:
            result = self.engine.calculate_function_completion({"F1.CA-01": record}, "F1")
            self.assertGreaterEqual(result.completion, previous_completion)
            self.assertGreaterEqual(result.average_score, previous_score)
            previous_completion = result.completion
            previous_score = result.average_score

    def test_calculate_all(self) -> None:
        """Test the full breakdown structure."""
        breakdown = self.engine.calculate_all({"F1.CA-02": rubric(2, 2, 2, 2)})

        self.assertEqual(breakdown.strategy, "rubric")
        self.assertEqual(breakdown.completed_controls, 1)
        self.assertEqual(breakdown.total_controls, 2)
        self.assertAlmostEqual(breakdown.completion_percentage, 50.0)
        self.assertIn("F1.CA", breakdown.by_category["F1"])
        self.assertIn("F1.CA", breakdown.category_completion["F1"])
        self.assertAlmostEqual(breakdown.function_completion["F1"].average_score, 200 / 3)

        data = breakdown.to_dict()
        self.assertEqual(data["completedControls"], 1)
        self.assertIn("F1", data["byFunction"])
        self.assertIn("F1.CA", data["byCategory"]["F1"])


class TestScoringEngineQuaternary(unittest.TestCase):
    """Tests for the scoring engine with the quaternary strategy."""

    def test_na_excluded_from_completed_count(self) -> None:
        """Test Yes, Partial, No, N/A giving three completed controls."""
        catalog = make_catalog(4)
        engine = ScoringEngine(catalog, QuaternaryStrategy())
        assessments = {
            "F1.CA-01": QuaternaryResponse.YES,
            "F1.CA-02": QuaternaryResponse.PARTIAL,
            "F1.CA-03": QuaternaryResponse.NO,
            "F1.CA-04": QuaternaryResponse.NOT_APPLICABLE,
        }

        self.assertEqual(engine.count_completed(assessments), 3)
        self.assertAlmostEqual(engine.completion_percentage(assessments), 75.0)

        result = engine.calculate_function_completion(assessments, "F1")
        self.assertAlmostEqual(result.completion, 75.0)
        self.assertAlmostEqual(result.average_score, 50.0)

        score = engine.calculate_function_score(assessments, "F1")
        self.assertAlmostEqual(score.score, 1.5)
        self.assertAlmostEqual(score.percentage, 37.5)

    def test_percentage_uses_catalog_size(self) -> None:
        """Test that completion is relative to the whole catalog."""
        catalog = make_catalog(6)
        engine = ScoringEngine(catalog, QuaternaryStrategy())
        assessments = {
            "F1.CA-01": QuaternaryResponse.YES,
            "F1.CA-02": QuaternaryResponse.NO,
            "F1.CA-03": QuaternaryResponse.NOT_APPLICABLE,
        }

        self.assertAlmostEqual(engine.completion_percentage(assessments), 2 / 6 * 100)


class TestOverallCompletion(unittest.TestCase):
    """Tests for the overall roll-up modes."""

    def setUp(self) -> None:
        """Two functions of one and three controls."""
        self.catalog = make_catalog(1, 3)
        self.assessments = {"F1.CA-01": rubric(3, 3, 3, 3)}

    def test_function_mean_default(self) -> None:
        """Test that each function counts equally regardless of size."""
        engine = ScoringEngine(self.catalog)
        overall = engine.calculate_overall_completion(self.assessments)

        self.assertEqual(engine.overall_mode, OverallMode.FUNCTION_MEAN)
        self.assertAlmostEqual(overall.completion, 50.0)
        self.assertAlmostEqual(overall.average_score, 50.0)
        self.assertEqual(overall.completed_controls, 1)
        self.assertEqual(overall.total_controls, 4)

    def test_control_weighted(self) -> None:
        """Test pooling all controls."""
        engine = ScoringEngine(self.catalog, overall_mode=OverallMode.CONTROL_WEIGHTED)
        overall = engine.calculate_overall_completion(self.assessments)

        self.assertAlmostEqual(overall.completion, 25.0)
        self.assertAlmostEqual(overall.average_score, 100.0)

    def test_overall_mode_from_string(self) -> None:
        """Test that the mode accepts its configuration value."""
        engine = ScoringEngine(self.catalog, overall_mode="control_weighted")
        self.assertEqual(engine.overall_mode, OverallMode.CONTROL_WEIGHTED)


class TestDivisionSafety(unittest.TestCase):
    """Tests that no aggregate divides by zero."""

    def test_empty_catalog(self) -> None:
        """Test a catalog without functions."""
        catalog = FrameworkCatalog.from_dict({"id": "empty", "name": "Empty", "functions": []})
        for strategy in (RubricStrategy(), QuaternaryStrategy()):
            engine = ScoringEngine(catalog, strategy)
            overall = engine.calculate_overall_completion({})
            breakdown = engine.calculate_all({})

            self.assertEqual((overall.completion, overall.average_score), (0, 0))
            self.assertEqual(breakdown.completion_percentage, 0)
            self.assertEqual(engine.completion_percentage({}), 0)
            self.assertEqual(breakdown.overall_score.percentage, 0)

    def test_function_without_controls(self) -> None:
        """Test a function whose only category is empty."""
        catalog = make_catalog(0, 2)
        engine = ScoringEngine(catalog)
        result = engine.calculate_function_completion({}, "F1")

        self.assertEqual((result.completion, result.average_score), (0, 0))

    def test_full_catalog_unassessed_is_finite(self) -> None:
        """Test the packaged catalog with nothing assessed."""
        for strategy in (RubricStrategy(), QuaternaryStrategy()):
            breakdown = ScoringEngine(get_catalog(), strategy).calculate_all({})
            values = [breakdown.overall_completion.completion, breakdown.overall_completion.average_score]
            values += [r.average_score for r in breakdown.function_completion.values()]
            values += [a.percentage for a in breakdown.by_function.values()]

            self.assertTrue(all(math.isfinite(v) and v == 0 for v in values))


if __name__ == "__main__":
    unittest.main()
