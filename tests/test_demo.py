"""
Tests for the demo data generator.

Uses Python's unittest module.
"""

from __future__ import annotations

import unittest
from datetime import UTC, datetime

from csfassess.assessment import AssessmentManager
from csfassess.catalog import get_catalog
from csfassess.demo.generator import (
    COVERAGE,
    ORG_NAMES,
    DemoConfig,
    DemoGenerator,
    DemoProfile,
    generate_demo_data,
)
from csfassess.scoring import QuaternaryResponse, QuaternaryStrategy, RubricAssessment, RubricStrategy
from csfassess.storage import AssessmentStore, MemoryKeyValueStore

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def make_generator(profile: DemoProfile, seed: int = 42, quaternary: bool = False) -> DemoGenerator:
    strategy = QuaternaryStrategy() if quaternary else RubricStrategy()
    return DemoGenerator(
        get_catalog(),
        strategy,
        DemoConfig(profile=profile, organization=ORG_NAMES[profile], seed=seed),
    )


class TestDemoGenerator(unittest.TestCase):
    """Tests for DemoGenerator."""

    def test_deterministic_with_seed(self) -> None:
        """Test that the same seed produces the same data."""
        first = make_generator(DemoProfile.GROWING).generate_assessments(now=NOW)
        second = make_generator(DemoProfile.GROWING).generate_assessments(now=NOW)

        self.assertEqual(first, second)

    def test_different_seeds_differ(self) -> None:
        """Test that different seeds produce different data."""
        first = make_generator(DemoProfile.GROWING, seed=1).generate_assessments(now=NOW)
        second = make_generator(DemoProfile.GROWING, seed=2).generate_assessments(now=NOW)

        self.assertNotEqual(first, second)

    def test_rubric_records_are_valid(self) -> None:
        """Test generated rubric records."""
        assessments = make_generator(DemoProfile.MATURE).generate_assessments(now=NOW)
        catalog = get_catalog()

        self.assertTrue(assessments)
        for control_id, record in assessments.items():
            self.assertIn(control_id, catalog)
            self.assertIsInstance(record, RubricAssessment)
            self.assertTrue(record.has_any_score)
            self.assertTrue(all(0 <= d <= 3 for d in record.dimensions))
            self.assertIsNotNone(record.last_updated)

    def test_profiles_scale_coverage(self) -> None:
        """Test that mature profiles assess more controls than startups."""
        startup = make_generator(DemoProfile.STARTUP).generate_assessments(now=NOW)
        mature = make_generator(DemoProfile.MATURE).generate_assessments(now=NOW)

        self.assertLess(len(startup), len(mature))
        self.assertLess(COVERAGE[DemoProfile.STARTUP], COVERAGE[DemoProfile.MATURE])

    def test_quaternary_responses(self) -> None:
        """Test generation under the quaternary strategy."""
        assessments = make_generator(DemoProfile.GROWING, quaternary=True).generate_assessments(now=NOW)

        self.assertTrue(assessments)
        for record in assessments.values():
            self.assertIsInstance(record, QuaternaryResponse)

    def test_snapshots(self) -> None:
        """Test the generated weekly history."""
        generator = make_generator(DemoProfile.GROWING)
        assessments = generator.generate_assessments(now=NOW)
        snapshots = generator.generate_snapshots(assessments, now=NOW)

        self.assertEqual(len(snapshots), 9)
        self.assertEqual(snapshots[-1].date, NOW)
        self.assertEqual(snapshots[-1].assessed_controls, len(assessments))
        self.assertEqual(snapshots[0].assessed_controls, 0)
        dates = [s.date for s in snapshots]
        self.assertEqual(dates, sorted(dates))


class TestGenerateDemoData(unittest.TestCase):
    """Tests for generate_demo_data function."""

    def setUp(self) -> None:
        """Create manager on a memory store."""
        catalog = get_catalog()
        self.manager = AssessmentManager(
            catalog, AssessmentStore(MemoryKeyValueStore(), catalog.id)
        )

    def test_summary(self) -> None:
        """Test that the summary describes the generated data."""
        summary = generate_demo_data(self.manager, profile="startup", weeks=4, seed=7, now=NOW)

        self.assertEqual(summary["profile"], "startup")
        self.assertEqual(summary["organization"], "TechStart Inc.")
        self.assertEqual(summary["strategy"], "rubric")
        self.assertEqual(summary["total_controls"], 106)
        self.assertEqual(summary["snapshots"], 5)
        self.assertEqual(summary["assessed_controls"], len(self.manager.assessments))
        self.assertGreater(summary["completion"], 0)

    def test_replaces_existing_assessment(self) -> None:
        """Test that the current assessment is reset first."""
        self.manager.update_control("GV.OC-01", maturity=3, notes="Existing record to replace")

        generate_demo_data(self.manager, profile=DemoProfile.MATURE, seed=3, now=NOW)

        record = self.manager.get("GV.OC-01")
        self.assertNotEqual(record.notes if record else "", "Existing record to replace")
        self.assertEqual(len(self.manager.snapshots()), 9)

    def test_custom_organization(self) -> None:
        """Test overriding the organization name."""
        summary = generate_demo_data(self.manager, organization="Acme Corp", seed=1, now=NOW)

        self.assertEqual(summary["organization"], "Acme Corp")

    def test_invalid_profile(self) -> None:
        """Test that unknown profiles are rejected."""
        with self.assertRaises(ValueError):
            generate_demo_data(self.manager, profile="enormous")


if __name__ == "__main__":
    unittest.main()
