"""
Demo data generator for csfassess.

Generates realistic sample assessments and a weekly snapshot history for
demonstrations and evaluation without a real assessment.

Profiles:
    - startup: Small company, few controls assessed, low scores
    - growing: Mid-size company, most controls assessed, moderate scores
    - mature: Large company, nearly everything assessed, strong scores

Generation is deterministic for a given seed.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from csfassess.catalog.framework import FrameworkCatalog, get_catalog
from csfassess.scoring.engine import ScoringEngine
from csfassess.scoring.models import (
    RUBRIC_MAX,
    AssessmentRecord,
    QuaternaryResponse,
    RubricAssessment,
)
from csfassess.scoring.strategies import ResponseStrategy, get_strategy
from csfassess.storage.models import Snapshot

if TYPE_CHECKING:
    from csfassess.assessment.manager import AssessmentManager

logger = logging.getLogger(__name__)


class DemoProfile(Enum):
    """Demo organization profiles with different assessment progress."""

    STARTUP = "startup"  # Few controls assessed, low scores
    GROWING = "growing"  # Most controls assessed, moderate scores
    MATURE = "mature"  # Nearly complete, high scores


# Share of catalog controls assessed per profile
COVERAGE = {
    DemoProfile.STARTUP: 0.35,
    DemoProfile.GROWING: 0.70,
    DemoProfile.MATURE: 0.95,
}

# Rubric base level distributions by profile
# Format: [level_1_weight, level_2_weight, level_3_weight]
LEVEL_DISTRIBUTIONS = {
    DemoProfile.STARTUP: [0.55, 0.35, 0.10],
    DemoProfile.GROWING: [0.20, 0.50, 0.30],
    DemoProfile.MATURE: [0.05, 0.30, 0.65],
}

# Quaternary response distributions by profile
# Format: [yes_weight, partial_weight, no_weight, na_weight]
RESPONSE_DISTRIBUTIONS = {
    DemoProfile.STARTUP: [0.15, 0.35, 0.40, 0.10],
    DemoProfile.GROWING: [0.40, 0.35, 0.15, 0.10],
    DemoProfile.MATURE: [0.70, 0.20, 0.03, 0.07],
}

# Probability that an assessed control has documented notes
NOTES_PROBABILITY = {
    DemoProfile.STARTUP: 0.30,
    DemoProfile.GROWING: 0.65,
    DemoProfile.MATURE: 0.90,
}

ORG_NAMES = {
    DemoProfile.STARTUP: "TechStart Inc.",
    DemoProfile.GROWING: "GrowthCo Solutions",
    DemoProfile.MATURE: "Enterprise Global Corp",
}

ASSESSORS = ["j.smith", "a.patel", "m.garcia", "l.chen"]

NOTE_TEMPLATES = [
    "Policy documented and approved by leadership.",
    "Process in place, reviewed during last internal audit.",
    "Partially implemented; rollout pending for remaining teams.",
    "Tooling deployed, evidence exported from the admin console.",
    "Tested during the annual tabletop exercise.",
    "Ad hoc.",
    "Owner assigned, procedure drafted.",
]

EVIDENCE_LINKS = [
    "https://wiki.example.com/security/policies",
    "https://drive.example.com/audit/2024-report.pdf",
    "https://tickets.example.com/SEC-142",
]


@dataclass
class DemoConfig:
    """Configuration for demo data generation."""

    profile: DemoProfile
    organization: str
    weeks_of_history: int = 8
    seed: int | None = None


class DemoGenerator:
    """
    Generates demo assessments and snapshot history.

    Example:
        generator = DemoGenerator(
            get_catalog(),
            get_strategy("rubric"),
            DemoConfig(DemoProfile.GROWING, "GrowthCo Solutions", seed=7),
        )
        assessments = generator.generate_assessments()
        snapshots = generator.generate_snapshots(assessments)
    """

    def __init__(
        self,
        catalog: FrameworkCatalog | None = None,
        strategy: ResponseStrategy | None = None,
        config: DemoConfig | None = None,
    ) -> None:
        self.catalog = catalog or get_catalog()
        self.strategy = strategy or get_strategy("rubric")
        self.config = config or DemoConfig(
            profile=DemoProfile.GROWING,
            organization=ORG_NAMES[DemoProfile.GROWING],
        )
        self.rng = random.Random(self.config.seed)

    def generate_assessments(self, now: datetime | None = None) -> dict[str, AssessmentRecord]:
        """
        Generate an assessment map for the profile.

        Args:
            now: Reference time for lastUpdated stamps, defaults to now.

        Returns:
            Assessment map covering the profile's share of controls.
        """
        now = now or datetime.now(UTC)
        profile = self.config.profile
        assessments: dict[str, AssessmentRecord] = {}

        for control in self.catalog.all_subcategories():
            if self.rng.random() >= COVERAGE[profile]:
                continue
            if self.strategy.name == "quaternary":
                assessments[control.id] = self._random_response()
            else:
                updated = now - timedelta(days=self.rng.randint(0, 45))
                assessments[control.id] = self._random_rubric(updated)

        logger.info(
            f"Generated {len(assessments)} {self.strategy.name} assessments "
            f"for profile {profile.value}"
        )
        return assessments

    def generate_snapshots(
        self,
        assessments: dict[str, AssessmentRecord],
        now: datetime | None = None,
    ) -> list[Snapshot]:
        """
        Generate a weekly history ending at the given assessment.

        Progress ramps up from an early partial state to the final scores.

        Returns:
            Snapshots oldest first; the last one matches the assessment.
        """
        now = now or datetime.now(UTC)
        weeks = max(self.config.weeks_of_history, 1)
        engine = ScoringEngine(self.catalog, self.strategy)
        final = engine.calculate_all(assessments)
        total = final.total_controls

        snapshots = []
        for week_offset in range(weeks, -1, -1):
            progress = (weeks - week_offset) / weeks
            if week_offset == 0:
                snapshots.append(Snapshot.from_breakdown(final, date=now))
                continue

            assessed = round(final.completed_controls * progress * self.rng.uniform(0.85, 1.0))
            completion = (assessed / total) * 100 if total else 0.0
            score = final.overall_completion.average_score * (0.6 + 0.4 * progress)
            snapshots.append(
                Snapshot(
                    date=now - timedelta(weeks=week_offset),
                    completion_rate=round(completion, 2),
                    overall_score=round(score, 2),
                    assessed_controls=assessed,
                )
            )
        return snapshots

    def _random_level(self) -> int:
        """Select a base rubric level from the profile distribution."""
        distribution = LEVEL_DISTRIBUTIONS[self.config.profile]
        return self.rng.choices(range(1, RUBRIC_MAX + 1), weights=distribution)[0]

    def _random_rubric(self, updated: datetime) -> RubricAssessment:
        base = self._random_level()
        dims = [
            min(RUBRIC_MAX, max(0, base + self.rng.choice([-1, 0, 0, 1])))
            for _ in range(4)
        ]
        if not any(dims):
            dims[0] = 1

        notes = ""
        links: list[str] = []
        if self.rng.random() < NOTES_PROBABILITY[self.config.profile]:
            notes = self.rng.choice(NOTE_TEMPLATES)
            if dims[2] >= 2:
                links = [self.rng.choice(EVIDENCE_LINKS)]

        return RubricAssessment(
            maturity=dims[0],
            implementation=dims[1],
            evidence=dims[2],
            testing=dims[3],
            notes=notes,
            evidence_links=links,
            last_updated=updated.isoformat(),
            assessor=self.rng.choice(ASSESSORS),
        )

    def _random_response(self) -> QuaternaryResponse:
        distribution = RESPONSE_DISTRIBUTIONS[self.config.profile]
        return self.rng.choices(list(QuaternaryResponse), weights=distribution)[0]


def generate_demo_data(
    manager: AssessmentManager,
    profile: str | DemoProfile = DemoProfile.GROWING,
    organization: str | None = None,
    weeks: int = 8,
    seed: int | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Replace a manager's assessment with demo data.

    The current assessment is reset, the generated records are imported,
    and the weekly snapshots are appended to the history.

    Args:
        manager: Manager to populate.
        profile: Demo profile ("startup", "growing", "mature") or DemoProfile enum.
        organization: Organization name. Defaults based on profile.
        weeks: Weeks of snapshot history to generate.
        seed: Random seed for reproducible data.
        now: Reference time, defaults to now.

    Returns:
        Summary of generated data.

    Example:
        summary = generate_demo_data(manager, profile="startup", seed=42)
    """
    if isinstance(profile, str):
        profile = DemoProfile(profile.lower())

    if organization is None:
        organization = ORG_NAMES[profile]

    now = now or datetime.now(UTC)
    generator = DemoGenerator(
        manager.catalog,
        manager.strategy,
        DemoConfig(
            profile=profile,
            organization=organization,
            weeks_of_history=weeks,
            seed=seed,
        ),
    )
    assessments = generator.generate_assessments(now=now)
    snapshots = generator.generate_snapshots(assessments, now=now)

    manager.reset()
    result = manager.import_data(manager.strategy.serialize_map(assessments))
    for snapshot in snapshots:
        manager.store.append_snapshot(snapshot)

    summary = {
        "profile": profile.value,
        "organization": organization,
        "strategy": manager.strategy.name,
        "assessed_controls": result.imported_controls,
        "total_controls": manager.catalog.total_controls,
        "snapshots": len(snapshots),
        "completion": round(manager.breakdown().overall_completion.completion, 2),
    }
    logger.info(f"Demo data generation complete: {result.imported_controls} controls")
    return summary
