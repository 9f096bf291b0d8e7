"""
Assessment manager for one framework instance.

The manager owns the in-memory assessment map for a framework, applies
updates, persists through an AssessmentStore, and exposes the scoring and
analysis results for the current state.

Error Handling:
    - Corrupt or unreadable saved data at startup is reported through
      last_error and the manager starts with an empty assessment.
    - Failed saves and resets keep the in-memory state and set last_error.
    - Invalid updates raise before anything is changed.
    - Imports never raise; they return an ImportResult.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from csfassess.analysis.benchmark import BenchmarkConfig
from csfassess.analysis.progress import FrameworkProgress, ProgressAnalyzer
from csfassess.analysis.quality import QualityAnalyzer, QualityMetrics
from csfassess.analysis.validation import ValidationEngine, ValidationIssue
from csfassess.catalog.framework import FrameworkCatalog, get_catalog
from csfassess.reports.csv_exporter import CsvExporter
from csfassess.reports.json_exporter import (
    ImportFormatError,
    build_bundle,
    extract_assessment_data,
    serialize_bundle,
)
from csfassess.scoring.engine import OverallMode, ScoringEngine
from csfassess.scoring.models import (
    AssessmentError,
    AssessmentRecord,
    InvalidAssessmentError,
    QuaternaryResponse,
    RubricAssessment,
    ScoringBreakdown,
    UnknownControlError,
)
from csfassess.scoring.strategies import get_strategy
from csfassess.storage.assessment_store import AssessmentStore
from csfassess.storage.kv_store import StorageError, create_store
from csfassess.storage.models import AssessmentMeta, Snapshot, parse_timestamp

if TYPE_CHECKING:
    from csfassess.config.settings import Settings

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Could not load your saved assessment. It may be corrupted."
SAVE_ERROR_MESSAGE = "Could not save your progress."
RESET_ERROR_MESSAGE = "Could not reset the assessment."

# Attention flag thresholds
STALE_AFTER_DAYS = 30
LOW_COMPLETION_RATE = 50.0
HIGH_COMPLETION_RATE = 80.0
LOW_OVERALL_SCORE = 60.0


@dataclass
class ImportResult:
    """
    Outcome of an import.

    Attributes:
        success: Whether the data was applied.
        message: Human-readable summary or failure reason.
        imported_controls: Number of records applied.
        ignored_controls: Control ids not in the catalog, skipped.
    """

    success: bool
    message: str
    imported_controls: int = 0
    ignored_controls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "message": self.message,
            "importedControls": self.imported_controls,
            "ignoredControls": list(self.ignored_controls),
        }


class AssessmentManager:
    """
    Stateful assessment of one framework.

    Example:
        manager = AssessmentManager(get_catalog(), store)
        manager.update_control("GV.OC-01", maturity=2, notes="Reviewed yearly")
        if manager.last_error:
            print(manager.last_error)
        print(manager.breakdown().overall_completion.completion)

    Attributes:
        catalog: Framework catalog.
        store: Persistence for this framework.
        strategy: Active response strategy (from the store).
        engine: Scoring engine for the catalog and strategy.
        last_error: Message of the last recoverable persistence failure.
    """

    def __init__(
        self,
        catalog: FrameworkCatalog,
        store: AssessmentStore,
        overall_mode: OverallMode = OverallMode.FUNCTION_MEAN,
        benchmark_config: BenchmarkConfig | None = None,
        user_title: str = "",
        user_role: str = "",
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.strategy = store.strategy
        self.engine = ScoringEngine(catalog, self.strategy, overall_mode)
        self.validator = ValidationEngine(catalog)
        self.quality_analyzer = QualityAnalyzer()
        self.progress_analyzer = ProgressAnalyzer(
            self.engine,
            quality_analyzer=self.quality_analyzer,
            benchmark_config=benchmark_config,
        )
        self.last_error: str | None = None

        self._lock = threading.RLock()
        self._revision = 0
        self._cached_breakdown: tuple[int, ScoringBreakdown] | None = None

        self._assessments: dict[str, AssessmentRecord] = {}
        self.meta = AssessmentMeta(user_title=user_title, user_role=user_role)
        self._load()
        if user_title:
            self.meta.user_title = user_title
        if user_role:
            self.meta.user_role = user_role

    @classmethod
    def from_settings(cls, settings: Settings) -> AssessmentManager:
        """
        Build a manager from application settings.

        Raises:
            CatalogError: If the configured framework is not available.
            ValueError: If the strategy or backend is unknown.
        """
        catalog = get_catalog(settings.assessment.framework_id)
        kv = create_store(settings.storage.backend, settings.data_dir)
        store = AssessmentStore(
            kv,
            catalog.id,
            strategy=get_strategy(settings.assessment.strategy),
            key_prefix=settings.storage.key_prefix,
        )
        return cls(
            catalog,
            store,
            overall_mode=OverallMode(settings.assessment.overall_mode),
            benchmark_config=BenchmarkConfig.from_overrides(settings.benchmarks),
            user_title=settings.assessment.user_title,
            user_role=settings.assessment.user_role,
        )

    def _load(self) -> None:
        try:
            self._assessments = self.store.load_assessments()
            self.meta = self.store.get_meta()
        except StorageError as e:
            logger.error(f"Failed to load saved assessment: {e}")
            self._assessments = {}
            self.last_error = LOAD_ERROR_MESSAGE

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def assessments(self) -> dict[str, AssessmentRecord]:
        """Copy of the current assessment map."""
        with self._lock:
            return dict(self._assessments)

    @property
    def revision(self) -> int:
        """Counter incremented on every change to the assessment map."""
        return self._revision

    def get(self, control_id: str) -> AssessmentRecord | None:
        """Current record for a control, or None if not started."""
        return self._assessments.get(control_id)

    def _require_control(self, control_id: str) -> None:
        if control_id not in self.catalog:
            raise UnknownControlError(f"Unknown control: {control_id}")

    def _require_strategy(self, name: str) -> None:
        if self.strategy.name != name:
            raise AssessmentError(
                f"Operation requires the {name} strategy, "
                f"active strategy is {self.strategy.name}"
            )

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update_control(self, control_id: str, **fields: Any) -> RubricAssessment:
        """
        Merge field values into a control's rubric assessment.

        Fields not given keep their current values. lastUpdated is set to
        now.

        Args:
            control_id: Control to update.
            **fields: maturity, implementation, evidence, testing, notes,
                evidence_links, assessor.

        Returns:
            The updated record.

        Raises:
            UnknownControlError: If the control is not in the catalog.
            InvalidAssessmentError: If a field or value is invalid.
            AssessmentError: If the rubric strategy is not active.
        """
        self._require_strategy("rubric")
        self._require_control(control_id)

        with self._lock:
            current = self._assessments.get(control_id)
            if not isinstance(current, RubricAssessment):
                current = RubricAssessment()
            updated = current.merged(
                {**fields, "last_updated": datetime.now(UTC).isoformat()}
            )
            self._apply({control_id: updated})

        logger.debug(f"Updated {control_id}: average {updated.average:.2f}")
        return updated

    def set_response(
        self,
        control_id: str,
        response: QuaternaryResponse | str,
    ) -> QuaternaryResponse:
        """
        Set a control's quaternary response.

        Raises:
            UnknownControlError: If the control is not in the catalog.
            InvalidAssessmentError: If the response is not Yes/Partial/No/N/A.
            AssessmentError: If the quaternary strategy is not active.
        """
        self._require_strategy("quaternary")
        self._require_control(control_id)
        parsed = self.strategy.parse_record(response)
        with self._lock:
            self._apply({control_id: parsed})
        logger.debug(f"Set {control_id} to {parsed.value}")
        return parsed

    def bulk_update(self, updates: dict[str, Any]) -> int:
        """
        Apply several updates at once.

        Rubric values are merged per field into existing records.
        Quaternary values replace the response. Everything is validated
        before anything changes.

        Args:
            updates: Mapping of control id to a record, a field mapping, or
                a response.

        Returns:
            Number of controls updated.

        Raises:
            UnknownControlError: If any control is not in the catalog.
            InvalidAssessmentError: If any value is invalid.
        """
        for control_id in updates:
            self._require_control(control_id)

        with self._lock:
            staged: dict[str, AssessmentRecord] = {}
            now = datetime.now(UTC).isoformat()
            for control_id, value in updates.items():
                try:
                    if self.strategy.name == "rubric" and isinstance(value, dict):
                        current = self._assessments.get(control_id)
                        if not isinstance(current, RubricAssessment):
                            current = RubricAssessment()
                        staged[control_id] = current.merged(
                            {"lastUpdated": now, **value}
                        )
                    else:
                        staged[control_id] = self.strategy.parse_record(value)
                except InvalidAssessmentError as e:
                    raise InvalidAssessmentError(f"{control_id}: {e}") from e
            self._apply(staged)

        logger.info(f"Bulk updated {len(staged)} controls")
        return len(staged)

    def reset(self) -> bool:
        """
        Clear the assessment for this framework.

        The in-memory map is emptied even if the stored copy cannot be
        removed.

        Returns:
            True if the stored assessment was removed.
        """
        with self._lock:
            self._assessments = {}
            self._bump()
            try:
                self.store.reset()
            except StorageError as e:
                logger.error(f"Failed to reset stored assessment: {e}")
                self.last_error = RESET_ERROR_MESSAGE
                return False

        self.last_error = None
        logger.info(f"Reset assessment for {self.catalog.id}")
        return True

    def _apply(self, records: dict[str, AssessmentRecord]) -> bool:
        """Merge records into the map and persist. Caller holds the lock."""
        self._assessments = {**self._assessments, **records}
        self._bump()
        return self._persist()

    def _bump(self) -> None:
        self._revision += 1
        self._cached_breakdown = None

    def _persist(self) -> bool:
        try:
            self.meta = self.store.save_assessments(self._assessments, self.meta)
        except StorageError as e:
            logger.error(f"Failed to save assessment: {e}")
            self.last_error = SAVE_ERROR_MESSAGE
            return False
        self.last_error = None
        return True

    def save(self) -> bool:
        """
        Persist the current state.

        Returns:
            True if saved, False if last_error was set.
        """
        with self._lock:
            return self._persist()

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def breakdown(self) -> ScoringBreakdown:
        """Scoring results for the current state, cached until the next change."""
        with self._lock:
            cached = self._cached_breakdown
            if cached is not None and cached[0] == self._revision:
                return cached[1]
            result = self.engine.calculate_all(self._assessments)
            self._cached_breakdown = (self._revision, result)
            return result

    def validation_issues(self) -> list[ValidationIssue]:
        """Validation issues for the current state."""
        return self.validator.validate(self.assessments)

    def quality(self) -> QualityMetrics:
        """Quality metrics for the current state."""
        return self.quality_analyzer.analyze(self.assessments)

    def snapshots(self) -> list[Snapshot]:
        """Stored snapshot history, empty if it cannot be read."""
        try:
            return self.store.get_snapshots()
        except StorageError as e:
            logger.warning(f"Could not read snapshot history: {e}")
            return []

    def progress(self, now: datetime | None = None) -> FrameworkProgress:
        """Combined progress summary including trends over the history."""
        return self.progress_analyzer.analyze(
            self.assessments,
            self.snapshots(),
            breakdown=self.breakdown(),
            now=now,
        )

    def record_snapshot(self, now: datetime | None = None) -> Snapshot:
        """
        Append a snapshot of the current progress to the history.

        A failed write sets last_error; the snapshot is still returned.
        """
        snapshot = Snapshot.from_breakdown(self.breakdown(), date=now)
        try:
            self.store.append_snapshot(snapshot)
        except StorageError as e:
            logger.error(f"Failed to record snapshot: {e}")
            self.last_error = SAVE_ERROR_MESSAGE
        else:
            logger.info(
                f"Recorded snapshot: {snapshot.completion_rate:.1f}% complete, "
                f"{snapshot.assessed_controls} controls assessed"
            )
        return snapshot

    def attention_flags(self, now: datetime | None = None) -> list[str]:
        """
        Framework-level warnings.

        Flags a stale assessment (not updated for more than 30 days while
        partially complete), low completion with validation issues, and
        high completion with a low overall score.

        Returns:
            Human-readable messages, empty if nothing needs attention.
        """
        overall = self.breakdown().overall_completion
        completion, score = overall.completion, overall.average_score
        flags = []

        if self.meta.last_updated:
            try:
                updated = parse_timestamp(self.meta.last_updated)
            except ValueError:
                updated = None
            reference = now or datetime.now(UTC)
            if (
                updated is not None
                and reference - updated > timedelta(days=STALE_AFTER_DAYS)
                and 0 < completion < 100
            ):
                flags.append("Stale assessment - no updates in 30+ days")

        if 0 < completion < LOW_COMPLETION_RATE:
            issues = self.validation_issues()
            if issues:
                flags.append(f"{len(issues)} validation issues need attention")

        if completion > HIGH_COMPLETION_RATE and score < LOW_OVERALL_SCORE:
            flags.append("High completion but low quality scores")

        return flags

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def export_bundle(self, export_date: datetime | None = None) -> dict[str, Any]:
        """Export bundle for the current state."""
        assessments = self.assessments
        return build_bundle(
            self.catalog,
            self.breakdown(),
            self.strategy.serialize_map(assessments),
            self.validator.validate(assessments),
            last_updated=self.meta.last_updated,
            export_date=export_date,
        )

    def export_json(self) -> str:
        """Export bundle serialized as indented JSON."""
        return serialize_bundle(self.export_bundle())

    def export_csv(self) -> str:
        """Assessment as CSV text, one row per catalog control."""
        return CsvExporter(self.catalog, self.strategy).to_csv(self.assessments)

    def import_data(self, data: str | bytes | dict[str, Any]) -> ImportResult:
        """
        Import an export bundle or a bare assessment map.

        Every record is validated before anything changes. On success
        records for known controls overwrite the current ones and unknown
        control ids are skipped. On failure the current state is untouched.

        Args:
            data: JSON text or a parsed mapping.

        Returns:
            ImportResult describing the outcome.
        """
        try:
            payload = extract_assessment_data(data)
            parsed = self.strategy.parse_map(payload)
        except (ImportFormatError, InvalidAssessmentError) as e:
            logger.warning(f"Import rejected: {e}")
            return ImportResult(success=False, message=f"Import failed: {e}")

        known = {cid: record for cid, record in parsed.items() if cid in self.catalog}
        ignored = sorted(cid for cid in parsed if cid not in self.catalog)
        if ignored:
            logger.warning(
                f"Import skipped {len(ignored)} unknown controls: {', '.join(ignored)}"
            )

        with self._lock:
            self._apply(known)

        message = f"Imported {len(known)} controls"
        if ignored:
            message += f", ignored {len(ignored)} unknown controls"
        logger.info(message)
        return ImportResult(
            success=True,
            message=message,
            imported_controls=len(known),
            ignored_controls=ignored,
        )
