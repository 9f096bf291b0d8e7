"""
JSON bundle export and import.

Bundle Format:
    {
        "framework": {"id", "name", "version", "exportDate"},
        "assessment": {
            "completionRate", "overallScore", "lastUpdated",
            "assessmentData": {controlId: record, ...}
        },
        "validation": {"issues": [{type, controlId, message, severity}, ...]}
    }

Bundles are written with two-space indentation, optionally gzip
compressed. The importer accepts either a bundle or a bare assessment map
(control id -> record).
"""

from __future__ import annotations

import gzip
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from csfassess.analysis.validation import ValidationIssue
from csfassess.catalog.framework import FrameworkCatalog
from csfassess.scoring.models import ScoringBreakdown

logger = logging.getLogger(__name__)

BUNDLE_KEYS = ("framework", "assessment", "validation")


class ImportFormatError(ValueError):
    """Raised when imported data has neither a bundle nor a map shape."""

    pass


@dataclass
class ExportResult:
    """
    Result of an export operation.

    Attributes:
        success: Whether the export completed successfully.
        path: Path to the exported file.
        size_bytes: Size of the exported file in bytes.
        record_count: Number of assessment records exported.
        export_type: "json" or "csv".
        compressed: Whether the file is gzip compressed.
        error: Error message if the export failed.
    """

    success: bool
    path: Path | None
    size_bytes: int
    record_count: int
    export_type: str
    compressed: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "path": str(self.path) if self.path else None,
            "size_bytes": self.size_bytes,
            "record_count": self.record_count,
            "export_type": self.export_type,
            "compressed": self.compressed,
            "error": self.error,
        }


def build_bundle(
    catalog: FrameworkCatalog,
    breakdown: ScoringBreakdown,
    assessment_data: dict[str, Any],
    issues: list[ValidationIssue],
    last_updated: str | None = None,
    export_date: datetime | None = None,
) -> dict[str, Any]:
    """
    Assemble an export bundle.

    Args:
        catalog: Framework being exported.
        breakdown: Scoring results for the assessment.
        assessment_data: Serialized assessment map.
        issues: Validation issues for the assessment.
        last_updated: When the assessment was last saved.
        export_date: Export time, defaults to now.

    Returns:
        Bundle dictionary ready for JSON serialization.
    """
    return {
        "framework": {
            "id": catalog.id,
            "name": catalog.name,
            "version": catalog.version,
            "exportDate": (export_date or datetime.now(UTC)).isoformat(),
        },
        "assessment": {
            "completionRate": round(breakdown.overall_completion.completion, 2),
            "overallScore": round(breakdown.overall_completion.average_score, 2),
            "lastUpdated": last_updated,
            "assessmentData": assessment_data,
        },
        "validation": {
            "issues": [issue.to_dict() for issue in issues],
        },
    }


def serialize_bundle(bundle: dict[str, Any]) -> str:
    """Serialize a bundle as indented JSON."""
    return json.dumps(bundle, indent=2, default=str)


def extract_assessment_data(data: str | bytes | dict[str, Any]) -> dict[str, Any]:
    """
    Find the assessment map inside imported data.

    Accepts JSON text or an already parsed mapping. A mapping carrying any
    of "framework", "assessment", or "validation" is treated as a bundle
    and must contain assessment.assessmentData (or a top-level
    assessmentData). A mapping with only "assessmentData" is unwrapped.
    Any other non-empty mapping is taken as a bare assessment map.

    Returns:
        Wire assessment map (records not yet validated).

    Raises:
        ImportFormatError: If the data is not valid JSON or has no
            assessment map.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ImportFormatError(f"invalid JSON: {e.msg} (line {e.lineno})") from e
        except UnicodeDecodeError as e:
            raise ImportFormatError(f"cannot decode import data: {e.reason}") from e

    if not isinstance(data, dict):
        raise ImportFormatError(
            f"expected a JSON object, got {type(data).__name__}"
        )

    if any(key in data for key in BUNDLE_KEYS) or "assessmentData" in data:
        assessment = data.get("assessment")
        if isinstance(assessment, dict) and "assessmentData" in assessment:
            payload = assessment["assessmentData"]
        elif "assessmentData" in data:
            payload = data["assessmentData"]
        else:
            raise ImportFormatError("no assessment data found")

        if not isinstance(payload, dict):
            raise ImportFormatError("assessmentData must be an object")
        return payload

    if not data:
        raise ImportFormatError("no assessment data found")
    return data


def load_import_file(path: Path | str) -> str:
    """
    Read an import file, transparently decompressing .gz files.

    Raises:
        OSError: If the file cannot be read.
    """
    path = Path(path)
    if path.suffix == ".gz":
        with gzip.open(path, "rt", encoding="utf-8") as f:
            return f.read()
    return path.read_text(encoding="utf-8")


class JsonExporter:
    """
    Writes export bundles to disk.

    Example:
        exporter = JsonExporter(organization="Acme Corp")
        result = exporter.export_bundle(bundle, Path("./exports"))
        if result.success:
            print(result.path)

    Attributes:
        organization: Organization name added to the framework block.
    """

    def __init__(self, organization: str | None = None) -> None:
        self.organization = organization

    def export_bundle(
        self,
        bundle: dict[str, Any],
        output: Path | str,
        compress: bool = False,
    ) -> ExportResult:
        """
        Write a bundle to a file.

        Args:
            bundle: Bundle from build_bundle.
            output: Directory (a timestamped file name is generated) or
                a file path.
            compress: Whether to gzip compress the output.

        Returns:
            ExportResult with export details.
        """
        record_count = len(bundle.get("assessment", {}).get("assessmentData", {}))
        try:
            output = Path(output)
            if output.suffix in (".json", ".gz"):
                filepath = output
                filepath.parent.mkdir(parents=True, exist_ok=True)
                compress = compress or filepath.suffix == ".gz"
            else:
                output.mkdir(parents=True, exist_ok=True)
                filepath = output / self._generate_filename(
                    bundle.get("framework", {}).get("id", "assessment"), compress
                )

            if self.organization:
                bundle = {
                    **bundle,
                    "framework": {**bundle["framework"], "organization": self.organization},
                }

            size_bytes = self._write_json(bundle, filepath, compress)
            logger.info("Exported assessment bundle to %s (%d bytes)", filepath, size_bytes)

            return ExportResult(
                success=True,
                path=filepath,
                size_bytes=size_bytes,
                record_count=record_count,
                export_type="json",
                compressed=compress,
            )

        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to export assessment bundle: %s", e)
            return ExportResult(
                success=False,
                path=None,
                size_bytes=0,
                record_count=0,
                export_type="json",
                compressed=compress,
                error=str(e),
            )

    def _generate_filename(self, framework_id: str, compress: bool) -> str:
        """Generate filename with timestamp."""
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        extension = ".json.gz" if compress else ".json"
        return f"{timestamp}_{framework_id}_assessment{extension}"

    def _write_json(
        self,
        data: dict[str, Any],
        filepath: Path,
        compress: bool,
    ) -> int:
        """
        Write JSON data to file.

        Returns:
            Size of written file in bytes.
        """
        json_content = serialize_bundle(data)

        if compress:
            with gzip.open(filepath, "wt", encoding="utf-8") as f:
                f.write(json_content)
        else:
            with open(filepath, "w", encoding="utf-8") as f:
                f.write(json_content)

        return filepath.stat().st_size
