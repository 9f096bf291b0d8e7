"""
CSV export of assessment data.

One row is written per catalog control, in catalog order, including
controls that have not been assessed (zero scores, empty text).

Rubric columns:
    Function, Category, Subcategory ID, Subcategory Name, Description,
    Maturity, Implementation, Evidence, Testing, Average Score, Notes,
    Last Updated, Assessor

Quaternary columns:
    Function, Category, Subcategory ID, Subcategory Name, Description,
    Response, Score
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

from csfassess.catalog.framework import ControlRef, FrameworkCatalog
from csfassess.scoring.models import AssessmentRecord, QuaternaryResponse, RubricAssessment
from csfassess.scoring.strategies import QUATERNARY_VALUES, ResponseStrategy

logger = logging.getLogger(__name__)

CONTROL_HEADERS = [
    "Function",
    "Category",
    "Subcategory ID",
    "Subcategory Name",
    "Description",
]

RUBRIC_CSV_HEADERS = CONTROL_HEADERS + [
    "Maturity",
    "Implementation",
    "Evidence",
    "Testing",
    "Average Score",
    "Notes",
    "Last Updated",
    "Assessor",
]

QUATERNARY_CSV_HEADERS = CONTROL_HEADERS + [
    "Response",
    "Score",
]


def _control_columns(control: ControlRef) -> list[str]:
    return [
        control.function_name,
        control.category_name,
        control.id,
        control.name,
        control.description,
    ]


def rubric_row(control: ControlRef, record: AssessmentRecord | None) -> list[str | int | float]:
    """CSV row for one control under the rubric strategy."""
    if not isinstance(record, RubricAssessment):
        record = RubricAssessment()
    return [
        *_control_columns(control),
        record.maturity,
        record.implementation,
        record.evidence,
        record.testing,
        f"{record.average:.2f}",
        record.notes,
        record.last_updated or "",
        record.assessor or "",
    ]


def quaternary_row(control: ControlRef, record: AssessmentRecord | None) -> list[str | float]:
    """CSV row for one control under the quaternary strategy."""
    if isinstance(record, QuaternaryResponse):
        return [*_control_columns(control), record.value, QUATERNARY_VALUES[record]]
    return [*_control_columns(control), "", 0]


class CsvExporter:
    """
    Writes assessment data as CSV.

    Example:
        exporter = CsvExporter(get_catalog(), RubricStrategy())
        text = exporter.to_csv(assessments)
        exporter.write(assessments, Path("assessment.csv"))
    """

    def __init__(self, catalog: FrameworkCatalog, strategy: ResponseStrategy) -> None:
        self.catalog = catalog
        self.strategy = strategy

    @property
    def headers(self) -> list[str]:
        """Column headers for the active strategy."""
        if self.strategy.name == "quaternary":
            return list(QUATERNARY_CSV_HEADERS)
        return list(RUBRIC_CSV_HEADERS)

    def rows(self, assessments: dict[str, AssessmentRecord]) -> list[list[str | int | float]]:
        """Data rows in catalog order."""
        make_row = quaternary_row if self.strategy.name == "quaternary" else rubric_row
        return [
            make_row(control, assessments.get(control.id))
            for control in self.catalog.all_subcategories()
        ]

    def to_csv(self, assessments: dict[str, AssessmentRecord]) -> str:
        """
        Render the assessment as CSV text.

        Returns:
            CSV document with a header row and one row per control.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(self.headers)
        writer.writerows(self.rows(assessments))
        return buffer.getvalue()

    def write(self, assessments: dict[str, AssessmentRecord], path: Path | str) -> Path:
        """
        Write the CSV document to a file.

        Returns:
            Path written.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(self.to_csv(assessments))
        logger.info(f"Exported CSV to {path}")
        return path
