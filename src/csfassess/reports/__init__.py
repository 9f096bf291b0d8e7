"""
Export and import of assessment data.

Formats:
    - JSON bundle: framework info, summary scores, assessment data, and
      validation issues (optionally gzip compressed)
    - CSV: one row per catalog control
"""

from csfassess.reports.csv_exporter import (
    QUATERNARY_CSV_HEADERS,
    RUBRIC_CSV_HEADERS,
    CsvExporter,
)
from csfassess.reports.json_exporter import (
    ExportResult,
    ImportFormatError,
    JsonExporter,
    build_bundle,
    extract_assessment_data,
    load_import_file,
    serialize_bundle,
)

__all__ = [
    "CsvExporter",
    "RUBRIC_CSV_HEADERS",
    "QUATERNARY_CSV_HEADERS",
    "JsonExporter",
    "ExportResult",
    "ImportFormatError",
    "build_bundle",
    "serialize_bundle",
    "extract_assessment_data",
    "load_import_file",
]
