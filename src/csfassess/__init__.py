"""
csfassess - Cybersecurity Framework Self-Assessment Scoring Engine

Score your organization against a cybersecurity framework catalog, one
control at a time, and track how the assessment improves.

Key Features:
    - Framework catalogs (NIST CSF 2.0 built in) with search
    - Two response strategies: Yes/Partial/No/N/A and a four-dimension
      0-3 rubric
    - Completion and score roll-ups per category, function, and overall
    - Quality metrics, validation issues, and attention flags
    - Snapshot history with trend, velocity, and completion projection
    - Benchmark comparison with configurable targets
    - JSON bundle and CSV export, JSON import
    - Pluggable storage: JSON file, SQLite, or in-memory

Design Principles:
    - Determinism: every score is a plain calculation over saved answers
    - Portability: all data stays in local files you can export
"""

__version__ = "0.1.0"
__author__ = ""
__email__ = ""

from csfassess.config.settings import Settings, load_config

__all__ = [
    "__version__",
    "Settings",
    "load_config",
]
