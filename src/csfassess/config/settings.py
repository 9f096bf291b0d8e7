"""
Configuration settings management for csfassess.

This module handles loading, validating, and saving configuration settings
from YAML files with support for environment variable overrides.

Configuration is loaded from ~/.csfassess/config.yaml by default, with the
path overridable via the CSFASSESS_CONFIG environment variable.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from csfassess.analysis.benchmark import BenchmarkConfig
from csfassess.catalog.framework import DEFAULT_FRAMEWORK_ID, get_available_frameworks
from csfassess.scoring.engine import OverallMode
from csfassess.scoring.strategies import STRATEGIES
from csfassess.storage.assessment_store import DEFAULT_KEY_PREFIX
from csfassess.storage.kv_store import STORAGE_BACKENDS

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".csfassess"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"


@dataclass
class StorageConfig:
    """Persistence settings."""

    backend: str = "file"
    key_prefix: str = DEFAULT_KEY_PREFIX


@dataclass
class AssessmentConfig:
    """
    Assessment settings.

    Attributes:
        framework_id: Framework catalog to assess.
        strategy: Response strategy, "rubric" or "quaternary".
        overall_mode: Overall roll-up, "function_mean" or "control_weighted".
        user_title: Title of the person performing the assessment.
        user_role: Role of the person performing the assessment.
    """

    framework_id: str = DEFAULT_FRAMEWORK_ID
    strategy: str = "rubric"
    overall_mode: str = OverallMode.FUNCTION_MEAN.value
    user_title: str = ""
    user_role: str = ""


@dataclass
class ReportingConfig:
    """Reporting settings."""

    organization: str = ""
    output_dir: str = str(DEFAULT_CONFIG_DIR / "exports")


@dataclass
class Settings:
    """
    Complete csfassess configuration settings.

    Settings are loaded from a YAML configuration file and can be overridden
    by environment variables prefixed with CSFASSESS_.

    Attributes:
        data_dir: Directory for stored assessments.
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR).
        storage: Persistence settings.
        assessment: Assessment settings.
        benchmarks: Benchmark threshold overrides, e.g.
            {"velocity": {"good": 5, "excellent": 10}}.
        reporting: Export settings.
    """

    data_dir: str = str(DEFAULT_CONFIG_DIR / "data")
    log_level: str = "INFO"

    storage: StorageConfig = field(default_factory=StorageConfig)
    assessment: AssessmentConfig = field(default_factory=AssessmentConfig)
    benchmarks: dict[str, dict[str, float]] = field(default_factory=dict)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def get_config_path() -> Path:
    """
    Get the configuration file path.

    Returns the path from CSFASSESS_CONFIG environment variable if set,
    otherwise returns the default path (~/.csfassess/config.yaml).
    """
    env_path = os.environ.get("CSFASSESS_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> Settings:
    """
    Load configuration from YAML file.

    Reads configuration from the specified path (or default if not provided),
    applies environment variable overrides, and validates the configuration.

    Args:
        config_path: Optional path to configuration file. If not provided,
                    uses CSFASSESS_CONFIG environment variable or default path.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the configuration file cannot be read or
                          contains invalid settings.
    """
    if config_path is None:
        config_path = get_config_path()

    settings = Settings()

    if config_path.exists():
        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Config file must contain a mapping")
        settings = _apply_config_data(settings, config_data)

    settings = _apply_environment_overrides(settings)

    _validate_config(settings)

    return settings


def save_config(settings: Settings, config_path: Path | None = None) -> None:
    """
    Save configuration to YAML file.

    Raises:
        ConfigurationError: If the configuration cannot be written.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_data = _settings_to_dict(settings)

    try:
        with open(config_path, "w") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigurationError(f"Cannot write config file: {e}") from e


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    return section


def _apply_config_data(settings: Settings, data: dict[str, Any]) -> Settings:
    """Apply configuration data from parsed YAML to settings."""
    general = _section(data, "csfassess")
    if "data_dir" in general:
        settings.data_dir = str(general["data_dir"])
    if "log_level" in general:
        settings.log_level = str(general["log_level"]).upper()

    storage = _section(data, "storage")
    if "backend" in storage:
        settings.storage.backend = str(storage["backend"]).lower()
    if "key_prefix" in storage:
        settings.storage.key_prefix = str(storage["key_prefix"])

    assessment = _section(data, "assessment")
    if "framework" in assessment:
        settings.assessment.framework_id = str(assessment["framework"])
    if "strategy" in assessment:
        settings.assessment.strategy = str(assessment["strategy"]).lower()
    if "overall_mode" in assessment:
        settings.assessment.overall_mode = str(assessment["overall_mode"]).lower()
    if "user_title" in assessment:
        settings.assessment.user_title = str(assessment["user_title"] or "")
    if "user_role" in assessment:
        settings.assessment.user_role = str(assessment["user_role"] or "")

    settings.benchmarks = _section(data, "benchmarks")

    reporting = _section(data, "reporting")
    if "organization" in reporting:
        settings.reporting.organization = str(reporting["organization"] or "")
    if "output_dir" in reporting:
        settings.reporting.output_dir = str(reporting["output_dir"])

    return settings


def _apply_environment_overrides(settings: Settings) -> Settings:
    """Apply environment variable overrides to settings."""
    env_map: dict[str, tuple[str, Callable[[str], Any]]] = {
        "CSFASSESS_DATA_DIR": ("data_dir", str),
        "CSFASSESS_LOG_LEVEL": ("log_level", str.upper),
        "CSFASSESS_STORAGE_BACKEND": ("storage.backend", str.lower),
        "CSFASSESS_STRATEGY": ("assessment.strategy", str.lower),
        "CSFASSESS_FRAMEWORK": ("assessment.framework_id", str),
    }

    for env_var, (attr_path, converter) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested_attr(settings, attr_path, converter(value))

    return settings


def _set_nested_attr(obj: Any, path: str, value: Any) -> None:
    """Set a nested attribute on an object using dot notation."""
    parts = path.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    setattr(obj, parts[-1], value)


def _validate_config(settings: Settings) -> None:
    """
    Validate configuration settings.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if settings.log_level not in valid_log_levels:
        raise ConfigurationError(
            f"Invalid log_level: {settings.log_level}. "
            f"Must be one of: {', '.join(sorted(valid_log_levels))}"
        )

    if settings.storage.backend not in STORAGE_BACKENDS:
        raise ConfigurationError(
            f"Invalid storage backend: {settings.storage.backend}. "
            f"Must be one of: {', '.join(STORAGE_BACKENDS)}"
        )

    if not settings.storage.key_prefix:
        raise ConfigurationError("storage key_prefix must not be empty")

    if settings.assessment.strategy not in STRATEGIES:
        raise ConfigurationError(
            f"Invalid strategy: {settings.assessment.strategy}. "
            f"Must be one of: {', '.join(sorted(STRATEGIES))}"
        )

    valid_modes = {mode.value for mode in OverallMode}
    if settings.assessment.overall_mode not in valid_modes:
        raise ConfigurationError(
            f"Invalid overall_mode: {settings.assessment.overall_mode}. "
            f"Must be one of: {', '.join(sorted(valid_modes))}"
        )

    available = get_available_frameworks()
    if settings.assessment.framework_id not in available:
        raise ConfigurationError(
            f"Unknown framework: {settings.assessment.framework_id}. "
            f"Available: {', '.join(available)}"
        )

    try:
        BenchmarkConfig.from_overrides(settings.benchmarks)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid benchmarks: {e}") from e


def _settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Convert Settings instance to dictionary for YAML serialization."""
    return {
        "csfassess": {
            "data_dir": settings.data_dir,
            "log_level": settings.log_level,
        },
        "storage": {
            "backend": settings.storage.backend,
            "key_prefix": settings.storage.key_prefix,
        },
        "assessment": {
            "framework": settings.assessment.framework_id,
            "strategy": settings.assessment.strategy,
            "overall_mode": settings.assessment.overall_mode,
            "user_title": settings.assessment.user_title,
            "user_role": settings.assessment.user_role,
        },
        "benchmarks": dict(settings.benchmarks),
        "reporting": {
            "organization": settings.reporting.organization,
            "output_dir": settings.reporting.output_dir,
        },
    }
