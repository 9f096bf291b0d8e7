"""
Configuration management for csfassess.

This module handles loading, validating, and saving configuration settings.
"""

from csfassess.config.settings import (
    DEFAULT_CONFIG_DIR,
    AssessmentConfig,
    ConfigurationError,
    ReportingConfig,
    Settings,
    StorageConfig,
    get_config_path,
    load_config,
    save_config,
)

__all__ = [
    "Settings",
    "StorageConfig",
    "AssessmentConfig",
    "ReportingConfig",
    "DEFAULT_CONFIG_DIR",
    "get_config_path",
    "load_config",
    "save_config",
    "ConfigurationError",
]
