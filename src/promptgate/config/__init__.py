"""Configuration module for promptgate.

This module provides configuration loading, validation, and schema definitions.

Usage:
    from promptgate.config import load_config, Config

    config = load_config()  # Auto-discovers config file
    config = load_config("/path/to/config.yaml")  # Explicit path
"""

from promptgate.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    EnvironmentVariableError,
    discover_config_path,
    load_config,
)
from promptgate.config.schema import (
    DEFAULT_STORAGE_KEY,
    Config,
    LaunchConfig,
    PromptConfig,
    StorageBackend,
    StorageConfig,
)

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "Config",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "EnvironmentVariableError",
    "LaunchConfig",
    "PromptConfig",
    "StorageBackend",
    "StorageConfig",
    "discover_config_path",
    "load_config",
]
