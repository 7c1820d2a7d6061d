"""Application configuration helpers."""

from __future__ import annotations

from .env import env_choice, env_positive_float, env_positive_int, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .reconciliation import ReconciliationConfig, get_reconciliation_config
from .storage import (
    DEFAULT_ISOLATION_LEVEL,
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_isolation_level,
    get_storage_config,
)

__all__ = [
    "DEFAULT_ISOLATION_LEVEL",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "ReconciliationConfig",
    "StorageConfig",
    "configure_logging",
    "env_choice",
    "env_positive_float",
    "env_positive_int",
    "get_database_config",
    "get_isolation_level",
    "get_reconciliation_config",
    "get_storage_config",
    "require_env_vars",
]
