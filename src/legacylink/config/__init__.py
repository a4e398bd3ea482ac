"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_positive_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .linking import LinkingConfig, get_linking_config
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_legacy_database_uri,
    get_storage_config,
)

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "LinkingConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_legacy_database_uri",
    "get_linking_config",
    "get_storage_config",
    "optional_positive_int",
    "require_env_vars",
]
