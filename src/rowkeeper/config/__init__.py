"""Application configuration helpers."""

from __future__ import annotations

from .commit import (
    DEFAULT_ID_STORE_TABLE,
    CommitConfig,
    IdStoreConfig,
    get_commit_config,
    get_id_store_config,
)
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "DEFAULT_ID_STORE_TABLE",
    "CommitConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "IdStoreConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "get_commit_config",
    "get_database_config",
    "get_database_uri",
    "get_id_store_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
