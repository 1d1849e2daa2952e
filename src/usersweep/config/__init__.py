"""Application configuration helpers."""

from __future__ import annotations

from .env import env_list, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .graph import GraphConfig, get_graph_config
from .http_resilience import ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .reconciliation import (
    ReconciliationConfig,
    get_reconciliation_config,
    load_reconciliation_config,
    reconciliation_config_from_mapping,
)
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "GraphConfig",
    "MissingConfigurationError",
    "ReconciliationConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_list",
    "get_database_config",
    "get_database_uri",
    "get_graph_config",
    "get_reconciliation_config",
    "get_storage_config",
    "load_reconciliation_config",
    "reconciliation_config_from_mapping",
    "require_env_var",
    "require_env_vars",
]
