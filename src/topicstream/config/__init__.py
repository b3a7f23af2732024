"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError
from .forum import DEFAULT_FORUM_BASE_URL, ForumConfig, get_forum_config
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "DEFAULT_FORUM_BASE_URL",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "ForumConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_forum_config",
    "get_storage_config",
    "get_sync_config",
]
