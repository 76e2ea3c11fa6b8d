"""Core primitives: errors, logging, settings and the cache store."""

from mediawatch.core.cache import (
    CacheInvalidator,
    CacheStats,
    CacheStore,
    CacheTTL,
    article_list_key,
    category_key,
    download_key,
    item_key,
    search_key,
)
from mediawatch.core.errors import (
    CircuitOpenError,
    ConflictError,
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    MediaWatchError,
    NotFoundError,
    OperationTimeout,
    RateLimitExceeded,
    TransientError,
    ValidationError,
)
from mediawatch.core.logging import configure_logging, get_logger
from mediawatch.core.settings import MediaWatchSettings, get_settings

__all__ = [
    "CacheInvalidator",
    "CacheStats",
    "CacheStore",
    "CacheTTL",
    "article_list_key",
    "category_key",
    "download_key",
    "item_key",
    "search_key",
    "CircuitOpenError",
    "ConflictError",
    "DatabaseError",
    "ErrorCategory",
    "ErrorContext",
    "MediaWatchError",
    "NotFoundError",
    "OperationTimeout",
    "RateLimitExceeded",
    "TransientError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "MediaWatchSettings",
    "get_settings",
]
