"""Content core: cursors, repositories, DTOs and the cache-aware service."""

from mediawatch.content.schemas import (
    ArticleCreate,
    ArticleQueryOptions,
    ArticleUpdate,
    CategoryCreate,
    DownloadCreate,
    DownloadQueryOptions,
    DownloadUpdate,
)
from mediawatch.content.service import CachedResult, CacheStatus, ContentService

__all__ = [
    "ArticleCreate",
    "ArticleQueryOptions",
    "ArticleUpdate",
    "CategoryCreate",
    "DownloadCreate",
    "DownloadQueryOptions",
    "DownloadUpdate",
    "CachedResult",
    "CacheStatus",
    "ContentService",
]
