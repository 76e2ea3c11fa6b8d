"""
Cache-aware content service.

The read paths derive a deterministic cache key from the request, serve a
cached JSON payload on a hit, and otherwise query the repositories (in a
worker thread), transform the rows into DTOs and store the payload. Write
paths go straight to the repositories and then invalidate the affected
key patterns.

Manifesto:
    - **Reads never fail because of the cache:** cache errors are logged
      and the query runs uncached
    - **Datastore errors propagate:** nothing is cached on failure
    - **Writes invalidate by pattern:** readers may see stale data only
      for writes that bypass this service

Architecture:
    ::

        ContentService
        ├── list_articles(options) ──► article_list_key ──► CacheStore.get_or_set
        │                                   miss ──► to_thread(ArticleRepository.list_page + count)
        ├── get_article / get_article_by_slug / search_articles
        ├── create/update/delete_article ──► CacheInvalidator.articles()
        ├── list_categories / get_category / create_category ──► .categories()
        ├── list/get/create/update/delete_download, record_download ──► .downloads()
        └── cache_stats / clear_cache

Tags:
    service, cache, pagination, invalidation, mediawatch

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mediawatch.content.dtos import (
    paginated_response,
    to_article_admin_dto,
    to_article_detail_dto,
    to_article_list_dto,
    to_category_detail_dto,
    to_category_list_dto,
    to_download_detail_dto,
    to_download_list_dto,
)
from mediawatch.content.repository import (
    ArticleRepository,
    CategoryRepository,
    DownloadRepository,
)
from mediawatch.content.schemas import (
    LANGUAGES,
    ArticleCreate,
    ArticleQueryOptions,
    ArticleUpdate,
    CategoryCreate,
    DownloadCreate,
    DownloadQueryOptions,
    DownloadUpdate,
)
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
from mediawatch.core.errors import MediaWatchError, NotFoundError, ValidationError
from mediawatch.core.logging import get_logger

logger = get_logger(__name__)


class CacheStatus(str, Enum):
    HIT = "HIT"
    MISS = "MISS"
    BYPASS = "BYPASS"


@dataclass(frozen=True)
class CachedResult:
    """A JSON-able payload plus where it came from."""

    payload: Any
    cache_status: CacheStatus
    cache_key: str
    ttl: int


def _check_language(language: str) -> str:
    if language not in LANGUAGES:
        raise ValidationError(f"Unsupported language '{language}'")
    return language


class ContentService:
    """Read/write paths over articles, categories and downloads."""

    def __init__(
        self,
        articles: ArticleRepository,
        categories: CategoryRepository,
        downloads: DownloadRepository,
        cache: CacheStore,
        *,
        max_page_size: int = 1000,
    ):
        self._articles = articles
        self._categories = categories
        self._downloads = downloads
        self._cache = cache
        self._invalidate = CacheInvalidator(cache)
        self._max_page_size = max_page_size

    @property
    def cache(self) -> CacheStore:
        return self._cache

    # ── Cache plumbing ───────────────────────────────────────────────────

    async def _cached(
        self,
        key: str,
        ttl: int,
        produce: Callable[[], Awaitable[Any]],
    ) -> CachedResult:
        produced = False

        async def producer() -> Any:
            nonlocal produced
            produced = True
            return await produce()

        try:
            payload = await self._cache.get_or_set(key, producer, ttl)
        except MediaWatchError:
            raise
        except Exception as exc:
            if produced:
                raise
            logger.warning("cache_bypassed", cache_key=key, error=repr(exc))
            return CachedResult(await produce(), CacheStatus.BYPASS, key, ttl)

        status = CacheStatus.MISS if produced else CacheStatus.HIT
        logger.debug("cache_lookup", cache_key=key, status=status.value)
        return CachedResult(payload, status, key, ttl)

    def _after_write(self, invalidate: Callable[[], int], resource: str) -> None:
        try:
            removed = invalidate()
        except Exception as exc:
            logger.warning("cache_invalidation_failed", resource=resource, error=repr(exc))
            return
        logger.debug("cache_invalidated_after_write", resource=resource, removed=removed)

    # ── Articles ─────────────────────────────────────────────────────────

    async def list_articles(self, options: ArticleQueryOptions) -> CachedResult:
        """List articles, enveloped when paginated, flat otherwise."""
        options = options.normalized(self._max_page_size)
        key = article_list_key(options)
        return await self._cached(
            key, CacheTTL.ARTICLES_LIST, lambda: asyncio.to_thread(self._query_articles, options)
        )

    def _query_articles(self, options: ArticleQueryOptions) -> Any:
        language = options.language
        if not options.wants_envelope:
            rows = self._articles.list_articles(options)
            return [to_article_list_dto(row, language).model_dump(mode="json") for row in rows]

        page = self._articles.list_page(options)
        total = self._articles.count(options)
        response = paginated_response(
            [to_article_list_dto(row, language) for row in page.rows],
            total=total,
            limit=options.limit,
            offset=page.offset,
            next_cursor=page.next_cursor,
            has_next=page.has_next if page.from_cursor else None,
        )
        return response.model_dump(mode="json")

    async def get_article(self, article_id: int) -> CachedResult:
        """Admin view of one article by id."""

        def load() -> Any:
            record = self._articles.get(article_id)
            if record is None:
                raise NotFoundError.for_resource("Article", article_id)
            return to_article_admin_dto(record).model_dump(mode="json")

        return await self._cached(
            item_key("article", article_id), CacheTTL.ARTICLE_DETAIL, lambda: asyncio.to_thread(load)
        )

    async def get_article_by_slug(self, slug: str, language: str = "en") -> CachedResult:
        """Public detail view of one article by slug."""
        language = _check_language(language)

        def load() -> Any:
            record = self._articles.get_by_slug(slug)
            if record is None:
                raise NotFoundError.for_resource("Article", slug)
            return to_article_detail_dto(record, language).model_dump(mode="json")

        return await self._cached(
            item_key("article", f"{language}:{slug}"),
            CacheTTL.ARTICLE_DETAIL,
            lambda: asyncio.to_thread(load),
        )

    async def search_articles(self, query: str, language: str = "en") -> CachedResult:
        language = _check_language(language)
        query = query.strip()
        if not query:
            raise ValidationError("Search query must not be empty")

        def load() -> Any:
            rows = self._articles.search(query)
            return [to_article_list_dto(row, language).model_dump(mode="json") for row in rows]

        return await self._cached(
            search_key(query, language), CacheTTL.SEARCH_RESULTS, lambda: asyncio.to_thread(load)
        )

    async def create_article(self, data: ArticleCreate) -> dict[str, Any]:
        record = await asyncio.to_thread(self._articles.create, data)
        self._after_write(self._article_written, "article")
        return to_article_admin_dto(record).model_dump(mode="json")

    async def update_article(self, article_id: int, data: ArticleUpdate) -> dict[str, Any]:
        record = await asyncio.to_thread(self._articles.update, article_id, data)
        self._after_write(self._article_written, "article")
        return to_article_admin_dto(record).model_dump(mode="json")

    async def delete_article(self, article_id: int) -> None:
        await asyncio.to_thread(self._articles.delete, article_id)
        self._after_write(self._article_written, "article")

    def _article_written(self) -> int:
        # Category listings and category pages embed published-article counts.
        return (
            self._invalidate.articles()
            + self._cache.invalidate_pattern("categories")
            + self._cache.invalidate_pattern("category:")
        )

    # ── Categories ───────────────────────────────────────────────────────

    async def list_categories(self, language: str | None = None) -> CachedResult:
        lang = _check_language(language or "en")

        def load() -> Any:
            return [
                to_category_list_dto(row, lang).model_dump(mode="json")
                for row in self._categories.list_with_counts()
            ]

        return await self._cached(
            category_key(language), CacheTTL.CATEGORIES, lambda: asyncio.to_thread(load)
        )

    async def get_category(self, slug: str, language: str = "en") -> CachedResult:
        language = _check_language(language)

        def load() -> Any:
            record = self._categories.get_by_slug(slug)
            if record is None:
                raise NotFoundError.for_resource("Category", slug)
            return to_category_detail_dto(record, language).model_dump(mode="json")

        return await self._cached(
            item_key("category", f"{language}:{slug}"),
            CacheTTL.CATEGORIES,
            lambda: asyncio.to_thread(load),
        )

    async def create_category(self, data: CategoryCreate) -> dict[str, Any]:
        record = await asyncio.to_thread(self._categories.create, data)
        self._after_write(self._invalidate.categories, "category")
        return to_category_detail_dto(record).model_dump(mode="json")

    # ── Downloads ────────────────────────────────────────────────────────

    async def list_downloads(self, options: DownloadQueryOptions) -> CachedResult:
        options = options.normalized(self._max_page_size)

        def load() -> Any:
            rows = self._downloads.list_downloads(options)
            total = self._downloads.count(options)
            return paginated_response(
                [to_download_list_dto(row) for row in rows],
                total=total,
                limit=options.limit,
                offset=options.offset,
            ).model_dump(mode="json")

        return await self._cached(
            download_key(options), CacheTTL.DOWNLOADS, lambda: asyncio.to_thread(load)
        )

    async def get_download(self, download_id: int) -> CachedResult:
        def load() -> Any:
            record = self._downloads.get(download_id)
            if record is None:
                raise NotFoundError.for_resource("Download", download_id)
            return to_download_detail_dto(record).model_dump(mode="json")

        return await self._cached(
            item_key("download", download_id), CacheTTL.DOWNLOADS, lambda: asyncio.to_thread(load)
        )

    async def create_download(self, data: DownloadCreate) -> dict[str, Any]:
        record = await asyncio.to_thread(self._downloads.create, data)
        self._after_write(self._invalidate.downloads, "download")
        return to_download_detail_dto(record).model_dump(mode="json")

    async def update_download(self, download_id: int, data: DownloadUpdate) -> dict[str, Any]:
        record = await asyncio.to_thread(self._downloads.update, download_id, data)
        self._after_write(self._invalidate.downloads, "download")
        return to_download_detail_dto(record).model_dump(mode="json")

    async def delete_download(self, download_id: int) -> None:
        await asyncio.to_thread(self._downloads.delete, download_id)
        self._after_write(self._invalidate.downloads, "download")

    async def record_download(self, download_id: int) -> int:
        """Count one download; returns the new total."""
        count = await asyncio.to_thread(self._downloads.increment_download_count, download_id)
        self._after_write(self._invalidate.downloads, "download")
        return count

    # ── Cache admin ──────────────────────────────────────────────────────

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def clear_cache(self) -> int:
        removed = self._invalidate.all()
        logger.info("cache_cleared", removed=removed)
        return removed


__all__ = ["CacheStatus", "CachedResult", "ContentService"]
