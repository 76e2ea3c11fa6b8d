"""
Tests for mediawatch.content.service.ContentService.

Covers:
- 25-article cursor walk through the cached service
- HIT/MISS reporting and TTL expiry
- staleness after a write that bypasses the service
- invalidation after writes through the service
- cache failures are bypassed, datastore failures propagate
"""

from __future__ import annotations

import pytest

from mediawatch.content.schemas import (
    ArticleCreate,
    ArticleQueryOptions,
    ArticleUpdate,
    CategoryCreate,
    DownloadQueryOptions,
)
from mediawatch.content.service import CacheStatus
from mediawatch.core.errors import DatabaseError, NotFoundError, ValidationError


class TestArticleListing:
    @pytest.mark.asyncio
    async def test_walks_25_articles_in_pages_of_10(self, service, seed_articles):
        seed_articles(25)

        first = await service.list_articles(ArticleQueryOptions(limit=10, paginated=True))
        assert [a["id"] for a in first.payload["data"]] == list(range(25, 15, -1))
        assert first.payload["pagination"]["total"] == 25
        assert first.payload["pagination"]["has_next"] is True

        second = await service.list_articles(
            ArticleQueryOptions(limit=10, cursor=first.payload["pagination"]["next_cursor"])
        )
        assert [a["id"] for a in second.payload["data"]] == list(range(15, 5, -1))
        assert second.payload["pagination"]["offset"] == 10
        assert second.payload["pagination"]["current_page"] == 2

        third = await service.list_articles(
            ArticleQueryOptions(limit=10, cursor=second.payload["pagination"]["next_cursor"])
        )
        assert [a["id"] for a in third.payload["data"]] == [5, 4, 3, 2, 1]
        assert third.payload["pagination"]["has_next"] is False
        assert third.payload["pagination"]["next_cursor"] is None
        assert third.payload["pagination"]["current_page"] == 3

    @pytest.mark.asyncio
    async def test_flat_shape_without_paging(self, service, seed_articles):
        seed_articles(3)
        result = await service.list_articles(ArticleQueryOptions())
        assert isinstance(result.payload, list)
        assert [a["id"] for a in result.payload] == [3, 2, 1]
        assert "content" not in result.payload[0]

    @pytest.mark.asyncio
    async def test_offset_paging_envelope(self, service, seed_articles):
        seed_articles(53)
        result = await service.list_articles(ArticleQueryOptions(limit=20, offset=40))
        meta = result.payload["pagination"]
        assert (meta["has_next"], meta["has_prev"], meta["total_pages"], meta["current_page"]) == (
            False,
            True,
            3,
            3,
        )
        assert len(result.payload["data"]) == 13

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, service, seed_articles):
        seed_articles(2)
        result = await service.list_articles(ArticleQueryOptions(limit=0, paginated=True))
        assert result.payload["pagination"]["limit"] == 1

    @pytest.mark.asyncio
    async def test_bad_sort_field(self, service):
        with pytest.raises(ValidationError):
            await service.list_articles(ArticleQueryOptions(sort_by="title"))


class TestCaching:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, service, seed_articles):
        seed_articles(3)
        first = await service.list_articles(ArticleQueryOptions())
        second = await service.list_articles(ArticleQueryOptions())
        assert first.cache_status is CacheStatus.MISS
        assert second.cache_status is CacheStatus.HIT
        assert second.payload == first.payload
        assert first.ttl == 300

    @pytest.mark.asyncio
    async def test_expiry_requeries(self, service, seed_articles, clock):
        seed_articles(1)
        await service.list_articles(ArticleQueryOptions())
        clock.advance(301)
        assert (await service.list_articles(ArticleQueryOptions())).cache_status is CacheStatus.MISS

    @pytest.mark.asyncio
    async def test_direct_write_is_stale_until_invalidated(self, service, seed_articles, article_repo):
        seed_articles(2)
        await service.list_articles(ArticleQueryOptions())
        article_repo.update(1, ArticleUpdate(title_en="Changed underneath"))

        cached = await service.list_articles(ArticleQueryOptions())
        assert cached.cache_status is CacheStatus.HIT
        assert "Changed underneath" not in [a["title"] for a in cached.payload]

        service.clear_cache()
        fresh = await service.list_articles(ArticleQueryOptions())
        assert "Changed underneath" in [a["title"] for a in fresh.payload]

    @pytest.mark.asyncio
    async def test_service_write_invalidates_listing(self, service, seed_articles):
        seed_articles(2)
        await service.list_articles(ArticleQueryOptions())
        await service.update_article(1, ArticleUpdate(title_en="Fresh title"))

        result = await service.list_articles(ArticleQueryOptions())
        assert result.cache_status is CacheStatus.MISS
        assert "Fresh title" in [a["title"] for a in result.payload]

    @pytest.mark.asyncio
    async def test_article_write_refreshes_category_counts(self, service, seed_category):
        cat = seed_category()
        before = await service.list_categories()
        assert before.payload[0]["article_count"] == 0
        page_before = await service.get_category("politics")
        assert page_before.payload["article_count"] == 0

        await service.create_article(
            ArticleCreate(slug="x", title_en="X", content_en="body", author_name="Desk", category_id=cat, publish_now=True)
        )
        after = await service.list_categories()
        assert after.cache_status is CacheStatus.MISS
        assert after.payload[0]["article_count"] == 1

        page_after = await service.get_category("politics")
        assert page_after.cache_status is CacheStatus.MISS
        assert page_after.payload["article_count"] == 1

    @pytest.mark.asyncio
    async def test_cache_failure_is_bypassed(self, service, seed_articles, cache, monkeypatch):
        seed_articles(1)

        async def broken(*args, **kwargs):
            raise RuntimeError("cache unavailable")

        monkeypatch.setattr(cache, "get_or_set", broken)
        result = await service.list_articles(ArticleQueryOptions())
        assert result.cache_status is CacheStatus.BYPASS
        assert [a["id"] for a in result.payload] == [1]

    @pytest.mark.asyncio
    async def test_datastore_failure_propagates_and_is_not_cached(self, service, engine, cache):
        with engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE articles")

        with pytest.raises(DatabaseError):
            await service.list_articles(ArticleQueryOptions())
        assert len(cache) == 0


class TestDetailAndSearch:
    @pytest.mark.asyncio
    async def test_get_article_and_slug(self, service, seed_articles):
        seed_articles(2)
        admin = await service.get_article(2)
        assert admin.payload["published"] is True
        assert admin.cache_key == "article:2"

        detail = await service.get_article_by_slug("article-1", "ar")
        assert detail.payload["title"] == "مقال 1"
        assert detail.cache_key == "article:ar:article-1"

    @pytest.mark.asyncio
    async def test_missing_article(self, service):
        with pytest.raises(NotFoundError):
            await service.get_article(99)
        with pytest.raises(NotFoundError):
            await service.get_article_by_slug("nope")

    @pytest.mark.asyncio
    async def test_search(self, service, seed_articles):
        seed_articles(3)
        result = await service.search_articles("  ARTICLE 3 ")
        assert [a["id"] for a in result.payload] == [3]
        assert result.cache_key == "search:en:article 3"
        with pytest.raises(ValidationError):
            await service.search_articles("   ")


class TestCategoriesAndDownloads:
    @pytest.mark.asyncio
    async def test_category_create_and_get(self, service):
        await service.create_category(CategoryCreate(slug="tech", name_en="Tech", name_ar="تقنية"))
        result = await service.get_category("tech", "ar")
        assert result.payload["name"] == "تقنية"

    @pytest.mark.asyncio
    async def test_download_listing_and_tracking(self, service, seed_download):
        download_id = seed_download()
        listing = await service.list_downloads(DownloadQueryOptions())
        assert listing.payload["pagination"]["total"] == 1
        assert listing.payload["data"][0]["download_count"] == 0

        assert await service.record_download(download_id) == 1

        refreshed = await service.list_downloads(DownloadQueryOptions())
        assert refreshed.cache_status is CacheStatus.MISS
        assert refreshed.payload["data"][0]["download_count"] == 1

    @pytest.mark.asyncio
    async def test_delete_download(self, service, seed_download):
        download_id = seed_download()
        await service.delete_download(download_id)
        with pytest.raises(NotFoundError):
            await service.get_download(download_id)

    @pytest.mark.asyncio
    async def test_stats(self, service, seed_articles):
        seed_articles(1)
        await service.list_articles(ArticleQueryOptions())
        await service.list_articles(ArticleQueryOptions())
        stats = service.cache_stats()
        assert stats.hits == 1
        assert stats.entries == 1
