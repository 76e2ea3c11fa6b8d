"""
Tests for mediawatch.core.cache.

Covers:
- Key builders: determinism, defaults, shape segment
- CacheStore: TTL expiry, capacity eviction, counters, pattern invalidation
- get_or_set: single-flight, failure propagation
- CacheInvalidator groups
"""

from __future__ import annotations

import asyncio

import pytest

from mediawatch.content.schemas import ArticleQueryOptions
from mediawatch.core.cache import (
    CacheInvalidator,
    CacheStore,
    article_list_key,
    category_key,
    download_key,
    item_key,
    search_key,
)


class TestKeyBuilders:
    def test_article_key_defaults(self):
        assert article_list_key({}) == (
            "articles:all:all:true:en:20:0:published_at:desc:-:flat"
        )

    def test_article_key_mapping_and_dataclass_agree(self):
        """The same options give the same key whatever their container."""
        options = ArticleQueryOptions(category_id=3, featured=True, language="ar", limit=10)
        mapping = {"category_id": 3, "featured": True, "language": "ar", "limit": 10, "published": True}
        assert article_list_key(options) == article_list_key(mapping)
        assert article_list_key(options) == "articles:3:true:true:ar:10:0:published_at:desc:-:flat"

    def test_article_key_distinguishes_shape(self):
        flat = article_list_key({"limit": 20})
        paged = article_list_key({"limit": 20, "paginated": True})
        assert flat != paged
        assert paged.endswith(":paged")

    def test_cursor_or_offset_selects_paged_shape(self):
        assert article_list_key({"cursor": "abc"}).endswith(":abc:paged")
        assert article_list_key({"offset": 40}).endswith(":paged")

    def test_false_featured_is_not_all(self):
        assert article_list_key({"featured": False}).startswith("articles:all:false:")

    def test_other_keys(self):
        assert category_key() == "categories:all"
        assert category_key("ar") == "categories:ar"
        assert download_key({"file_type": "pdf"}) == "downloads:all:pdf:all:20:0"
        assert item_key("article", 42) == "article:42"
        assert search_key("  Gaza Ceasefire ", "ar") == "search:ar:gaza ceasefire"
        assert search_key("x") == "search:en:x"


class TestCacheStore:
    def test_get_set_and_counters(self, clock):
        cache = CacheStore(clock=clock)
        assert cache.get("k") is None
        cache.set("k", {"a": 1})
        assert cache.get("k") == {"a": 1}
        stats = cache.stats()
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.entries == 1
        assert stats.hit_rate == 50.0

    def test_entry_expires_after_ttl(self, clock):
        cache = CacheStore(clock=clock)
        cache.set("k", "v", ttl=10)
        clock.advance(10)
        assert cache.get("k") == "v"
        clock.advance(0.5)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_has_does_not_count(self, clock):
        cache = CacheStore(clock=clock)
        cache.set("k", 1)
        assert cache.has("k")
        assert "missing" not in cache
        stats = cache.stats()
        assert (stats.hits, stats.misses) == (0, 0)

    def test_eviction_removes_least_recently_accessed(self, clock):
        cache = CacheStore(max_entries=3, clock=clock)
        for key in ("a", "b", "c"):
            cache.set(key, key)
            clock.advance(1)
        cache.get("a")
        clock.advance(1)

        cache.set("d", "d")

        assert len(cache) == 3
        assert not cache.has("b")
        assert cache.has("a") and cache.has("c") and cache.has("d")

    def test_overwrite_at_capacity_does_not_evict(self, clock):
        cache = CacheStore(max_entries=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 3)
        assert len(cache) == 2
        assert cache.get("a") == 3
        assert cache.get("b") == 2

    def test_invalidate_pattern_is_substring_match(self, clock):
        cache = CacheStore(clock=clock)
        cache.set("articles:all:flat", 1)
        cache.set("article:12", 2)
        cache.set("downloads:all", 3)
        assert cache.invalidate_pattern("article") == 2
        assert len(cache) == 1

    def test_purge_expired(self, clock):
        cache = CacheStore(clock=clock)
        cache.set("short", 1, ttl=1)
        cache.set("long", 2, ttl=100)
        clock.advance(5)
        assert cache.purge_expired() == 1
        assert cache.has("long")

    def test_clear_resets_counters(self, clock):
        cache = CacheStore(clock=clock)
        cache.set("k", 1)
        cache.get("k")
        cache.clear()
        stats = cache.stats()
        assert stats.entries == 0
        assert stats.hits == 0
        assert stats.hit_rate == 0.0

    def test_memory_estimate(self, clock):
        cache = CacheStore(clock=clock)
        cache.set("ab", [1])
        # key 2 chars, JSON "[1]" 3 chars, 64 overhead
        assert cache.stats().memory_usage == 2 * 2 + 3 * 2 + 64


class TestGetOrSet:
    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_producer(self, clock):
        cache = CacheStore(clock=clock)
        calls = 0
        release = asyncio.Event()

        async def produce():
            nonlocal calls
            calls += 1
            await release.wait()
            return {"rows": [1, 2]}

        tasks = [asyncio.create_task(cache.get_or_set("k", produce)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(r == {"rows": [1, 2]} for r in results)
        assert cache.get("k") == {"rows": [1, 2]}

    @pytest.mark.asyncio
    async def test_failure_reaches_waiters_and_stores_nothing(self, clock):
        cache = CacheStore(clock=clock)
        release = asyncio.Event()

        async def produce():
            await release.wait()
            raise RuntimeError("db down")

        tasks = [asyncio.create_task(cache.get_or_set("k", produce)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert not cache.has("k")

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_other_waiters(self, clock):
        cache = CacheStore(clock=clock)
        calls = 0
        release = asyncio.Event()

        async def produce():
            nonlocal calls
            calls += 1
            await release.wait()
            return "fresh"

        first = asyncio.create_task(cache.get_or_set("k", produce))
        await asyncio.sleep(0)
        second = asyncio.create_task(cache.get_or_set("k", produce))
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        release.set()
        assert await second == "fresh"
        assert calls == 1
        assert cache.get("k") == "fresh"

    @pytest.mark.asyncio
    async def test_hit_skips_producer(self, clock):
        cache = CacheStore(clock=clock)
        cache.set("k", "cached")

        async def produce():
            raise AssertionError("should not run")

        assert await cache.get_or_set("k", produce) == "cached"

    @pytest.mark.asyncio
    async def test_start_stop_sweep(self):
        cache = CacheStore(sweep_interval=0.01)
        await cache.start()
        assert cache.running
        await cache.stop()
        assert not cache.running


class TestCacheInvalidator:
    def _populated(self) -> CacheStore:
        cache = CacheStore()
        for key in (
            "articles:all:all:true:en:20:0:published_at:desc:-:flat",
            "article:7",
            "search:en:gaza",
            "categories:all",
            "category:en:politics",
            "downloads:all:all:all:20:0",
            "download:3",
        ):
            cache.set(key, 1)
        return cache

    def test_articles_group(self):
        cache = self._populated()
        assert CacheInvalidator(cache).articles() == 3
        assert cache.has("categories:all")
        assert cache.has("download:3")

    def test_categories_group_includes_articles(self):
        cache = self._populated()
        assert CacheInvalidator(cache).categories() == 5
        assert len(cache) == 2

    def test_downloads_group(self):
        cache = self._populated()
        assert CacheInvalidator(cache).downloads() == 2
        assert cache.has("article:7")

    def test_all(self):
        cache = self._populated()
        assert CacheInvalidator(cache).all() == 7
        assert len(cache) == 0
