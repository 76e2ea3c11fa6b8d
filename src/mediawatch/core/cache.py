"""
In-process TTL cache for content read paths.

A single :class:`CacheStore` instance, owned by the container, fronts the
article/category/download queries. Entries expire after their TTL, the
store is bounded by ``max_entries`` and evicts the least recently accessed
entry when a new key would overflow it, and writes invalidate by substring
pattern through :class:`CacheInvalidator`.

Manifesto:
    - **TTL on every entry:** No unbounded staleness
    - **Bounded:** ``max_entries`` caps memory; eviction is a linear scan
    - **Deterministic keys:** Same options, same key, whatever built them
    - **Single-flight:** Concurrent misses on one key share one producer
    - **Explicit lifecycle:** The sweep task runs between ``start()`` and ``stop()``

Architecture:
    ::

        CacheStore
        ├── get / set / delete / has / clear
        ├── invalidate_pattern(substring) → removed count
        ├── get_or_set(key, producer, ttl)   (single-flight)
        ├── purge_expired() ← sweep task every ``sweep_interval`` seconds
        └── stats() → CacheStats

        Key builders:  articles:{category}:{featured}:{published}:{language}:
                       {limit}:{offset}:{sort_by}:{sort_order}:{cursor}:{shape}
                       categories:{language}
                       downloads:{category}:{file_type}:{featured}:{limit}:{offset}
                       {type}:{identifier}
                       search:{language}:{query}

Examples:
    >>> store = CacheStore(max_entries=2)
    >>> store.set("article:1", {"id": 1}, CacheTTL.ARTICLE_DETAIL)
    >>> store.get("article:1")
    {'id': 1}
    >>> CacheInvalidator(store).articles()
    1

Guardrails:
    ❌ DON'T: Share a CacheStore across processes (state is process-local)
    ✅ DO: Store JSON-able values so ``stats()`` can size them

    ❌ DON'T: Touch the store from worker threads
    ✅ DO: Call it from the event loop thread only (no locks are taken)

Tags:
    cache, ttl, eviction, single-flight, invalidation, mediawatch

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from mediawatch.core.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class CacheTTL:
    """TTL presets in seconds."""

    ARTICLES_LIST = 300
    ARTICLE_DETAIL = 600
    CATEGORIES = 1800
    DOWNLOADS = 900
    SEARCH_RESULTS = 120


@dataclass
class CacheEntry:
    """One cached value plus its bookkeeping."""

    data: Any
    timestamp: float
    ttl: float
    access_count: int = 0
    last_accessed: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache statistics.

    ``memory_usage`` is an estimate in bytes (two bytes per character of
    key and JSON-encoded value plus 64 bytes of entry overhead).
    ``hit_rate`` is a percentage rounded to two decimals.
    """

    hits: int
    misses: int
    entries: int
    memory_usage: int
    hit_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "entries": self.entries,
            "memory_usage": self.memory_usage,
            "hit_rate": self.hit_rate,
        }


# ── Key builders ─────────────────────────────────────────────────────────


def _option(options: Any, name: str) -> Any:
    if options is None:
        return None
    if isinstance(options, Mapping):
        return options.get(name)
    return getattr(options, name, None)


def _part(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def article_list_key(options: Any) -> str:
    """Build the cache key for an article listing.

    ``options`` may be a mapping or any object exposing the option names as
    attributes. ``paginated`` selects the response shape segment: the
    enveloped and flat shapes of one query never share a key.
    """
    cursor = _option(options, "cursor")
    offset = _option(options, "offset") or 0
    paginated = bool(_option(options, "paginated")) or bool(cursor) or offset > 0
    parts = [
        "articles",
        _part(_option(options, "category_id"), "all"),
        _part(_option(options, "featured"), "all"),
        _part(_option(options, "published"), "true"),
        _part(_option(options, "language"), "en"),
        _part(_option(options, "limit"), "20"),
        _part(offset, "0"),
        _part(_option(options, "sort_by"), "published_at"),
        _part(_option(options, "sort_order"), "desc"),
        _part(cursor, "-"),
        "paged" if paginated else "flat",
    ]
    return ":".join(parts)


def category_key(language: str | None = None) -> str:
    return f"categories:{language or 'all'}"


def download_key(options: Any) -> str:
    parts = [
        "downloads",
        _part(_option(options, "category"), "all"),
        _part(_option(options, "file_type"), "all"),
        _part(_option(options, "featured"), "all"),
        _part(_option(options, "limit"), "20"),
        _part(_option(options, "offset"), "0"),
    ]
    return ":".join(parts)


def item_key(item_type: str, identifier: str | int) -> str:
    return f"{item_type}:{identifier}"


def search_key(query: str, language: str | None = None) -> str:
    return f"search:{language or 'en'}:{query.strip().lower()}"


# ── Store ────────────────────────────────────────────────────────────────


def _retrieve_exception(task: asyncio.Future[Any]) -> None:
    # A producer nobody awaits any more must not log "exception was never retrieved".
    if not task.cancelled():
        task.exception()


class CacheStore:
    """Bounded TTL cache with least-recently-accessed eviction.

    Args:
        max_entries: Capacity; inserting a new key at capacity evicts one entry.
        default_ttl: TTL in seconds used when ``set`` gets none.
        sweep_interval: Seconds between background purges after ``start()``.
        clock: Time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        *,
        max_entries: int = 1000,
        default_ttl: float = 300.0,
        sweep_interval: float = 60.0,
        clock: Clock = time.monotonic,
    ):
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Future[Any]] = {}
        self._max_entries = max_entries
        self._default_ttl = default_ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on a miss.

        An expired entry is removed and counted as a miss.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            self._misses += 1
            return None

        entry.access_count += 1
        entry.last_accessed = now
        self._hits += 1
        return entry.data

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        if key not in self._entries and len(self._entries) >= self._max_entries:
            self._evict_least_recently_accessed()

        now = self._clock()
        self._entries[key] = CacheEntry(
            data=value,
            timestamp=now,
            ttl=self._default_ttl if ttl is None else ttl,
            last_accessed=now,
        )

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset hit/miss counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def has(self, key: str) -> bool:
        """TTL-aware membership test; does not touch hit/miss counters."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return False
        return True

    def invalidate_pattern(self, pattern: str) -> int:
        """Remove every key containing ``pattern``; returns the count removed."""
        doomed = [key for key in self._entries if pattern in key]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.info("cache_invalidated", pattern=pattern, removed=len(doomed))
        return len(doomed)

    def purge_expired(self) -> int:
        now = self._clock()
        doomed = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug("cache_swept", removed=len(doomed))
        return len(doomed)

    async def get_or_set(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
    ) -> Any:
        """Return the cached value or produce, store and return it.

        Concurrent callers missing on the same key await a single producer
        task. A producer failure reaches every waiter and nothing is stored.
        Cancelling one caller leaves the producer running for the others.
        A producer returning ``None`` is stored but always reads as a miss.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._produce(key, producer, ttl))
            pending.add_done_callback(_retrieve_exception)
            self._inflight[key] = pending
        return await asyncio.shield(pending)

    async def _produce(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl: float | None,
    ) -> Any:
        try:
            value = await producer()
            self.set(key, value, ttl)
            return value
        finally:
            self._inflight.pop(key, None)

    def stats(self) -> CacheStats:
        total = self._hits + self._misses
        hit_rate = (self._hits / total) * 100 if total else 0.0
        memory = 0
        for key, entry in self._entries.items():
            memory += len(key) * 2
            memory += len(json.dumps(entry.data, default=str)) * 2
            memory += 64
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            entries=len(self._entries),
            memory_usage=memory,
            hit_rate=round(hit_rate, 2),
        )

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the periodic expiry sweep on the running loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(
                self._sweep_loop(), name="cache-sweep"
            )

    async def stop(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            removed = self.purge_expired()
            if removed:
                logger.info("cache_cleanup", removed=removed, entries=len(self._entries))

    def _evict_least_recently_accessed(self) -> None:
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].last_accessed)
        del self._entries[oldest_key]
        logger.debug("cache_evicted", key=oldest_key)


class CacheInvalidator:
    """Pattern groups removed after writes to each resource."""

    def __init__(self, store: CacheStore):
        self._store = store

    def articles(self) -> int:
        # "article" also matches single-article keys ("article:12").
        return self._store.invalidate_pattern("article") + self.search()

    def categories(self) -> int:
        # Article payloads embed category names.
        return (
            self._store.invalidate_pattern("categories")
            + self._store.invalidate_pattern("category")
            + self.articles()
        )

    def downloads(self) -> int:
        return self._store.invalidate_pattern("download")

    def search(self) -> int:
        return self._store.invalidate_pattern("search")

    def all(self) -> int:
        count = len(self._store)
        self._store.clear()
        return count


__all__ = [
    "CacheTTL",
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "CacheInvalidator",
    "article_list_key",
    "category_key",
    "download_key",
    "item_key",
    "search_key",
]
