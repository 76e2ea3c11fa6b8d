"""
Shared pytest fixtures for mediawatch tests.

This module provides:
- An in-memory SQLite engine with the schema created (``StaticPool``)
- Repositories, a cache store and a ContentService wired to that engine
- ``FakeClock`` for deterministic TTL, rate-limit and breaker tests
- ``seed_articles`` for building article sets with controlled timestamps
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Generator
from typing import Any

import pytest

from mediawatch.content.repository import ArticleRepository, CategoryRepository, DownloadRepository
from mediawatch.content.service import ContentService
from mediawatch.core.cache import CacheStore
from mediawatch.orm import ArticleTable, CategoryTable, DownloadTable
from mediawatch.orm.session import create_mediawatch_engine, init_schema, session_factory

BASE_TIME = datetime.datetime(2025, 1, 1, 12, 0, 0)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine() -> Generator[Any, None, None]:
    engine = create_mediawatch_engine("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessions(engine):
    return session_factory(engine)


@pytest.fixture
def article_repo(sessions) -> ArticleRepository:
    return ArticleRepository(sessions)


@pytest.fixture
def category_repo(sessions) -> CategoryRepository:
    return CategoryRepository(sessions)


@pytest.fixture
def download_repo(sessions) -> DownloadRepository:
    return DownloadRepository(sessions)


# =============================================================================
# Cache / service
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> CacheStore:
    return CacheStore(max_entries=1000, default_ttl=300.0, clock=clock)


@pytest.fixture
def service(article_repo, category_repo, download_repo, cache) -> ContentService:
    return ContentService(article_repo, category_repo, download_repo, cache)


# =============================================================================
# Seed helpers
# =============================================================================


@pytest.fixture
def seed_category(sessions) -> Callable[..., int]:
    def _seed(slug: str = "politics", name_en: str = "Politics", name_ar: str = "سياسة") -> int:
        with sessions() as session:
            category = CategoryTable(slug=slug, name_en=name_en, name_ar=name_ar)
            session.add(category)
            session.commit()
            return category.id

    return _seed


@pytest.fixture
def seed_articles(sessions) -> Callable[..., list[int]]:
    """Insert ``count`` published articles; article i is published i minutes after BASE_TIME.

    ``same_time=True`` gives every article the same ``published_at`` so only
    the id tie-break orders them.
    """

    def _seed(
        count: int,
        *,
        same_time: bool = False,
        category_id: int | None = None,
        published: bool = True,
        featured: bool = False,
        prefix: str = "article",
    ) -> list[int]:
        ids = []
        with sessions() as session:
            for i in range(1, count + 1):
                stamp = BASE_TIME if same_time else BASE_TIME + datetime.timedelta(minutes=i)
                article = ArticleTable(
                    slug=f"{prefix}-{i}",
                    title_en=f"Article {i}",
                    title_ar=f"مقال {i}",
                    content_en=f"Body of article {i} " * 10,
                    content_ar=f"نص المقال {i}",
                    author_name="Desk",
                    category_id=category_id,
                    published=published,
                    featured=featured,
                    published_at=stamp if published else None,
                    created_at=stamp,
                    updated_at=stamp,
                )
                session.add(article)
                session.flush()
                ids.append(article.id)
            session.commit()
        return ids

    return _seed


@pytest.fixture
def seed_download(sessions) -> Callable[..., int]:
    def _seed(title: str = "Annual report", *, featured: bool = False, file_type: str = "pdf", **kw: Any) -> int:
        values = {
            "title": title,
            "description": f"{title} description",
            "file_name": f"{title.lower().replace(' ', '-')}.{file_type}",
            "original_file_name": f"{title}.{file_type}",
            "file_size": "1.2 MB",
            "file_size_bytes": 1_258_291,
            "file_type": file_type,
            "mime_type": "application/pdf",
            "category": "reports",
            "featured": featured,
            "file_path": f"/uploads/{title.lower().replace(' ', '-')}.{file_type}",
        }
        values.update(kw)
        with sessions() as session:
            download = DownloadTable(**values)
            session.add(download)
            session.commit()
            return download.id

    return _seed
