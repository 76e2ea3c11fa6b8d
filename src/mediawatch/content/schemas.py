"""
Content query options, row records and write payloads.

Three kinds of types live here:

* **Options** (``ArticleQueryOptions``, ``DownloadQueryOptions``): frozen
  dataclasses describing a listing; ``normalized()`` validates and clamps.
* **Records** (``ArticleRecord``, ``CategoryRecord``, ``DownloadRecord``):
  plain rows returned by repositories, detached from any session.
* **Payloads** (``ArticleCreate``, ``ArticleUpdate`` ...): pydantic models
  accepted by write operations and used directly as HTTP request bodies.

Tags:
    content, schemas, pydantic, dataclasses, mediawatch

Doc-Types:
    API Reference, Data Model
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, replace
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from mediawatch.core.errors import ValidationError

Language = Literal["en", "ar"]
SortField = Literal["published_at", "created_at", "id"]
SortOrder = Literal["asc", "desc"]

SORT_FIELDS: tuple[str, ...] = ("published_at", "created_at", "id")
SORT_ORDERS: tuple[str, ...] = ("asc", "desc")
LANGUAGES: tuple[str, ...] = ("en", "ar")
DEFAULT_PAGE_SIZE = 20
WORDS_PER_MINUTE = 200


def estimate_reading_time(content: str | None) -> int:
    """Minutes to read ``content`` at 200 words per minute, rounded up."""
    if not content or not content.strip():
        return 0
    words = len(content.split())
    return -(-words // WORDS_PER_MINUTE)


# ── Options ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ArticleQueryOptions:
    """Filters, ordering and paging for an article listing.

    ``cursor`` and ``offset`` are mutually exclusive; a cursor wins.
    ``paginated`` asks for the envelope shape even on the first page.
    """

    category_id: int | None = None
    featured: bool | None = None
    published: bool = True
    language: str = "en"
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    cursor: str | None = None
    sort_by: str = "published_at"
    sort_order: str = "desc"
    paginated: bool = False

    @property
    def wants_envelope(self) -> bool:
        return self.paginated or bool(self.cursor) or self.offset > 0

    def normalized(self, max_page_size: int = 1000) -> ArticleQueryOptions:
        """Validate enums and clamp ``limit``/``offset`` into range.

        Raises:
            ValidationError: unknown ``sort_by``, ``sort_order`` or ``language``
        """
        if self.sort_by not in SORT_FIELDS:
            raise ValidationError(
                f"Unknown sort field '{self.sort_by}'; expected one of {', '.join(SORT_FIELDS)}"
            ).with_context(resource="article", field="sort_by")
        if self.sort_order not in SORT_ORDERS:
            raise ValidationError(
                f"Unknown sort order '{self.sort_order}'; expected asc or desc"
            ).with_context(resource="article", field="sort_order")
        if self.language not in LANGUAGES:
            raise ValidationError(
                f"Unsupported language '{self.language}'"
            ).with_context(resource="article", field="language")
        return replace(
            self,
            limit=min(max(self.limit, 1), max_page_size),
            offset=max(self.offset, 0),
            cursor=self.cursor or None,
        )


@dataclass(frozen=True)
class DownloadQueryOptions:
    category: str | None = None
    file_type: str | None = None
    featured: bool | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def normalized(self, max_page_size: int = 1000) -> DownloadQueryOptions:
        return replace(
            self,
            limit=min(max(self.limit, 1), max_page_size),
            offset=max(self.offset, 0),
        )


# ── Records ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CategoryRecord:
    id: int
    slug: str
    name_en: str
    name_ar: str
    description_en: str | None = None
    description_ar: str | None = None
    icon_name: str | None = None
    created_at: datetime.datetime | None = None
    article_count: int = 0


@dataclass(frozen=True)
class ArticleRecord:
    """One article row.

    List queries leave ``content_en``/``content_ar`` as ``None`` and fill the
    ``preview_*`` fields with the first 200 characters instead.
    """

    id: int
    slug: str
    title_en: str
    title_ar: str | None
    excerpt_en: str | None
    excerpt_ar: str | None
    featured_image: str | None
    author_name: str
    author_image: str | None
    category_id: int | None
    category_name_en: str | None
    category_name_ar: str | None
    published: bool
    featured: bool
    reading_time: int | None
    published_at: datetime.datetime | None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    content_en: str | None = None
    content_ar: str | None = None
    preview_en: str | None = None
    preview_ar: str | None = None
    meta_description_en: str | None = None
    meta_description_ar: str | None = None

    def sort_value(self, sort_field: str) -> datetime.datetime | int:
        """Value of the ordering column for this row."""
        if sort_field == "published_at":
            return self.published_at or self.created_at
        if sort_field == "created_at":
            return self.created_at
        return self.id


@dataclass(frozen=True)
class DownloadRecord:
    id: int
    title: str
    title_ar: str | None
    description: str
    description_ar: str | None
    file_name: str
    original_file_name: str
    file_size: str
    file_size_bytes: int
    file_type: str
    mime_type: str
    category: str
    category_ar: str | None
    download_count: int
    featured: bool
    tags: list[str] | None
    preview_url: str | None
    file_path: str
    uploaded_at: datetime.datetime
    created_at: datetime.datetime
    updated_at: datetime.datetime


@dataclass(frozen=True)
class ArticlePage:
    """One page from the pagination query (before DTO mapping)."""

    rows: list[ArticleRecord]
    has_next: bool
    next_cursor: str | None
    offset: int
    from_cursor: bool = False


# ── Write payloads ───────────────────────────────────────────────────────


class ArticleCreate(BaseModel):
    """Payload for creating an article."""

    model_config = ConfigDict(extra="forbid")

    slug: str = Field(min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    title_en: str = Field(min_length=1, max_length=300)
    title_ar: str | None = Field(default=None, max_length=300)
    excerpt_en: str | None = None
    excerpt_ar: str | None = None
    content_en: str = Field(min_length=1)
    content_ar: str | None = None
    meta_description_en: str | None = Field(default=None, max_length=160)
    meta_description_ar: str | None = Field(default=None, max_length=160)
    featured_image: str | None = None
    author_name: str = Field(min_length=1, max_length=100)
    author_image: str | None = None
    category_id: int | None = None
    published: bool = False
    featured: bool = False
    reading_time: int | None = Field(default=None, ge=0)
    published_at: datetime.datetime | None = None
    publish_now: bool = False


class ArticleUpdate(BaseModel):
    """Partial update; only fields that were set are applied."""

    model_config = ConfigDict(extra="forbid")

    slug: str | None = Field(default=None, min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    title_en: str | None = Field(default=None, min_length=1, max_length=300)
    title_ar: str | None = None
    excerpt_en: str | None = None
    excerpt_ar: str | None = None
    content_en: str | None = Field(default=None, min_length=1)
    content_ar: str | None = None
    meta_description_en: str | None = Field(default=None, max_length=160)
    meta_description_ar: str | None = Field(default=None, max_length=160)
    featured_image: str | None = None
    author_name: str | None = Field(default=None, min_length=1, max_length=100)
    author_image: str | None = None
    category_id: int | None = None
    published: bool | None = None
    featured: bool | None = None
    reading_time: int | None = Field(default=None, ge=0)
    published_at: datetime.datetime | None = None
    publish_now: bool = False


class CategoryCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    slug: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    name_en: str = Field(min_length=1, max_length=200)
    name_ar: str = Field(min_length=1, max_length=200)
    description_en: str | None = None
    description_ar: str | None = None
    icon_name: str | None = Field(default=None, max_length=50)


class DownloadCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=255)
    title_ar: str | None = None
    description: str
    description_ar: str | None = None
    file_name: str = Field(min_length=1, max_length=255)
    original_file_name: str = Field(min_length=1, max_length=255)
    file_size: str
    file_size_bytes: int = Field(ge=0)
    file_type: str = Field(min_length=1, max_length=20)
    mime_type: str
    category: str = Field(min_length=1, max_length=100)
    category_ar: str | None = None
    featured: bool = False
    tags: list[str] | None = None
    preview_url: str | None = None
    file_path: str = Field(min_length=1, max_length=500)


class DownloadUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    title_ar: str | None = None
    description: str | None = None
    description_ar: str | None = None
    file_type: str | None = None
    category: str | None = None
    category_ar: str | None = None
    featured: bool | None = None
    tags: list[str] | None = None
    preview_url: str | None = None


__all__ = [
    "Language",
    "SortField",
    "SortOrder",
    "SORT_FIELDS",
    "SORT_ORDERS",
    "LANGUAGES",
    "DEFAULT_PAGE_SIZE",
    "estimate_reading_time",
    "ArticleQueryOptions",
    "DownloadQueryOptions",
    "CategoryRecord",
    "ArticleRecord",
    "DownloadRecord",
    "ArticlePage",
    "ArticleCreate",
    "ArticleUpdate",
    "CategoryCreate",
    "DownloadCreate",
    "DownloadUpdate",
]
