"""
Response DTOs and the record → DTO transformer.

Three article views nest: ``ArticleListDTO`` ⊂ ``ArticleDetailDTO`` ⊂
``ArticleAdminDTO``. Each view picks Arabic fields when ``language="ar"``
and falls back to English where the Arabic field is empty.

Every transformer is a pure function of its inputs, so a cached payload
(``model_dump(mode="json")``) is indistinguishable from a fresh one.

Response Envelope Conventions:
    - Flat listings are a JSON array of list DTOs
    - Paged listings are ``PaginatedResponse``: ``data`` + ``pagination``
    - ``PaginationMeta.current_page`` is clamped into ``[1, total_pages]``

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

import datetime
import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from mediawatch.content.schemas import (
    ArticleRecord,
    CategoryRecord,
    DownloadRecord,
    estimate_reading_time,
)

T = TypeVar("T")

EXCERPT_FALLBACK_CHARS = 200


# ── Article DTOs ─────────────────────────────────────────────────────────


class ArticleListDTO(BaseModel):
    """Card-sized article view; never carries the body."""

    id: int
    title: str
    slug: str
    excerpt: str
    featured_image: str | None = None
    published_at: datetime.datetime | None = None
    featured: bool
    category_id: int | None = None
    category_name: str | None = None
    language: str
    reading_time: int
    author_name: str
    author_image: str | None = None


class ArticleDetailDTO(ArticleListDTO):
    """Public article page."""

    content: str
    updated_at: datetime.datetime
    meta_description: str | None = None


class ArticleAdminDTO(ArticleDetailDTO):
    """Editor view: the detail view plus workflow fields."""

    created_at: datetime.datetime
    published: bool


# ── Category / download DTOs ─────────────────────────────────────────────


class CategoryListDTO(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None = None
    icon_name: str | None = None
    article_count: int = 0
    language: str


class CategoryDetailDTO(CategoryListDTO):
    created_at: datetime.datetime | None = None


class DownloadListDTO(BaseModel):
    """Download card; carries both languages (download keys are language-free)."""

    id: int
    title: str
    title_ar: str | None = None
    description: str | None = None
    description_ar: str | None = None
    file_type: str
    file_size: str
    file_size_bytes: int
    download_count: int = 0
    featured: bool = False
    category: str
    category_ar: str | None = None
    preview_url: str | None = None
    created_at: datetime.datetime


class DownloadDetailDTO(DownloadListDTO):
    file_name: str
    original_file_name: str
    file_path: str
    mime_type: str
    tags: list[str] = Field(default_factory=list)
    uploaded_at: datetime.datetime
    updated_at: datetime.datetime


# ── Pagination envelope ──────────────────────────────────────────────────


class PaginationMeta(BaseModel):
    """Pagination metadata for enveloped listings.

    UI Hints:
        Use ``next_cursor`` for "load more"; use ``current_page`` /
        ``total_pages`` for numbered pagers.
    """

    total: int = Field(description="Rows matching the filters, ignoring any cursor")
    limit: int = Field(description="Page size")
    offset: int = Field(description="Position of the first row on this page")
    has_next: bool
    has_prev: bool
    next_cursor: str | None = None
    total_pages: int
    current_page: int


class PaginatedResponse(BaseModel, Generic[T]):
    data: list[T]
    pagination: PaginationMeta


def pagination_meta(
    total: int,
    limit: int,
    offset: int,
    next_cursor: str | None = None,
    has_next: bool | None = None,
) -> PaginationMeta:
    """Envelope arithmetic.

    ``has_next`` defaults to ``offset + limit < total``; cursor pages pass the
    value observed from the over-fetch instead.
    """
    limit = max(limit, 1)
    total_pages = math.ceil(total / limit) if total > 0 else 0
    current_page = offset // limit + 1
    if total_pages:
        current_page = min(max(current_page, 1), total_pages)
    else:
        current_page = 1
    return PaginationMeta(
        total=total,
        limit=limit,
        offset=offset,
        has_next=(offset + limit < total) if has_next is None else has_next,
        has_prev=offset > 0,
        next_cursor=next_cursor,
        total_pages=total_pages,
        current_page=current_page,
    )


def paginated_response(
    data: list[T],
    total: int,
    limit: int,
    offset: int,
    next_cursor: str | None = None,
    has_next: bool | None = None,
) -> PaginatedResponse[T]:
    return PaginatedResponse(
        data=data,
        pagination=pagination_meta(total, limit, offset, next_cursor=next_cursor, has_next=has_next),
    )


# ── Transformers ─────────────────────────────────────────────────────────


def _pick(language: str, english: str | None, arabic: str | None) -> str | None:
    if language == "ar" and arabic:
        return arabic
    return english


def reading_time(stored: int | None, content: str | None) -> int:
    """Stored minutes when present, otherwise estimated from ``content``."""
    if stored:
        return stored
    return estimate_reading_time(content)


def _excerpt(excerpt: str | None, content: str | None) -> str:
    if excerpt:
        return excerpt
    if content:
        return content[:EXCERPT_FALLBACK_CHARS] + "..."
    return ""


def to_article_list_dto(record: ArticleRecord, language: str = "en") -> ArticleListDTO:
    content = _pick(language, record.content_en, record.content_ar)
    preview = content or _pick(language, record.preview_en, record.preview_ar)
    return ArticleListDTO(
        id=record.id,
        title=_pick(language, record.title_en, record.title_ar) or "",
        slug=record.slug,
        excerpt=_excerpt(_pick(language, record.excerpt_en, record.excerpt_ar), preview),
        featured_image=record.featured_image,
        published_at=record.published_at,
        featured=record.featured,
        category_id=record.category_id,
        category_name=_pick(language, record.category_name_en, record.category_name_ar),
        language=language,
        reading_time=reading_time(record.reading_time, content),
        author_name=record.author_name,
        author_image=record.author_image,
    )


def to_article_detail_dto(record: ArticleRecord, language: str = "en") -> ArticleDetailDTO:
    base = to_article_list_dto(record, language)
    return ArticleDetailDTO(
        **base.model_dump(),
        content=_pick(language, record.content_en, record.content_ar) or "",
        updated_at=record.updated_at,
        meta_description=_pick(language, record.meta_description_en, record.meta_description_ar),
    )


def to_article_admin_dto(record: ArticleRecord, language: str = "en") -> ArticleAdminDTO:
    detail = to_article_detail_dto(record, language)
    return ArticleAdminDTO(
        **detail.model_dump(),
        created_at=record.created_at,
        published=record.published,
    )


def to_category_list_dto(record: CategoryRecord, language: str = "en") -> CategoryListDTO:
    return CategoryListDTO(
        id=record.id,
        name=_pick(language, record.name_en, record.name_ar) or "",
        slug=record.slug,
        description=_pick(language, record.description_en, record.description_ar),
        icon_name=record.icon_name,
        article_count=record.article_count,
        language=language,
    )


def to_category_detail_dto(record: CategoryRecord, language: str = "en") -> CategoryDetailDTO:
    return CategoryDetailDTO(
        **to_category_list_dto(record, language).model_dump(),
        created_at=record.created_at,
    )


def to_download_list_dto(record: DownloadRecord) -> DownloadListDTO:
    return DownloadListDTO(
        id=record.id,
        title=record.title,
        title_ar=record.title_ar,
        description=record.description,
        description_ar=record.description_ar,
        file_type=record.file_type,
        file_size=record.file_size,
        file_size_bytes=record.file_size_bytes,
        download_count=record.download_count or 0,
        featured=record.featured,
        category=record.category,
        category_ar=record.category_ar,
        preview_url=record.preview_url,
        created_at=record.created_at,
    )


def to_download_detail_dto(record: DownloadRecord) -> DownloadDetailDTO:
    return DownloadDetailDTO(
        **to_download_list_dto(record).model_dump(),
        file_name=record.file_name,
        original_file_name=record.original_file_name,
        file_path=record.file_path,
        mime_type=record.mime_type,
        tags=list(record.tags or []),
        uploaded_at=record.uploaded_at,
        updated_at=record.updated_at,
    )


__all__ = [
    "ArticleListDTO",
    "ArticleDetailDTO",
    "ArticleAdminDTO",
    "CategoryListDTO",
    "CategoryDetailDTO",
    "DownloadListDTO",
    "DownloadDetailDTO",
    "PaginationMeta",
    "PaginatedResponse",
    "pagination_meta",
    "paginated_response",
    "reading_time",
    "to_article_list_dto",
    "to_article_detail_dto",
    "to_article_admin_dto",
    "to_category_list_dto",
    "to_category_detail_dto",
    "to_download_list_dto",
    "to_download_detail_dto",
]
