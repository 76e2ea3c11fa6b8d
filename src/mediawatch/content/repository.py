"""
Repositories for articles, categories and downloads.

Each repository owns a ``sessionmaker`` and opens a short-lived session per
call, returning detached record dataclasses. Calls are synchronous; the
content service runs them through ``asyncio.to_thread``.

Architecture::

    BaseRepository(session_factory)
      _session()  → commit on success, rollback on error,
                    IntegrityError → ConflictError, SQLAlchemyError → DatabaseError
      ├── ArticleRepository
      │     list_page(options)   cursor or offset, over-fetch limit + 1
      │     count(options)       same filters, no cursor predicate
      │     list_articles / get / get_by_slug / search / create / update / delete
      ├── CategoryRepository     list_with_counts / get / get_by_slug / create
      └── DownloadRepository     list_downloads / count / get / create / update / delete / increment

Ordering is the total order (sort value, id). ``published_at`` sorts on
``coalesce(published_at, created_at)`` so drafts still order
deterministically. Keyset predicate for ``desc``::

    value < :v OR (value = :v AND id < :id)

Tags:
    repository, sqlalchemy, pagination, cursor, keyset, mediawatch
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from mediawatch.content.cursor import Cursor, encode_cursor, parse_cursor
from mediawatch.content.schemas import (
    ArticleCreate,
    ArticlePage,
    ArticleQueryOptions,
    ArticleRecord,
    ArticleUpdate,
    CategoryCreate,
    CategoryRecord,
    DownloadCreate,
    DownloadQueryOptions,
    DownloadRecord,
    DownloadUpdate,
    estimate_reading_time,
)
from mediawatch.core.errors import ConflictError, DatabaseError, NotFoundError, ValidationError
from mediawatch.core.logging import get_logger
from mediawatch.orm.base import utcnow
from mediawatch.orm.tables import ArticleTable, CategoryTable, DownloadTable

logger = get_logger(__name__)

PREVIEW_CHARS = 200
SEARCH_LIMIT = 50


class BaseRepository:
    """Session handling shared by the content repositories."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError("Write conflicts with existing data", cause=exc) from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise DatabaseError(f"Database operation failed: {exc.__class__.__name__}", cause=exc) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# ── Articles ─────────────────────────────────────────────────────────────


def _sort_column(sort_field: str) -> ColumnElement[Any]:
    if sort_field == "published_at":
        return func.coalesce(ArticleTable.published_at, ArticleTable.created_at)
    if sort_field == "created_at":
        return ArticleTable.created_at
    return ArticleTable.id


def _list_columns() -> tuple[Any, ...]:
    """Columns of a list row: everything except the article body."""
    return (
        ArticleTable.id,
        ArticleTable.slug,
        ArticleTable.title_en,
        ArticleTable.title_ar,
        ArticleTable.excerpt_en,
        ArticleTable.excerpt_ar,
        ArticleTable.featured_image,
        ArticleTable.author_name,
        ArticleTable.author_image,
        ArticleTable.category_id,
        CategoryTable.name_en.label("category_name_en"),
        CategoryTable.name_ar.label("category_name_ar"),
        ArticleTable.published,
        ArticleTable.featured,
        ArticleTable.reading_time,
        ArticleTable.published_at,
        ArticleTable.created_at,
        ArticleTable.updated_at,
        func.substr(ArticleTable.content_en, 1, PREVIEW_CHARS).label("preview_en"),
        func.substr(ArticleTable.content_ar, 1, PREVIEW_CHARS).label("preview_ar"),
    )


def _row_to_record(row: Any) -> ArticleRecord:
    return ArticleRecord(**row._asdict())


def _article_to_record(article: ArticleTable) -> ArticleRecord:
    category = article.category
    return ArticleRecord(
        id=article.id,
        slug=article.slug,
        title_en=article.title_en,
        title_ar=article.title_ar,
        excerpt_en=article.excerpt_en,
        excerpt_ar=article.excerpt_ar,
        featured_image=article.featured_image,
        author_name=article.author_name,
        author_image=article.author_image,
        category_id=article.category_id,
        category_name_en=category.name_en if category else None,
        category_name_ar=category.name_ar if category else None,
        published=article.published,
        featured=article.featured,
        reading_time=article.reading_time,
        published_at=article.published_at,
        created_at=article.created_at,
        updated_at=article.updated_at,
        content_en=article.content_en,
        content_ar=article.content_ar,
        meta_description_en=article.meta_description_en,
        meta_description_ar=article.meta_description_ar,
    )


class ArticleRepository(BaseRepository):
    """Article queries and writes."""

    def _filters(self, options: ArticleQueryOptions) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [ArticleTable.published == options.published]
        if options.featured is not None:
            conditions.append(ArticleTable.featured == options.featured)
        if options.category_id is not None:
            conditions.append(ArticleTable.category_id == options.category_id)
        return conditions

    def _listing(self, options: ArticleQueryOptions):
        column = _sort_column(options.sort_by)
        if options.sort_order == "desc":
            ordering = (column.desc(), ArticleTable.id.desc())
        else:
            ordering = (column.asc(), ArticleTable.id.asc())
        return (
            select(*_list_columns())
            .outerjoin(CategoryTable, ArticleTable.category_id == CategoryTable.id)
            .where(*self._filters(options))
            .order_by(*ordering)
        )

    def list_page(self, options: ArticleQueryOptions) -> ArticlePage:
        """Fetch one page; ``options`` must already be normalized.

        With a usable cursor the offset is ignored and the keyset predicate
        starts strictly after the cursor row. ``limit + 1`` rows are fetched
        so ``has_next`` needs no count.
        """
        cursor = parse_cursor(options.cursor, options.sort_by)
        stmt = self._listing(options)

        if cursor is not None:
            column = _sort_column(options.sort_by)
            if options.sort_order == "desc":
                stmt = stmt.where(
                    or_(column < cursor.value, and_(column == cursor.value, ArticleTable.id < cursor.id))
                )
            else:
                stmt = stmt.where(
                    or_(column > cursor.value, and_(column == cursor.value, ArticleTable.id > cursor.id))
                )
            start = cursor.offset
        else:
            stmt = stmt.offset(options.offset)
            start = options.offset

        stmt = stmt.limit(options.limit + 1)

        with self._session() as session:
            rows = [_row_to_record(row) for row in session.execute(stmt)]

        has_next = len(rows) > options.limit
        rows = rows[: options.limit]
        next_cursor = None
        if has_next and rows:
            last = rows[-1]
            next_cursor = encode_cursor(
                Cursor(
                    sort_field=options.sort_by,
                    id=last.id,
                    value=last.sort_value(options.sort_by),
                    offset=start + len(rows),
                )
            )
        return ArticlePage(
            rows=rows,
            has_next=has_next,
            next_cursor=next_cursor,
            offset=start,
            from_cursor=cursor is not None,
        )

    def count(self, options: ArticleQueryOptions) -> int:
        stmt = select(func.count()).select_from(ArticleTable).where(*self._filters(options))
        with self._session() as session:
            return session.execute(stmt).scalar_one()

    def list_articles(self, options: ArticleQueryOptions) -> list[ArticleRecord]:
        """Offset-only listing (the flat response shape)."""
        stmt = self._listing(options).offset(options.offset).limit(options.limit)
        with self._session() as session:
            return [_row_to_record(row) for row in session.execute(stmt)]

    def get(self, article_id: int) -> ArticleRecord | None:
        with self._session() as session:
            article = session.get(ArticleTable, article_id)
            return _article_to_record(article) if article else None

    def get_by_slug(self, slug: str) -> ArticleRecord | None:
        with self._session() as session:
            article = session.scalars(select(ArticleTable).where(ArticleTable.slug == slug)).first()
            return _article_to_record(article) if article else None

    def search(self, query: str, limit: int = SEARCH_LIMIT) -> list[ArticleRecord]:
        """Case-insensitive match on bilingual titles, bodies and category names."""
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        matchers = [
            column.ilike(pattern, escape="\\")
            for column in (
                ArticleTable.title_en,
                ArticleTable.title_ar,
                ArticleTable.content_en,
                ArticleTable.content_ar,
                CategoryTable.name_en,
                CategoryTable.name_ar,
            )
        ]
        stmt = (
            select(*_list_columns())
            .outerjoin(CategoryTable, ArticleTable.category_id == CategoryTable.id)
            .where(ArticleTable.published.is_(True), or_(*matchers))
            .order_by(_sort_column("published_at").desc(), ArticleTable.id.desc())
            .limit(limit)
        )
        with self._session() as session:
            return [_row_to_record(row) for row in session.execute(stmt)]

    def _check_category(self, session: Session, category_id: int | None) -> None:
        if category_id is not None and session.get(CategoryTable, category_id) is None:
            raise ValidationError(f"Unknown category id {category_id}").with_context(
                resource="category", identifier=str(category_id)
            )

    def _flush(self, session: Session, slug: str) -> None:
        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError(f"Article slug '{slug}' already exists", cause=exc).with_context(
                resource="article", identifier=slug
            ) from exc

    def create(self, data: ArticleCreate) -> ArticleRecord:
        values = data.model_dump(exclude={"publish_now"})
        if data.publish_now:
            values["published"] = True
        if values["published"] and values["published_at"] is None:
            values["published_at"] = utcnow()
        if values["reading_time"] is None:
            values["reading_time"] = estimate_reading_time(values["content_en"])

        with self._session() as session:
            self._check_category(session, values["category_id"])
            article = ArticleTable(**values)
            session.add(article)
            self._flush(session, data.slug)
            record = _article_to_record(article)

        logger.info("article_created", article_id=record.id, slug=record.slug, published=record.published)
        return record

    def update(self, article_id: int, data: ArticleUpdate) -> ArticleRecord:
        changes = data.model_dump(exclude_unset=True, exclude={"publish_now"})
        if data.publish_now:
            changes["published"] = True

        with self._session() as session:
            article = session.get(ArticleTable, article_id)
            if article is None:
                raise NotFoundError.for_resource("Article", article_id)
            if "category_id" in changes:
                self._check_category(session, changes["category_id"])

            was_published = article.published
            for name, value in changes.items():
                if name in ("published", "featured", "title_en", "content_en", "author_name", "slug") and value is None:
                    continue
                setattr(article, name, value)

            if not was_published and article.published and article.published_at is None:
                article.published_at = utcnow()
            if "content_en" in changes and "reading_time" not in changes:
                article.reading_time = estimate_reading_time(article.content_en)
            article.updated_at = utcnow()

            self._flush(session, article.slug)
            record = _article_to_record(article)

        logger.info("article_updated", article_id=article_id, fields=sorted(changes))
        return record

    def delete(self, article_id: int) -> None:
        with self._session() as session:
            result = session.execute(delete(ArticleTable).where(ArticleTable.id == article_id))
            if result.rowcount == 0:
                raise NotFoundError.for_resource("Article", article_id)
        logger.info("article_deleted", article_id=article_id)


# ── Categories ───────────────────────────────────────────────────────────


def _category_to_record(category: CategoryTable, article_count: int = 0) -> CategoryRecord:
    return CategoryRecord(
        id=category.id,
        slug=category.slug,
        name_en=category.name_en,
        name_ar=category.name_ar,
        description_en=category.description_en,
        description_ar=category.description_ar,
        icon_name=category.icon_name,
        created_at=category.created_at,
        article_count=article_count,
    )


class CategoryRepository(BaseRepository):
    """Categories with their published-article counts."""

    def _with_counts(self):
        counts = (
            select(ArticleTable.category_id, func.count(ArticleTable.id).label("article_count"))
            .where(ArticleTable.published.is_(True))
            .group_by(ArticleTable.category_id)
            .subquery()
        )
        return select(CategoryTable, func.coalesce(counts.c.article_count, 0)).outerjoin(
            counts, counts.c.category_id == CategoryTable.id
        )

    def list_with_counts(self) -> list[CategoryRecord]:
        stmt = self._with_counts().order_by(CategoryTable.name_en)
        with self._session() as session:
            return [_category_to_record(category, count) for category, count in session.execute(stmt)]

    def get(self, category_id: int) -> CategoryRecord | None:
        stmt = self._with_counts().where(CategoryTable.id == category_id)
        with self._session() as session:
            row = session.execute(stmt).first()
            return _category_to_record(*row) if row else None

    def get_by_slug(self, slug: str) -> CategoryRecord | None:
        stmt = self._with_counts().where(CategoryTable.slug == slug)
        with self._session() as session:
            row = session.execute(stmt).first()
            return _category_to_record(*row) if row else None

    def create(self, data: CategoryCreate) -> CategoryRecord:
        with self._session() as session:
            category = CategoryTable(**data.model_dump())
            session.add(category)
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConflictError(f"Category slug '{data.slug}' already exists", cause=exc).with_context(
                    resource="category", identifier=data.slug
                ) from exc
            record = _category_to_record(category)
        logger.info("category_created", category_id=record.id, slug=record.slug)
        return record


# ── Downloads ────────────────────────────────────────────────────────────


def _download_to_record(download: DownloadTable) -> DownloadRecord:
    return DownloadRecord(
        id=download.id,
        title=download.title,
        title_ar=download.title_ar,
        description=download.description,
        description_ar=download.description_ar,
        file_name=download.file_name,
        original_file_name=download.original_file_name,
        file_size=download.file_size,
        file_size_bytes=download.file_size_bytes,
        file_type=download.file_type,
        mime_type=download.mime_type,
        category=download.category,
        category_ar=download.category_ar,
        download_count=download.download_count,
        featured=download.featured,
        tags=list(download.tags) if download.tags else None,
        preview_url=download.preview_url,
        file_path=download.file_path,
        uploaded_at=download.uploaded_at,
        created_at=download.created_at,
        updated_at=download.updated_at,
    )


class DownloadRepository(BaseRepository):
    """Downloadable resources, featured first then newest upload."""

    def _filters(self, options: DownloadQueryOptions) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if options.category:
            conditions.append(DownloadTable.category == options.category)
        if options.file_type:
            conditions.append(DownloadTable.file_type == options.file_type)
        if options.featured is not None:
            conditions.append(DownloadTable.featured == options.featured)
        return conditions

    def list_downloads(self, options: DownloadQueryOptions) -> list[DownloadRecord]:
        stmt = (
            select(DownloadTable)
            .where(*self._filters(options))
            .order_by(DownloadTable.featured.desc(), DownloadTable.uploaded_at.desc(), DownloadTable.id.desc())
            .offset(options.offset)
            .limit(options.limit)
        )
        with self._session() as session:
            return [_download_to_record(download) for download in session.scalars(stmt)]

    def count(self, options: DownloadQueryOptions) -> int:
        stmt = select(func.count()).select_from(DownloadTable).where(*self._filters(options))
        with self._session() as session:
            return session.execute(stmt).scalar_one()

    def get(self, download_id: int) -> DownloadRecord | None:
        with self._session() as session:
            download = session.get(DownloadTable, download_id)
            return _download_to_record(download) if download else None

    def create(self, data: DownloadCreate) -> DownloadRecord:
        with self._session() as session:
            download = DownloadTable(**data.model_dump())
            session.add(download)
            session.flush()
            record = _download_to_record(download)
        logger.info("download_created", download_id=record.id, file_name=record.file_name)
        return record

    def update(self, download_id: int, data: DownloadUpdate) -> DownloadRecord:
        changes = data.model_dump(exclude_unset=True)
        with self._session() as session:
            download = session.get(DownloadTable, download_id)
            if download is None:
                raise NotFoundError.for_resource("Download", download_id)
            for name, value in changes.items():
                if name in ("title", "description", "file_type", "category", "featured") and value is None:
                    continue
                setattr(download, name, value)
            download.updated_at = utcnow()
            session.flush()
            record = _download_to_record(download)
        return record

    def delete(self, download_id: int) -> None:
        with self._session() as session:
            result = session.execute(delete(DownloadTable).where(DownloadTable.id == download_id))
            if result.rowcount == 0:
                raise NotFoundError.for_resource("Download", download_id)

    def increment_download_count(self, download_id: int) -> int:
        """Atomically bump the counter; returns the new count."""
        stmt = (
            update(DownloadTable)
            .where(DownloadTable.id == download_id)
            .values(download_count=DownloadTable.download_count + 1)
        )
        with self._session() as session:
            if session.execute(stmt).rowcount == 0:
                raise NotFoundError.for_resource("Download", download_id)
            return session.execute(
                select(DownloadTable.download_count).where(DownloadTable.id == download_id)
            ).scalar_one()


__all__ = [
    "BaseRepository",
    "ArticleRepository",
    "CategoryRepository",
    "DownloadRepository",
]
