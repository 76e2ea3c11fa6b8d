"""SQLAlchemy 2.0 ORM table definitions for mediawatch.

Column conventions:

* ``*_en`` / ``*_ar`` -> bilingual pairs; Arabic columns are nullable and
  readers fall back to English
* ``*_at`` columns -> naive UTC ``DateTime``
* ``published`` / ``featured`` -> ``Boolean``

Tags:
    mediawatch, orm, sqlalchemy, tables, schema-mapping

Doc-Types:
    api-reference, data-model

Usage::

    from mediawatch.orm import MediaWatchBase, create_mediawatch_engine

    engine = create_mediawatch_engine("sqlite:///mediawatch.db")
    MediaWatchBase.metadata.create_all(engine)
"""

from __future__ import annotations

import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediawatch.orm.base import MediaWatchBase, TimestampMixin, utcnow


class CategoryTable(MediaWatchBase):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name_en: Mapped[str] = mapped_column(String(200), nullable=False)
    name_ar: Mapped[str] = mapped_column(String(200), nullable=False)
    description_en: Mapped[str | None] = mapped_column(Text)
    description_ar: Mapped[str | None] = mapped_column(Text)
    icon_name: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    articles: Mapped[list[ArticleTable]] = relationship(back_populates="category")


class ArticleTable(TimestampMixin, MediaWatchBase):
    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_published_published_at", "published", "published_at"),
        Index("ix_articles_category_id", "category_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    title_en: Mapped[str] = mapped_column(String(300), nullable=False)
    title_ar: Mapped[str | None] = mapped_column(String(300))
    excerpt_en: Mapped[str | None] = mapped_column(Text)
    excerpt_ar: Mapped[str | None] = mapped_column(Text)
    content_en: Mapped[str] = mapped_column(Text, nullable=False)
    content_ar: Mapped[str | None] = mapped_column(Text)
    meta_description_en: Mapped[str | None] = mapped_column(String(160))
    meta_description_ar: Mapped[str | None] = mapped_column(String(160))
    featured_image: Mapped[str | None] = mapped_column(String(500))
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    author_image: Mapped[str | None] = mapped_column(String(500))
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id"), default=None
    )
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reading_time: Mapped[int | None] = mapped_column(Integer)
    published_at: Mapped[datetime.datetime | None] = mapped_column(DateTime)

    category: Mapped[CategoryTable | None] = relationship(back_populates="articles")


class DownloadTable(TimestampMixin, MediaWatchBase):
    __tablename__ = "downloads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_ar: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    description_ar: Mapped[str | None] = mapped_column(Text)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[str] = mapped_column(String(50), nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    category_ar: Mapped[str | None] = mapped_column(String(100))
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tags: Mapped[list | None] = mapped_column(JSON, default=None)
    preview_url: Mapped[str | None] = mapped_column(String(500))
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    uploaded_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )


__all__ = ["CategoryTable", "ArticleTable", "DownloadTable"]
