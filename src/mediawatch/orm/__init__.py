"""SQLAlchemy 2.0 ORM layer for mediawatch.

Modules
-------
base        MediaWatchBase (declarative base) + TimestampMixin
session     Engine factory, MediaWatchSession, session_factory, init_schema
tables      CategoryTable, ArticleTable, DownloadTable

Tags:
    mediawatch, orm, sqlalchemy, declarative

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from mediawatch.orm.base import MediaWatchBase, TimestampMixin, utcnow
from mediawatch.orm.session import (
    MediaWatchSession,
    create_mediawatch_engine,
    init_schema,
    session_factory,
)
from mediawatch.orm.tables import ArticleTable, CategoryTable, DownloadTable

__all__ = [
    "MediaWatchBase",
    "TimestampMixin",
    "utcnow",
    "create_mediawatch_engine",
    "MediaWatchSession",
    "session_factory",
    "init_schema",
    "ArticleTable",
    "CategoryTable",
    "DownloadTable",
]
