"""SQLAlchemy engine factory and session configuration.

This module provides:

* ``create_mediawatch_engine`` -- Create a SA engine from a URL.
* ``MediaWatchSession``        -- Session subclass with ``expire_on_commit=False``.
* ``session_factory``          -- ``sessionmaker`` producing ``MediaWatchSession``.
* ``init_schema``              -- ``create_all`` for the declared tables.

Tags:
    mediawatch, orm, sqlalchemy, session, engine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mediawatch.core.logging import get_logger
from mediawatch.orm.base import MediaWatchBase

logger = get_logger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_mediawatch_engine(
    url: str = "sqlite:///mediawatch.db",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql+psycopg://…``, etc.)
    echo:
        If ``True``, log all SQL to stdout.
    pool_size, max_overflow:
        Connection pool parameters (ignored for SQLite).
    """

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        memory = _is_memory_sqlite(url)
        if memory:
            # One shared connection, or each worker thread sees an empty database.
            kwargs.setdefault("poolclass", StaticPool)

        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            if not memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow

    return _sa_create_engine(url, echo=echo, pool_pre_ping=True, **pool_kwargs, **kwargs)


class MediaWatchSession(Session):
    """Pre-configured session with ``expire_on_commit=False``.

    Prevents lazy-load surprises when records are read after commit.
    """

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def session_factory(engine: Engine) -> sessionmaker[MediaWatchSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``MediaWatchSession`` instances."""
    return sessionmaker(bind=engine, class_=MediaWatchSession)


def init_schema(engine: Engine) -> None:
    """Create all mediawatch tables that do not exist yet."""
    # Populate the metadata before create_all.
    import mediawatch.orm.tables  # noqa: F401

    MediaWatchBase.metadata.create_all(engine)
    logger.info("schema_initialized", tables=sorted(MediaWatchBase.metadata.tables))
