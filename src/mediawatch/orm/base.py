"""Declarative base and mixins for mediawatch ORM models.

Uses SQLAlchemy 2.0 ``DeclarativeBase`` with a ``type_annotation_map``
that maps Python built-in types to portable SA column types.

Mixins
------
* **TimestampMixin**: ``created_at`` / ``updated_at`` set from Python.
"""

from __future__ import annotations

import datetime

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form every ``*_at`` column stores."""
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


class MediaWatchBase(DeclarativeBase):
    """Shared declarative base for every mediawatch table.

    * ``str``   → ``Text``
    * ``int``   → ``Integer``
    * ``bool``  → ``Boolean``
    * ``datetime.datetime`` → ``DateTime``
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Boolean,
        datetime.datetime: DateTime,
    }


class TimestampMixin:
    """Adds ``created_at`` and ``updated_at``.

    Defaults are computed in Python so the same models run on SQLite and
    PostgreSQL without dialect-specific ``now()`` expressions.
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
