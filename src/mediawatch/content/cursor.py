"""Opaque pagination cursors.

A cursor names the last row a client has seen: the sort field, that row's
sort value and id, and the position of the next row. It is a URL-safe
base64 JSON envelope::

    {"v": 1, "f": "published_at", "id": 42, "value": "2024-03-01T09:30:00", "o": 20}

Clients treat it as opaque. The server ignores (with a warning) any cursor
that does not decode, carries an unknown version, or was issued for a
different sort field, and serves the first page instead.
"""

from __future__ import annotations

import base64
import binascii
import datetime
import json
from dataclasses import dataclass
from typing import Any

from mediawatch.core.errors import ValidationError
from mediawatch.core.logging import get_logger

logger = get_logger(__name__)

CURSOR_VERSION = 1

# Ids and offsets are bound as signed 64-bit integers.
_MAX_INT = 2**63 - 1


class InvalidCursor(ValidationError):
    """Cursor token cannot be used for this query."""


@dataclass(frozen=True)
class Cursor:
    sort_field: str
    id: int
    value: datetime.datetime | int
    offset: int = 0


def encode_cursor(cursor: Cursor) -> str:
    value: Any = cursor.value
    if isinstance(value, datetime.datetime):
        value = value.isoformat()
    envelope = {
        "v": CURSOR_VERSION,
        "f": cursor.sort_field,
        "id": cursor.id,
        "value": value,
        "o": cursor.offset,
    }
    raw = json.dumps(envelope, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> Cursor:
    """Decode a cursor token.

    Raises:
        InvalidCursor: malformed token or unsupported version
    """
    try:
        padded = token + "=" * (-len(token) % 4)
        envelope = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as exc:
        raise InvalidCursor("Cursor is not valid base64 JSON", cause=exc) from exc

    if not isinstance(envelope, dict) or envelope.get("v") != CURSOR_VERSION:
        raise InvalidCursor("Unsupported cursor version")

    sort_field = envelope.get("f")
    row_id = envelope.get("id")
    value = envelope.get("value")
    offset = envelope.get("o", 0)
    if not isinstance(sort_field, str) or not isinstance(row_id, int) or isinstance(row_id, bool):
        raise InvalidCursor("Cursor is missing its sort field or id")
    if not -_MAX_INT - 1 <= row_id <= _MAX_INT:
        raise InvalidCursor("Cursor id is out of range")
    if not isinstance(offset, int) or isinstance(offset, bool) or not 0 <= offset <= _MAX_INT:
        raise InvalidCursor("Cursor offset must be a non-negative 64-bit integer")

    if sort_field == "id":
        if value != row_id:
            raise InvalidCursor("Cursor value does not match its id")
    elif isinstance(value, str):
        try:
            value = datetime.datetime.fromisoformat(value)
        except ValueError as exc:
            raise InvalidCursor("Cursor value is not a timestamp", cause=exc) from exc
    else:
        raise InvalidCursor("Cursor value is not a timestamp")

    return Cursor(sort_field=sort_field, id=row_id, value=value, offset=offset)


def parse_cursor(token: str | None, sort_field: str) -> Cursor | None:
    """Lenient decode used by list queries: unusable cursors yield ``None``."""
    if not token:
        return None
    try:
        cursor = decode_cursor(token)
    except InvalidCursor as exc:
        logger.warning("cursor_ignored", reason=exc.message, sort_field=sort_field)
        return None
    if cursor.sort_field != sort_field:
        logger.warning(
            "cursor_ignored",
            reason="sort field mismatch",
            cursor_field=cursor.sort_field,
            sort_field=sort_field,
        )
        return None
    return cursor


__all__ = ["CURSOR_VERSION", "Cursor", "InvalidCursor", "encode_cursor", "decode_cursor", "parse_cursor"]
