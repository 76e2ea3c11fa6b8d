"""
Shared API schemas: RFC 7807 errors and small admin envelopes.

Every non-2xx response is a :class:`ProblemDetail`. Content payloads are the
DTOs from :mod:`mediawatch.content.dtos`; this module only holds the
shapes owned by the HTTP layer itself.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Field-level error detail.

    UI Hints:
        Display field errors next to corresponding form inputs.
    """

    code: str = Field(description="Machine-readable error code (e.g. 'VALIDATION', 'missing')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Field path if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Error Codes:
        - ``VALIDATION`` (400): Invalid input data
        - ``NOT_FOUND`` (404): Resource does not exist
        - ``CONFLICT`` (409): Duplicate slug or similar
        - ``RATE_LIMIT`` (429): Rate limit reached, see ``Retry-After``
        - ``UNAVAILABLE`` (503): Circuit open or dependency down
        - ``TIMEOUT`` (504): Upstream call timed out
        - ``DATABASE`` / ``INTERNAL`` (500): Unexpected server error

    Example:
        {
            "type": "about:blank",
            "title": "Not Found",
            "status": 404,
            "detail": "Article not found: 42",
            "instance": "/api/articles/42",
            "code": "NOT_FOUND",
            "errors": []
        }
    """

    type: str = Field(default="about:blank", description="Error type URI")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="Path of the failing request")
    code: str | None = Field(default=None, description="Error category")
    errors: list[ErrorDetail] = Field(default_factory=list)


# ── Admin envelopes ──────────────────────────────────────────────────────


class CacheClearResponse(BaseModel):
    cleared: int = Field(description="Entries removed from the cache")


class DownloadTrackResponse(BaseModel):
    id: int
    download_count: int


class CacheStatsResponse(BaseModel):
    """Cache statistics plus external-service resilience state."""

    cache: dict[str, Any]
    circuits: dict[str, Any] = Field(default_factory=dict)
    rate_limits: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "ErrorDetail",
    "ProblemDetail",
    "CacheClearResponse",
    "CacheStatsResponse",
    "DownloadTrackResponse",
]
