"""
Error handlers: map :class:`MediaWatchError` categories to RFC 7807 responses.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mediawatch.api.schemas import ErrorDetail, ProblemDetail
from mediawatch.core.errors import ErrorCategory, MediaWatchError
from mediawatch.core.logging import get_logger

logger = get_logger(__name__)

# ── Error category → HTTP status mapping ─────────────────────────────────

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.RATE_LIMIT: 429,
    ErrorCategory.UNAVAILABLE: 503,
    ErrorCategory.TIMEOUT: 504,
    ErrorCategory.DATABASE: 500,
    ErrorCategory.INTERNAL: 500,
}


def status_for_category(category: ErrorCategory) -> int:
    """Resolve an error category to an HTTP status, defaulting to 500."""
    return CATEGORY_TO_STATUS.get(category, 500)


def problem_response(
    *,
    status: int,
    title: str | None = None,
    detail: str = "",
    instance: str = "",
    code: str | None = None,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title or HTTPStatus(status).phrase,
        status=status,
        detail=detail,
        instance=instance,
        code=code,
    )
    if errors:
        body.errors = [ErrorDetail(**e) for e in errors]
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        headers=headers,
        media_type="application/problem+json",
    )


async def mediawatch_error_handler(request: Request, exc: MediaWatchError) -> JSONResponse:
    status = status_for_category(exc.category)
    log = logger.error if status >= 500 else logger.info
    log("request_failed", status=status, **exc.to_dict())

    headers = {}
    if exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)

    detail = exc.message
    if status >= 500 and not request.app.state.settings.debug:
        detail = "An unexpected error occurred."
    return problem_response(
        status=status,
        detail=detail,
        instance=request.url.path,
        code=exc.category.value,
        headers=headers or None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path, query or body input → 422 with one entry per field."""
    errors = [
        {
            "code": err.get("type", "invalid"),
            "message": err.get("msg", ""),
            "field": ".".join(str(part) for part in err.get("loc", ())),
        }
        for err in exc.errors()
    ]
    return problem_response(
        status=422,
        detail="Request validation failed",
        instance=request.url.path,
        code=ErrorCategory.VALIDATION.value,
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: 500 with ProblemDetail."""
    logger.exception("unhandled_exception", error=repr(exc))
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=request.url.path,
        code=ErrorCategory.INTERNAL.value,
    )
