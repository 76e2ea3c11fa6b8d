"""Request-ID middleware: correlates a request with its log lines.

Every request gets an ``X-Request-ID`` (the caller's, or a fresh UUID) which
is bound into the structlog context for the duration of the request and
echoed on the response together with ``X-Process-Time-Ms``.

Tags:
    mediawatch, api, middleware, request-id, tracing
"""

from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mediawatch.core.logging import bind_context, clear_context


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID and processing time to every request/response cycle."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bind_context(request_id=request_id, path=request.url.path)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time-Ms"] = str(round((time.perf_counter() - start) * 1000, 2))
        return response
