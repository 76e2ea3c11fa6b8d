"""HTTP middleware and exception handlers."""

from mediawatch.api.middleware.errors import (
    mediawatch_error_handler,
    problem_response,
    request_validation_handler,
    status_for_category,
    unhandled_exception_handler,
)
from mediawatch.api.middleware.request_id import RequestIDMiddleware

__all__ = [
    "RequestIDMiddleware",
    "mediawatch_error_handler",
    "problem_response",
    "request_validation_handler",
    "status_for_category",
    "unhandled_exception_handler",
]
