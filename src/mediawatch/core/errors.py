"""
Structured error types for mediawatch.

Every failure the content core can surface is a :class:`MediaWatchError`
carrying a category, retry semantics and structured context, so the HTTP
layer, the automation gateway and the logs all see the same metadata.

Manifesto:
    - **Typed hierarchy:** validation, lookup, conflict, transient and
      datastore failures are distinct classes
    - **Explicit retry semantics:** transient errors carry ``retry_after``
    - **Rich context:** errors carry metadata for logging
    - **Error chaining:** the original exception is kept as ``cause``

Architecture:
    ::

        MediaWatchError (category, retryable, retry_after, context, cause)
        ├── ValidationError        VALIDATION   never retryable
        ├── NotFoundError          NOT_FOUND
        ├── ConflictError          CONFLICT
        ├── DatabaseError          DATABASE
        └── TransientError         retryable
            ├── RateLimitExceeded  RATE_LIMIT
            ├── CircuitOpenError   UNAVAILABLE
            └── OperationTimeout   TIMEOUT

Examples:
    >>> err = RateLimitExceeded("openai quota used", retry_after=12)
    >>> err.retryable, err.retry_after
    (True, 12)
    >>> NotFoundError.for_resource("Article", 42).message
    'Article not found: 42'

Tags:
    error-handling, exception-hierarchy, retry-logic, mediawatch

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for routing and HTTP mapping."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    UNAVAILABLE = "UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    DATABASE = "DATABASE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        resource: Resource kind involved (``article``, ``category`` ...)
        identifier: Identifier of the resource, if any
        source: External source name (``openai``, ``newsdata``)
        cache_key: Cache key involved, if any
        metadata: Additional key-value pairs
    """

    resource: str | None = None
    identifier: str | None = None
    source: str | None = None
    cache_key: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("resource", "identifier", "source", "cache_key"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MediaWatchError(Exception):
    """Base exception for all mediawatch errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    rarely need to pass them explicitly.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MediaWatchError:
        """Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Article not found").with_context(
                resource="article", identifier="42"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class ValidationError(MediaWatchError):
    """Input is structurally invalid (bad id, unknown sort field, ...)."""

    default_category = ErrorCategory.VALIDATION


class NotFoundError(MediaWatchError):
    """Requested resource does not exist."""

    default_category = ErrorCategory.NOT_FOUND

    @classmethod
    def for_resource(cls, resource: str, identifier: Any) -> NotFoundError:
        err = cls(f"{resource} not found: {identifier}")
        err.with_context(resource=resource.lower(), identifier=str(identifier))
        return err


class ConflictError(MediaWatchError):
    """Write conflicts with existing state (duplicate slug)."""

    default_category = ErrorCategory.CONFLICT


class DatabaseError(MediaWatchError):
    """Datastore failure. Propagated unchanged to callers."""

    default_category = ErrorCategory.DATABASE


class TransientError(MediaWatchError):
    """Temporary failure; callers should back off and retry."""

    default_category = ErrorCategory.UNAVAILABLE
    default_retryable = True


class RateLimitExceeded(TransientError):
    """A rate-limit window is full."""

    default_category = ErrorCategory.RATE_LIMIT

    def __init__(self, message: str = "Rate limit exceeded", **kwargs: Any):
        super().__init__(message, **kwargs)


class CircuitOpenError(TransientError):
    """Circuit breaker is open and rejecting calls."""

    default_category = ErrorCategory.UNAVAILABLE

    def __init__(self, message: str = "Circuit breaker is open", **kwargs: Any):
        super().__init__(message, **kwargs)


class OperationTimeout(TransientError):
    """A guarded operation did not finish within its deadline."""

    default_category = ErrorCategory.TIMEOUT

    def __init__(self, timeout: float, operation: str = "operation", **kwargs: Any):
        self.timeout = timeout
        self.operation = operation
        super().__init__(f"Operation '{operation}' timed out after {timeout}s", **kwargs)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "MediaWatchError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "DatabaseError",
    "TransientError",
    "RateLimitExceeded",
    "CircuitOpenError",
    "OperationTimeout",
]
