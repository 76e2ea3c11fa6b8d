"""Circuit breaker for calls to external services.

Prevents cascading failures by failing fast when a downstream service
(the news feed, the LLM endpoint) keeps failing or timing out.

States:
    CLOSED: Normal operation; consecutive failures are counted
    OPEN: Calls rejected immediately until ``next_attempt_time``
    HALF_OPEN: One trial call; success closes, failure reopens

Every guarded call runs under ``asyncio.wait_for(call_timeout)``. A timeout
cancels the operation, raises :class:`OperationTimeout` and counts as a
failure.

Example:
    >>> breaker = CircuitBreaker(name="openai", failure_threshold=3,
    ...                          call_timeout=30.0, reset_timeout=60.0)
    >>> summary = await breaker.execute(lambda: client.summarize(text))
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

from mediawatch.core.errors import CircuitOpenError, ErrorContext, OperationTimeout
from mediawatch.core.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitStats:
    """Statistics for circuit breaker monitoring."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    rejected_requests: int = 0
    timeouts: int = 0
    state_changes: int = 0
    last_failure_time: datetime | None = None
    last_success_time: datetime | None = None
    last_state_change: datetime | None = None

    @property
    def failure_rate(self) -> float:
        """Calculate failure rate as percentage."""
        total = self.successful_requests + self.failed_requests
        if total == 0:
            return 0.0
        return (self.failed_requests / total) * 100


@dataclass
class CircuitBreaker:
    """Three-state breaker around an async operation.

    Attributes:
        name: Identifier for this circuit (usually the external source)
        failure_threshold: Consecutive failures before opening
        call_timeout: Seconds each guarded call may run
        reset_timeout: Seconds the circuit stays open before a trial call
        half_open_max_calls: Concurrent trial calls allowed while half-open
        clock: Monotonic time source in seconds
    """

    name: str = "default"
    failure_threshold: int = 5
    call_timeout: float = 30.0
    reset_timeout: float = 60.0
    half_open_max_calls: int = 1
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    # Internal state
    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _next_attempt_time: float = field(default=0.0, init=False)
    _half_open_calls: int = field(default=0, init=False)
    _stats: CircuitStats = field(default_factory=CircuitStats, init=False)

    @property
    def state(self) -> CircuitState:
        """Current state (does not perform the open → half-open transition)."""
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def next_attempt_time(self) -> float:
        return self._next_attempt_time

    @property
    def stats(self) -> CircuitStats:
        return self._stats

    def retry_after(self) -> int:
        """Whole seconds until the circuit may admit another call.

        A half-open circuit whose trial slots are taken reports 1.
        """
        if self._state == CircuitState.HALF_OPEN:
            return 1 if self._half_open_calls >= self.half_open_max_calls else 0
        if self._state != CircuitState.OPEN:
            return 0
        return max(1, math.ceil(self._next_attempt_time - self.clock()))

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        self._stats.state_changes += 1
        self._stats.last_state_change = utcnow()

        if new_state == CircuitState.CLOSED:
            self._failure_count = 0
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_calls = 0
        elif new_state == CircuitState.OPEN:
            self._next_attempt_time = self.clock() + self.reset_timeout

        logger.info(
            "circuit_state_changed",
            circuit=self.name,
            old_state=old_state.value,
            new_state=new_state.value,
            failure_count=self._failure_count,
        )

    def allow_request(self) -> bool:
        """Check (and count) whether a call may proceed now."""
        self._stats.total_requests += 1

        if self._state == CircuitState.OPEN:
            if self.clock() < self._next_attempt_time:
                self._stats.rejected_requests += 1
                return False
            self._transition_to(CircuitState.HALF_OPEN)

        if self._state == CircuitState.CLOSED:
            return True

        if self._half_open_calls < self.half_open_max_calls:
            self._half_open_calls += 1
            return True

        self._stats.rejected_requests += 1
        return False

    def record_success(self) -> None:
        self._stats.successful_requests += 1
        self._stats.last_success_time = utcnow()
        self._failure_count = 0
        if self._state != CircuitState.CLOSED:
            self._transition_to(CircuitState.CLOSED)

    def record_failure(self, error: BaseException | None = None) -> None:
        self._failure_count += 1
        self._stats.failed_requests += 1
        self._stats.last_failure_time = utcnow()

        if self._state == CircuitState.HALF_OPEN:
            # Trial failed: reopen and push the next attempt out again.
            self._transition_to(CircuitState.OPEN)
        elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
            self._transition_to(CircuitState.OPEN)

        logger.debug(
            "circuit_call_failed",
            circuit=self.name,
            failure_count=self._failure_count,
            error=repr(error) if error is not None else None,
        )

    def reset(self) -> None:
        """Reset circuit to closed state."""
        self._transition_to(CircuitState.CLOSED)
        self._failure_count = 0
        self._next_attempt_time = 0.0

    def force_open(self) -> None:
        """Force circuit to open state (for maintenance)."""
        self._transition_to(CircuitState.OPEN)

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` through the breaker.

        Raises:
            CircuitOpenError: circuit is open (``retry_after`` is set)
            OperationTimeout: the call exceeded ``call_timeout``
        """
        if not self.allow_request():
            raise CircuitOpenError(
                f"Circuit '{self.name}' is open, rejecting request",
                retry_after=self.retry_after(),
                context=ErrorContext(source=self.name),
            )

        try:
            result = await asyncio.wait_for(operation(), timeout=self.call_timeout)
        except TimeoutError as exc:
            self._stats.timeouts += 1
            self.record_failure(exc)
            raise OperationTimeout(
                self.call_timeout,
                operation=self.name,
                context=ErrorContext(source=self.name),
                cause=exc,
            ) from exc
        except asyncio.CancelledError:
            # Caller cancelled; release the trial slot without judging the service.
            if self._state == CircuitState.HALF_OPEN:
                self._half_open_calls = max(0, self._half_open_calls - 1)
            raise
        except Exception as exc:
            self.record_failure(exc)
            raise

        self.record_success()
        return result

    def snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "call_timeout": self.call_timeout,
            "reset_timeout": self.reset_timeout,
            "retry_after": self.retry_after(),
            "total_requests": self._stats.total_requests,
            "rejected_requests": self._stats.rejected_requests,
            "failure_rate": round(self._stats.failure_rate, 2),
            "state_changes": self._stats.state_changes,
        }


class CircuitBreakerRegistry:
    """Registry of named circuit breakers, owned by the container."""

    def __init__(self) -> None:
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, name: str) -> CircuitBreaker | None:
        return self._breakers.get(name)

    def get_or_create(
        self,
        name: str,
        failure_threshold: int = 5,
        call_timeout: float = 30.0,
        reset_timeout: float = 60.0,
        **kwargs: Any,
    ) -> CircuitBreaker:
        """Get or create a circuit breaker by name."""
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(
                name=name,
                failure_threshold=failure_threshold,
                call_timeout=call_timeout,
                reset_timeout=reset_timeout,
                **kwargs,
            )
        return self._breakers[name]

    def list_all(self) -> list[str]:
        return list(self._breakers.keys())

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {name: breaker.snapshot() for name, breaker in self._breakers.items()}


def default_breakers(registry: CircuitBreakerRegistry | None = None) -> CircuitBreakerRegistry:
    """Register the breakers for the known external sources."""
    registry = registry or CircuitBreakerRegistry()
    registry.get_or_create("openai", failure_threshold=3, call_timeout=30.0, reset_timeout=60.0)
    registry.get_or_create("newsdata", failure_threshold=5, call_timeout=10.0, reset_timeout=300.0)
    return registry


__all__ = [
    "CircuitState",
    "CircuitStats",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "default_breakers",
]
