"""Gateway for calls to external services.

Every outbound call to a metered source (NewsData, OpenAI) first waits for
a rate-limit slot and then runs through that source's circuit breaker::

    gateway.call("openai", summarize)
        │
        ├── SlidingWindowRateLimiter.wait_for_slot(key="openai-api", source="openai")
        └── CircuitBreakerRegistry["openai"].execute(summarize)

A source with no registered breaker gets one with the registry defaults.

Example:
    >>> gateway = ExternalServiceGateway(limiter, breakers)
    >>> articles = await gateway.call("newsdata", fetch_latest, priority="high")
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from mediawatch.core.logging import get_logger
from mediawatch.execution.circuit_breaker import CircuitBreakerRegistry
from mediawatch.execution.rate_limit import Priority, SlidingWindowRateLimiter

T = TypeVar("T")

logger = get_logger(__name__)


class ExternalServiceGateway:
    """Rate-limited, circuit-broken access to external sources.

    Args:
        limiter: Shared rate limiter.
        breakers: Registry holding one breaker per source.
        wait_timeout: Longest a call may wait for a rate-limit slot before
            ``RateLimitExceeded`` is raised; ``None`` waits indefinitely.
    """

    def __init__(
        self,
        limiter: SlidingWindowRateLimiter,
        breakers: CircuitBreakerRegistry,
        *,
        wait_timeout: float | None = 60.0,
    ):
        self._limiter = limiter
        self._breakers = breakers
        self._wait_timeout = wait_timeout

    async def call(
        self,
        source: str,
        operation: Callable[[], Awaitable[T]],
        *,
        key: str | None = None,
        priority: Priority = "high",
    ) -> T:
        """Run ``operation`` against ``source``.

        Raises:
            RateLimitExceeded: no slot within ``wait_timeout``
            CircuitOpenError: the source's circuit is open
            OperationTimeout: the call exceeded the breaker's timeout
        """
        await self._limiter.wait_for_slot(
            key or f"{source}-api", source, priority, timeout=self._wait_timeout
        )
        breaker = self._breakers.get_or_create(source)
        logger.debug("external_call", source=source, circuit_state=breaker.state.value)
        return await breaker.execute(operation)

    def status(self) -> dict[str, Any]:
        """Breaker snapshots plus per-source rate-limit usage."""
        return {
            "circuits": self._breakers.snapshot(),
            "rate_limits": {
                source: [
                    entry for entry in self._limiter.status(f"{source}-api") if entry["source"] == source
                ]
                for source in self._breakers.list_all()
            },
        }
