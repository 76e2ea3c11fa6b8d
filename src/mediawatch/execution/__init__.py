"""MediaWatch execution resilience: circuit breaking and rate limiting.

ARCHITECTURE
────────────
::

    ExternalServiceGateway (mediawatch.automation)
      ├── SlidingWindowRateLimiter ─ per (key, source) admission
      └── CircuitBreakerRegistry   ─ one breaker per external source

Both are plain instances owned by the container; neither keeps module
level state.
"""

from mediawatch.execution.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
    CircuitStats,
    default_breakers,
)
from mediawatch.execution.rate_limit import (
    DEFAULT_RULES,
    RateLimitDecision,
    RateLimitRule,
    SlidingWindowRateLimiter,
)

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "CircuitStats",
    "default_breakers",
    "DEFAULT_RULES",
    "RateLimitDecision",
    "RateLimitRule",
    "SlidingWindowRateLimiter",
]
