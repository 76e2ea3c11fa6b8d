"""Rate limiting: sliding-window admission control per (key, source).

Manifesto:
External APIs (NewsData, OpenAI) enforce quotas. Exceeding them costs
money or gets the key banned. The in-process limiter throttles outgoing
calls *before* the provider does.

ARCHITECTURE
────────────
::

    SlidingWindowRateLimiter
      ├── rules: source → RateLimitRule(max_requests, window_seconds, priority)
      ├── windows: (key, source) → [RequestRecord(timestamp, priority, source)]
      ├── check_rate_limit()  ─ admit and record, or report retry_after
      ├── wait_for_slot()     ─ bounded loop: sleep until the oldest entry expires
      ├── queue_request()     ─ wait_for_slot() then run the operation
      └── purge() ← sweep task every ``sweep_interval`` seconds

    Unknown sources fall back to the ``general`` rule.

BEST PRACTICES
──────────────
- Always pass a ``timeout`` or ``max_attempts`` to ``wait_for_slot`` on a
  request path; a 24 h window would otherwise park the caller for hours.
- Combine with ``CircuitBreaker`` (see ``mediawatch.automation.gateway``).

Example::

    limiter = SlidingWindowRateLimiter()
    decision = limiter.check_rate_limit("digest", source="openai", priority="high")
    if not decision.allowed:
        raise RateLimitExceeded(retry_after=decision.retry_after)

Tags:
    mediawatch, execution, rate-limit, throttle, sliding-window

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import contextlib
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from mediawatch.core.errors import ErrorContext, RateLimitExceeded
from mediawatch.core.logging import get_logger

T = TypeVar("T")
Priority = Literal["high", "medium", "low"]

logger = get_logger(__name__)

DEFAULT_SOURCE = "general"


@dataclass(frozen=True)
class RateLimitRule:
    """At most ``max_requests`` per rolling ``window_seconds``."""

    max_requests: int
    window_seconds: float
    priority: Priority = "low"


@dataclass(frozen=True)
class RequestRecord:
    timestamp: float
    priority: Priority
    source: str


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check.

    ``retry_after`` is whole seconds (rounded up, at least 1) until the
    oldest in-window request expires; ``wait_seconds`` is the exact delay.
    Both are 0 when the request was admitted.
    """

    allowed: bool
    retry_after: int = 0
    wait_seconds: float = 0.0


DEFAULT_RULES: dict[str, RateLimitRule] = {
    "newsdata": RateLimitRule(max_requests=200, window_seconds=24 * 60 * 60, priority="high"),
    "openai": RateLimitRule(max_requests=50, window_seconds=60 * 60, priority="high"),
    "database": RateLimitRule(max_requests=1000, window_seconds=60, priority="medium"),
    "general": RateLimitRule(max_requests=100, window_seconds=60, priority="low"),
}


class SlidingWindowRateLimiter:
    """Sliding-window limiter keyed by (key, source).

    Args:
        rules: Per-source rules; defaults to :data:`DEFAULT_RULES`.
        sweep_interval: Seconds between background purges after ``start()``.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        rules: dict[str, RateLimitRule] | None = None,
        *,
        sweep_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._rules: dict[str, RateLimitRule] = dict(DEFAULT_RULES if rules is None else rules)
        self._rules.setdefault(DEFAULT_SOURCE, DEFAULT_RULES[DEFAULT_SOURCE])
        self._windows: dict[tuple[str, str], list[RequestRecord]] = {}
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def rules(self) -> dict[str, RateLimitRule]:
        return dict(self._rules)

    def configure(self, source: str, rule: RateLimitRule) -> None:
        """Add or replace the rule for ``source``."""
        self._rules[source] = rule

    def rule_for(self, source: str) -> RateLimitRule:
        return self._rules.get(source) or self._rules[DEFAULT_SOURCE]

    def _live(self, key: str, source: str, now: float) -> list[RequestRecord]:
        window = self.rule_for(source).window_seconds
        records = [r for r in self._windows.get((key, source), ()) if now - r.timestamp < window]
        if records:
            self._windows[(key, source)] = records
        else:
            self._windows.pop((key, source), None)
        return records

    def check_rate_limit(
        self,
        key: str,
        source: str = DEFAULT_SOURCE,
        priority: Priority = "low",
    ) -> RateLimitDecision:
        """Admit and record one request, or report how long to wait."""
        rule = self.rule_for(source)
        now = self._clock()
        records = self._live(key, source, now)

        if len(records) >= rule.max_requests:
            wait = rule.window_seconds - (now - records[0].timestamp)
            return RateLimitDecision(
                allowed=False,
                retry_after=max(1, math.ceil(wait)),
                wait_seconds=max(wait, 0.0),
            )

        records.append(RequestRecord(timestamp=now, priority=priority, source=source))
        self._windows[(key, source)] = records
        return RateLimitDecision(allowed=True)

    async def wait_for_slot(
        self,
        key: str,
        source: str = DEFAULT_SOURCE,
        priority: Priority = "low",
        *,
        timeout: float | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """Sleep until a slot is admitted.

        Raises:
            RateLimitExceeded: the next slot opens after ``timeout`` seconds, or
                ``max_attempts`` checks were refused.
        """
        deadline = None if timeout is None else self._clock() + timeout
        attempts = 0
        while True:
            decision = self.check_rate_limit(key, source, priority)
            if decision.allowed:
                return
            attempts += 1

            exhausted = max_attempts is not None and attempts >= max_attempts
            if deadline is not None and self._clock() + decision.wait_seconds > deadline:
                exhausted = True
            if exhausted:
                raise RateLimitExceeded(
                    f"Rate limit for '{source}' not released in time",
                    retry_after=decision.retry_after,
                    context=ErrorContext(source=source, metadata={"key": key, "attempts": attempts}),
                )

            logger.info(
                "rate_limit_wait",
                key=key,
                source=source,
                priority=priority,
                wait_seconds=round(decision.wait_seconds, 3),
                attempt=attempts,
            )
            await asyncio.sleep(decision.wait_seconds)

    async def queue_request(
        self,
        operation: Callable[[], Awaitable[T]],
        key: str,
        source: str = DEFAULT_SOURCE,
        priority: Priority = "low",
        **wait_kwargs: Any,
    ) -> T:
        await self.wait_for_slot(key, source, priority, **wait_kwargs)
        return await operation()

    def status(self, key: str) -> list[dict[str, Any]]:
        """Usage of ``key`` under every configured source."""
        now = self._clock()
        sources = list(self._rules)
        sources += [s for (k, s) in self._windows if k == key and s not in self._rules]
        report = []
        for source in sources:
            rule = self.rule_for(source)
            records = self._live(key, source, now)
            reset_in = rule.window_seconds - (now - records[0].timestamp) if records else 0.0
            report.append(
                {
                    "source": source,
                    "requests": len(records),
                    "max_requests": rule.max_requests,
                    "window_seconds": rule.window_seconds,
                    "reset_in_seconds": round(max(reset_in, 0.0), 3),
                }
            )
        return report

    def purge(self) -> int:
        """Drop expired records and empty windows; returns records removed."""
        now = self._clock()
        removed = 0
        for key, source in list(self._windows):
            before = len(self._windows[(key, source)])
            removed += before - len(self._live(key, source, now))
        return removed

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(
                self._sweep_loop(), name="rate-limit-sweep"
            )

    async def stop(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            removed = self.purge()
            if removed:
                logger.debug("rate_limit_swept", removed=removed, windows=len(self._windows))


__all__ = [
    "DEFAULT_RULES",
    "DEFAULT_SOURCE",
    "Priority",
    "RateLimitDecision",
    "RateLimitRule",
    "RequestRecord",
    "SlidingWindowRateLimiter",
]
