"""
Tests for mediawatch.execution.circuit_breaker.

Covers:
- closed → open after ``failure_threshold`` consecutive failures
- open circuits reject without calling the operation
- open → half-open after ``reset_timeout``; trial success closes, failure reopens
- call timeouts count as failures
"""

from __future__ import annotations

import asyncio

import pytest

from mediawatch.core.errors import CircuitOpenError, OperationTimeout
from mediawatch.execution.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
    default_breakers,
)


async def _fail():
    raise ConnectionError("upstream down")


async def _ok():
    return "ok"


async def _trip(breaker: CircuitBreaker, times: int) -> None:
    for _ in range(times):
        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, clock):
        breaker = CircuitBreaker(name="openai", failure_threshold=3, reset_timeout=60, clock=clock)
        await _trip(breaker, 2)
        assert breaker.state is CircuitState.CLOSED
        await _trip(breaker, 1)
        assert breaker.state is CircuitState.OPEN
        assert breaker.retry_after() == 60

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, clock):
        breaker = CircuitBreaker(failure_threshold=3, clock=clock)
        await _trip(breaker, 2)
        assert await breaker.execute(_ok) == "ok"
        assert breaker.failure_count == 0
        await _trip(breaker, 2)
        assert breaker.state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_open_rejects_without_calling(self, clock):
        breaker = CircuitBreaker(failure_threshold=1, reset_timeout=60, clock=clock)
        await _trip(breaker, 1)
        called = False

        async def op():
            nonlocal called
            called = True

        clock.advance(20)
        with pytest.raises(CircuitOpenError) as info:
            await breaker.execute(op)

        assert not called
        assert info.value.retry_after == 40
        assert breaker.stats.rejected_requests == 1

    @pytest.mark.asyncio
    async def test_half_open_success_closes(self, clock):
        breaker = CircuitBreaker(failure_threshold=1, reset_timeout=60, clock=clock)
        await _trip(breaker, 1)
        clock.advance(60)
        assert await breaker.execute(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_rejection_during_half_open_trial_has_retry_after(self, clock):
        breaker = CircuitBreaker(failure_threshold=1, reset_timeout=60, clock=clock)
        await _trip(breaker, 1)
        clock.advance(60)
        release = asyncio.Event()

        async def trial():
            await release.wait()
            return "ok"

        running = asyncio.create_task(breaker.execute(trial))
        await asyncio.sleep(0)
        assert breaker.state is CircuitState.HALF_OPEN

        with pytest.raises(CircuitOpenError) as info:
            await breaker.execute(_ok)
        assert info.value.retry_after == 1

        release.set()
        assert await running == "ok"
        assert breaker.retry_after() == 0

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self, clock):
        breaker = CircuitBreaker(failure_threshold=3, reset_timeout=60, clock=clock)
        await _trip(breaker, 3)
        clock.advance(61)
        await _trip(breaker, 1)
        assert breaker.state is CircuitState.OPEN
        assert breaker.next_attempt_time == clock() + 60

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        breaker = CircuitBreaker(name="newsdata", failure_threshold=1, call_timeout=0.01)

        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(OperationTimeout):
            await breaker.execute(slow)
        assert breaker.stats.timeouts == 1
        assert breaker.state is CircuitState.OPEN

    def test_force_open_and_reset(self, clock):
        breaker = CircuitBreaker(clock=clock)
        breaker.force_open()
        assert not breaker.allow_request()
        breaker.reset()
        assert breaker.state is CircuitState.CLOSED
        assert breaker.allow_request()


class TestRegistry:
    def test_default_breakers(self):
        registry = default_breakers()
        openai = registry.get("openai")
        newsdata = registry.get("newsdata")
        assert (openai.failure_threshold, openai.call_timeout, openai.reset_timeout) == (3, 30.0, 60.0)
        assert (newsdata.failure_threshold, newsdata.call_timeout, newsdata.reset_timeout) == (5, 10.0, 300.0)

    def test_get_or_create_is_idempotent(self):
        registry = CircuitBreakerRegistry()
        first = registry.get_or_create("x", failure_threshold=2)
        assert registry.get_or_create("x", failure_threshold=9) is first
        assert registry.list_all() == ["x"]
        assert registry.snapshot()["x"]["state"] == "closed"
