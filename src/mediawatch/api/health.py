"""
Standardised health endpoints for the content API.

``create_health_router()`` gives the app three endpoints:

- ``GET /health``        runs every dependency check (503 when a required one fails)
- ``GET /health/ready``  readiness probe, 503 unless everything is healthy
- ``GET /health/live``   liveness probe, always 200

Usage::

    router = create_health_router(
        "mediawatch",
        version="0.1.0",
        checks=[HealthCheck("database", check_db)],
        details=lambda: {"cache": cache.stats().to_dict()},
    )
    app.include_router(router)

Tags:
    mediawatch, health, readiness, liveness, api

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

_START_TIME = time.monotonic()

Status = Literal["healthy", "degraded", "unhealthy"]


# ── Response Models ──────────────────────────────────────────────────────


class CheckResult(BaseModel):
    """Result of a single dependency health check."""

    status: Status
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """``GET /health`` envelope.

    Fields
    ──────
    status    : ``healthy`` | ``degraded`` | ``unhealthy``
    service   : Service name
    version   : Semver string
    uptime_s  : Seconds since startup
    timestamp : ISO-8601 UTC
    checks    : Per-dependency breakdown (name → CheckResult)
    details   : Cache statistics and circuit states
    """

    status: Status = "healthy"
    service: str = ""
    version: str = ""
    uptime_s: float = Field(default_factory=lambda: round(time.monotonic() - _START_TIME, 1))
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    checks: dict[str, CheckResult] = Field(default_factory=dict)
    details: dict[str, Any] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    status: str = "alive"


# ── Health Check Definition ──────────────────────────────────────────────


@dataclass
class HealthCheck:
    """One dependency check.

    ``check_fn`` returns ``True`` or raises. A failing ``required`` check
    makes the service ``unhealthy``; an optional one only ``degraded``.
    """

    name: str
    check_fn: Callable[[], Awaitable[bool]]
    required: bool = True
    timeout_s: float = 5.0


async def _run_checks(checks: list[HealthCheck]) -> dict[str, CheckResult]:
    async def _one(hc: HealthCheck) -> tuple[str, CheckResult]:
        start = time.monotonic()
        try:
            await asyncio.wait_for(hc.check_fn(), timeout=hc.timeout_s)
        except TimeoutError:
            return hc.name, CheckResult(status="unhealthy", error="timeout")
        except Exception as exc:  # noqa: BLE001
            elapsed = (time.monotonic() - start) * 1000
            return hc.name, CheckResult(
                status="unhealthy", latency_ms=round(elapsed, 2), error=str(exc)[:200]
            )
        elapsed = (time.monotonic() - start) * 1000
        return hc.name, CheckResult(status="healthy", latency_ms=round(elapsed, 2))

    pairs = await asyncio.gather(*[_one(hc) for hc in checks])
    return dict(pairs)


def _compute_status(results: dict[str, CheckResult], checks: list[HealthCheck]) -> Status:
    required = {hc.name for hc in checks if hc.required}
    down = {name for name, result in results.items() if result.status != "healthy"}
    if down & required:
        return "unhealthy"
    if down:
        return "degraded"
    return "healthy"


# ── Router Factory ───────────────────────────────────────────────────────


def create_health_router(
    service_name: str,
    version: str,
    checks: list[HealthCheck] | None = None,
    details: Callable[[], dict[str, Any]] | None = None,
    prefix: str = "/health",
) -> APIRouter:
    router = APIRouter(tags=["health"])
    _checks = checks or []

    async def _evaluate() -> HealthResponse:
        results = await _run_checks(_checks)
        return HealthResponse(
            status=_compute_status(results, _checks),
            service=service_name,
            version=version,
            checks=results,
            details=details() if details else {},
        )

    @router.get(prefix, response_model=HealthResponse)
    async def health() -> JSONResponse:
        """Primary health: runs all dependency checks."""
        body = await _evaluate()
        code = 503 if body.status == "unhealthy" else 200
        return JSONResponse(content=body.model_dump(), status_code=code)

    @router.get(f"{prefix}/ready", response_model=HealthResponse)
    async def readiness() -> JSONResponse:
        """Readiness probe: 503 unless every dependency is healthy."""
        body = await _evaluate()
        code = 200 if body.status == "healthy" else 503
        return JSONResponse(content=body.model_dump(), status_code=code)

    @router.get(f"{prefix}/live", response_model=LivenessResponse)
    async def liveness() -> LivenessResponse:
        return LivenessResponse()

    return router


__all__ = ["CheckResult", "HealthCheck", "HealthResponse", "LivenessResponse", "create_health_router"]
