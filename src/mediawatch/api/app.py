"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers and the lifespan
into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root for HTTP: the lifespan
    builds and starts a :class:`Container`, routers reach it through
    :mod:`mediawatch.api.deps`, and shutdown stops it again.

Tags:
    mediawatch, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from mediawatch import __version__
from mediawatch.api.health import HealthCheck, create_health_router
from mediawatch.api.middleware import (
    RequestIDMiddleware,
    mediawatch_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from mediawatch.container import Container
from mediawatch.core.errors import MediaWatchError
from mediawatch.core.logging import configure_from_settings, get_logger
from mediawatch.core.settings import MediaWatchSettings, get_settings

log = get_logger("mediawatch.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build (unless injected) and start the container; stop it on shutdown."""
    settings: MediaWatchSettings = app.state.settings
    container: Container | None = app.state.container
    if container is None:
        container = Container(settings)
        app.state.container = container

    log.info("mediawatch API starting", version=app.version)
    await container.start()
    try:
        yield
    finally:
        await container.stop()
        log.info("mediawatch API shutting down")


def _health_checks(app: FastAPI) -> tuple[list[HealthCheck], Any]:
    async def check_database() -> bool:
        return await asyncio.to_thread(app.state.container.ping_database)

    def details() -> dict[str, Any]:
        container = app.state.container
        if container is None:
            return {}
        return {
            "cache": container.cache.stats().to_dict(),
            "circuits": container.breakers.snapshot(),
        }

    return [HealthCheck("database", check_database)], details


def create_app(
    *,
    settings: MediaWatchSettings | None = None,
    container: Container | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : MediaWatchSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    container : Container | None
        Pre-built container; the lifespan starts and stops it either way.
    configure_logs : bool
        Apply ``settings.log_level`` / ``settings.log_format`` to structlog.
    """
    settings = settings or (container.settings if container else get_settings())

    if configure_logs:
        configure_from_settings(settings)

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.state.settings = settings
    app.state.container = container

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "X-Cache", "X-Request-ID", "Retry-After"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(MediaWatchError, mediawatch_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from mediawatch.api.routers import articles, cache, categories, downloads

    prefix = settings.api_prefix

    # Health endpoints at root level (no prefix) for container healthchecks
    checks, details = _health_checks(app)
    app.include_router(create_health_router("mediawatch", version=__version__, checks=checks, details=details))

    app.include_router(articles.router, prefix=prefix, tags=["articles"])
    app.include_router(categories.router, prefix=prefix, tags=["categories"])
    app.include_router(downloads.router, prefix=prefix, tags=["downloads"])
    app.include_router(cache.router, prefix=prefix, tags=["cache"])

    return app
