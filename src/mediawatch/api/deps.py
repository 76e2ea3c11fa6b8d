"""
FastAPI dependency injection.

Usage in routers::

    from mediawatch.api.deps import Content

    @router.get("/articles")
    async def list_articles(content: Content):
        ...

The container lives on ``app.state.container`` (set by the lifespan); these
dependencies only look it up, so tests can hand ``create_app()`` a
pre-built container.

Tags:
    mediawatch, api, dependency-injection

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from mediawatch.container import Container
from mediawatch.content.service import ContentService
from mediawatch.core.errors import TransientError
from mediawatch.core.settings import MediaWatchSettings, get_settings

# ── Container (singleton per app) ────────────────────────────────────────


def get_container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None or not container.started:
        raise TransientError("Service is starting up", retry_after=1)
    return container


def get_content_service(
    container: Annotated[Container, Depends(get_container)],
) -> ContentService:
    return container.content


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[MediaWatchSettings, Depends(get_settings)]
AppContainer = Annotated[Container, Depends(get_container)]
Content = Annotated[ContentService, Depends(get_content_service)]

__all__ = [
    "AppContainer",
    "Content",
    "Settings",
    "get_container",
    "get_content_service",
    "get_settings",
]
