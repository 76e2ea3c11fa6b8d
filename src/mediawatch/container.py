"""
Composition root.

:class:`Container` builds every long-lived instance exactly once from
:class:`MediaWatchSettings` and owns their lifecycle. Nothing in mediawatch
keeps module-level singletons: the API lifespan, the CLI and the tests all
construct a container, ``start()`` it, and ``stop()`` it.

Architecture:
    ::

        Container(settings)
        ├── engine / session_factory        (SQLAlchemy)
        ├── cache: CacheStore               sweep task between start/stop
        ├── rate_limiter                    sweep task between start/stop
        ├── breakers: CircuitBreakerRegistry (openai, newsdata)
        ├── gateway: ExternalServiceGateway
        ├── articles / categories / downloads repositories
        └── content: ContentService

Examples:
    >>> container = Container(MediaWatchSettings(database_url="sqlite://"))
    >>> await container.start()
    >>> result = await container.content.list_articles(ArticleQueryOptions())
    >>> await container.stop()

Tags:
    container, dependency-injection, lifecycle, mediawatch
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Engine

from mediawatch.automation.gateway import ExternalServiceGateway
from mediawatch.content.repository import ArticleRepository, CategoryRepository, DownloadRepository
from mediawatch.content.service import ContentService
from mediawatch.core.cache import CacheStore
from mediawatch.core.logging import get_logger
from mediawatch.core.settings import MediaWatchSettings
from mediawatch.execution.circuit_breaker import default_breakers
from mediawatch.execution.rate_limit import SlidingWindowRateLimiter
from mediawatch.orm.session import create_mediawatch_engine, init_schema, session_factory

logger = get_logger(__name__)


class Container:
    """Explicitly constructed application graph.

    Args:
        settings: Runtime configuration.
        engine: Pre-built engine (tests pass an in-memory one); built from
            ``settings.database_url`` when omitted.
        create_schema: Run ``create_all`` during ``start()``.
    """

    def __init__(
        self,
        settings: MediaWatchSettings,
        *,
        engine: Engine | None = None,
        create_schema: bool = True,
    ):
        self.settings = settings
        self._owns_engine = engine is None
        self._create_schema = create_schema
        self._started = False

        self.engine = engine or create_mediawatch_engine(
            settings.database_url, echo=settings.database_echo
        )
        self.session_factory = session_factory(self.engine)

        self.cache = CacheStore(
            max_entries=settings.cache_max_entries,
            default_ttl=settings.cache_default_ttl_seconds,
            sweep_interval=settings.cache_sweep_interval_seconds,
        )
        self.rate_limiter = SlidingWindowRateLimiter(
            sweep_interval=settings.rate_limit_sweep_interval_seconds
        )
        self.breakers = default_breakers()
        self.gateway = ExternalServiceGateway(self.rate_limiter, self.breakers)

        self.articles = ArticleRepository(self.session_factory)
        self.categories = CategoryRepository(self.session_factory)
        self.downloads = DownloadRepository(self.session_factory)
        self.content = ContentService(
            self.articles,
            self.categories,
            self.downloads,
            self.cache,
            max_page_size=settings.max_page_size,
        )

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Create the schema (optionally) and start background sweeps."""
        if self._started:
            return
        if self._create_schema:
            init_schema(self.engine)
        await self.cache.start()
        await self.rate_limiter.start()
        self._started = True
        logger.info("container_started", database=self.engine.url.render_as_string(hide_password=True))

    async def stop(self) -> None:
        """Cancel background sweeps and release the engine."""
        if not self._started:
            return
        await self.cache.stop()
        await self.rate_limiter.stop()
        if self._owns_engine:
            self.engine.dispose()
        self._started = False
        logger.info("container_stopped")

    def ping_database(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True


__all__ = ["Container"]
