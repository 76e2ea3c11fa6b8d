"""
MediaWatch - cache-aware content core for a bilingual media-monitoring blog.

Subpackages:
- mediawatch.core: errors, logging, settings and the TTL cache store
- mediawatch.execution: circuit breaker and sliding-window rate limiter
- mediawatch.orm: SQLAlchemy tables, engine and sessions
- mediawatch.content: cursors, repositories, DTOs and the content service
- mediawatch.automation: gateway for calls to external news/LLM sources
- mediawatch.api: FastAPI application
"""

__version__ = "0.1.0"
