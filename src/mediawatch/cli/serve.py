"""
CLI: ``mediawatch serve``: start the content API server.
"""

from __future__ import annotations

import typer
import uvicorn

from mediawatch.cli.utils import console, load_settings


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: settings.host)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: settings.port)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the MediaWatch content API.

    A single worker only: the cache, rate limiter and circuit breakers live
    in process memory.
    """
    settings = load_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"[bold green]Starting MediaWatch API[/bold green] on {host}:{port}")
    uvicorn.run(
        "mediawatch.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
        log_level=log_level,
    )
