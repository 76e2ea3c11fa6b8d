"""
CLI: ``mediawatch articles``: browse content through the cached service.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import typer

from mediawatch.cli.utils import console, fail, load_settings, output
from mediawatch.container import Container
from mediawatch.content.schemas import DEFAULT_PAGE_SIZE, ArticleQueryOptions
from mediawatch.content.service import CachedResult
from mediawatch.core.errors import MediaWatchError

app = typer.Typer(no_args_is_help=True)

LIST_COLUMNS = ["id", "slug", "title", "published_at", "category_name", "reading_time"]


def _run(database: str | None, call: Callable[[Container], Awaitable[CachedResult]]) -> Any:
    async def main() -> Any:
        container = Container(load_settings(database))
        await container.start()
        try:
            return (await call(container)).payload
        finally:
            await container.stop()

    try:
        return asyncio.run(main())
    except MediaWatchError as exc:
        raise fail(exc.message, exc.category.value) from exc


@app.command("list")
def list_articles(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    category_id: int | None = typer.Option(None, "--category", "-c"),
    language: str = typer.Option("en", "--language", "-l"),
    limit: int = typer.Option(DEFAULT_PAGE_SIZE, "--limit", "-n"),
    cursor: str | None = typer.Option(None, "--cursor", help="next_cursor from a previous page"),
    sort_by: str = typer.Option("published_at", "--sort-by"),
    sort_order: str = typer.Option("desc", "--order"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List published articles one page at a time."""
    options = ArticleQueryOptions(
        category_id=category_id,
        language=language,
        limit=limit,
        cursor=cursor,
        sort_by=sort_by,
        sort_order=sort_order,
        paginated=True,
    )
    page = _run(database, lambda c: c.content.list_articles(options))
    if json_out:
        output(page, as_json=True)
        return

    output(page["data"], title="Articles", columns=LIST_COLUMNS)
    meta = page["pagination"]
    console.print(
        f"\n[dim]Page {meta['current_page']} of {meta['total_pages']}"
        f" ({meta['total']} total)[/dim]"
    )
    if meta["next_cursor"]:
        console.print(f"[dim]Next page:[/dim] --cursor {meta['next_cursor']}")


@app.command("search")
def search_articles(
    query: str = typer.Argument(..., help="Text to search for"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    language: str = typer.Option("en", "--language", "-l"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Search published articles."""
    rows = _run(database, lambda c: c.content.search_articles(query, language))
    output(rows, as_json=json_out, title=f"Results for '{query}'", columns=LIST_COLUMNS)


@app.command("show")
def show_article(
    slug: str = typer.Argument(...),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    language: str = typer.Option("en", "--language", "-l"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show one article by slug."""
    article = _run(database, lambda c: c.content.get_article_by_slug(slug, language))
    output(article, as_json=json_out, title=article["title"])
