"""
CLI: ``mediawatch db``: database management commands.
"""

from __future__ import annotations

import typer
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from mediawatch.cli.utils import console, fail, load_settings, output
from mediawatch.orm import ArticleTable, CategoryTable, DownloadTable
from mediawatch.orm.session import create_mediawatch_engine, init_schema

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
) -> None:
    """Create the content tables (idempotent)."""
    settings = load_settings(database)
    engine = create_mediawatch_engine(settings.database_url, echo=settings.database_echo)
    try:
        init_schema(engine)
    except SQLAlchemyError as exc:
        raise fail(str(exc), "DATABASE") from exc
    finally:
        engine.dispose()
    console.print(f"[green]✓[/green] Schema ready at {engine.url.render_as_string(hide_password=True)}")


@app.command()
def tables(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show row counts for the content tables."""
    settings = load_settings(database)
    engine = create_mediawatch_engine(settings.database_url)
    try:
        with engine.connect() as conn:
            rows = [
                {"table": table.__tablename__, "rows": conn.execute(select(func.count()).select_from(table)).scalar_one()}
                for table in (CategoryTable, ArticleTable, DownloadTable)
            ]
    except SQLAlchemyError as exc:
        raise fail(str(exc), "DATABASE") from exc
    finally:
        engine.dispose()
    output(rows, as_json=json_out, title="Table Counts")
