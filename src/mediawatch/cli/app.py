"""
Root Typer application for the mediawatch CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from mediawatch import __version__

app = Typer(
    name="mediawatch",
    help="mediawatch: cached content API for the MediaWatch site.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mediawatch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """mediawatch CLI: serve the API, manage the database, browse content."""


# ── Sub-command registration ─────────────────────────────────────────────

from mediawatch.cli.articles import app as articles_app  # noqa: E402
from mediawatch.cli.config import app as config_app  # noqa: E402
from mediawatch.cli.db import app as db_app  # noqa: E402
from mediawatch.cli.serve import serve  # noqa: E402

app.command("serve")(serve)
app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(config_app, name="config", help="Settings and built-in policies.")
app.add_typer(articles_app, name="articles", help="Browse articles.")
