"""
CLI utility helpers: output formatting and settings resolution.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from mediawatch.core.settings import MediaWatchSettings, get_settings

console = Console()
err_console = Console(stderr=True)


def load_settings(database: str | None = None) -> MediaWatchSettings:
    """Environment settings, with ``--database`` overriding the URL."""
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"database_url": database})
    return settings


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output(data: Any, *, as_json: bool = False, title: str = "", columns: list[str] | None = None) -> None:
    """Render a dict, model or list of them as JSON or a Rich table."""
    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list | tuple):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        print_table(list(data), title=title, columns=columns)
    else:
        print_dict(_to_dict(data), title=title)


def print_table(items: list[Any], *, title: str = "", columns: list[str] | None = None) -> None:
    rows = [_to_dict(item) for item in items]
    cols = columns or list(rows[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in cols:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(row.get(col, "")) for col in cols))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")


def fail(message: str, code: str = "ERROR") -> typer.Exit:
    """Print an error line; the caller raises the returned ``typer.Exit``."""
    err_console.print(f"[bold red]Error[/bold red] ({code}): {message}")
    return typer.Exit(code=1)
