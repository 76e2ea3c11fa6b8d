"""
CLI: ``mediawatch config``: configuration and built-in policy inspection.
"""

from __future__ import annotations

import typer
from rich.table import Table

from mediawatch.cli.utils import console, load_settings, output
from mediawatch.core.cache import CacheTTL
from mediawatch.execution.circuit_breaker import default_breakers
from mediawatch.execution.rate_limit import DEFAULT_RULES

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show the effective settings (environment + .env)."""
    settings = load_settings()

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(settings.model_dump().items()):
            console.print(f"MEDIAWATCH_{key.upper()}={value}")
        return

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in sorted(settings.model_dump().items()):
        table.add_row(key, str(value))
    console.print(table)


@app.command("policies")
def show_policies(
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show cache TTLs, rate-limit rules and circuit-breaker defaults."""
    ttls = [
        {"group": name.lower(), "ttl_seconds": getattr(CacheTTL, name)}
        for name in ("ARTICLES_LIST", "ARTICLE_DETAIL", "CATEGORIES", "DOWNLOADS", "SEARCH_RESULTS")
    ]
    rules = [
        {
            "source": source,
            "max_requests": rule.max_requests,
            "window_seconds": rule.window_seconds,
            "priority": rule.priority,
        }
        for source, rule in DEFAULT_RULES.items()
    ]
    circuits = [
        {
            "source": name,
            "failure_threshold": snapshot["failure_threshold"],
            "call_timeout": snapshot["call_timeout"],
            "reset_timeout": snapshot["reset_timeout"],
        }
        for name, snapshot in default_breakers().snapshot().items()
    ]

    if json_out:
        output({"cache_ttl": ttls, "rate_limits": rules, "circuits": circuits}, as_json=True)
        return
    output(ttls, title="Cache TTL")
    output(rules, title="Rate Limits")
    output(circuits, title="Circuit Breakers")
