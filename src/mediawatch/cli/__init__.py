"""mediawatch command-line interface (typer + rich)."""

from mediawatch.cli.app import app

__all__ = ["app"]
