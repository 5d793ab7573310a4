"""Versions command - show the latest artifact per product."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from buildmail.cli.commands._helpers import unwrap_or_exit
from buildmail.cli.context import build_context
from buildmail.services.notify import NotifyService
from buildmail.services.summary import MISSING_VERSION


def versions(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.toml."),
) -> None:
    """Resolve the latest version of every product in the drop directory."""
    ctx = build_context(config)
    service = NotifyService(config=ctx.config, console=ctx.console)
    resolved = unwrap_or_exit(service.resolve_versions(), ctx)

    table = Table(title=escape(str(ctx.config.artifacts.directory)))
    table.add_column("Product", style="bold")
    table.add_column("Version", style="green")
    for product in resolved.products:
        version = resolved.get(product)
        table.add_row(
            escape(product),
            escape(version) if version else f"[dim]{MISSING_VERSION}[/dim]",
        )
    Console().print(table)
