"""Changelog command - show the changes between the last two builds."""

from __future__ import annotations

from pathlib import Path

import typer

from buildmail.cli.commands._helpers import exit_with_code, unwrap_or_exit
from buildmail.cli.context import build_context
from buildmail.core.errors import ErrorCode
from buildmail.output.console import Style
from buildmail.services.notify import NotifyService


def changelog(
    name: str = typer.Argument(..., help="Changelog source name from config.toml."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.toml."),
) -> None:
    """Print one changelog, one bullet per line."""
    ctx = build_context(config)
    source = ctx.config.changelog(name)
    if source is None:
        ctx.console.error(f"unknown changelog: {name}")
        available = [s.name for s in ctx.config.changelogs]
        if available:
            ctx.console.print(f"Available: {', '.join(available)}", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))

    service = NotifyService(config=ctx.config, console=ctx.console)
    extracted = unwrap_or_exit(service.extract_changelog(source), ctx)

    ctx.console.header(f"{extracted.source} ({extracted.window})")
    for entry in extracted.entries:
        ctx.console.raw(entry)
