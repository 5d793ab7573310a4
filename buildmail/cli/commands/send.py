"""Send command - compose the release notification and mail it."""

from __future__ import annotations

from pathlib import Path

import typer

from buildmail.cli.commands._helpers import unwrap_or_exit
from buildmail.cli.context import build_context
from buildmail.services.notify import NotifyService


def send(
    streams: list[str] | None = typer.Argument(
        None,
        help="Release streams the update was pushed to (default: test).",
        show_default=False,
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.toml."),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the message instead of sending it.",
    ),
) -> None:
    """Mail the latest versions and changelogs to the configured recipients."""
    ctx = build_context(config)
    service = NotifyService(config=ctx.config, console=ctx.console)
    unwrap_or_exit(service.run(streams or [], dry_run=dry_run), ctx)
