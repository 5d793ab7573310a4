from __future__ import annotations

import typer

from buildmail import __version__
from buildmail.cli.commands.changelog import changelog
from buildmail.cli.commands.send import send
from buildmail.cli.commands.versions import versions

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Release notification mails for nightly build drops.",
)

app.command()(send)
app.command()(versions)
app.command()(changelog)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
