from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from buildmail.core.config import DEFAULT_CONFIG_NAME, Config, load_config
from buildmail.core.errors import ErrorCode
from buildmail.core.result import Err
from buildmail.output.console import ConsoleProtocol, RichConsole

CONFIG_ENV = "BUILDMAIL_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    config_path: Path
    console: ConsoleProtocol


def resolve_config_path(config_path: Path | None) -> Path:
    """--config wins over $BUILDMAIL_CONFIG, which wins over ./config.toml."""
    if config_path is not None:
        return config_path.expanduser()
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_NAME


def build_context(config_path: Path | None = None) -> CLIContext:
    path = resolve_config_path(config_path)
    result = load_config(path)
    if isinstance(result, Err):
        typer.echo(f"error: {result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    return CLIContext(config=result.value, config_path=path, console=RichConsole())
