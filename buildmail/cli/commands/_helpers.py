"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from buildmail.core.result import Err, Ok, Result
from buildmail.output.errors import notify_error_exit_code, print_notify_error
from buildmail.services.errors import NotifyError

if TYPE_CHECKING:
    from buildmail.cli.context import CLIContext

T = TypeVar("T")


def unwrap_or_exit(result: Result[T, NotifyError], ctx: CLIContext) -> T:
    """Return the value of an Ok, or report the error and exit.

    Replaces the boilerplate:
        match result:
            case Err(e):
                print_notify_error(e, ctx.console)
                raise typer.Exit(code=notify_error_exit_code(e))
            case Ok(value):
                ...
    """
    match result:
        case Ok(value):
            return value
        case Err(error):
            print_notify_error(error, ctx.console)
            exit_with_code(notify_error_exit_code(error))


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
