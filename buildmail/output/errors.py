"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from buildmail.core.errors import ErrorCode
from buildmail.output.console import Style
from buildmail.services.errors import (
    DirectoryUnavailable,
    InvalidRevisionFormat,
    LogQueryFailed,
    MailDeliveryFailed,
    NoBuildMarkersFound,
    NotifyError,
)

if TYPE_CHECKING:
    from buildmail.output.console import ConsoleProtocol

__all__ = ["print_notify_error", "notify_error_exit_code"]


def print_notify_error(error: NotifyError, console: ConsoleProtocol) -> None:
    """Print a run error with a hint for the operator."""
    console.error(error.message)
    match error:
        case DirectoryUnavailable():
            console.print("hint: check [artifacts] directory in config.toml", Style.DIM)
        case NoBuildMarkersFound(marker=marker, limit=limit):
            console.print(
                f"hint: commit a '{marker}' marker or raise [svn] limit (now {limit})",
                Style.DIM,
            )
        case InvalidRevisionFormat():
            console.print("hint: svn log output is not in the expected format", Style.DIM)
        case LogQueryFailed(command=command):
            console.print(f"hint: run '{command}' by hand", Style.DIM)
        case MailDeliveryFailed(hint=hint):
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
    if not isinstance(error, MailDeliveryFailed):
        console.print("aborted, no mail was sent", Style.DIM)


def notify_error_exit_code(error: NotifyError) -> int:
    """Get exit code for a run error."""
    match error:
        case DirectoryUnavailable():
            return int(ErrorCode.IO_ERROR)
        case NoBuildMarkersFound() | InvalidRevisionFormat() | LogQueryFailed():
            return int(ErrorCode.VCS_ERROR)
        case MailDeliveryFailed():
            return int(ErrorCode.MAIL_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.USER_ERROR)
