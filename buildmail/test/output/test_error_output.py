"""Tests for buildmail.output.errors."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildmail.core.errors import ErrorCode
from buildmail.output.console import MockConsole, Style
from buildmail.output.errors import notify_error_exit_code, print_notify_error
from buildmail.services.errors import (
    DirectoryUnavailable,
    InvalidRevisionFormat,
    LogQueryFailed,
    MailDeliveryFailed,
    NoBuildMarkersFound,
    NotifyError,
)


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (DirectoryUnavailable(path=Path("/srv/ftp"), reason="gone"), ErrorCode.IO_ERROR),
        (
            NoBuildMarkersFound(source="Office", marker="build", found=1, limit=30),
            ErrorCode.VCS_ERROR,
        ),
        (InvalidRevisionFormat(source="Office", token="r1x"), ErrorCode.VCS_ERROR),
        (
            LogQueryFailed(source="Office", command="svn log", reason="E1", returncode=1),
            ErrorCode.VCS_ERROR,
        ),
        (MailDeliveryFailed(message="SMTP error"), ErrorCode.MAIL_ERROR),
    ],
)
def test_exit_codes(error: NotifyError, code: ErrorCode) -> None:
    assert notify_error_exit_code(error) == int(code)


def test_no_markers_message_and_hint() -> None:
    console = MockConsole()
    error = NoBuildMarkersFound(source="Office", marker="zbuild", found=1, limit=30)
    print_notify_error(error, console)

    assert console.messages[0] == (
        "error: Office: need two 'zbuild' revisions in the last 30 log entries, found 1"
    )
    assert console.find("raise [svn] limit (now 30)")
    assert console.find("aborted, no mail was sent")


def test_directory_unavailable() -> None:
    console = MockConsole()
    error = DirectoryUnavailable(path=Path("/srv/ftp"), reason="permission denied")
    print_notify_error(error, console)

    assert console.has_error()
    assert "/srv/ftp" in console.messages[0]
    assert console.outputs[1].style == Style.DIM


def test_mail_failure_hint_without_abort_line() -> None:
    console = MockConsole()
    error = MailDeliveryFailed(message="recipients refused: x", hint="partial")
    print_notify_error(error, console)

    assert console.messages == ["error: recipients refused: x", "hint: partial"]
