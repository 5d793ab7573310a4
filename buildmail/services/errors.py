"""Error values produced while assembling a release notification.

Every one of these aborts the run before any mail is sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class DirectoryUnavailable:
    """The artifact drop directory could not be listed."""

    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"cannot read artifact directory {self.path}: {self.reason}"


@dataclass(frozen=True, slots=True)
class NoBuildMarkersFound:
    """The probe query yielded fewer than two build marker revisions."""

    source: str
    marker: str
    found: int
    limit: int

    @property
    def message(self) -> str:
        return (
            f"{self.source}: need two '{self.marker}' revisions in the last "
            f"{self.limit} log entries, found {self.found}"
        )


@dataclass(frozen=True, slots=True)
class InvalidRevisionFormat:
    """A revision token in the log did not end in an integer."""

    source: str
    token: str

    @property
    def message(self) -> str:
        return f"{self.source}: cannot parse revision number from '{self.token}'"


@dataclass(frozen=True, slots=True)
class LogQueryFailed:
    """svn log itself failed (not installed, not a working copy, timeout)."""

    source: str
    command: str
    reason: str
    returncode: int

    @property
    def message(self) -> str:
        return f"{self.source}: {self.command} failed (exit {self.returncode}): {self.reason}"


@dataclass(frozen=True, slots=True)
class MailDeliveryFailed:
    message: str
    hint: str | None = None


ChangelogError = NoBuildMarkersFound | InvalidRevisionFormat | LogQueryFailed

NotifyError = DirectoryUnavailable | ChangelogError | MailDeliveryFailed
