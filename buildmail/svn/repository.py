"""Subversion repository abstraction.

Only `svn log` is needed: a bounded, filtered probe of recent history and
an exact revision range query. Output is returned untouched in the classic
human-readable format:

    ------------------------------------------------------------------------
    r105 | alice | 2024-03-01 10:12:44 +0100 (Fri, 01 Mar 2024) | 1 line

    zbuild 2024.03.01
    ------------------------------------------------------------------------
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Protocol

from buildmail.core.result import Err, Ok, Result

_SVN_TIMEOUT_SECONDS = 120.0

__all__ = [
    "LogSource",
    "RevisionRange",
    "SvnError",
    "SvnRepository",
]

RevisionRange = tuple[int, int]


@dataclass(frozen=True, slots=True)
class SvnError:
    """Error from an svn invocation.

    Attributes:
        command: The svn command line that failed
        message: Error message (stderr of svn)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class LogSource(Protocol):
    """Anything that can answer log queries the way `svn log` does."""

    @property
    def target(self) -> str: ...

    def log(
        self,
        *,
        limit: int | None = None,
        search: str | None = None,
        revisions: RevisionRange | None = None,
    ) -> Result[str, SvnError]: ...


class SvnRepository:
    """Log queries against one working copy path or repository URL.

    Attributes:
        target: Working copy path or URL passed to svn
        timeout: Seconds allowed per svn invocation
    """

    def __init__(self, target: str, *, timeout: float = _SVN_TIMEOUT_SECONDS) -> None:
        self._target = target
        self.timeout = timeout

    @property
    def target(self) -> str:
        return self._target

    def log(
        self,
        *,
        limit: int | None = None,
        search: str | None = None,
        revisions: RevisionRange | None = None,
    ) -> Result[str, SvnError]:
        """Run `svn log` for the target.

        Args:
            limit: Only the N most recent entries
            search: Only entries whose message/author contains this text
            revisions: Inclusive (from, to) revision range

        Returns:
            Ok(raw log output) on success
            Err(SvnError) on failure (svn missing, not a working copy, timeout)
        """
        args = ["log", "--non-interactive", self._target]
        if limit is not None:
            args += ["--limit", str(limit)]
        if search is not None:
            args += ["--search", search]
        if revisions is not None:
            start, end = revisions
            args += ["-r", f"{start}:{end}"]
        return self._svn(args)

    def _svn(self, args: list[str]) -> Result[str, SvnError]:
        """Run one svn command; the child is reaped on every path, timeout included."""
        cmd = ["svn", *args]
        command = " ".join(cmd)
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return Err(SvnError(command, f"no answer within {self.timeout:g}s", returncode=-1))
        except OSError as e:
            # svn not installed or not executable
            return Err(SvnError(command, e.strerror or str(e), returncode=-1))

        if proc.returncode != 0:
            message = proc.stderr.strip() or f"svn {args[0]} failed"
            return Err(SvnError(command, message, returncode=proc.returncode))
        return Ok(proc.stdout)
