"""Changelog window between the two most recent build markers.

Build commits carry a marker token in their message ("zbuild 2024.03.01").
Extraction is a two step protocol against the log:

1. Probe: the last `limit` entries whose message contains the marker.
   The first two entry headers are the newest build and the one before.
2. Query the exclusive window between them, `previous + 1 .. newest - 1`,
   and turn the messages into one bullet per line.

Both marker commits are excluded; the newest one's changes were reported
with the previous notification. Consecutive markers give an empty window,
which is a valid, empty changelog.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from buildmail.core.config import DEFAULT_JOINER, DEFAULT_MARKER, DEFAULT_PROBE_LIMIT
from buildmail.core.result import Err, Ok, Result
from buildmail.services.errors import (
    ChangelogError,
    InvalidRevisionFormat,
    LogQueryFailed,
    NoBuildMarkersFound,
)
from buildmail.svn.repository import LogSource, SvnError

__all__ = [
    "BULLET",
    "Changelog",
    "ChangelogExtractor",
    "RevisionWindow",
    "bulletize",
    "format_changelog",
    "parse_markers",
    "strip_metadata",
    "window_from_probe",
]

BULLET = "- "

# "r105 | alice | 2024-03-01 ... | 1 line": svn never indents message lines, so a
# message line may start with "r104"; only the " | " after the token marks a header
_REVISION_TOKEN = re.compile(r"^(r\d[^\s|]*) \| ", re.MULTILINE)
_HEADER_LINE = re.compile(r"^r\d[^\s|]* \| ")
_SEPARATOR_LINE = re.compile(r"^-+\s*$")


@dataclass(frozen=True, slots=True)
class RevisionWindow:
    """Inclusive revision range; empty when start > end."""

    start: int
    end: int

    @classmethod
    def between(cls, newest: int, previous: int) -> RevisionWindow:
        """Window strictly between two marker revisions."""
        return cls(start=previous + 1, end=newest - 1)

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def as_range(self) -> tuple[int, int]:
        return (self.start, self.end)

    def __str__(self) -> str:
        return f"r{self.start}:r{self.end}"


@dataclass(frozen=True, slots=True)
class Changelog:
    """Formatted changes of one source between two builds."""

    source: str
    window: RevisionWindow
    entries: tuple[str, ...] = ()
    joiner: str = DEFAULT_JOINER

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def text(self) -> str:
        return self.joiner.join(self.entries)


def _revision_number(token: str, source: str) -> Result[int, InvalidRevisionFormat]:
    try:
        return Ok(int(token[1:]))
    except ValueError:
        return Err(InvalidRevisionFormat(source=source, token=token))


def parse_markers(
    output: str,
    *,
    source: str,
    count: int | None = None,
) -> Result[list[int], InvalidRevisionFormat]:
    """Distinct revision numbers of the entry headers, newest first.

    Args:
        output: Raw log output
        source: Name used in error values
        count: Stop after this many distinct revisions; tokens past that
            point are not validated
    """
    revisions: list[int] = []
    for token in _REVISION_TOKEN.findall(output):
        if count is not None and len(revisions) >= count:
            break
        number = _revision_number(token, source)
        if isinstance(number, Err):
            return number
        if number.value not in revisions:
            revisions.append(number.value)
    return Ok(revisions)


def window_from_probe(
    output: str,
    *,
    source: str,
    marker: str = DEFAULT_MARKER,
    limit: int = DEFAULT_PROBE_LIMIT,
) -> Result[RevisionWindow, ChangelogError]:
    """Compute the revision window from probe output."""
    parsed = parse_markers(output, source=source, count=2)
    if isinstance(parsed, Err):
        return parsed

    markers = parsed.value
    if len(markers) < 2:
        return Err(
            NoBuildMarkersFound(source=source, marker=marker, found=len(markers), limit=limit)
        )

    newest, previous = markers
    return Ok(RevisionWindow.between(newest=newest, previous=previous))


def strip_metadata(raw: str) -> list[str]:
    """Message lines of a raw log: headers, dashed separators and blanks removed.

    Blank lines inside a multi-paragraph message are dropped too, so the
    paragraph breaks of such a message are not kept in the changelog.
    """
    lines: list[str] = []
    for line in raw.splitlines():
        line = line.rstrip()
        if not line or _HEADER_LINE.match(line) or _SEPARATOR_LINE.match(line):
            continue
        lines.append(line)
    return lines


def bulletize(lines: Iterable[str]) -> list[str]:
    """Prefix every non-empty line with a bullet unless it already has one.

    Indented bullets ("  - foo") count as bulleted and keep their indent.
    """
    out: list[str] = []
    for line in lines:
        if line and not line.lstrip().startswith(BULLET):
            line = BULLET + line
        out.append(line)
    return out


def format_changelog(raw: str, joiner: str = DEFAULT_JOINER) -> str:
    """Raw `svn log` output -> joined bullet list."""
    return joiner.join(bulletize(strip_metadata(raw)))


class ChangelogExtractor:
    """Extract the changes between the last two builds of one log source."""

    def __init__(
        self,
        repo: LogSource,
        *,
        name: str | None = None,
        marker: str = DEFAULT_MARKER,
        limit: int = DEFAULT_PROBE_LIMIT,
        joiner: str = DEFAULT_JOINER,
    ) -> None:
        self._repo = repo
        self._name = name or repo.target
        self._marker = marker
        self._limit = limit
        self._joiner = joiner

    @property
    def name(self) -> str:
        return self._name

    def probe(self) -> Result[RevisionWindow, ChangelogError]:
        """Find the window between the two newest build markers."""
        probe = self._repo.log(limit=self._limit, search=self._marker)
        if isinstance(probe, Err):
            return Err(self._query_failed(probe.error))
        return window_from_probe(
            probe.value,
            source=self._name,
            marker=self._marker,
            limit=self._limit,
        )

    def extract(self) -> Result[Changelog, ChangelogError]:
        """Probe for the window, query it and format the entries.

        Returns:
            Ok(Changelog), empty when no commit landed between the builds
            Err(NoBuildMarkersFound | InvalidRevisionFormat | LogQueryFailed)
        """
        window = self.probe()
        if isinstance(window, Err):
            return window

        if window.value.is_empty:
            return Ok(Changelog(source=self._name, window=window.value, joiner=self._joiner))

        full = self._repo.log(revisions=window.value.as_range())
        if isinstance(full, Err):
            return Err(self._query_failed(full.error))

        entries = bulletize(strip_metadata(full.value))
        return Ok(
            Changelog(
                source=self._name,
                window=window.value,
                entries=tuple(entries),
                joiner=self._joiner,
            )
        )

    def _query_failed(self, error: SvnError) -> LogQueryFailed:
        return LogQueryFailed(
            source=self._name,
            command=error.command,
            reason=error.message,
            returncode=error.returncode,
        )
