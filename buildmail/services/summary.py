"""Notification body for a software update release."""

from __future__ import annotations

import html
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from buildmail.services.changelog import Changelog
from buildmail.services.versions import ResolvedVersions

__all__ = ["Summary", "format_summary", "greeting", "subject_for"]

DEFAULT_STREAM = "test"
MISSING_VERSION = "n/a"
NO_CHANGES = "No changes since the previous build."

_FONT_STYLE = "font-family: Calibri, sans-serif; font-size: 15;"
_VERSION_STYLE = "color:#2ED03C"


@dataclass(frozen=True, slots=True)
class Summary:
    subject: str
    html: str


def subject_for(when: datetime) -> str:
    return f"Software Update Release {when.strftime('%m/%d/%Y')}"


def greeting(streams: Sequence[str]) -> str:
    """Opening lines naming the release streams (defaults to the test stream)."""
    names = [s.strip() for s in streams if s.strip()] or [DEFAULT_STREAM]
    joined = ", ".join(html.escape(n) for n in names)
    return f"Hi All, <br>The latest software update has been pushed to {joined} streams."


def _changelog_block(changelog: Changelog) -> str:
    if changelog.is_empty:
        return f"<em>{NO_CHANGES}</em>"
    return changelog.joiner.join(html.escape(entry) for entry in changelog.entries)


def format_summary(
    versions: ResolvedVersions,
    changelogs: Sequence[Changelog],
    *,
    streams: Sequence[str] = (),
    when: datetime | None = None,
    signature: str = "build-bot",
) -> Summary:
    """Render subject and HTML body.

    Versions are looked up by product name, so a product without an
    artifact shows as n/a instead of shifting the other products.
    """
    when = when or datetime.now().astimezone()

    parts: list[str] = [f'<span style="{_FONT_STYLE}">']
    parts.append("\n" + greeting(streams))
    parts.append("\n\n<br><br><u>The latest software versions are:</u>")
    for product in versions.products:
        version = versions.get(product) or MISSING_VERSION
        parts.append(
            f"\n<br><strong>{html.escape(product)}: </strong>"
            f'<span style="{_VERSION_STYLE}">{html.escape(version)}</span>'
        )
    for changelog in changelogs:
        parts.append(f"\n<br><br><u>{html.escape(changelog.source)} Changelog: </u>")
        parts.append("\n<br>" + _changelog_block(changelog))
    parts.append(f"\n\n<br><br>Thanks, <br>{html.escape(signature)}</span>")
    parts.append("<br><br>P.S. Don't reply to me, I'm a bot.")

    return Summary(subject=subject_for(when), html="".join(parts))
