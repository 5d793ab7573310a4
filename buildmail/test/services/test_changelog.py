"""Tests for buildmail.services.changelog."""

from __future__ import annotations

from dataclasses import dataclass, field

from buildmail.core.result import Err, Ok, Result
from buildmail.services.changelog import (
    Changelog,
    ChangelogExtractor,
    RevisionWindow,
    bulletize,
    format_changelog,
    parse_markers,
    strip_metadata,
    window_from_probe,
)
from buildmail.services.errors import InvalidRevisionFormat, LogQueryFailed, NoBuildMarkersFound
from buildmail.svn.repository import RevisionRange, SvnError

SEP = "-" * 72

PROBE = f"""{SEP}
r105 | alice | 2024-03-01 10:12:44 +0100 (Fri, 01 Mar 2024) | 1 line

zbuild 2024.03.01
{SEP}
r100 | alice | 2024-02-15 09:00:01 +0100 (Thu, 15 Feb 2024) | 1 line

zbuild 2024.02.15
{SEP}
r90 | alice | 2024-02-01 09:00:01 +0100 (Thu, 01 Feb 2024) | 1 line

zbuild 2024.02.01
{SEP}
"""

WINDOW_LOG = f"""{SEP}
r104 | bob | 2024-02-29 16:40:02 +0100 (Thu, 29 Feb 2024) | 2 lines

Fix rounding of dispensed quantities
Show the batch number on labels
{SEP}
r102 | carol | 2024-02-20 11:03:10 +0100 (Tue, 20 Feb 2024) | 1 line

- Office: faster patient search
{SEP}
"""


def _empty_calls() -> list[dict[str, object]]:
    return []


@dataclass
class FakeLog:
    """LogSource double returning canned output per query kind."""

    probe: Result[str, SvnError] = Ok("")
    window: Result[str, SvnError] = Ok("")
    target: str = "/src/office"
    calls: list[dict[str, object]] = field(default_factory=_empty_calls)

    def log(
        self,
        *,
        limit: int | None = None,
        search: str | None = None,
        revisions: RevisionRange | None = None,
    ) -> Result[str, SvnError]:
        self.calls.append({"limit": limit, "search": search, "revisions": revisions})
        return self.window if revisions is not None else self.probe


class TestRevisionWindow:
    def test_between_excludes_markers(self) -> None:
        window = RevisionWindow.between(newest=105, previous=100)
        assert window == RevisionWindow(101, 104)
        assert window.is_empty is False
        assert str(window) == "r101:r104"

    def test_adjacent_markers_give_empty_window(self) -> None:
        window = RevisionWindow.between(newest=101, previous=100)
        assert window.is_empty is True

    def test_single_revision_window(self) -> None:
        window = RevisionWindow.between(newest=102, previous=100)
        assert window.as_range() == (101, 101)
        assert window.is_empty is False


class TestParseMarkers:
    def test_scenario_two_markers(self) -> None:
        assert parse_markers("r105 | a\nr100 | b\n", source="office") == Ok([105, 100])

    def test_newest_first_from_real_log(self) -> None:
        assert parse_markers(PROBE, source="office") == Ok([105, 100, 90])

    def test_duplicates_removed(self) -> None:
        assert parse_markers("r7 | a\nr7 | b\nr3 | c\n", source="x") == Ok([7, 3])

    def test_count_stops_early(self) -> None:
        assert parse_markers("r9 | a\nr8 | b\nr7x | c\n", source="x", count=2) == Ok([9, 8])

    def test_message_text_not_a_marker(self) -> None:
        """Only tokens at the start of a line are entry headers."""
        assert parse_markers("zbuild for r12\n", source="x") == Ok([])

    def test_invalid_token(self) -> None:
        result = parse_markers("r12a | bob |\n", source="office")
        assert result == Err(InvalidRevisionFormat(source="office", token="r12a"))


class TestWindowFromProbe:
    def test_window_strictly_between_markers(self) -> None:
        result = window_from_probe(PROBE, source="office")
        assert result == Ok(RevisionWindow(101, 104))

    def test_scenario_probe(self) -> None:
        assert window_from_probe("r105 | a\nr100 | b\n", source="o") == Ok(RevisionWindow(101, 104))

    def test_only_one_marker(self) -> None:
        result = window_from_probe("r105 | alice |\n\nzbuild\n", source="office", marker="zbuild")
        assert isinstance(result, Err)
        assert result.error == NoBuildMarkersFound(
            source="office", marker="zbuild", found=1, limit=30
        )

    def test_no_markers(self) -> None:
        result = window_from_probe("", source="office")
        assert isinstance(result, Err)
        assert isinstance(result.error, NoBuildMarkersFound)
        assert result.error.found == 0

    def test_message_line_starting_with_revision(self) -> None:
        """svn does not indent messages; "r104 reverted" is text, not a header."""
        probe = (
            f"{SEP}\nr105 | bot | 2024-03-01 | 2 lines\n\nzbuild 2024.03.01\n"
            f"r104 reverted, see ticket\n{SEP}\n"
            f"r100 | bot | 2024-02-15 | 1 line\n\nzbuild 2024.02.15\n{SEP}\n"
        )
        assert window_from_probe(probe, source="office") == Ok(RevisionWindow(101, 104))

    def test_malformed_second_marker(self) -> None:
        result = window_from_probe("r105 | a\nr1x0 | b\n", source="office")
        assert result == Err(InvalidRevisionFormat(source="office", token="r1x0"))

    def test_malformed_third_marker_ignored(self) -> None:
        result = window_from_probe("r105 | a\nr100 | b\nrXX\nr9z | c\n", source="office")
        assert result == Ok(RevisionWindow(101, 104))


class TestReformat:
    def test_strip_metadata(self) -> None:
        assert strip_metadata(WINDOW_LOG) == [
            "Fix rounding of dispensed quantities",
            "Show the batch number on labels",
            "- Office: faster patient search",
        ]

    def test_bulletize(self) -> None:
        assert bulletize(["Fix a", "- already", ""]) == ["- Fix a", "- already", ""]

    def test_message_line_starting_with_revision_kept(self) -> None:
        raw = (
            f"{SEP}\nr103 | dev | 2024-02-25 | 1 line\n\n"
            f"r102 regression fixed in the label printer\n{SEP}\n"
        )
        assert strip_metadata(raw) == ["r102 regression fixed in the label printer"]

    def test_bulletize_keeps_indented_bullet(self) -> None:
        assert bulletize(["  - nested item", "  plain"]) == ["  - nested item", "-   plain"]

    def test_bulletize_is_idempotent(self) -> None:
        once = bulletize(strip_metadata(WINDOW_LOG))
        assert bulletize(once) == once

    def test_format_changelog(self) -> None:
        assert format_changelog(WINDOW_LOG) == (
            "- Fix rounding of dispensed quantities<br>"
            "- Show the batch number on labels<br>"
            "- Office: faster patient search"
        )

    def test_custom_joiner(self) -> None:
        assert format_changelog(WINDOW_LOG, joiner="\n").count("\n") == 2

    def test_empty_log(self) -> None:
        assert format_changelog("") == ""
        assert format_changelog(f"{SEP}\n") == ""


class TestChangelogExtractor:
    def test_extract(self) -> None:
        repo = FakeLog(probe=Ok(PROBE), window=Ok(WINDOW_LOG))

        result = ChangelogExtractor(repo, name="Office", marker="zbuild").extract()

        assert isinstance(result, Ok)
        changelog = result.value
        assert changelog.source == "Office"
        assert changelog.window == RevisionWindow(101, 104)
        assert changelog.entries == (
            "- Fix rounding of dispensed quantities",
            "- Show the batch number on labels",
            "- Office: faster patient search",
        )
        assert repo.calls == [
            {"limit": 30, "search": "zbuild", "revisions": None},
            {"limit": None, "search": None, "revisions": (101, 104)},
        ]

    def test_empty_window_skips_second_query(self) -> None:
        repo = FakeLog(probe=Ok("r101 | a\nr100 | a\n"))

        result = ChangelogExtractor(repo).extract()

        assert isinstance(result, Ok)
        assert result.value.is_empty
        assert result.value.text == ""
        assert result.value.source == "/src/office"
        assert len(repo.calls) == 1

    def test_no_markers_is_fatal(self) -> None:
        repo = FakeLog(probe=Ok("r105 | a\n"))

        result = ChangelogExtractor(repo, name="Office").extract()

        assert isinstance(result, Err)
        assert isinstance(result.error, NoBuildMarkersFound)
        assert len(repo.calls) == 1

    def test_probe_failure(self) -> None:
        error = SvnError(command="svn log /src/office", message="E170013", returncode=1)
        repo = FakeLog(probe=Err(error))

        result = ChangelogExtractor(repo, name="Office").extract()

        assert result == Err(
            LogQueryFailed(
                source="Office",
                command="svn log /src/office",
                reason="E170013",
                returncode=1,
            )
        )

    def test_window_query_failure(self) -> None:
        repo = FakeLog(
            probe=Ok(PROBE),
            window=Err(SvnError(command="svn log -r", message="timed out", returncode=-1)),
        )

        result = ChangelogExtractor(repo, name="Office").extract()

        assert isinstance(result, Err)
        assert isinstance(result.error, LogQueryFailed)
        assert result.error.returncode == -1

    def test_custom_limit_and_joiner(self) -> None:
        repo = FakeLog(probe=Ok(PROBE), window=Ok(WINDOW_LOG))

        result = ChangelogExtractor(repo, limit=50, joiner=" | ").extract()

        assert isinstance(result, Ok)
        assert repo.calls[0]["limit"] == 50
        assert result.value.text.count(" | ") == 2


def test_changelog_text_joins_entries() -> None:
    changelog = Changelog(source="Office", window=RevisionWindow(1, 2), entries=("- a", "- b"))
    assert changelog.text == "- a<br>- b"
