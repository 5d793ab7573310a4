"""Release notification run: versions + changelogs -> one mail."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from pathlib import Path

from buildmail.core.config import ChangelogSource, Config, MailConfig
from buildmail.core.result import Err, Ok, Result
from buildmail.output.console import ConsoleProtocol, Style
from buildmail.services.changelog import Changelog, ChangelogExtractor
from buildmail.services.errors import (
    ChangelogError,
    DirectoryUnavailable,
    MailDeliveryFailed,
    NotifyError,
)
from buildmail.services.mailer import build_message, send_message
from buildmail.services.summary import Summary, format_summary
from buildmail.services.versions import ResolvedVersions, resolve_versions
from buildmail.svn.repository import LogSource, SvnRepository

RepoFactory = Callable[[str, float], LogSource]
Transport = Callable[[MIMEMultipart, MailConfig], Result[None, MailDeliveryFailed]]


def _svn_repo(target: str, timeout: float) -> LogSource:
    return SvnRepository(target, timeout=timeout)


@dataclass(frozen=True, slots=True)
class NotifyOutcome:
    summary: Summary
    sent: bool


class NotifyService:
    """Assemble the release notification and deliver it.

    Policy:
    - Any error aborts the run before a mail is sent.
    - Changelog sources are processed in config order.
    - Errors are reported to the operator, never to the recipients.
    """

    def __init__(
        self,
        *,
        config: Config,
        console: ConsoleProtocol,
        repo_factory: RepoFactory | None = None,
        transport: Transport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._console = console
        self._repo_factory = repo_factory or _svn_repo
        self._transport = transport or send_message
        self._clock = clock or (lambda: datetime.now().astimezone())

    def resolve_versions(self) -> Result[ResolvedVersions, DirectoryUnavailable]:
        artifacts = self._config.artifacts
        if artifacts.directory is None:
            return Err(
                DirectoryUnavailable(path=Path(), reason="[artifacts] directory is not configured")
            )

        self._console.print(f"scan {artifacts.directory}", Style.DIM)
        result = resolve_versions(
            artifacts.directory,
            products=artifacts.products,
            suffix=artifacts.suffix,
            mode=artifacts.trim,
        )
        if isinstance(result, Ok):
            for product in result.value.missing():
                self._console.warning(f"{product}: no artifact in {artifacts.directory}")
        return result

    def extract_changelog(self, source: ChangelogSource) -> Result[Changelog, ChangelogError]:
        svn = self._config.svn
        extractor = ChangelogExtractor(
            self._repo_factory(source.path, svn.timeout),
            name=source.name,
            marker=svn.marker,
            limit=svn.limit,
            joiner=svn.joiner,
        )
        self._console.print(f"svn log {source.path} (last {svn.limit}, '{svn.marker}')", Style.DIM)
        result = extractor.extract()
        if isinstance(result, Ok):
            changelog = result.value
            if changelog.is_empty:
                self._console.info(f"{source.name}: no changes between the last two builds")
            else:
                self._console.info(
                    f"{source.name}: {changelog.window}, {len(changelog.entries)} changelog line(s)"
                )
        return result

    def compose(self, streams: Sequence[str] = ()) -> Result[Summary, NotifyError]:
        """Collect changelogs and versions and render the summary."""
        self._console.header("Changelogs")
        changelogs: list[Changelog] = []
        for source in self._config.changelogs:
            extracted = self.extract_changelog(source)
            if isinstance(extracted, Err):
                return extracted
            changelogs.append(extracted.value)

        self._console.header("Versions")
        versions = self.resolve_versions()
        if isinstance(versions, Err):
            return versions
        for product, version in versions.value.items():
            self._console.info(f"{product}: {version}")

        return Ok(
            format_summary(
                versions.value,
                changelogs,
                streams=streams,
                when=self._clock(),
            )
        )

    def run(
        self,
        streams: Sequence[str] = (),
        *,
        dry_run: bool = False,
    ) -> Result[NotifyOutcome, NotifyError]:
        """Compose the notification and send it (or only print it on dry run)."""
        composed = self.compose(streams)
        if isinstance(composed, Err):
            return composed
        summary = composed.value

        mail = self._config.mail
        message = build_message(
            summary,
            sender=mail.sender or "",
            recipients=mail.recipients,
            sender_name=mail.sender_name,
        )

        if dry_run:
            self._console.header("Message (dry run)")
            # the MIME parts are base64 encoded, print the readable pieces instead
            for header in ("From", "To", "Subject", "Date"):
                self._console.raw(f"{header}: {message[header]}")
            self._console.raw("")
            self._console.raw(summary.html)
            return Ok(NotifyOutcome(summary=summary, sent=False))

        self._console.header("Sending")
        self._console.print(
            f"smtp {mail.server}:{mail.port} -> {len(mail.recipients)} recipients",
            Style.DIM,
        )
        sent = self._transport(message, mail)
        if isinstance(sent, Err):
            return sent

        self._console.success(f"sent '{summary.subject}'")
        return Ok(NotifyOutcome(summary=summary, sent=True))
