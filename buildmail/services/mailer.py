"""SMTP delivery of the notification mail."""

from __future__ import annotations

import smtplib
from collections.abc import Sequence
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate

from html2text import html2text

from buildmail.core.config import PASSWORD_ENV, MailConfig
from buildmail.core.result import Err, Ok, Result
from buildmail.services.errors import MailDeliveryFailed
from buildmail.services.summary import Summary

__all__ = ["build_message", "send_message"]


def build_message(
    summary: Summary,
    *,
    sender: str,
    recipients: Sequence[str],
    sender_name: str = "Build Bot",
) -> MIMEMultipart:
    """HTML mail with a plain-text alternative for text-only clients."""
    msg = MIMEMultipart("alternative")
    msg.attach(MIMEText(html2text(summary.html), "plain", "utf-8"))
    msg.attach(MIMEText(summary.html, "html", "utf-8"))

    msg["Subject"] = summary.subject
    msg["From"] = formataddr((sender_name, sender))
    msg["To"] = ", ".join(recipients)
    msg["Date"] = formatdate(localtime=True)
    return msg


def send_message(message: MIMEMultipart, settings: MailConfig) -> Result[None, MailDeliveryFailed]:
    """Deliver message to every configured recipient.

    The SMTP session is closed on every path, also when login or delivery
    fails.
    """
    if settings.server is None or settings.sender is None:
        return Err(
            MailDeliveryFailed(
                message="mail server and sender must be configured",
                hint="set [mail] server and sender in config.toml",
            )
        )
    if not settings.recipients:
        return Err(
            MailDeliveryFailed(
                message="no recipients configured",
                hint="set [mail] recipients in config.toml",
            )
        )

    try:
        with smtplib.SMTP(settings.server, settings.port, timeout=settings.timeout) as client:
            if settings.starttls:
                client.starttls()
            if settings.username:
                client.login(settings.username, settings.password or "")
            refused = client.sendmail(
                settings.sender,
                list(settings.recipients),
                message.as_string(),
            )
    except smtplib.SMTPAuthenticationError as e:
        return Err(
            MailDeliveryFailed(
                message=f"SMTP authentication failed: {e.smtp_code} {_decode(e.smtp_error)}",
                hint=f"check [mail] username and password (or ${PASSWORD_ENV})",
            )
        )
    except smtplib.SMTPRecipientsRefused as e:
        return Err(
            MailDeliveryFailed(
                message=f"all recipients refused: {', '.join(sorted(e.recipients))}",
            )
        )
    except smtplib.SMTPException as e:
        return Err(MailDeliveryFailed(message=f"SMTP error: {e}"))
    except OSError as e:
        return Err(
            MailDeliveryFailed(
                message=f"cannot reach {settings.server}:{settings.port}: {e}",
                hint="check [mail] server and port",
            )
        )

    if refused:
        return Err(
            MailDeliveryFailed(
                message=f"recipients refused: {', '.join(sorted(refused))}",
                hint="the mail was delivered to the remaining recipients",
            )
        )
    return Ok(None)


def _decode(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
