from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    subtype: str = "octet-stream"


class Mailer(Protocol):
    @property
    def enabled(self) -> bool:
        raise NotImplementedError

    def send(
        self,
        *,
        to: Sequence[str],
        subject: str,
        html: str,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> None:
        """Deliver one message to all recipients; raises on transport failure."""
        raise NotImplementedError


class SmtpMailer(Mailer):
    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        self._host = host
        self._port = int(port)
        self._username = username
        self._password = password
        self._sender = sender
        self._use_tls = use_tls
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self._host)

    def send(
        self,
        *,
        to: Sequence[str],
        subject: str,
        html: str,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> None:
        msg = MIMEMultipart()
        msg["From"] = self._sender
        msg["To"] = ", ".join(to)
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))
        for att in attachments or ():
            part = MIMEApplication(att.content, _subtype=att.subtype)
            part.add_header("Content-Disposition", "attachment", filename=att.filename)
            msg.attach(part)

        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as s:
            if self._use_tls:
                s.starttls()
            if self._username:
                s.login(self._username, self._password)
            s.sendmail(self._sender, list(to), msg.as_string())
        logger.info("Sent '%s' to %d recipient(s)", subject, len(to))


class LoggingMailer(Mailer):
    """Used when SMTP is not configured: messages are logged and dropped."""

    @property
    def enabled(self) -> bool:
        return False

    def send(
        self,
        *,
        to: Sequence[str],
        subject: str,
        html: str,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> None:
        logger.warning("Email not configured; dropping '%s' for %s", subject, ", ".join(to))


def build_mailer(settings) -> Mailer:
    host = getattr(settings, "SMTP_HOST", "")
    if not host:
        return LoggingMailer()
    return SmtpMailer(
        host=host,
        port=int(getattr(settings, "SMTP_PORT", 587)),
        username=getattr(settings, "SMTP_USER", ""),
        password=getattr(settings, "SMTP_PASSWORD", ""),
        sender=getattr(settings, "MAIL_FROM", "CICO <noreply@localhost>"),
        use_tls=bool(getattr(settings, "SMTP_USE_TLS", True)),
    )
