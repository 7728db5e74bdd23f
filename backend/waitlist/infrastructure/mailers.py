"""Mail Transports - SMTP delivery via aiosmtplib and a log-only fallback for test mode.

Invariants:
    - SmtpMailer.send raises MailDeliveryError for every transport failure
      (SMTP protocol errors, timeouts, refused connections)
    - LogMailer never raises and never talks to the network
    - is_live is True only for a configured SMTP transport

Design Decisions:
    - aiosmtplib: native asyncio SMTP client, no thread pool hop on the request path
    - One connection per message: volume is a handful of mails per sign-up
    - LogMailer holds no state: a long-running test-mode server must not
      accumulate mail in memory
"""

import logging
from email.message import EmailMessage

import aiosmtplib

from waitlist.config import Settings
from waitlist.core.errors import MailDeliveryError
from waitlist.core.format_email import MailContent

logger = logging.getLogger(__name__)


class SmtpMailer:
    """Live transport. One SMTP session per message."""

    is_live = True

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        use_tls: bool = False,
        timeout_seconds: float = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.timeout_seconds = timeout_seconds

    def build_message(self, recipient: str, content: MailContent) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = content.subject
        message.set_content(content.text)
        if content.html:
            message.add_alternative(content.html, subtype="html")
        return message

    async def send(self, recipient: str, content: MailContent) -> None:
        message = self.build_message(recipient, content)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=self.use_tls,
                # implicit TLS and STARTTLS are mutually exclusive
                start_tls=False if self.use_tls else None,
                timeout=self.timeout_seconds,
            )
        except aiosmtplib.SMTPException as e:
            raise MailDeliveryError(str(e), recipient)
        except OSError as e:
            raise MailDeliveryError(f"connection failed: {e}", recipient)
        logger.info(
            f"Mail sent: {content.subject}", extra={"email": recipient},
        )


class LogMailer:
    """Test-mode transport: logs instead of sending. Keeps nothing per message."""

    is_live = False

    async def send(self, recipient: str, content: MailContent) -> None:
        logger.info(
            f"Mail logged (no SMTP): {content.subject}",
            extra={"email": recipient, "delivery": "logged"},
        )


def build_mailer(settings: Settings) -> SmtpMailer | LogMailer:
    """SMTP when host, user and password are all configured, else log-only."""
    if not settings.smtp_configured:
        logger.warning("SMTP not configured: running in test mode")
        return LogMailer()
    logger.info(f"SMTP configured (host: {settings.smtp_host})")
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_pass,
        sender=settings.smtp_from,
        use_tls=settings.smtp_secure,
        timeout_seconds=settings.mail_send_timeout_seconds,
    )
