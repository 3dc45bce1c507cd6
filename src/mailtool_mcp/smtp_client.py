"""
SMTP Sender
===========

send_email implementation. Plain-text messages only.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING

from contracts import SendError, ValidationError

if TYPE_CHECKING:
    from src.mailtool_mcp.config import SmtpConfig

logger = logging.getLogger("mailtool-mcp.smtp")


def _require_text(name: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing required parameter: {name}")
    return value


def _require_header(name: str, value: str) -> str:
    # Header values cannot span lines
    if "\r" in value or "\n" in value:
        raise ValidationError(f"{name} must not contain line breaks")
    return value


def validate_send_args(
    to: object, subject: object, text: object, cc: object = None
) -> list[str] | None:
    """Check send_email arguments; returns the normalized cc list."""
    missing = [
        name
        for name, value in (("to", to), ("subject", subject), ("text", text))
        if not isinstance(value, str) or not value.strip()
    ]
    if missing:
        raise ValidationError(f"Missing required parameters: {', '.join(missing)}")
    _require_header("to", to)
    _require_header("subject", subject)

    if cc is None:
        return None
    if not isinstance(cc, (list, tuple)) or not cc:
        raise ValidationError("cc must be a non-empty list of addresses")
    return [_require_header("cc", _require_text("cc", address)) for address in cc]


class EmailSender:
    """
    Send mail through the configured SMTP server.

    Implements SendEmailContract.
    """

    def __init__(self, config: SmtpConfig, timeout: float) -> None:
        self._config = config
        self._timeout = timeout

    def build_message(
        self, to: str, subject: str, text: str, cc: list[str] | None = None
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._config.from_address
        message["To"] = to
        if cc:
            message["Cc"] = ", ".join(cc)
        message["Subject"] = subject
        message.set_content(text)
        return message

    async def send_email(
        self,
        to: str,
        subject: str,
        text: str,
        cc: list[str] | None = None,
    ) -> str:
        """
        Send a plain-text email.

        INV-SEND-01: arguments validated before any transport call

        ERRORS:
        - ValidationError: missing or malformed argument
        - SendError: SMTP failure or timeout
        """
        cc = validate_send_args(to, subject, text, cc)
        message = self.build_message(to, subject, text, cc)

        try:
            await asyncio.wait_for(asyncio.to_thread(self._deliver, message), self._timeout)
        except asyncio.TimeoutError as e:
            raise SendError(f"Failed to send email: timed out after {self._timeout:g}s") from e
        except (smtplib.SMTPException, OSError) as e:
            raise SendError(f"Failed to send email: {e}") from e

        # Recipient only; subject and body are never logged
        logger.info(f"Email sent to {to}" + (f" (cc: {len(cc)})" if cc else ""))
        confirmation = f"Email sent successfully to {to}"
        if cc:
            confirmation += f" with CC to {', '.join(cc)}"
        return confirmation

    def _deliver(self, message: EmailMessage) -> None:
        config = self._config
        if config.use_tls:
            session_factory = smtplib.SMTP_SSL
        else:
            session_factory = smtplib.SMTP

        with session_factory(config.host, config.port, timeout=self._timeout) as smtp:
            if not config.use_tls:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            if config.credentials.username:
                smtp.login(config.credentials.username, config.credentials.password)
            smtp.send_message(message)
