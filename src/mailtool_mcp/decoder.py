"""
Message Decoder
===============

Turns one complete raw RFC 5322 / MIME message into an EmailRecord.

Pure function: no I/O, no logging of message content.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser

import html2text

from contracts import DecodeError, EmailRecord


def decode_message(raw: bytes) -> EmailRecord:
    """
    Decode a raw message into an EmailRecord.

    PRE: raw is the complete message, already concatenated

    POST: Every EmailRecord field is a str; absent fields are ""

    ERRORS:
    - DecodeError: empty or headerless input, or the parser failed
    """
    if not isinstance(raw, (bytes, bytearray)):
        raise DecodeError(f"Expected bytes, got {type(raw).__name__}")
    if not raw.strip():
        raise DecodeError("Empty message")

    try:
        msg = BytesParser(policy=policy.default).parsebytes(bytes(raw))
        if not msg.keys():
            raise DecodeError("Message has no header block")

        return EmailRecord(
            message_id=_header_text(msg, "Message-ID"),
            subject=_header_text(msg, "Subject"),
            date=_date(msg),
            from_=_addresses(msg, "From"),
            to=_addresses(msg, "To"),
            cc=_addresses(msg, "Cc"),
            bcc=_addresses(msg, "Bcc"),
            reply_to=_addresses(msg, "Reply-To"),
            in_reply_to=_header_text(msg, "In-Reply-To"),
            priority=_priority(msg),
            body=_body(msg),
        )
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeError(f"Failed to parse message: {e}") from e


def _header_text(msg: EmailMessage, name: str) -> str:
    value = msg.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _addresses(msg: EmailMessage, name: str) -> str:
    """Flatten every address in every `name` header into "a, b, c"."""
    rendered = []
    for header in msg.get_all(name) or []:
        addresses = getattr(header, "addresses", None)
        if addresses:
            rendered.extend(str(addr) for addr in addresses)
        elif str(header).strip():
            # Unparseable address header: keep the raw text
            rendered.append(str(header).strip())
    return ", ".join(rendered)


def _date(msg: EmailMessage) -> str:
    # Older interpreters raise on an unparseable Date instead of recording a defect
    try:
        header = msg.get("Date")
        parsed = getattr(header, "datetime", None)
    except (TypeError, ValueError, IndexError):
        return ""
    if not isinstance(parsed, datetime):
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    iso = parsed.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z")


def _priority(msg: EmailMessage) -> str:
    """Map X-Priority / X-MSMail-Priority / Importance to high|normal|low."""
    x_priority = _header_text(msg, "X-Priority")
    if x_priority:
        digit = x_priority[:1]
        if digit in ("1", "2"):
            return "high"
        if digit in ("4", "5"):
            return "low"
        return "normal"

    for name in ("X-MSMail-Priority", "Importance"):
        value = _header_text(msg, name).lower()
        if not value:
            continue
        if "high" in value:
            return "high"
        if "low" in value:
            return "low"
        return "normal"

    return ""


def _body(msg: EmailMessage) -> str:
    part = msg.get_body(preferencelist=("plain",))
    if part is not None:
        return _text_content(part)

    part = msg.get_body(preferencelist=("html",))
    if part is not None:
        return _html_to_text(_text_content(part))

    return ""


def _text_content(part: EmailMessage) -> str:
    try:
        return part.get_content()
    except LookupError:
        # Unknown charset: decode the transfer-decoded bytes as UTF-8
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")


def _html_to_text(markup: str) -> str:
    converter = html2text.HTML2Text()
    converter.ignore_links = False
    converter.ignore_images = False
    converter.body_width = 0
    return converter.handle(markup).strip()
