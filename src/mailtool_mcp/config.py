"""
Configuration
=============

Process configuration read once from environment variables at startup.

Credentials have NO fallback: the process refuses to start when
EMAIL_USER or EMAIL_PASS is unset. Config objects are frozen and shared
read-only by every session.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from contracts import ConfigurationError

DEFAULT_TIMEOUT = 30.0

_TRUE_VALUES = {"true", "1", "yes", "on"}


@dataclass(frozen=True)
class MailCredentials:
    """Mail account credentials held in memory only."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class MailboxConfig:
    """IMAP endpoint."""

    host: str
    port: int
    use_tls: bool
    credentials: MailCredentials


@dataclass(frozen=True)
class SmtpConfig:
    """SMTP endpoint and envelope sender."""

    host: str
    port: int
    use_tls: bool
    credentials: MailCredentials
    from_address: str


@dataclass(frozen=True)
class ServerConfig:
    mailbox: MailboxConfig
    smtp: SmtpConfig
    timeout: float = DEFAULT_TIMEOUT


def _flag(environ: Mapping[str, str], key: str) -> bool:
    return environ.get(key, "").strip().lower() in _TRUE_VALUES


def _port(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        port = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from e
    if not 0 < port < 65536:
        raise ConfigurationError(f"{key} out of range: {port}")
    return port


def _timeout(environ: Mapping[str, str]) -> float:
    raw = environ.get("MAIL_TIMEOUT")
    if raw is None or raw.strip() == "":
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"MAIL_TIMEOUT must be a number, got {raw!r}") from e
    if timeout <= 0:
        raise ConfigurationError("MAIL_TIMEOUT must be positive")
    return timeout


def load_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """
    Build the server configuration from environment variables.

    PRE: EMAIL_USER and EMAIL_PASS are set and non-empty

    POST: Returns a frozen ServerConfig

    ERRORS:
    - ConfigurationError: credentials unset, or a port/timeout is malformed
    """
    if environ is None:
        environ = os.environ

    username = environ.get("EMAIL_USER", "")
    password = environ.get("EMAIL_PASS", "")
    missing = [
        key for key, value in (("EMAIL_USER", username), ("EMAIL_PASS", password)) if not value
    ]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    credentials = MailCredentials(username=username, password=password)

    mailbox = MailboxConfig(
        host=environ.get("IMAP_HOST") or "localhost",
        port=_port(environ, "IMAP_PORT", 143),
        use_tls=_flag(environ, "IMAP_TLS"),
        credentials=credentials,
    )
    smtp = SmtpConfig(
        host=environ.get("SMTP_HOST") or "localhost",
        port=_port(environ, "SMTP_PORT", 25),
        use_tls=_flag(environ, "SMTP_TLS"),
        credentials=credentials,
        from_address=environ.get("EMAIL_FROM") or username,
    )
    return ServerConfig(mailbox=mailbox, smtp=smtp, timeout=_timeout(environ))
