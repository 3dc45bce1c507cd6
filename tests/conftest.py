"""Shared fixtures for mail tool tests."""

from unittest.mock import MagicMock, patch

import pytest

from src.mailtool_mcp.config import (
    MailboxConfig,
    MailCredentials,
    ServerConfig,
    SmtpConfig,
)


@pytest.fixture
def credentials():
    return MailCredentials(username="test@example.com", password="secret123")


@pytest.fixture
def mailbox_config(credentials):
    return MailboxConfig(
        host="imap.example.com",
        port=143,
        use_tls=False,
        credentials=credentials,
    )


@pytest.fixture
def smtp_config(credentials):
    return SmtpConfig(
        host="smtp.example.com",
        port=25,
        use_tls=False,
        credentials=credentials,
        from_address="test@example.com",
    )


@pytest.fixture
def server_config(mailbox_config, smtp_config):
    return ServerConfig(mailbox=mailbox_config, smtp=smtp_config, timeout=5.0)


def make_raw_email(uid: int, to: str = "Recipient <recipient@example.com>") -> bytes:
    return (
        f"From: Sender <sender@example.com>\r\n"
        f"To: {to}\r\n"
        f"Subject: Message {uid}\r\n"
        f"Date: Tue, 13 Jan 2026 10:00:00 +0000\r\n"
        f"Message-ID: <msg-{uid}@example.com>\r\n"
        f'Content-Type: text/plain; charset="utf-8"\r\n'
        f"\r\n"
        f"Body of message {uid}.\r\n"
    ).encode()


def make_fetch_responder(bodies: dict[int, bytes]):
    def fetch(uids, data):
        return {
            uid: {b"SEQ": i + 1, b"BODY[]": bodies[uid]}
            for i, uid in enumerate(uids)
            if uid in bodies
        }
    return fetch


@pytest.fixture
def fetch_responder():
    """Factory: fetch_responder({uid: raw}) -> IMAPClient.fetch side_effect."""
    return make_fetch_responder


@pytest.fixture
def raw_email():
    """Factory: raw_email(uid, to=...) -> bytes."""
    return make_raw_email


@pytest.fixture
def sample_raw_email():
    """Raw email bytes for testing message parsing."""
    return b"""From: Sender <sender@example.com>
To: Recipient <recipient@example.com>
Subject: Test Subject
Date: Tue, 13 Jan 2026 10:00:00 +0000
Message-ID: <abc123@example.com>
Content-Type: text/plain; charset="utf-8"

This is a test email body.
"""


@pytest.fixture
def mock_imap_client():
    """Mock IMAPClient for testing without a real IMAP server."""
    with patch("src.mailtool_mcp.imap_client.IMAPClient") as mock:
        client = MagicMock()
        mock.return_value = client

        client.select_folder.return_value = {
            b"UIDVALIDITY": 12345,
            b"UIDNEXT": 1000,
        }
        client.search.return_value = [100, 200, 300]
        client.fetch.return_value = {}

        yield mock
