"""
Mail Tool MCP Server
====================

MCP server for sending mail over SMTP and retrieving unseen INBOX
messages over IMAP.
"""

__version__ = "0.1.0"

from src.mailtool_mcp.aggregator import FetchAggregator
from src.mailtool_mcp.config import (
    MailboxConfig,
    MailCredentials,
    ServerConfig,
    SmtpConfig,
    load_config,
)
from src.mailtool_mcp.decoder import decode_message
from src.mailtool_mcp.imap_client import MailboxSession
from src.mailtool_mcp.retrieval import InboxRetriever
from src.mailtool_mcp.server import MailToolServer, create_server
from src.mailtool_mcp.smtp_client import EmailSender

__all__ = [
    "MailToolServer",
    "create_server",
    "InboxRetriever",
    "MailboxSession",
    "FetchAggregator",
    "decode_message",
    "EmailSender",
    "MailCredentials",
    "MailboxConfig",
    "SmtpConfig",
    "ServerConfig",
    "load_config",
]
