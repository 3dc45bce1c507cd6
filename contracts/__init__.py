"""
Mail Tool Contract Index
========================

AUTHORITY: This file is the SINGLE authoritative entrypoint for all
mail tool contracts. Import from here, not from individual contract files.
"""

from contracts.mail_contract import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MIN_LIMIT,
    NO_NEW_MESSAGES,
    UNSEEN,
    ConfigurationError,
    ConnectionFailedError,
    DecodeError,
    # Domain Types
    EmailRecord,
    FetchError,
    FolderError,
    InternalError,
    InvalidStateError,
    # Contracts (Protocols)
    MailboxSessionContract,
    # Error Types
    MailToolError,
    ReceiveEmailContract,
    RetrievalError,
    RetrievalResult,
    SearchError,
    SendEmailContract,
    SendError,
    SessionState,
    ValidationError,
)

__all__ = [
    # Constants
    "NO_NEW_MESSAGES",
    "UNSEEN",
    "MIN_LIMIT",
    "MAX_LIMIT",
    "DEFAULT_LIMIT",
    # Domain Types
    "SessionState",
    "EmailRecord",
    "RetrievalResult",
    # Error Types
    "MailToolError",
    "ValidationError",
    "ConfigurationError",
    "ConnectionFailedError",
    "FolderError",
    "SearchError",
    "FetchError",
    "DecodeError",
    "SendError",
    "InvalidStateError",
    "InternalError",
    "RetrievalError",
    # Contracts
    "MailboxSessionContract",
    "ReceiveEmailContract",
    "SendEmailContract",
]
