"""
Mail Tool MCP Server Contract
=============================

Behavioral contract for the send_email / receive_email MCP tools.

Implementation SHALL perform ONLY declared behaviors. Every tool and
component below declares its PRE/POST/INV/ERRORS clauses; tests cite the
clause IDs they enforce.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Protocol, runtime_checkable


# =============================================================================
# DOMAIN TYPES
# =============================================================================

NO_NEW_MESSAGES = "No new messages"

UNSEEN: tuple[str, ...] = ("UNSEEN",)

MIN_LIMIT = 1
MAX_LIMIT = 50
DEFAULT_LIMIT = 5


class SessionState(Enum):
    """Lifecycle of one mailbox connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    FOLDER_SELECTED = "folder_selected"
    SEARCHING = "searching"
    FETCHING = "fetching"
    CLOSED = "closed"
    ERRORED = "errored"


@dataclass(frozen=True)
class EmailRecord:
    """Decoded message. Every field is a string, empty when absent."""
    message_id: str = ""
    subject: str = ""
    date: str = ""  # ISO8601 UTC, or ""
    from_: str = ""
    to: str = ""
    cc: str = ""
    bcc: str = ""
    reply_to: str = ""
    in_reply_to: str = ""
    priority: str = ""
    body: str = ""

    def to_dict(self) -> dict[str, str]:
        """Wire representation with the tool's camelCase keys."""
        return {
            "messageId": self.message_id,
            "subject": self.subject,
            "date": self.date,
            "from": self.from_,
            "to": self.to,
            "cc": self.cc,
            "bcc": self.bcc,
            "replyTo": self.reply_to,
            "inReplyTo": self.in_reply_to,
            "priority": self.priority,
            "body": self.body,
        }


@dataclass(frozen=True)
class RetrievalResult:
    """Ordered records from one retrieval; empty means no unseen mail."""
    records: tuple[EmailRecord, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def to_text(self) -> str:
        if self.is_empty:
            return NO_NEW_MESSAGES
        return json.dumps([r.to_dict() for r in self.records], indent=2)


# =============================================================================
# ERROR TYPES
# =============================================================================

class MailToolError(Exception):
    """Base error for all mail tool operations."""
    code: str = "MAIL_TOOL_ERROR"


class ValidationError(MailToolError):
    """
    ERRORS-TOOL-01: Caller supplied invalid arguments.

    RECOVERY: Caller corrects the arguments. No side effects occurred.
    """
    code = "VALIDATION_ERROR"


class ConfigurationError(MailToolError):
    """
    ERRORS-STARTUP-01: Required configuration missing or malformed.

    RECOVERY: Fatal. Process refuses to start.
    """
    code = "CONFIGURATION_ERROR"


class ConnectionFailedError(MailToolError):
    """
    ERRORS-SESSION-01: Host unreachable, TLS failure, or credentials rejected.

    RECOVERY: None automatic. Caller may retry the tool call.
    """
    code = "CONNECTION_FAILED"


class FolderError(MailToolError):
    """
    ERRORS-SESSION-02: Folder missing or inaccessible.
    """
    code = "FOLDER_ERROR"


class SearchError(MailToolError):
    """
    ERRORS-SESSION-03: Store-side search failure or timeout.
    """
    code = "SEARCH_ERROR"


class FetchError(MailToolError):
    """
    ERRORS-SESSION-04: Fetch failed, timed out, or returned incomplete data.
    """
    code = "FETCH_ERROR"


class DecodeError(MailToolError):
    """
    ERRORS-DECODE-01: Raw message could not be parsed.
    """
    code = "DECODE_ERROR"


class SendError(MailToolError):
    """
    ERRORS-SEND-01: SMTP transport rejected or failed the message.
    """
    code = "SEND_ERROR"


class InvalidStateError(MailToolError):
    """
    ERRORS-SESSION-05: Session operation called out of order.
    """
    code = "INVALID_STATE"


class InternalError(MailToolError):
    """
    ERRORS-TOOL-02: Unexpected failure not covered by another error type.
    """
    code = "INTERNAL_ERROR"


class RetrievalError(MailToolError):
    """
    ERRORS-RECEIVE-01: A retrieval stage failed.

    Wraps the originating stage error; `stage` names the failing stage and
    `cause` holds the stage error.
    """
    code = "RETRIEVAL_ERROR"

    def __init__(self, stage: str, cause: MailToolError) -> None:
        super().__init__(f"Failed to {stage}: {cause}")
        self.stage = stage
        self.cause = cause


# =============================================================================
# COMPONENT CONTRACTS
# =============================================================================

@runtime_checkable
class MailboxSessionContract(Protocol):
    """
    One live connection to a mailbox store.

    SEQUENCE: connect -> select_folder -> search -> fetch -> close

    PRE-SESSION-01: Each operation is called in sequence order
    PRE-SESSION-02: fetch identifiers come from this session's search

    POST-SESSION-01: search returns [] (not an error) when nothing matches
    POST-SESSION-02: fetch yields (uid, raw bytes) for every requested uid
    POST-SESSION-03: close leaves state CLOSED

    INV-SESSION-01 (Single Use): A session serves exactly one retrieval
    INV-SESSION-02 (Idempotent Close): close never raises and releases the
                    connection at most once
    INV-SESSION-03 (Bounded Wait): Every network stage is bounded by a timeout
    INV-SESSION-04 (Marks Read): fetch sets \\Seen on fetched messages

    ERRORS:
    - CONNECTION_FAILED: connect failed or timed out
    - FOLDER_ERROR: select failed
    - SEARCH_ERROR: search failed or timed out
    - FETCH_ERROR: fetch failed, timed out, or returned no body
    - INVALID_STATE: operation called out of order
    """

    async def connect(self) -> None: ...

    async def select_folder(self, name: str) -> None: ...

    async def search(self, criterion: tuple[str, ...]) -> list[int]: ...

    def fetch(self, identifiers: list[int]) -> AsyncIterator[tuple[int, bytes]]: ...

    async def close(self) -> None: ...


@runtime_checkable
class ReceiveEmailContract(Protocol):
    """
    Tool: receive_email

    Retrieve the most recent unseen INBOX messages.

    PRE-RECEIVE-01: limit is an integer, 1 <= limit <= 50 (default 5)

    POST-RECEIVE-01: Zero unseen messages -> "No new messages"
    POST-RECEIVE-02: N unseen, limit L -> min(N, L) records, the L highest
                     identifiers, in identifier order
    POST-RECEIVE-03: Session closed before the call returns

    INV-RECEIVE-01 (Validate First): Invalid limit fails before any connection
    INV-RECEIVE-02 (All Or Nothing): No partial record list is ever returned
    INV-RECEIVE-03 (Non-Idempotent): Returned messages are now marked read
    INV-RECEIVE-04 (No Content Logging): Bodies and subjects never logged

    ERRORS:
    - VALIDATION_ERROR: limit out of range
    - RETRIEVAL_ERROR: any stage failed; wraps the stage error
    """

    async def retrieve_unseen(self, limit: int = DEFAULT_LIMIT) -> RetrievalResult:
        """Retrieve unseen messages."""
        ...


@runtime_checkable
class SendEmailContract(Protocol):
    """
    Tool: send_email

    PRE-SEND-01: to, subject, text are non-empty strings
    PRE-SEND-02: cc, if given, is a non-empty list of non-empty strings

    POST-SEND-01: Returns confirmation naming the recipient (and CC list)

    INV-SEND-01 (Validate First): Invalid arguments never reach the transport

    ERRORS:
    - VALIDATION_ERROR: missing or malformed argument
    - SEND_ERROR: transport failure
    """

    async def send_email(
        self,
        to: str,
        subject: str,
        text: str,
        cc: list[str] | None = None,
    ) -> str:
        """Send a plain-text email."""
        ...
