"""
Mail Tool Contract Tests
========================

Domain types and error taxonomy declared in contracts/.
"""

import json

import pytest

from contracts import (
    NO_NEW_MESSAGES,
    ConnectionFailedError,
    DecodeError,
    EmailRecord,
    FetchError,
    FolderError,
    InternalError,
    MailboxSessionContract,
    MailToolError,
    ReceiveEmailContract,
    RetrievalError,
    RetrievalResult,
    SearchError,
    SendEmailContract,
    SendError,
    ValidationError,
)
from src.mailtool_mcp.imap_client import MailboxSession
from src.mailtool_mcp.retrieval import InboxRetriever
from src.mailtool_mcp.smtp_client import EmailSender


class TestEmailRecord:

    def test_fields_default_to_empty_string(self):
        record = EmailRecord()
        assert all(value == "" for value in record.to_dict().values())

    def test_wire_keys(self):
        record = EmailRecord(from_="a@x.com", reply_to="r@x.com", in_reply_to="<p@x>")
        data = record.to_dict()
        assert list(data) == [
            "messageId",
            "subject",
            "date",
            "from",
            "to",
            "cc",
            "bcc",
            "replyTo",
            "inReplyTo",
            "priority",
            "body",
        ]
        assert data["from"] == "a@x.com"
        assert data["replyTo"] == "r@x.com"
        assert data["inReplyTo"] == "<p@x>"


class TestRetrievalResult:

    def test_empty_renders_sentinel(self):
        """
        Contract: ReceiveEmailContract
        Enforces: POST-RECEIVE-01
        """
        result = RetrievalResult()
        assert result.is_empty
        assert result.to_text() == NO_NEW_MESSAGES == "No new messages"

    def test_records_render_json_array(self):
        result = RetrievalResult(records=(EmailRecord(subject="One"), EmailRecord(subject="Two")))
        decoded = json.loads(result.to_text())
        assert [item["subject"] for item in decoded] == ["One", "Two"]


class TestErrorTaxonomy:

    @pytest.mark.parametrize(
        "error_cls, code",
        [
            (ValidationError, "VALIDATION_ERROR"),
            (ConnectionFailedError, "CONNECTION_FAILED"),
            (FolderError, "FOLDER_ERROR"),
            (SearchError, "SEARCH_ERROR"),
            (FetchError, "FETCH_ERROR"),
            (DecodeError, "DECODE_ERROR"),
            (SendError, "SEND_ERROR"),
            (InternalError, "INTERNAL_ERROR"),
        ],
    )
    def test_codes(self, error_cls, code):
        assert issubclass(error_cls, MailToolError)
        assert error_cls.code == code

    def test_retrieval_error_keeps_stage_and_cause(self):
        cause = SearchError("server said NO")
        error = RetrievalError("search messages", cause)
        assert error.stage == "search messages"
        assert error.cause is cause
        assert str(error) == "Failed to search messages: server said NO"


class TestImplementationsMatchContracts:

    def test_session(self, mailbox_config):
        assert isinstance(MailboxSession(mailbox_config, 1.0), MailboxSessionContract)

    def test_retriever(self, mailbox_config):
        assert isinstance(InboxRetriever(mailbox_config, 1.0), ReceiveEmailContract)

    def test_sender(self, smtp_config):
        assert isinstance(EmailSender(smtp_config, 1.0), SendEmailContract)
