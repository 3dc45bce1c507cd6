"""
Mail Tool MCP Server
====================

MCP server exposing send_email and receive_email.

Each receive_email call opens its own IMAP session and closes it before
returning; nothing is shared between calls except the frozen config.
Message bodies, subjects and credentials are never logged.
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    CallToolRequest,
    CallToolResult,
    ErrorData,
    ServerResult,
    TextContent,
    Tool,
)

from contracts import DEFAULT_LIMIT, MAX_LIMIT, MIN_LIMIT, MailToolError, ValidationError
from src.mailtool_mcp.config import ServerConfig
from src.mailtool_mcp.retrieval import InboxRetriever
from src.mailtool_mcp.smtp_client import EmailSender

# Logs go to stderr; stdout carries the MCP stream. Never log message content.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("mailtool-mcp")

SERVER_NAME = "email"
SERVER_VERSION = "0.1.0"

TOOLS = [
    Tool(
        name="send_email",
        description="Send an email with optional CC recipients",
        inputSchema={
            "type": "object",
            "properties": {
                "to": {
                    "type": "string",
                    "description": "Recipient email address",
                },
                "subject": {
                    "type": "string",
                    "description": "Email subject",
                },
                "text": {
                    "type": "string",
                    "description": "Email body text",
                },
                "cc": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "CC recipients (optional)",
                },
            },
            "required": ["to", "subject", "text"],
        },
    ),
    Tool(
        name="receive_email",
        description=(
            "Receive latest unseen emails from inbox. "
            "Returned messages are marked as read on the server."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": f"Number of latest emails to fetch (default: {DEFAULT_LIMIT})",
                    "minimum": MIN_LIMIT,
                    "maximum": MAX_LIMIT,
                },
            },
        },
    ),
]


def _error(code: int, message: str) -> McpError:
    return McpError(ErrorData(code=code, message=message))


def _coerce_limit(value: Any) -> Any:
    """Accept JSON numbers that are whole, e.g. 5 or 5.0."""
    if value is None:
        return DEFAULT_LIMIT
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class MailToolServer:
    """MCP server wiring the send and receive tools."""

    def __init__(
        self,
        config: ServerConfig,
        retriever: InboxRetriever | None = None,
        sender: EmailSender | None = None,
    ) -> None:
        self._config = config
        self._retriever = retriever or InboxRetriever(config.mailbox, config.timeout)
        self._sender = sender or EmailSender(config.smtp, config.timeout)
        self._server = Server(SERVER_NAME, version=SERVER_VERSION)
        self._setup_tools()

    def _setup_tools(self) -> None:
        """Register MCP tools."""

        @self._server.list_tools()
        async def list_tools() -> list[Tool]:
            return TOOLS

        # Registered directly rather than via @call_tool(), which would turn
        # McpError into an isError result and drop its JSON-RPC code.
        async def call_tool(req: CallToolRequest) -> ServerResult:
            content = await self.dispatch(req.params.name, req.params.arguments)
            return ServerResult(CallToolResult(content=content))

        self._server.request_handlers[CallToolRequest] = call_tool

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Route a tool call; failures surface as McpError."""
        arguments = arguments or {}
        if name == "send_email":
            text = await self.send_email(arguments)
        elif name == "receive_email":
            text = await self.receive_email(arguments)
        else:
            raise _error(METHOD_NOT_FOUND, f"Unknown tool: {name}")
        return [TextContent(type="text", text=text)]

    async def send_email(self, arguments: dict[str, Any]) -> str:
        try:
            return await self._sender.send_email(
                arguments.get("to"),
                arguments.get("subject"),
                arguments.get("text"),
                arguments.get("cc"),
            )
        except ValidationError as e:
            raise _error(INVALID_PARAMS, str(e)) from e
        except MailToolError as e:
            logger.error(f"send_email failed: {e.__class__.__name__}")
            raise _error(INTERNAL_ERROR, str(e)) from e
        except Exception as e:
            logger.exception("send_email failed unexpectedly")
            raise _error(INTERNAL_ERROR, f"Failed to send email: {e}") from e

    async def receive_email(self, arguments: dict[str, Any]) -> str:
        limit = _coerce_limit(arguments.get("limit"))
        logger.info(f"Receiving up to {limit} unseen messages")
        try:
            result = await self._retriever.retrieve_unseen(limit)
        except ValidationError as e:
            raise _error(INVALID_PARAMS, str(e)) from e
        except MailToolError as e:
            raise _error(INTERNAL_ERROR, str(e)) from e
        except Exception as e:
            logger.exception("receive_email failed unexpectedly")
            raise _error(INTERNAL_ERROR, f"Failed to receive email: {e}") from e
        return result.to_text()

    async def run(self) -> None:
        """Run the MCP server on stdio."""
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Email MCP server running on stdio")
            await self._server.run(
                read_stream, write_stream, self._server.create_initialization_options()
            )


def create_server(config: ServerConfig) -> MailToolServer:
    """Create a new server instance."""
    return MailToolServer(config)
