"""
Inbox Retrieval
===============

receive_email implementation: one fresh session per call, all-or-nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from contracts import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MIN_LIMIT,
    UNSEEN,
    DecodeError,
    FetchError,
    InternalError,
    MailToolError,
    RetrievalError,
    RetrievalResult,
    ValidationError,
)

from src.mailtool_mcp.aggregator import FetchAggregator
from src.mailtool_mcp.imap_client import MailboxSession

if TYPE_CHECKING:
    from src.mailtool_mcp.config import MailboxConfig

logger = logging.getLogger("mailtool-mcp.retrieval")

INBOX = "INBOX"


def validate_limit(limit: object) -> int:
    """Return `limit` if it is an int within [MIN_LIMIT, MAX_LIMIT]."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(f"Limit must be an integer, got {limit!r}")
    if not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise ValidationError(f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}")
    return limit


class InboxRetriever:
    """
    Retrieve the most recent unseen INBOX messages.

    Implements ReceiveEmailContract.
    """

    def __init__(
        self,
        config: MailboxConfig,
        timeout: float,
        session_factory: Callable[..., MailboxSession] = MailboxSession,
        aggregator: FetchAggregator | None = None,
    ) -> None:
        self._config = config
        self._timeout = timeout
        self._session_factory = session_factory
        self._aggregator = aggregator or FetchAggregator()

    async def retrieve_unseen(self, limit: int = DEFAULT_LIMIT) -> RetrievalResult:
        """
        Fetch up to `limit` unseen messages, most recent identifiers first kept.

        INV-RECEIVE-01: limit validated before any connection
        INV-RECEIVE-02: all records or a RetrievalError, never a partial list
        POST-RECEIVE-03: session closed on every exit path
        """
        limit = validate_limit(limit)

        session = self._session_factory(self._config, self._timeout)
        stage = "connect"
        try:
            await session.connect()

            stage = "open inbox"
            await session.select_folder(INBOX)

            stage = "search messages"
            uids = await session.search(UNSEEN)
            if not uids:
                logger.info("No unseen messages")
                return RetrievalResult()

            selected = list(uids)[-limit:]

            stage = "fetch messages"
            pairs = await self._aggregator.collect(session.fetch(selected))

            records = _in_identifier_order(selected, pairs)
            logger.info(f"Retrieved {len(records)} messages")
            return RetrievalResult(records=tuple(records))
        except MailToolError as e:
            if isinstance(e, DecodeError):
                stage = "process messages"
            logger.error(f"Retrieval failed at {stage}: {e.__class__.__name__}")
            raise RetrievalError(stage, e) from e
        except Exception as e:
            logger.exception(f"Unexpected failure at {stage}")
            raise RetrievalError(stage, InternalError(str(e))) from e
        finally:
            await session.close()


def _in_identifier_order(selected: list[int], pairs: list) -> list:
    by_uid = dict(pairs)
    if len(pairs) != len(selected) or set(by_uid) != set(selected):
        missing = sorted(set(selected) - set(by_uid))
        raise FetchError(
            f"Expected {len(selected)} messages, received {len(pairs)}"
            + (f" (missing {missing})" if missing else "")
        )
    return [by_uid[uid] for uid in selected]
