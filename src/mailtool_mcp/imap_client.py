"""
IMAP Mailbox Session
====================

One short-lived IMAP connection serving exactly one retrieval.

Blocking imapclient calls run in worker threads, each bounded by the
configured timeout. close() is idempotent and safe from any state; when an
operation is still in flight it shuts the socket down instead of logging
out, which aborts the blocked I/O.

NOTE: fetch uses BODY[] (not BODY.PEEK[]), so every fetched message is
marked \\Seen on the server. A second identical retrieval will not return
the same messages.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable

from imapclient import IMAPClient
from imapclient.exceptions import LoginError

from contracts import (
    ConnectionFailedError,
    FetchError,
    FolderError,
    InvalidStateError,
    MailToolError,
    SearchError,
    SessionState,
)

if TYPE_CHECKING:
    from src.mailtool_mcp.config import MailboxConfig

logger = logging.getLogger("mailtool-mcp.imap")

_BODY_KEYS = (b"BODY[]", b"RFC822")


class MailboxSession:
    """
    Single-use IMAP session: connect, select, search, fetch, close.

    Implements MailboxSessionContract.
    """

    def __init__(self, config: MailboxConfig, timeout: float) -> None:
        self._config = config
        self._timeout = timeout
        self._client: IMAPClient | None = None
        self._state = SessionState.DISCONNECTED
        self._folder: str | None = None
        self._inflight = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def folder(self) -> str | None:
        return self._folder

    async def __aenter__(self) -> MailboxSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _require(self, *states: SessionState) -> IMAPClient:
        if self._state not in states or self._client is None:
            raise InvalidStateError(
                f"Operation not allowed in state {self._state.value}"
            )
        return self._client

    def _fail(self) -> None:
        if self._state is not SessionState.CLOSED:
            self._state = SessionState.ERRORED

    def _advance(self, state: SessionState) -> None:
        if self._state is not SessionState.CLOSED:
            self._state = state

    async def _call(
        self,
        error_cls: type[MailToolError],
        what: str,
        func: Callable[..., Any],
        *args: Any,
    ) -> Any:
        """Run a blocking call in a worker thread under the session timeout."""
        self._inflight += 1
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), self._timeout)
        except asyncio.TimeoutError as e:
            self._fail()
            raise error_cls(f"{what} timed out after {self._timeout:g}s") from e
        except MailToolError:
            self._fail()
            raise
        except Exception as e:
            self._fail()
            raise error_cls(f"{what} failed: {e}") from e
        finally:
            self._inflight -= 1

    async def connect(self) -> None:
        """
        Open the transport and authenticate.

        ERRORS:
        - ConnectionFailedError: unreachable host, TLS failure, rejected login
        """
        if self._state is not SessionState.DISCONNECTED:
            raise InvalidStateError(f"Cannot connect from state {self._state.value}")

        config = self._config
        self._state = SessionState.CONNECTING
        client = await self._call(
            ConnectionFailedError,
            f"Connection to {config.host}:{config.port}",
            self._open_client,
        )
        if self._state is SessionState.CLOSED:
            _shutdown(client)
            raise ConnectionFailedError("Session closed while connecting")
        self._client = client

        try:
            await self._call(
                ConnectionFailedError,
                "Login",
                self._client.login,
                config.credentials.username,
                config.credentials.password,
            )
        except ConnectionFailedError as e:
            if isinstance(e.__cause__, LoginError):
                raise ConnectionFailedError(f"Authentication failed: {e.__cause__}") from e.__cause__
            raise

        self._advance(SessionState.READY)
        # No credentials logged
        logger.info(f"Connected to {config.host}:{config.port}")

    def _open_client(self) -> IMAPClient:
        client = IMAPClient(
            self._config.host,
            port=self._config.port,
            ssl=self._config.use_tls,
            timeout=self._timeout,
        )
        # Connect timed out or the session closed while this thread was connecting
        if self._state is not SessionState.CONNECTING:
            _shutdown(client)
        return client

    async def select_folder(self, name: str) -> None:
        """Select `name` read-write (fetch sets \\Seen)."""
        client = self._require(SessionState.READY, SessionState.FOLDER_SELECTED)
        await self._call(FolderError, f"Opening folder {name}", client.select_folder, name)
        self._folder = name
        self._advance(SessionState.FOLDER_SELECTED)

    async def search(self, criterion: tuple[str, ...]) -> list[int]:
        """
        Search the selected folder.

        POST: UIDs in server order; [] when nothing matches
        """
        client = self._require(SessionState.FOLDER_SELECTED, SessionState.SEARCHING)
        self._advance(SessionState.SEARCHING)
        uids = await self._call(SearchError, "Search", client.search, list(criterion))
        logger.info(f"Search {' '.join(criterion)} in {self._folder} matched {len(uids)}")
        return list(uids)

    async def fetch(self, identifiers: list[int]) -> AsyncIterator[tuple[int, bytes]]:
        """
        Fetch full bodies for `identifiers`, yielding (uid, raw) pairs.

        One round-trip per message, in identifier order, so callers can
        decode earlier messages while later ones are still being fetched.
        """
        client = self._require(SessionState.FOLDER_SELECTED, SessionState.SEARCHING)
        self._advance(SessionState.FETCHING)

        for uid in identifiers:
            response = await self._call(
                FetchError, f"Fetch of message {uid}", client.fetch, [uid], ["BODY[]"]
            )
            data = response.get(uid)
            raw = _extract_body(data) if data is not None else None
            if raw is None:
                self._fail()
                raise FetchError(f"Server returned no body for message {uid}")
            yield uid, raw

        logger.info(f"Fetched {len(identifiers)} messages")

    async def close(self) -> None:
        """Release the connection. Idempotent; never raises."""
        client, self._client = self._client, None
        busy = self._inflight > 0 or self._state is SessionState.ERRORED
        self._state = SessionState.CLOSED
        if client is None:
            return

        if busy:
            _shutdown(client)
            logger.info("Connection shut down")
            return

        try:
            await asyncio.wait_for(asyncio.to_thread(client.logout), self._timeout)
            logger.info("Disconnected from mail server")
        except Exception as e:
            logger.debug(f"Logout failed ({e}); shutting connection down")
            _shutdown(client)


def _extract_body(data: dict) -> bytes | None:
    for key in _BODY_KEYS:
        raw = data.get(key)
        if raw is not None:
            return bytes(raw)
    return None


def _shutdown(client: IMAPClient) -> None:
    try:
        client.shutdown()
    except Exception as e:
        logger.debug(f"Socket shutdown failed: {e}")
