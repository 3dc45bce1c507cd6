"""
Fetch Aggregator
================

Joins one decode task per fetched message into a single result.

Decodes run in worker threads concurrently with each other and with the
fetch stream. The first failure wins: a stream error or any decode error
fails the whole collection immediately, the stream is closed and decodes
still running are abandoned rather than awaited.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, Callable

from contracts import DecodeError, EmailRecord, FetchError, MailToolError

from src.mailtool_mcp.decoder import decode_message

logger = logging.getLogger("mailtool-mcp.aggregator")


def _retrieve(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


class FetchAggregator:
    """Collect decoded records from a (uid, raw) fetch stream."""

    def __init__(self, decode: Callable[[bytes], EmailRecord] = decode_message) -> None:
        self._decode = decode

    async def _decode_one(self, uid: int, raw: bytes) -> tuple[int, EmailRecord]:
        try:
            record = await asyncio.to_thread(self._decode, raw)
        except Exception as e:
            raise DecodeError(f"Failed to decode message {uid}: {e}") from e
        return uid, record

    async def collect(
        self, stream: AsyncIterator[tuple[int, bytes]]
    ) -> list[tuple[int, EmailRecord]]:
        """
        Decode every message of `stream`.

        POST: One (uid, record) per streamed message, in arrival order

        ERRORS:
        - FetchError: the stream failed
        - DecodeError: any message failed to decode
        """
        loop = asyncio.get_running_loop()
        failure: asyncio.Future[None] = loop.create_future()
        tasks: list[asyncio.Task[tuple[int, EmailRecord]]] = []

        def on_done(task: asyncio.Task) -> None:
            if task.cancelled():
                return
            # Retrieving the exception also silences "never retrieved" warnings
            # for tasks abandoned after an earlier failure.
            error = task.exception()
            if error is not None and not failure.done():
                failure.set_exception(error)

        async def pump() -> None:
            async with aclosing(stream) as messages:
                async for uid, raw in messages:
                    task = asyncio.create_task(self._decode_one(uid, raw))
                    task.add_done_callback(on_done)
                    tasks.append(task)

        pump_task = asyncio.create_task(pump())
        try:
            await asyncio.wait({pump_task, failure}, return_when=asyncio.FIRST_COMPLETED)
            if failure.done():
                failure.result()
            try:
                pump_task.result()
            except MailToolError:
                raise
            except Exception as e:
                raise FetchError(f"Fetch stream failed: {e}") from e

            logger.info(f"Fetch complete, waiting on {len(tasks)} decodes")
            if tasks:
                joined = asyncio.gather(*tasks)
                joined.add_done_callback(_retrieve)
                await asyncio.wait({joined, failure}, return_when=asyncio.FIRST_COMPLETED)
                if failure.done():
                    failure.result()
                return joined.result()
            return []
        finally:
            if not pump_task.done():
                pump_task.cancel()
            if not failure.done():
                failure.cancel()
            elif not failure.cancelled():
                failure.exception()
