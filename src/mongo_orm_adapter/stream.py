"""
Lazy, backpressured async iterator over a MongoDB cursor.

Usage::

    async with collection.stream({"status": "active"}) as records:
        async for record in records:
            await process(record)

No query is issued until the first record is requested, and the cursor only
advances when the consumer asks for the next record, so at most one
delivered record is ever awaiting processing. The stream terminates exactly
once: either by exhaustion (``StopAsyncIteration``) or by an error, which is
raised again on every later pull.
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import MongoAdapterError, StoreCommunicationError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

logger = logging.getLogger("mongo_orm_adapter.stream")


class StreamState(str, Enum):
    PAUSED = "paused"
    STREAMING = "streaming"
    ENDED = "ended"
    FAILED = "failed"
    CLOSED = "closed"


class RecordStream:
    """
    Async iterator of canonical records.

    Parameters
    ----------
    open_cursor:
        Zero-argument callable returning a driver cursor; called lazily.
    transform:
        Callable turning one raw document into a canonical record.
    identity:
        Collection name, used in error reports.
    """

    __slots__ = (
        "_open_cursor",
        "_transform",
        "_identity",
        "_cursor",
        "_state",
        "_error",
    )

    def __init__(
        self,
        open_cursor: Callable[[], Any],
        transform: Callable[[Mapping[str, Any]], dict[str, Any]],
        *,
        identity: str,
    ) -> None:
        self._open_cursor = open_cursor
        self._transform = transform
        self._identity = identity
        self._cursor: Any = None
        self._state = StreamState.PAUSED
        self._error: MongoAdapterError | None = None

    @property
    def state(self) -> StreamState:
        return self._state

    def __aiter__(self) -> RecordStream:
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._error is not None:
            raise self._error
        if self._state in (StreamState.ENDED, StreamState.CLOSED):
            raise StopAsyncIteration
        try:
            if self._cursor is None:
                self._cursor = self._open_cursor().__aiter__()
                self._state = StreamState.STREAMING
            doc = await self._cursor.__anext__()
        except StopAsyncIteration:
            self._state = StreamState.ENDED
            await self._close_cursor()
            raise
        except Exception as e:
            error = StoreCommunicationError("stream", self._identity, e)
            await self._fail(error)
            raise error from e

        try:
            return self._transform(doc)
        except MongoAdapterError as e:
            await self._fail(e)
            raise
        except Exception as e:
            error = StoreCommunicationError("stream.transform", self._identity, e)
            await self._fail(error)
            raise error from e

    async def _fail(self, error: MongoAdapterError) -> None:
        self._state = StreamState.FAILED
        self._error = error
        await self._close_cursor()

    async def aclose(self) -> None:
        """Cancel the stream and release the cursor."""
        if self._state in (StreamState.PAUSED, StreamState.STREAMING):
            self._state = StreamState.CLOSED
        await self._close_cursor()

    async def _close_cursor(self) -> None:
        cursor, self._cursor = self._cursor, None
        if cursor is None:
            return
        close = getattr(cursor, "close", None)
        if close is None:
            return
        try:
            result = close()
            if inspect.isawaitable(result):
                await result
        except Exception:  # noqa: BLE001
            logger.debug("Failed to close cursor on %s", self._identity, exc_info=True)

    async def __aenter__(self) -> RecordStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
