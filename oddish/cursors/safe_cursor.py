"""Lock-guarded wrapper around a Motor cursor.

A ``SafeCursor`` owns one forward-only cursor for the duration of a single
materialization.  Each ``try_decode_next`` call advances the cursor,
validates the document against the target type and hands the result to a
``store`` callback, all under one ``asyncio.Lock``.  Two tasks that end up
sharing the same instance therefore receive disjoint documents, each one
paired with its own decoded value.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, Mapping, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncCursor(Protocol):
    """The slice of the Motor cursor API that ``SafeCursor`` relies on.

    Both ``AsyncIOMotorCursor`` (``find``) and ``AsyncIOMotorCommandCursor``
    (``aggregate``) satisfy it.
    """

    async def next(self) -> Mapping[str, Any]: ...

    async def close(self) -> None: ...


class SafeCursor(Generic[T]):
    """Decode documents from *cursor* into values of type *model*.

    *model* is anything ``pydantic.TypeAdapter`` accepts: a ``BaseModel``
    subclass, a dataclass, a ``TypedDict`` or a plain ``dict[str, Any]``.

    If *error* is given (the query that produced the cursor already
    failed), every decode attempt returns ``False`` straight away.

    A document that fails validation is recorded on :attr:`decode_error`
    but does not poison the cursor: a later call advances past it.

    *adapter* lets a caller that decodes the same type repeatedly pass a
    prebuilt ``TypeAdapter`` instead of having one built per cursor.
    """

    def __init__(
        self,
        cursor: AsyncCursor,
        model: type[T],
        error: BaseException | None = None,
        *,
        adapter: TypeAdapter[T] | None = None,
    ) -> None:
        self._cursor = cursor
        self._adapter: TypeAdapter[T] = adapter if adapter is not None else TypeAdapter(model)
        self._lock = asyncio.Lock()
        self._closed = False
        self.model = model
        self.error = error
        self.decode_error: ValidationError | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def try_decode_next(self, store: Callable[[T], None]) -> bool:
        """Advance, decode and pass the value to *store*.

        Returns ``True`` only when a document was read and decoded.  Both
        exhaustion and a document that fails validation return ``False``;
        the validation error stays available on :attr:`decode_error`.
        Driver errors raised while advancing propagate unchanged.
        """
        async with self._lock:
            if self.error is not None or self._closed:
                return False

            try:
                raw = await self._cursor.next()
            except StopAsyncIteration:
                return False

            try:
                value = self._adapter.validate_python(raw)
            except ValidationError as exc:
                logger.warning(
                    "Failed to decode document into %s: %s",
                    getattr(self.model, "__name__", self.model),
                    exc,
                )
                self.decode_error = exc
                return False

            store(value)
            return True

    async def close(self) -> None:
        """Close the underlying cursor.  Only the first call reaches the driver."""
        if self._closed:
            return
        self._closed = True
        await self._cursor.close()
