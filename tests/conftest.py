from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


class FakeCursor:
    """In-memory stand-in for a Motor cursor (``next`` / ``close``)."""

    def __init__(
        self,
        docs: list[dict[str, Any]],
        close_error: BaseException | None = None,
        next_error: BaseException | None = None,
        yield_control: bool = False,
        fail_after: int | None = None,
    ) -> None:
        self._docs = list(docs)
        self.close_error = close_error
        self.next_error = next_error
        self.yield_control = yield_control
        self.fail_after = fail_after
        self.served = 0
        self.close_calls = 0
        self.next_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def next(self) -> dict[str, Any]:
        self.next_calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.yield_control:
                await asyncio.sleep(0)
            if self.next_error is not None and (
                self.fail_after is None or self.served >= self.fail_after
            ):
                raise self.next_error
            if not self._docs:
                raise StopAsyncIteration
            self.served += 1
            return self._docs.pop(0)
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def make_cursor():
    """Factory for ``FakeCursor`` instances."""
    return FakeCursor


@pytest.fixture
def collection():
    """A Motor collection double: ``find``/``aggregate`` are sync, writes are async."""
    col = MagicMock()
    col.find_one = AsyncMock(return_value=None)
    col.count_documents = AsyncMock(return_value=0)
    col.insert_one = AsyncMock()
    col.delete_one = AsyncMock()
    col.update_one = AsyncMock()
    col.find.return_value = FakeCursor([])
    col.aggregate.return_value = FakeCursor([])
    return col
