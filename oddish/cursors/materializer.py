from __future__ import annotations

import logging
from collections.abc import MutableSequence
from functools import partial
from typing import TypeVar

from oddish.core.errors import ContainerContractError
from oddish.cursors.safe_cursor import SafeCursor

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def materialize(cursor: SafeCursor[T], destination: MutableSequence[T]) -> int:
    """Decode every remaining document of *cursor* into *destination*.

    Existing slots are overwritten in order before the sequence grows, and
    any slots left over past the last decoded document are dropped, so on
    return ``len(destination)`` equals the returned count.

    The cursor is always closed, and *destination* is always truncated to
    the documents written before closing, including when a driver error
    interrupts the read.  If closing fails, the driver error is raised
    after *destination* has already been filled and truncated.

    Raises:
        ContainerContractError: *destination* is not a mutable sequence.
    """
    i = 0
    try:
        if not isinstance(destination, MutableSequence):
            raise ContainerContractError(
                "destination must be a mutable sequence, "
                f"got {type(destination).__name__}"
            )

        try:
            while True:
                if i == len(destination):
                    if not await cursor.try_decode_next(destination.append):
                        break
                elif not await cursor.try_decode_next(partial(destination.__setitem__, i)):
                    break
                i += 1
        finally:
            del destination[i:]
    finally:
        await cursor.close()

    if cursor.decode_error is not None:
        logger.debug("Materialization stopped at a malformed document after %d", i)
    return i
