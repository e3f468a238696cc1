"""Exceptions raised by oddish itself.

Driver failures (``pymongo.errors.PyMongoError``) are never wrapped; they
reach the caller exactly as Motor raised them.
"""

from __future__ import annotations


class OddishError(Exception):
    """Base class for errors raised by this package."""


class ContainerContractError(OddishError, TypeError):
    """The destination handed to the materializer is not a mutable sequence.

    This is a mistake at the call site, not a runtime condition.
    """


class UnsupportedIdentifierError(OddishError, TypeError):
    """An identifier was neither an ``ObjectId`` nor its hex string form."""

    def __init__(self, value: object) -> None:
        super().__init__(f"unsupported id type: {type(value).__name__}")
        self.value = value
