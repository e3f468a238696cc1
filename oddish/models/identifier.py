"""ObjectId handling.

Identifiers arrive either as the 24-character hex string clients see or as
a native ``bson.ObjectId``.  A malformed string is not an error: it maps
to :data:`NIL_OBJECT_ID`, which never matches a stored document, so a
lookup with it simply finds nothing.
"""

from __future__ import annotations

from typing import Annotated, Any, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import PlainSerializer, PlainValidator, WithJsonSchema

from oddish.core.errors import UnsupportedIdentifierError

NIL_OBJECT_ID = ObjectId("0" * 24)

IdLike = Union[str, ObjectId]


def object_id(hex_value: str) -> ObjectId:
    """Parse *hex_value*, falling back to ``NIL_OBJECT_ID`` when malformed."""
    try:
        return ObjectId(hex_value)
    except (InvalidId, TypeError):
        return NIL_OBJECT_ID


def normalize_id(value: Any) -> ObjectId:
    """Return the native ``ObjectId`` for *value*.

    Raises:
        UnsupportedIdentifierError: *value* is neither ``str`` nor ``ObjectId``.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str):
        return object_id(value)
    raise UnsupportedIdentifierError(value)


def _validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid ObjectId: {value!r}")


#: Pydantic field type: accepts an ``ObjectId`` or its hex string, dumps as
#: ``ObjectId`` in python mode and as the hex string in JSON mode.
ObjectIdField = Annotated[
    ObjectId,
    PlainValidator(_validate_object_id),
    PlainSerializer(str, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": "^[0-9a-fA-F]{24}$"}),
]
