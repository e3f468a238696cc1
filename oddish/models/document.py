from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from oddish.models.identifier import ObjectIdField


class MongoDocument(BaseModel):
    """Base class for documents stored in a collection.

    ``id`` maps to MongoDB's ``_id``.  It is ``None`` until the document has
    been inserted; :meth:`to_mongo` leaves it out in that case so the server
    assigns one.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: ObjectIdField | None = Field(default=None, alias="_id")

    def to_mongo(self) -> dict[str, Any]:
        """Dump the document with ``_id`` as key, ready for ``insert_one``."""
        return self.model_dump(by_alias=True, exclude={"id"} if self.id is None else None)
