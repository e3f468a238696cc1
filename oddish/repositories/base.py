"""Generic base class for MongoDB repositories.

Every repository in an application built on oddish extends
``BaseRepository``.

Extending for a new collection:
    1. Define a document model, usually a ``MongoDocument`` subclass.
    2. Subclass ``BaseRepository[YourModel]``, set ``COLLECTION_NAME`` and
       ``DOCUMENT_MODEL``, and override ``ensure_indexes()`` with the
       indexes your collection needs.
    3. Call ``ensure_indexes()`` from the app lifespan.

Example::

    class UserRepository(BaseRepository[User]):
        COLLECTION_NAME = "users"
        DOCUMENT_MODEL = User

        async def ensure_indexes(self) -> None:
            await self._col.create_index("email", unique=True)

Read operations that return several documents accept an optional ``into``
list.  When given, its existing slots are reused, it grows as needed and is
truncated to the number of documents read; the same list is returned.

Driver errors are logged here and re-raised unchanged.  Nothing is retried.
"""

from __future__ import annotations

import logging
from abc import ABC
from typing import Any, Callable, ClassVar, Generic, Mapping, Protocol, Sequence, TypeVar, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import BaseModel, TypeAdapter
from pymongo.errors import PyMongoError

from oddish.core.pagination import normalize_page, page_skip, total_pages
from oddish.cursors.materializer import materialize
from oddish.cursors.safe_cursor import AsyncCursor, SafeCursor
from oddish.models.document import MongoDocument
from oddish.models.identifier import IdLike, normalize_id

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R", bound="BaseRepository[Any]")

Filter = Mapping[str, Any]
Sort = Union[Sequence[tuple[str, int]], Mapping[str, int]]


class CollectionSource(Protocol):
    """Anything that hands out Motor collections by name, e.g. ``DatabaseManager``."""

    def get_collection(self, name: str) -> AsyncIOMotorCollection: ...


def _sort_spec(sort: Sort | None) -> list[tuple[str, int]] | None:
    if not sort:
        return None
    if isinstance(sort, Mapping):
        return list(sort.items())
    return list(sort)


class BaseRepository(ABC, Generic[T]):
    """Base class that wires a repository to its Motor collection.

    Subclasses declare:
    - ``COLLECTION_NAME`` - the collection name.
    - ``DOCUMENT_MODEL`` - the type each document is decoded into.
    - ``ensure_indexes()`` - indexes to create at startup (idempotent).
    """

    COLLECTION_NAME: ClassVar[str]
    DOCUMENT_MODEL: ClassVar[type[Any]]

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._col = collection
        self._adapter: TypeAdapter[T] = TypeAdapter(self.DOCUMENT_MODEL)

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def from_db(cls: type[R], db: CollectionSource) -> R:
        """Instantiate the repository from a connected ``DatabaseManager``.

        Usage::

            repo = UserRepository.from_db(db)
        """
        return cls(db.get_collection(cls.COLLECTION_NAME))

    # ------------------------------------------------------------------
    # Index management (override in subclasses)
    # ------------------------------------------------------------------

    async def ensure_indexes(self) -> None:
        """Create collection indexes.  Called once at startup.

        The default is a no-op.  Override to declare the indexes
        your collection requires; Motor / MongoDB make this idempotent
        (existing indexes are silently skipped).
        """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, id: IdLike | None) -> T | None:
        """Return the document with ``_id`` *id*, or ``None``.

        A ``None`` id short-circuits without querying.  A malformed hex
        string resolves to the nil ObjectId and therefore finds nothing.
        """
        if id is None:
            return None
        return await self.find_one({"_id": normalize_id(id)})

    async def find_one(self, filter: Filter) -> T | None:
        """Return the first document matching *filter*, or ``None``."""
        try:
            raw = await self._col.find_one(filter)
        except PyMongoError:
            logger.exception("find_one failed on %s", self.COLLECTION_NAME)
            raise
        if raw is None:
            return None
        return self._adapter.validate_python(raw)

    async def find_many(
        self,
        filter: Filter | None = None,
        sort: Sort | None = None,
        *,
        into: list[T] | None = None,
    ) -> list[T]:
        """Return every document matching *filter*, optionally sorted."""
        kwargs: dict[str, Any] = {}
        spec = _sort_spec(sort)
        if spec:
            kwargs["sort"] = spec
        cursor = self._open(lambda: self._col.find(filter or {}, **kwargs), "find")
        return await self._collect(cursor, into)

    async def find_page(
        self,
        filter: Filter | None,
        page: int,
        size: int,
        sort: Sort | None = None,
        *,
        into: list[T] | None = None,
    ) -> tuple[list[T], int]:
        """Return one page of documents and the total page count.

        *page* is 1-based; values below 1 are treated as 1.  A page past the
        end returns no documents rather than an error.

        Raises:
            ValueError: *size* is not positive.
        """
        filter = filter or {}
        skip = page_skip(page, size)
        pages = total_pages(await self.count(filter), size)

        kwargs: dict[str, Any] = {"skip": skip, "limit": size}
        spec = _sort_spec(sort)
        if spec:
            kwargs["sort"] = spec
        cursor = self._open(lambda: self._col.find(filter, **kwargs), "find")
        items = await self._collect(cursor, into)

        logger.debug(
            "Page %d/%d of %s returned %d document(s)",
            normalize_page(page),
            pages,
            self.COLLECTION_NAME,
            len(items),
        )
        return items, pages

    async def aggregate(
        self,
        pipeline: Sequence[Mapping[str, Any]],
        *,
        into: list[T] | None = None,
    ) -> list[T]:
        """Run an aggregation *pipeline* and decode its output documents."""
        cursor = self._open(lambda: self._col.aggregate(list(pipeline)), "aggregate")
        return await self._collect(cursor, into)

    async def count(self, filter: Filter | None = None) -> int:
        """Return the number of documents matching *filter*."""
        try:
            return await self._col.count_documents(filter or {})
        except PyMongoError:
            logger.exception("count_documents failed on %s", self.COLLECTION_NAME)
            raise

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, document: MongoDocument | Mapping[str, Any]) -> ObjectId:
        """Insert *document* and return its ``_id``."""
        if isinstance(document, MongoDocument):
            payload = document.to_mongo()
        elif isinstance(document, BaseModel):
            payload = document.model_dump(by_alias=True)
        else:
            payload = dict(document)
        try:
            result = await self._col.insert_one(payload)
        except PyMongoError:
            logger.exception("insert_one failed on %s", self.COLLECTION_NAME)
            raise
        return result.inserted_id

    async def delete_by_id(self, id: IdLike) -> int:
        """Delete the document with ``_id`` *id* and return the deleted count.

        Raises:
            UnsupportedIdentifierError: *id* is neither ``str`` nor ``ObjectId``.
        """
        oid = normalize_id(id)
        try:
            result = await self._col.delete_one({"_id": oid})
        except PyMongoError:
            logger.exception("delete_one failed on %s for _id=%s", self.COLLECTION_NAME, oid)
            raise
        return result.deleted_count

    async def update_by_id(self, id: IdLike, patch: BaseModel | Mapping[str, Any]) -> int:
        """Apply *patch* to the document with ``_id`` *id*.

        A mapping is sent as the update document unchanged, so it must use
        update operators (``{"$set": {...}}``).  A pydantic model is turned
        into a ``$set`` of the fields that were explicitly set on it.
        A model with no fields set is a no-op and returns 0 without a query.

        Returns the matched count.

        Raises:
            UnsupportedIdentifierError: *id* is neither ``str`` nor ``ObjectId``.
        """
        oid = normalize_id(id)
        if isinstance(patch, BaseModel):
            update: Mapping[str, Any] = {
                "$set": patch.model_dump(by_alias=True, exclude_unset=True, exclude={"id"})
            }
            if not update["$set"]:
                return 0
        else:
            update = patch
        try:
            result = await self._col.update_one({"_id": oid}, update)
        except PyMongoError:
            logger.exception("update_one failed on %s for _id=%s", self.COLLECTION_NAME, oid)
            raise
        return result.matched_count

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _open(self, query: Callable[[], AsyncCursor], operation: str) -> SafeCursor[T]:
        try:
            raw_cursor = query()
        except PyMongoError:
            logger.exception("%s failed on %s", operation, self.COLLECTION_NAME)
            raise
        return SafeCursor(raw_cursor, self.DOCUMENT_MODEL, adapter=self._adapter)

    async def _collect(self, cursor: SafeCursor[T], into: list[T] | None) -> list[T]:
        results: list[T] = [] if into is None else into
        try:
            await materialize(cursor, results)
        except PyMongoError:
            logger.exception("Reading %s failed", self.COLLECTION_NAME)
            raise
        return results
