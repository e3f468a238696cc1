from __future__ import annotations

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from oddish.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns one Motor client and hands out collections from it.

    A host application usually keeps one manager per MongoDB deployment.
    The module-level ``db`` is a convenience instance configured from the
    environment; create more with explicit ``Settings`` when an app talks to
    several deployments.

    Lifecycle::

        await db.connect()                       # env-configured
        await DatabaseManager().connect(uri="mongodb://replica:27017", db_name="audit")
        ...
        await db.disconnect()
    """

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or default_settings
        self._client: AsyncIOMotorClient | None = None
        self._db_name = self._config.mongo_db

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def db_name(self) -> str:
        return self._db_name

    async def connect(self, uri: str | None = None, db_name: str | None = None) -> None:
        """Open the Motor client and verify connectivity with a ping.

        *uri* and *db_name* override the values from the manager's settings.
        Calling ``connect`` on a connected manager replaces its client.
        """
        if self._client is not None:
            await self.disconnect()
        target = uri or self._config.mongo_uri
        self._db_name = db_name or self._config.mongo_db
        self._client = AsyncIOMotorClient(
            target,
            maxPoolSize=self._config.mongo_max_pool_size,
        )
        await self._client.admin.command("ping")
        logger.info("Connected to MongoDB at %s (db=%s).", target, self._db_name)

    async def disconnect(self) -> None:
        """Close the Motor client and release all pooled connections."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Disconnected from MongoDB.")

    def get_collection(self, name: str, db_name: str | None = None) -> AsyncIOMotorCollection:
        """Return collection *name* from *db_name*, or from the default database."""
        if self._client is None:
            raise RuntimeError(
                "DatabaseManager is not connected. Call connect() first."
            )
        return self._client[db_name or self._db_name][name]


#: Environment-configured instance for apps that need only one deployment.
db: DatabaseManager = DatabaseManager()
