"""Motor client lifecycle bound to one database."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import MongoConnectionError, StoreCommunicationError

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient

    from .registry import CollectionHandle

logger = logging.getLogger("mongo_orm_adapter.connection")


class MongoConnectionManager:
    """Wrap a Motor client with lifecycle, collection lookup and health check.

    Timeouts live on the client; the adapter itself never adds any.
    """

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        *,
        database: str | None = None,
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        **kwargs: Any,
    ) -> None:
        self._url = url
        self._database = database
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._kwargs = kwargs
        self._client: AsyncIOMotorClient[Any] | None = None

    async def connect(self) -> AsyncIOMotorClient[Any]:
        """Create and cache the Motor client. Idempotent."""
        if self._client is not None:
            return self._client
        try:
            from motor.motor_asyncio import AsyncIOMotorClient
        except ImportError as e:
            raise MongoConnectionError(
                "motor is required; install with motor>=3.3.0"
            ) from e
        try:
            self._client = AsyncIOMotorClient(
                self._url,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                connectTimeoutMS=self._connect_timeout_ms,
                **self._kwargs,
            )
            return self._client
        except Exception as e:
            raise MongoConnectionError(str(e)) from e

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        """Return the Motor client; raises if not connected."""
        if self._client is None:
            raise MongoConnectionError("Not connected; call connect() first")
        return self._client

    def database(self) -> Any:
        """Return the bound database (the URL's default when none was given)."""
        if self._database:
            return self.client.get_database(self._database)
        try:
            return self.client.get_default_database()
        except Exception as e:
            raise MongoConnectionError(
                "Database name must be set on the connection or in the URL"
            ) from e

    def collection(self, name: str) -> Any:
        """Return the native collection handle for ``name``."""
        return self.database()[name]

    async def create_collection(self, handle: CollectionHandle) -> list[str]:
        """Create the indexes derived from a registered collection's schema."""
        coll = self.collection(handle.identity)
        names: list[str] = []
        for index in handle.indexes:
            try:
                name = await coll.create_index(list(index.keys), **dict(index.options))
            except Exception as e:
                raise StoreCommunicationError("create_index", handle.identity, e) from e
            names.append(name)
        logger.debug("Ensured %d indexes on %s", len(names), handle.identity)
        return names

    async def drop_collection(self, name: str) -> None:
        try:
            await self.collection(name).drop()
        except Exception as e:
            raise StoreCommunicationError("drop_collection", name, e) from e

    def close(self) -> None:
        """Close the client (synchronous; Motor client.close() is sync)."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def health_check(self) -> bool:
        """Ping the server; return True if reachable."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except Exception:  # noqa: BLE001
            return False
