"""Entry point used by the ORM query layer."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .collection import MongoCollection
from .query import QueryDescriptor

if TYPE_CHECKING:
    from pymongo.results import DeleteResult

    from .collection import CollectionProvider
    from .registry import CollectionRegistry
    from .stream import RecordStream


class MongoAdapter:
    """Resolve collections through the registry and delegate CRUD calls.

    Executors are built lazily, one per registered collection, and reused.
    """

    def __init__(
        self, connection: CollectionProvider, registry: CollectionRegistry
    ) -> None:
        self._connection = connection
        self._registry = registry
        self._collections: dict[str, MongoCollection] = {}

    @property
    def registry(self) -> CollectionRegistry:
        return self._registry

    def collection(self, identity: str) -> MongoCollection:
        handle = self._registry.get(identity)
        executor = self._collections.get(handle.identity)
        if executor is None:
            executor = MongoCollection(handle, self._connection, self._registry)
            self._collections[handle.identity] = executor
        return executor

    async def find(
        self, query: QueryDescriptor | Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        descriptor = (
            query
            if isinstance(query, QueryDescriptor)
            else QueryDescriptor.from_dict(query)
        )
        return await self.collection(descriptor.target).find(descriptor)

    async def insert(
        self, identity: str, values: Mapping[str, Any] | list[Mapping[str, Any]]
    ) -> list[dict[str, Any]]:
        return await self.collection(identity).insert(values)

    async def update(
        self, identity: str, criteria: Any, values: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        return await self.collection(identity).update(criteria, values)

    async def destroy(self, identity: str, criteria: Any) -> DeleteResult:
        return await self.collection(identity).destroy(criteria)

    async def count(self, identity: str, criteria: Any = None) -> int:
        return await self.collection(identity).count(criteria)

    def stream(self, identity: str, criteria: Any = None) -> RecordStream:
        return self.collection(identity).stream(criteria)
