"""CRUD execution for one registered collection."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

from .aggregates import build_pipeline, flatten_groups
from .exceptions import (
    FilterBuildError,
    InsertCountMismatchError,
    MongoAdapterError,
    StoreCommunicationError,
)
from .identifiers import build_document, strip_identifiers, to_native_values
from .normalizer import ResultNormalizer
from .query import QueryDescriptor
from .query_builder import MongoQueryBuilder
from .schema import NATIVE_ID_FIELD
from .stream import RecordStream

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pymongo.results import DeleteResult

    from .registry import CollectionHandle, CollectionRegistry

logger = logging.getLogger("mongo_orm_adapter.collection")


class CollectionProvider(Protocol):
    """Anything that hands out native collection handles by name."""

    def collection(self, name: str) -> Any: ...


class MongoCollection:
    """
    Executes find/insert/update/destroy/count/stream against one collection.

    Every native call is a single awaited request; nothing is retried.
    Driver failures surface as :class:`StoreCommunicationError` with the
    original exception chained.
    """

    def __init__(
        self,
        handle: CollectionHandle,
        connection: CollectionProvider,
        registry: CollectionRegistry,
    ) -> None:
        self._handle = handle
        self._connection = connection
        self._query_builder = MongoQueryBuilder(handle.schema, handle.config)
        self._normalizer = ResultNormalizer(registry)

    @property
    def identity(self) -> str:
        return self._handle.identity

    @property
    def handle(self) -> CollectionHandle:
        return self._handle

    def _collection(self) -> Any:
        return self._connection.collection(self._handle.identity)

    async def _issue(self, operation: str, call: Callable[[], Awaitable[Any]]) -> Any:
        logger.debug("Issuing %s on %s", operation, self.identity)
        try:
            return await call()
        except MongoAdapterError:
            raise
        except Exception as e:
            raise StoreCommunicationError(operation, self.identity, e) from e

    def _where(self, criteria: Any) -> Mapping[str, Any] | None:
        if isinstance(criteria, QueryDescriptor):
            return criteria.where
        if criteria is None or isinstance(criteria, Mapping):
            return criteria
        raise FilterBuildError(
            f"Criteria must be a filter mapping or QueryDescriptor, "
            f"got {type(criteria).__name__}"
        )

    def _build(self, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except MongoAdapterError:
            raise
        except Exception as e:
            raise FilterBuildError(f"Could not build query: {e}") from e

    async def find(self, descriptor: QueryDescriptor) -> list[dict[str, Any]]:
        """Run a filtered/sorted/projected query, or a grouping pipeline."""
        match = self._query_builder.build_match(descriptor.where)

        group = descriptor.aggregate_group
        if group is not None:
            pipeline = self._build(
                lambda: build_pipeline(match, group, self._handle.schema)
            )

            async def run_aggregate() -> list[dict[str, Any]]:
                cursor = self._collection().aggregate(pipeline)
                return [doc async for doc in cursor]

            results = await self._issue("aggregate", run_aggregate)
            return flatten_groups(results, group, self._handle.schema)

        sort = self._build(lambda: self._query_builder.build_sort(descriptor.sort))
        projection = self._query_builder.build_project(descriptor.select)
        options: dict[str, Any] = {}
        if projection:
            options["projection"] = projection
        if sort:
            options["sort"] = sort
        if descriptor.skip:
            options["skip"] = descriptor.skip
        if descriptor.limit:
            options["limit"] = descriptor.limit

        async def run_find() -> list[dict[str, Any]]:
            cursor = self._collection().find(match, **options)
            return [doc async for doc in cursor]

        docs = await self._issue("find", run_find)
        return self._normalizer.normalize(docs, self._handle)

    async def insert(
        self, values: Mapping[str, Any] | list[Mapping[str, Any]]
    ) -> list[dict[str, Any]]:
        """Insert one or many records and return them hydrated with their ids."""
        batch = [values] if isinstance(values, Mapping) else list(values)
        if not batch:
            return []
        docs = [build_document(v, self._handle.schema) for v in batch]

        result = await self._issue(
            "insert", lambda: self._collection().insert_many(docs)
        )
        inserted_ids = list(getattr(result, "inserted_ids", None) or [])
        acknowledged = getattr(result, "acknowledged", False)
        if acknowledged is not True or len(inserted_ids) != len(docs):
            raise InsertCountMismatchError(len(docs), len(inserted_ids))

        for doc, inserted_id in zip(docs, inserted_ids):
            doc[NATIVE_ID_FIELD] = inserted_id
        return self._normalizer.normalize(docs, self._handle)

    async def update(
        self, criteria: Any, values: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        """Apply ``values`` to every matching document.

        Runs as capture -> mutate -> refetch. The refetch is scoped to the ids
        captured first, so documents that only start matching in between are
        excluded while updated documents that no longer match are returned.
        """
        match = self._query_builder.build_match(self._where(criteria))
        schema = self._handle.schema
        changes = self._build(
            lambda: to_native_values(strip_identifiers(values, schema), schema)
        )

        async def capture() -> list[Any]:
            cursor = self._collection().find(match, projection={NATIVE_ID_FIELD: 1})
            return [doc[NATIVE_ID_FIELD] async for doc in cursor]

        captured = await self._issue("update.capture", capture)
        if not captured:
            logger.debug("No documents matched update on %s; skipping", self.identity)
            return []

        if changes:
            await self._issue(
                "update",
                lambda: self._collection().update_many(match, {"$set": changes}),
            )

        async def refetch() -> list[dict[str, Any]]:
            cursor = self._collection().find({NATIVE_ID_FIELD: {"$in": captured}})
            return [doc async for doc in cursor]

        docs = await self._issue("update.refetch", refetch)
        # Keep capture order; ids removed concurrently are simply absent
        by_id = {doc[NATIVE_ID_FIELD]: doc for doc in docs}
        ordered = [by_id[i] for i in captured if i in by_id]
        return self._normalizer.normalize(ordered, self._handle)

    async def destroy(self, criteria: Any) -> DeleteResult:
        """Delete every matching document; returns the driver's DeleteResult."""
        match = self._query_builder.build_match(self._where(criteria))
        return await self._issue(
            "destroy", lambda: self._collection().delete_many(match)
        )

    async def count(self, criteria: Any = None) -> int:
        """Count matching documents; sort, projection, limit and skip are ignored."""
        match = self._query_builder.build_match(self._where(criteria))
        return await self._issue(
            "count", lambda: self._collection().count_documents(match)
        )

    def stream(self, criteria: Any = None) -> RecordStream:
        """Return a paused :class:`RecordStream` over matching records.

        A :class:`QueryDescriptor` contributes its sort, skip and limit;
        ``select`` is ignored so streamed records are always complete.
        """
        if isinstance(criteria, QueryDescriptor) and criteria.is_aggregate:
            raise FilterBuildError("Grouping queries cannot be streamed")
        match = self._query_builder.build_match(self._where(criteria))
        options: dict[str, Any] = {}
        if isinstance(criteria, QueryDescriptor):
            sort = self._build(lambda: self._query_builder.build_sort(criteria.sort))
            if sort:
                options["sort"] = sort
            if criteria.skip:
                options["skip"] = criteria.skip
            if criteria.limit:
                options["limit"] = criteria.limit
        if self._handle.config.stream_batch_size:
            options["batch_size"] = self._handle.config.stream_batch_size

        schema = self._handle.schema

        def transform(doc: Mapping[str, Any]) -> dict[str, Any]:
            return self._normalizer.normalize_one(doc, schema)

        return RecordStream(
            lambda: self._collection().find(match, **options),
            transform,
            identity=self.identity,
        )
