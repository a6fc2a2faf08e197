"""MongoDB adapter for ORM stage-three queries.

Translates storage-agnostic query descriptors into native MongoDB calls,
bridges string identifiers to ObjectIds and normalizes results back into
canonical records.
"""

from __future__ import annotations

from .adapter import MongoAdapter
from .aggregates import GroupSpec
from .collection import MongoCollection
from .config import AdapterConfig
from .connection import MongoConnectionManager
from .exceptions import (
    AdapterError,
    ConfigurationError,
    FilterBuildError,
    InsertCountMismatchError,
    InvalidIdentifierError,
    MongoAdapterError,
    MongoConnectionError,
    SchemaDefinitionError,
    StoreCommunicationError,
    UnregisteredCollectionError,
    UnsupportedOperatorError,
)
from .identifiers import rewrite_ids, to_object_id
from .normalizer import ResultNormalizer
from .operators import FilterOperator
from .query import QueryDescriptor
from .query_builder import MongoQueryBuilder
from .registry import CollectionHandle, CollectionRegistry
from .schema import CollectionSchema, FieldDescriptor, FieldType, IndexSpec
from .stream import RecordStream, StreamState

__all__ = [
    # Entry points
    "MongoAdapter",
    "MongoCollection",
    "MongoConnectionManager",
    "CollectionRegistry",
    "CollectionHandle",
    # Query model
    "QueryDescriptor",
    "GroupSpec",
    "FilterOperator",
    "AdapterConfig",
    "CollectionSchema",
    "FieldDescriptor",
    "FieldType",
    "IndexSpec",
    # Translation and results
    "MongoQueryBuilder",
    "ResultNormalizer",
    "RecordStream",
    "StreamState",
    "rewrite_ids",
    "to_object_id",
    # Exceptions
    "AdapterError",
    "MongoAdapterError",
    "MongoConnectionError",
    "ConfigurationError",
    "SchemaDefinitionError",
    "UnregisteredCollectionError",
    "UnsupportedOperatorError",
    "InvalidIdentifierError",
    "FilterBuildError",
    "StoreCommunicationError",
    "InsertCountMismatchError",
]
