"""Test configuration for the MongoDB ORM adapter."""

from __future__ import annotations

import pytest

from mongo_orm_adapter import (
    CollectionRegistry,
    MongoAdapter,
    MongoConnectionManager,
)

pytest_plugins = ["pytest_asyncio"]


USER_DEFINITION = {
    "identity": "User",
    "tableName": "users",
    "attributes": {
        "id": {"type": "integer", "primaryKey": True, "autoIncrement": True},
        "name": {"type": "string"},
        "email": {"type": "string", "unique": True},
        "age": {"type": "integer", "index": True},
        "status": {"type": "string", "defaultsTo": "active"},
        "tags": {"type": "json", "defaultsTo": []},
        "team": {"model": "team"},
        "pets": {"collection": "pet"},
    },
}

PET_DEFINITION = {
    "identity": "pet",
    "attributes": {
        "id": {"type": "objectid", "primaryKey": True},
        "name": {"type": "string"},
        "owner": {"model": "user"},
    },
}

TEAM_DEFINITION = {
    "identity": "team",
    "attributes": {
        "name": {"type": "string"},
    },
}


class RecordingCollection:
    """Proxy over a mongomock collection recording every method called.

    ``after_update`` runs right after ``update_many`` completes, which lets a
    test simulate a concurrent writer between the update's mutate and
    refetch steps.
    """

    def __init__(self, inner):
        self._inner = inner
        self.calls = []
        self.after_update = None

    @property
    def inner(self):
        return self._inner

    async def update_many(self, *args, **kwargs):
        self.calls.append("update_many")
        result = await self._inner.update_many(*args, **kwargs)
        if self.after_update is not None:
            await self.after_update(self._inner)
        return result

    def __getattr__(self, name):
        attr = getattr(self._inner, name)
        if not callable(attr):
            return attr

        def wrapper(*args, **kwargs):
            self.calls.append(name)
            return attr(*args, **kwargs)

        return wrapper


class RecordingProvider:
    """Hands out one RecordingCollection per collection name."""

    def __init__(self, db):
        self._db = db
        self.collections = {}

    def collection(self, name):
        if name not in self.collections:
            self.collections[name] = RecordingCollection(self._db[name])
        return self.collections[name]


class StaticProvider:
    """Returns the same collection double for every name."""

    def __init__(self, collection):
        self._collection = collection

    def collection(self, name):
        return self._collection


@pytest.fixture
def mock_client():
    """Create a mock MongoDB client."""
    try:
        from mongomock_motor import AsyncMongoMockClient
    except ImportError:
        pytest.skip("mongomock-motor not installed")
    return AsyncMongoMockClient()


@pytest.fixture
def mock_db(mock_client):
    return mock_client.get_database("test_db")


@pytest.fixture
def mongo_connection(mock_client):
    """Connection manager bound to the mock client."""
    connection = MongoConnectionManager(url="mongodb://mock:27017", database="test_db")
    connection._client = mock_client
    return connection


@pytest.fixture
def registry():
    registry = CollectionRegistry()
    registry.register(USER_DEFINITION)
    registry.register(PET_DEFINITION)
    registry.register(TEAM_DEFINITION)
    return registry


@pytest.fixture
def users_handle(registry):
    return registry.get("users")


@pytest.fixture
def adapter(mongo_connection, registry):
    return MongoAdapter(mongo_connection, registry)


@pytest.fixture
def recording_provider(mock_db):
    return RecordingProvider(mock_db)


@pytest.fixture
def recording_adapter(recording_provider, registry):
    return MongoAdapter(recording_provider, registry)


@pytest.fixture
def static_adapter(registry):
    """Factory for an adapter whose every collection is the given double."""

    def _make(collection):
        return MongoAdapter(StaticProvider(collection), registry)

    return _make
