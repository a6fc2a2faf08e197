"""Unit tests for ResultNormalizer."""

from __future__ import annotations

import pytest
from bson import ObjectId

from mongo_orm_adapter.exceptions import UnregisteredCollectionError
from mongo_orm_adapter.normalizer import ResultNormalizer
from mongo_orm_adapter.registry import CollectionRegistry


@pytest.fixture
def normalizer(registry):
    return ResultNormalizer(registry)


def test_top_level_ids(normalizer, users_handle):
    oid, team = ObjectId(), ObjectId()
    [record] = normalizer.normalize([{"_id": oid, "team": team}], users_handle)
    assert record == {"id": str(oid), "team": str(team)}


def test_populated_collection(normalizer, users_handle):
    pet_id, owner = ObjectId(), ObjectId()
    doc = {"_id": ObjectId(), "pets": [{"_id": pet_id, "name": "Rex", "owner": owner}]}
    [record] = normalizer.normalize([doc], users_handle)
    assert record["pets"] == [{"id": str(pet_id), "name": "Rex", "owner": str(owner)}]


def test_collection_of_bare_ids(normalizer, users_handle):
    pet_id = ObjectId()
    doc = {"_id": ObjectId(), "pets": [pet_id]}
    [record] = normalizer.normalize([doc], users_handle)
    assert record["pets"] == [str(pet_id)]


def test_populated_model(normalizer, users_handle):
    team_id = ObjectId()
    doc = {"_id": ObjectId(), "team": {"_id": team_id, "name": "Core"}}
    [record] = normalizer.normalize([doc], users_handle)
    assert record["team"] == {"id": str(team_id), "name": "Core"}


def test_unregistered_association():
    registry = CollectionRegistry()
    handle = registry.register(
        {"identity": "owner", "attributes": {"cars": {"collection": "car"}}}
    )
    normalizer = ResultNormalizer(registry)
    doc = {"_id": ObjectId(), "cars": [{"_id": ObjectId()}]}
    with pytest.raises(UnregisteredCollectionError):
        normalizer.normalize([doc], handle)
