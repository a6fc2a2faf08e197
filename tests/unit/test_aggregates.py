"""Unit tests for grouping pipelines."""

from __future__ import annotations

import pytest
from bson import ObjectId

from mongo_orm_adapter.aggregates import GroupSpec, build_pipeline, flatten_groups
from mongo_orm_adapter.exceptions import FilterBuildError


class TestGroupSpec:
    def test_field_mapping(self):
        assert GroupSpec.from_value({"status": 1}) == GroupSpec(group_by=("status",))

    def test_falsy_mapping_values_skipped(self):
        spec = GroupSpec.from_value({"status": 1, "age": 0})
        assert spec.group_by == ("status",)

    def test_field_list_and_string(self):
        assert GroupSpec.from_value(["a", "b"]).group_by == ("a", "b")
        assert GroupSpec.from_value("a").group_by == ("a",)

    def test_legacy_mapping(self):
        spec = GroupSpec.from_value({"groupBy": "status", "sum": ["age"], "max": "age"})
        assert spec.group_by == ("status",)
        assert spec.sum == ("age",)
        assert spec.max == ("age",)
        assert spec.average == ()

    def test_legacy_mapping_unknown_key(self):
        with pytest.raises(FilterBuildError, match="Unknown grouping keys"):
            GroupSpec.from_value({"groupBy": "status", "median": ["age"]})

    def test_unsupported_value(self):
        with pytest.raises(FilterBuildError):
            GroupSpec.from_value(42)


class TestBuildPipeline:
    def test_two_stages(self):
        pipeline = build_pipeline({"age": {"$gt": 1}}, GroupSpec(group_by=("status",)))
        assert pipeline == [
            {"$match": {"age": {"$gt": 1}}},
            {"$group": {"_id": {"status": "$status"}, "count": {"$sum": 1}}},
        ]

    def test_no_group_fields_is_single_group(self):
        pipeline = build_pipeline(None, GroupSpec())
        assert pipeline[0] == {"$match": {}}
        assert pipeline[1]["$group"]["_id"] is None

    def test_accumulators(self):
        spec = GroupSpec(group_by=("status",), sum=("age",), average=("score",))
        stage = build_pipeline({}, spec)[1]["$group"]
        assert stage["age"] == {"$sum": "$age"}
        assert stage["score"] == {"$avg": "$score"}

    def test_dotted_group_key(self):
        stage = build_pipeline({}, GroupSpec(group_by=("address.city",)))[1]["$group"]
        assert stage["_id"] == {"address_city": "$address.city"}

    def test_primary_key_resolved_with_schema(self, users_handle):
        spec = GroupSpec(group_by=("id",))
        stage = build_pipeline({}, spec, users_handle.schema)[1]["$group"]
        assert stage["_id"] == {"id": "$_id"}


class TestFlattenGroups:
    def test_lifts_group_key(self):
        rows = flatten_groups([{"_id": {"status": "a"}, "count": 2}])
        assert rows == [{"status": "a", "count": 2}]

    def test_null_key(self):
        assert flatten_groups([{"_id": None, "count": 3}]) == [{"count": 3}]


class TestOutputCollisions:
    def test_two_accumulators_on_one_field(self):
        spec = GroupSpec(group_by=("status",), sum=("age",), max=("age",))
        with pytest.raises(FilterBuildError, match="'age'"):
            build_pipeline({}, spec)

    def test_accumulator_on_group_field(self):
        spec = GroupSpec(group_by=("age",), min=("age",))
        with pytest.raises(FilterBuildError):
            build_pipeline({}, spec)

    def test_field_named_count(self):
        with pytest.raises(FilterBuildError, match="count"):
            build_pipeline({}, GroupSpec(group_by=("count",)))
        with pytest.raises(FilterBuildError, match="count"):
            build_pipeline({}, GroupSpec(sum=("count",)))

    def test_dotted_key_clashing_with_flat_field(self):
        spec = GroupSpec(group_by=("address.city", "address_city"))
        with pytest.raises(FilterBuildError):
            build_pipeline({}, spec)

    def test_distinct_fields_allowed(self):
        spec = GroupSpec(group_by=("status",), sum=("age",), max=("score",))
        stage = build_pipeline({}, spec)[1]["$group"]
        assert set(stage) == {"_id", "count", "age", "score"}


class TestIdentifierGroups:
    def test_group_key_stringified(self, users_handle):
        team = ObjectId()
        spec = GroupSpec(group_by=("team",))
        rows = flatten_groups(
            [{"_id": {"team": team}, "count": 2}], spec, users_handle.schema
        )
        assert rows == [{"team": str(team), "count": 2}]

    def test_primary_key_group_stringified(self, users_handle):
        oid = ObjectId()
        spec = GroupSpec(group_by=("id",))
        rows = flatten_groups(
            [{"_id": {"id": oid}, "count": 1}], spec, users_handle.schema
        )
        assert rows == [{"id": str(oid), "count": 1}]

    def test_identifier_accumulator_stringified(self, users_handle):
        team = ObjectId()
        spec = GroupSpec(group_by=("status",), max=("team",))
        rows = flatten_groups(
            [{"_id": {"status": "a"}, "count": 1, "team": team}],
            spec,
            users_handle.schema,
        )
        assert rows == [{"status": "a", "count": 1, "team": str(team)}]

    def test_other_fields_untouched(self, users_handle):
        spec = GroupSpec(group_by=("status",))
        rows = flatten_groups(
            [{"_id": {"status": "a"}, "count": 1}], spec, users_handle.schema
        )
        assert rows == [{"status": "a", "count": 1}]
