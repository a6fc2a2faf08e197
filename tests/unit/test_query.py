"""Unit tests for QueryDescriptor parsing."""

from __future__ import annotations

import pytest

from mongo_orm_adapter.aggregates import GroupSpec
from mongo_orm_adapter.exceptions import FilterBuildError
from mongo_orm_adapter.query import QueryDescriptor


class TestFromDict:
    def test_flat_form(self):
        q = QueryDescriptor.from_dict(
            {
                "target": "users",
                "where": {"age": {">": 1}},
                "sort": [{"name": "asc"}],
                "limit": 10,
                "skip": 5,
                "select": ["name"],
            }
        )
        assert q.target == "users"
        assert q.where == {"age": {">": 1}}
        assert q.sort == (("name", "asc"),)
        assert q.limit == 10
        assert q.skip == 5
        assert q.select == ("name",)
        assert not q.is_aggregate

    def test_nested_criteria_form(self):
        q = QueryDescriptor.from_dict(
            {
                "using": "users",
                "criteria": {"where": {"name": "a"}, "sort": ["-age"], "limit": 2},
            }
        )
        assert q.target == "users"
        assert q.where == {"name": "a"}
        assert q.sort == (("age", "desc"),)
        assert q.limit == 2

    def test_aggregate_group(self):
        q = QueryDescriptor.from_dict(
            {"target": "users", "aggregateGroup": {"status": 1}}
        )
        assert q.is_aggregate
        assert q.aggregate_group == GroupSpec(group_by=("status",))

    def test_sort_mapping(self):
        q = QueryDescriptor.from_dict(
            {"target": "t", "sort": {"a": "asc", "b": "desc"}}
        )
        assert q.sort == (("a", "asc"), ("b", "desc"))

    def test_select_string(self):
        q = QueryDescriptor.from_dict({"target": "t", "select": "a"})
        assert q.select == ("a",)

    def test_missing_target(self):
        with pytest.raises(FilterBuildError, match="target"):
            QueryDescriptor.from_dict({"where": {}})

    @pytest.mark.parametrize("value", [-1, "10", 1.5, True])
    def test_invalid_limit(self, value):
        with pytest.raises(FilterBuildError):
            QueryDescriptor.from_dict({"target": "t", "limit": value})

    def test_invalid_where(self):
        with pytest.raises(FilterBuildError):
            QueryDescriptor.from_dict({"target": "t", "where": ["a"]})

    def test_invalid_sort_entry(self):
        with pytest.raises(FilterBuildError):
            QueryDescriptor.from_dict({"target": "t", "sort": [42]})
