"""Unit tests for comparison and set operators."""

from __future__ import annotations

import pytest

from mongo_orm_adapter.operators import (
    FilterOperator,
    compile_set,
    compile_standard,
    parse_operator,
)


class TestStandardOperators:
    """Tests for standard comparison operator compilation."""

    @pytest.mark.parametrize(
        ("op", "native"),
        [
            (FilterOperator.EQ, "$eq"),
            (FilterOperator.NE, "$ne"),
            (FilterOperator.GT, "$gt"),
            (FilterOperator.GE, "$gte"),
            (FilterOperator.LT, "$lt"),
            (FilterOperator.LE, "$lte"),
        ],
    )
    def test_comparison_mapping(self, op, native):
        assert compile_standard(op, 5) == {native: 5}

    def test_non_comparison_returns_none(self):
        assert compile_standard(FilterOperator.LIKE, "x") is None
        assert compile_standard(FilterOperator.IN, [1]) is None


class TestSetOperators:
    """Tests for set membership operators."""

    def test_in(self):
        assert compile_set(FilterOperator.IN, ["a", "b"]) == {"$in": ["a", "b"]}

    def test_nin(self):
        assert compile_set(FilterOperator.NOT_IN, ("a",)) == {"$nin": ["a"]}

    def test_scalar_wrapped(self):
        assert compile_set(FilterOperator.IN, "a") == {"$in": ["a"]}

    def test_non_set_returns_none(self):
        assert compile_set(FilterOperator.EQ, 1) is None


class TestParseOperator:
    def test_canonical_names(self):
        assert parse_operator("<=") is FilterOperator.LE
        assert parse_operator("nin") is FilterOperator.NOT_IN
        assert parse_operator("startsWith") is FilterOperator.STARTSWITH

    def test_aliases(self):
        assert parse_operator("lessThan") is FilterOperator.LT
        assert parse_operator("notIn") is FilterOperator.NOT_IN

    def test_unknown(self):
        assert parse_operator("approximately") is None
