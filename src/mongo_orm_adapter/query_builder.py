"""Mongo query builder: filter trees, sort specs and field selections."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .config import AdapterConfig
from .exceptions import FilterBuildError, MongoAdapterError, UnsupportedOperatorError
from .identifiers import coerce_identifier
from .operators import (
    LOGICAL_OPERATORS,
    PATTERN_OPERATORS,
    FilterOperator,
    compile_set,
    compile_standard,
    compile_string,
    parse_operator,
    valid_operator_names,
)
from .schema import NATIVE_ID_FIELD, FieldType

if TYPE_CHECKING:
    from .schema import CollectionSchema

# Matches no document; used for an empty `or`
_MATCH_NOTHING: dict[str, Any] = {NATIVE_ID_FIELD: {"$in": []}}

_DIRECTIONS: dict[str, int] = {"asc": 1, "desc": -1, "1": 1, "-1": -1}


def _merge(fragments: list[dict[str, Any]]) -> dict[str, Any]:
    """Merge compiled clauses into one filter document.

    Falls back to ``$and`` when two clauses target the same key.
    """
    merged: dict[str, Any] = {}
    for fragment in fragments:
        if any(k in merged for k in fragment):
            return {"$and": fragments}
        merged.update(fragment)
    return merged


class MongoQueryBuilder:
    """Compiles stage-three criteria to MongoDB filter, sort and projection
    documents for one collection schema."""

    def __init__(
        self, schema: CollectionSchema, config: AdapterConfig | None = None
    ) -> None:
        self._schema = schema
        self._config = config or AdapterConfig()

    def build_match(self, where: Mapping[str, Any] | None) -> dict[str, Any]:
        """Build a native filter from a filter tree. ``None`` or ``{}`` -> ``{}``."""
        if not where:
            return {}
        try:
            return self._compile_node(where)
        except MongoAdapterError:
            raise
        except Exception as e:
            raise FilterBuildError(f"Could not build filter: {e}") from e

    def _compile_node(self, node: Any) -> dict[str, Any]:
        if not isinstance(node, Mapping):
            raise FilterBuildError(
                f"Filter node must be a mapping, got {type(node).__name__}"
            )
        fragments: list[dict[str, Any]] = []
        for key, value in node.items():
            key = str(key)
            if key in (FilterOperator.AND.value, FilterOperator.OR.value):
                fragment = self._compile_logical(key, value)
            elif key.startswith("$"):
                raise UnsupportedOperatorError(key, key, ["and", "or"])
            else:
                fragment = self._compile_field(key, value)
            if fragment:
                fragments.append(fragment)
        return _merge(fragments)

    def _compile_logical(self, key: str, value: Any) -> dict[str, Any]:
        if not isinstance(value, list):
            raise FilterBuildError(f"'{key}' requires a list of conditions")
        compiled = [self._compile_node(c) for c in value]
        if key == FilterOperator.AND.value:
            compiled = [c for c in compiled if c]
            if not compiled:
                return {}
            return {"$and": compiled}
        if not compiled:
            return dict(_MATCH_NOTHING)
        if any(not c for c in compiled):
            # One branch is unrestricted, so the disjunction is too
            return {}
        return {"$or": compiled}

    def _compile_field(self, field: str, value: Any) -> dict[str, Any]:
        native = self._schema.native_name(field)
        if isinstance(value, Mapping):
            if not value:
                raise FilterBuildError(f"Empty modifier set for field '{field}'")
            parts = [
                self._compile_operator(field, op, val) for op, val in value.items()
            ]
        elif isinstance(value, (list, tuple)):
            parts = [self._compile_operator(field, FilterOperator.IN, value)]
        else:
            parts = [self._compile_operator(field, FilterOperator.EQ, value)]

        merged: dict[str, Any] = {}
        for part in parts:
            if any(k in merged for k in part):
                return {"$and": [{native: p} for p in parts]}
            merged.update(part)
        return {native: merged}

    def _compile_operator(self, field: str, op_name: Any, val: Any) -> dict[str, Any]:
        op = parse_operator(str(op_name))
        if op is None or op in LOGICAL_OPERATORS:
            raise UnsupportedOperatorError(field, str(op_name), valid_operator_names())

        if self._is_identifier(field):
            if op in PATTERN_OPERATORS:
                raise FilterBuildError(
                    f"Pattern operator {op.value} is not supported on identifier "
                    f"field '{field}'"
                )
            val = coerce_identifier(val, field)

        fragment = compile_standard(op, val)
        if fragment is None:
            fragment = compile_set(op, val)
        if fragment is None:
            fragment = compile_string(
                op, val, case_sensitive=self._config.case_sensitive
            )
        if fragment is None:
            raise UnsupportedOperatorError(field, op.value, valid_operator_names())
        return fragment

    def _is_identifier(self, field: str) -> bool:
        if field == NATIVE_ID_FIELD:
            descriptor = self._schema.pk_field
        else:
            descriptor = self._schema.get(field)
        return descriptor is not None and descriptor.type is FieldType.OBJECTID

    def build_sort(
        self, sort: Iterable[tuple[str, Any]] | None
    ) -> list[tuple[str, int]]:
        """Build MongoDB sort tuples from ``[(field, "asc"|"desc")]`` pairs.

        Other sort spellings are normalized by :class:`QueryDescriptor`.
        Directions are case-insensitive. A field listed twice keeps its last
        direction and position.
        """
        if not sort:
            return []
        result: dict[str, int] = {}
        for item in sort:
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise FilterBuildError(
                    f"Sort entry must be a (field, direction) pair: {item!r}"
                )
            field, direction = item
            key = str(direction).lower()
            if key not in _DIRECTIONS:
                raise FilterBuildError(
                    f"Invalid sort direction {direction!r} for field '{field}'"
                )
            native = self._schema.native_name(field)
            result.pop(native, None)
            result[native] = _DIRECTIONS[key]
        return list(result.items())

    def build_project(self, fields: Any) -> dict[str, int] | None:
        """Build an inclusion projection: { field: 1, ... }. None means all fields."""
        if not fields:
            return None
        return {self._schema.native_name(f): 1 for f in fields}
