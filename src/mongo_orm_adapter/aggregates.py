"""Grouping queries -> two-stage ``$match`` + ``$group`` pipelines."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import FilterBuildError
from .identifiers import to_external
from .schema import NATIVE_ID_FIELD

if TYPE_CHECKING:
    from .schema import CollectionSchema

COUNT_FIELD = "count"

_ACCUMULATORS: dict[str, str] = {
    "sum": "$sum",
    "average": "$avg",
    "min": "$min",
    "max": "$max",
}
_LEGACY_KEYS = frozenset({"groupBy", *_ACCUMULATORS})


def _as_fields(value: Any, *, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise FilterBuildError(f"Grouping '{key}' must be a field name or list of names")


@dataclass(frozen=True)
class GroupSpec:
    """
    Grouping request: fields to group by plus optional accumulators.

    Every group also carries a ``count`` of its member documents.
    """

    group_by: tuple[str, ...] = ()
    sum: tuple[str, ...] = ()
    average: tuple[str, ...] = ()
    min: tuple[str, ...] = ()
    max: tuple[str, ...] = ()

    @classmethod
    def from_value(cls, value: Any) -> GroupSpec:
        """Accept ``{field: 1}``, a list of fields, or a legacy
        ``{"groupBy": [...], "sum": [...], ...}`` mapping."""
        if isinstance(value, GroupSpec):
            return value
        if isinstance(value, str) or (
            isinstance(value, (list, tuple)) and not isinstance(value, Mapping)
        ):
            return cls(group_by=_as_fields(value, key="groupBy"))
        if isinstance(value, Mapping):
            if any(k in _LEGACY_KEYS for k in value):
                unknown = [k for k in value if k not in _LEGACY_KEYS]
                if unknown:
                    raise FilterBuildError(
                        f"Unknown grouping keys: {', '.join(map(str, unknown))}"
                    )
                return cls(
                    group_by=_as_fields(value.get("groupBy"), key="groupBy"),
                    **{
                        name: _as_fields(value.get(name), key=name)
                        for name in _ACCUMULATORS
                    },
                )
            return cls(group_by=tuple(str(k) for k, v in value.items() if v))
        raise FilterBuildError(f"Unsupported grouping spec: {value!r}")


def _group_key(field: str) -> str:
    # $group _id sub-fields may not contain dots
    return field.replace(".", "_")


def _output_keys(group: GroupSpec) -> list[tuple[str, str]]:
    """``(output key, source field)`` for every group key and accumulator."""
    keys = [(_group_key(f), f) for f in group.group_by]
    for name in _ACCUMULATORS:
        keys.extend((_group_key(f), f) for f in getattr(group, name))
    return keys


def _check_collisions(group: GroupSpec) -> None:
    seen: dict[str, str] = {COUNT_FIELD: COUNT_FIELD}
    for key, source in _output_keys(group):
        if key in seen:
            raise FilterBuildError(
                f"Grouping output '{key}' is produced by both '{seen[key]}' "
                f"and '{source}'"
            )
        seen[key] = source


def build_pipeline(
    match: Mapping[str, Any] | None,
    group: GroupSpec,
    schema: CollectionSchema | None = None,
) -> list[dict[str, Any]]:
    """Build ``[{$match}, {$group}]`` for a grouping query.

    Group keys and accumulators share the flat result row, so each field may
    appear once across them and none may be named ``count``.
    """
    _check_collisions(group)

    def path(field: str) -> str:
        native = schema.native_name(field) if schema is not None else field
        return f"${native}"

    group_id: dict[str, Any] | None = (
        {_group_key(f): path(f) for f in group.group_by} if group.group_by else None
    )
    stage: dict[str, Any] = {NATIVE_ID_FIELD: group_id, COUNT_FIELD: {"$sum": 1}}
    for name, operator in _ACCUMULATORS.items():
        for field in getattr(group, name):
            stage[_group_key(field)] = {operator: path(field)}
    return [{"$match": dict(match or {})}, {"$group": stage}]


def flatten_groups(
    results: Iterable[Mapping[str, Any]],
    group: GroupSpec | None = None,
    schema: CollectionSchema | None = None,
) -> list[dict[str, Any]]:
    """Lift the synthetic ``_id`` grouping key fields to the top level.

    With a schema, outputs computed from the primary key or an objectid field
    are returned in their external string form.
    """
    identifier_keys: set[str] = set()
    if group is not None and schema is not None:
        sources = {f.name for f in schema.identifier_fields()} | {schema.primary_key}
        identifier_keys = {k for k, source in _output_keys(group) if source in sources}

    flattened: list[dict[str, Any]] = []
    for result in results:
        row = dict(result)
        key = row.pop(NATIVE_ID_FIELD, None)
        if isinstance(key, Mapping):
            row = {**key, **row}
        for name in identifier_keys & row.keys():
            row[name] = to_external(row[name])
        flattened.append(row)
    return flattened
