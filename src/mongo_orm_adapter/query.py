"""
Stage-three query descriptor.

``QueryDescriptor`` is the storage-agnostic request handed to the adapter:
the filter tree defines *what* to match, the remaining fields define *how*
results are shaped. It is immutable; one descriptor drives exactly one
logical CRUD call.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .aggregates import GroupSpec
from .exceptions import FilterBuildError


def _parse_sort(raw: Any) -> tuple[tuple[str, Any], ...]:
    """Normalize sort entries to ``(field, direction)`` pairs.

    Accepts ``[(field, dir)]``, ``[{field: dir}]``, ``["-field", "field"]`` or
    a single ``{field: dir, ...}`` mapping.
    """
    if not raw:
        return ()
    if isinstance(raw, Mapping):
        return tuple((str(k), v) for k, v in raw.items())
    if isinstance(raw, str):
        raw = [raw]
    pairs: list[tuple[str, Any]] = []
    for item in raw:
        if isinstance(item, str):
            if item.startswith("-"):
                pairs.append((item[1:], "desc"))
            else:
                pairs.append((item, "asc"))
        elif isinstance(item, Mapping):
            pairs.extend((str(k), v) for k, v in item.items())
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            pairs.append((str(item[0]), item[1]))
        else:
            raise FilterBuildError(f"Invalid sort entry: {item!r}")
    return tuple(pairs)


def _parse_count(raw: Any, *, name: str) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise FilterBuildError(f"{name} must be a non-negative integer, got {raw!r}")
    return raw


@dataclass(frozen=True)
class QueryDescriptor:
    """
    Immutable stage-three query.

    Attributes:
        target: Identity of the collection the query runs against.
        where: Filter tree; ``None`` means no restriction.
        sort: Ordered ``(field, direction)`` pairs.
        limit: Maximum number of records; ``None`` or ``0`` is unrestricted.
        skip: Number of records to skip; ``None`` or ``0`` skips nothing.
        select: Fields to return; empty means all fields.
        aggregate_group: Optional grouping request.
    """

    target: str
    where: Mapping[str, Any] | None = None
    sort: tuple[tuple[str, Any], ...] = ()
    limit: int | None = None
    skip: int | None = None
    select: tuple[str, ...] = field(default_factory=tuple)
    aggregate_group: GroupSpec | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QueryDescriptor:
        """Build a descriptor from a stage-three mapping.

        Both the flat form (``target``, ``where``, ``sort``, ...) and the ORM's
        nested form (``using`` plus a ``criteria`` mapping) are accepted.
        """
        target = data.get("target", data.get("using"))
        if not target or not isinstance(target, str):
            raise FilterBuildError("Query descriptor requires a target collection")
        criteria = data.get("criteria")
        source: Mapping[str, Any] = criteria if isinstance(criteria, Mapping) else data

        group = source.get("aggregateGroup", source.get("aggregate_group"))
        if group is None:
            group = data.get("aggregateGroup", data.get("aggregate_group"))

        where = source.get("where")
        if where is not None and not isinstance(where, Mapping):
            raise FilterBuildError(
                f"where must be a mapping, got {type(where).__name__}"
            )
        select = source.get("select") or ()
        if isinstance(select, str):
            select = (select,)

        return cls(
            target=target,
            where=where,
            sort=_parse_sort(source.get("sort")),
            limit=_parse_count(source.get("limit"), name="limit"),
            skip=_parse_count(source.get("skip"), name="skip"),
            select=tuple(select),
            aggregate_group=GroupSpec.from_value(group) if group else None,
        )

    @property
    def is_aggregate(self) -> bool:
        return self.aggregate_group is not None
