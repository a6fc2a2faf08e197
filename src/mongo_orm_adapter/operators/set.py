"""Set membership operators -> $in, $nin."""

from __future__ import annotations

from typing import Any

from .base import FilterOperator


def compile_set(op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile set operators. Returns None if not a set op.

    Scalars are wrapped into single-element lists.
    """
    if op == FilterOperator.IN:
        return {"$in": list(val) if isinstance(val, (list, tuple)) else [val]}
    if op == FilterOperator.NOT_IN:
        return {"$nin": list(val) if isinstance(val, (list, tuple)) else [val]}
    return None
