"""Standard comparison operators -> $eq, $ne, $gt, $gte, $lt, $lte."""

from __future__ import annotations

from typing import Any

from .base import FilterOperator

_MONGO_OP_MAP: dict[FilterOperator, str] = {
    FilterOperator.EQ: "$eq",
    FilterOperator.NE: "$ne",
    FilterOperator.GT: "$gt",
    FilterOperator.GE: "$gte",
    FilterOperator.LT: "$lt",
    FilterOperator.LE: "$lte",
}


def compile_standard(op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile a comparison modifier to a field-level query fragment.

    Returns ``None`` when the operator is not a comparison.
    """
    mongo_op = _MONGO_OP_MAP.get(op)
    if mongo_op is None:
        return None
    return {mongo_op: val}
