"""Filter operators understood by the criteria normalizer."""

from __future__ import annotations

from enum import Enum


class FilterOperator(str, Enum):
    """Supported filter modifiers."""

    # Standard comparison
    EQ = "="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="

    # Set membership
    IN = "in"
    NOT_IN = "nin"

    # Pattern matching
    LIKE = "like"
    CONTAINS = "contains"
    STARTSWITH = "startsWith"
    ENDSWITH = "endsWith"

    # Logical combinators
    AND = "and"
    OR = "or"


# Legacy criteria spellings
_ALIASES: dict[str, FilterOperator] = {
    "equals": FilterOperator.EQ,
    "not": FilterOperator.NE,
    "lessThan": FilterOperator.LT,
    "lessThanOrEqual": FilterOperator.LE,
    "greaterThan": FilterOperator.GT,
    "greaterThanOrEqual": FilterOperator.GE,
    "notIn": FilterOperator.NOT_IN,
}

LOGICAL_OPERATORS = frozenset({FilterOperator.AND, FilterOperator.OR})

PATTERN_OPERATORS = frozenset(
    {
        FilterOperator.LIKE,
        FilterOperator.CONTAINS,
        FilterOperator.STARTSWITH,
        FilterOperator.ENDSWITH,
    }
)


def parse_operator(op: str) -> FilterOperator | None:
    """Resolve a modifier name (or alias); ``None`` when unknown."""
    if isinstance(op, FilterOperator):
        return op
    try:
        return FilterOperator(op)
    except ValueError:
        return _ALIASES.get(op)


def valid_operator_names() -> list[str]:
    """Field-level modifier names, for error suggestions."""
    names = [o.value for o in FilterOperator if o not in LOGICAL_OPERATORS]
    return names + list(_ALIASES)
