"""MongoDB operator compilers for filter trees."""

from __future__ import annotations

from .base import (
    LOGICAL_OPERATORS,
    PATTERN_OPERATORS,
    FilterOperator,
    parse_operator,
    valid_operator_names,
)
from .set import compile_set
from .standard import compile_standard
from .string import compile_string

__all__ = [
    "FilterOperator",
    "LOGICAL_OPERATORS",
    "PATTERN_OPERATORS",
    "parse_operator",
    "valid_operator_names",
    "compile_standard",
    "compile_set",
    "compile_string",
]
