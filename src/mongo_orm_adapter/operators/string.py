"""Pattern operators -> $regex, $options (case-insensitive unless configured)."""

from __future__ import annotations

import re
from typing import Any

from ..exceptions import FilterBuildError
from .base import FilterOperator


def _regex_escape(s: str) -> str:
    """Escape special regex characters in a literal string."""
    return re.escape(s)


def _like_to_regex(val: str) -> str:
    # SQL LIKE: % = any run, _ = single char; escaped wildcards stay literal
    parts = re.split(r"(\\%|\\_|%|_)", val)
    out: list[str] = []
    for part in parts:
        if part == "%":
            out.append(".*")
        elif part == "_":
            out.append(".")
        elif part in ("\\%", "\\_"):
            out.append(_regex_escape(part[1]))
        elif part:
            out.append(_regex_escape(part))
    return "^" + "".join(out) + "$"


def compile_string(
    op: FilterOperator, val: Any, *, case_sensitive: bool = False
) -> dict[str, Any] | None:
    """Compile pattern operators to a MongoDB $regex fragment.

    Returns None if not a pattern op.
    """
    if op == FilterOperator.LIKE:
        pattern_fn = _like_to_regex
    elif op == FilterOperator.CONTAINS:
        pattern_fn = _regex_escape
    elif op == FilterOperator.STARTSWITH:
        pattern_fn = lambda v: "^" + _regex_escape(v)  # noqa: E731
    elif op == FilterOperator.ENDSWITH:
        pattern_fn = lambda v: _regex_escape(v) + "$"  # noqa: E731
    else:
        return None
    if not isinstance(val, str):
        raise FilterBuildError(f"Pattern operator {op.value} requires a string value")
    fragment: dict[str, Any] = {"$regex": pattern_fn(val)}
    if not case_sensitive:
        fragment["$options"] = "i"
    return fragment
