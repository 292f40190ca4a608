"""Loose comparisons used when deciding checked and selected state.

Form values arrive as strings while bound models carry ints, bools and
decimals, so ``"1"`` has to match ``True`` and ``1``.
"""

from __future__ import annotations

import re
from numbers import Number
from typing import Any

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def stringify(value: Any) -> str:
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    return str(value)


def is_truthy(value: Any) -> bool:
    """``bool()`` except that the string ``"0"`` is false, as submitted checkboxes expect."""
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def _as_number(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, Number):
        return value
    if isinstance(value, str) and _NUMERIC_RE.match(value):
        return float(value)
    return None


def loose_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return is_truthy(left) == is_truthy(right)

    if left is None or right is None:
        other = right if left is None else left
        if isinstance(other, str):
            return other == ""
        return not is_truthy(other)

    left_number, right_number = _as_number(left), _as_number(right)
    if left_number is not None and right_number is not None:
        return left_number == right_number

    if isinstance(left, (list, tuple)) or isinstance(right, (list, tuple)):
        return left == right

    return str(left) == str(right)


def loose_contains(haystack, needle: Any) -> bool:
    return any(loose_equals(needle, item) for item in haystack)
