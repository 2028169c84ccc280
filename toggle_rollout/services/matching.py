"""
Criterion Matching.

Reads user context fields by dot-path and applies a single audience
criterion to them. Both functions are total: malformed or missing context
values make a criterion fail, they never raise.

Operators:
    equals / not_equals     strict (type-aware) equality
    greater_than / less_than numeric comparison after coercion
    contains / not_contains  substring for strings, subset for lists
"""

import math
from collections.abc import Mapping, Sequence
from typing import Any

from toggle_rollout.schemas.toggle import CriterionOperator


class _Missing:
    """Marker for a context path that does not exist, as opposed to an explicit null."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def get_nested_value(obj: Any, path: str) -> Any:
    """
    Look up a value by dot-path, e.g. ``"user.plan"``.

    Mappings are walked by key and lists by numeric index. Returns MISSING as
    soon as a segment is missing or the current value cannot be descended;
    an explicit None stored at the path is returned as None.

    Example:
        >>> get_nested_value({"user": {"plan": "pro"}}, "user.plan")
        'pro'
        >>> get_nested_value({}, "user.plan") is MISSING
        True
    """
    current = obj
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif _is_array(current) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def evaluate_criterion(user_value: Any, operator: str, criterion_value: Any) -> bool:
    """Apply one operator. Unknown operators fail closed."""
    if operator == CriterionOperator.EQUALS:
        return strict_equals(user_value, criterion_value)

    if operator == CriterionOperator.NOT_EQUALS:
        return not strict_equals(user_value, criterion_value)

    if operator == CriterionOperator.GREATER_THAN:
        return to_number(user_value) > to_number(criterion_value)

    if operator == CriterionOperator.LESS_THAN:
        return to_number(user_value) < to_number(criterion_value)

    if operator == CriterionOperator.CONTAINS:
        if isinstance(user_value, str) and isinstance(criterion_value, str):
            return criterion_value in user_value
        if _is_array(user_value) and _is_array(criterion_value):
            return _contains_all(user_value, criterion_value)
        return False

    if operator == CriterionOperator.NOT_CONTAINS:
        if isinstance(user_value, str) and isinstance(criterion_value, str):
            return criterion_value not in user_value
        if _is_array(user_value) and _is_array(criterion_value):
            return not _contains_all(user_value, criterion_value)
        return True

    return False


def strict_equals(left: Any, right: Any) -> bool:
    """
    Equality without bool/number coercion.

    ``True == 1`` holds in Python; a stored criterion of ``true`` must not
    match a user value of ``1``.
    """
    if left is MISSING or right is MISSING:
        return False
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def to_number(value: Any) -> float:
    """
    Coerce a context or criterion value to a float.

    Missing values and anything non-numeric become NaN, which compares
    false against everything. None and blank strings count as 0. Integers
    too large for a float saturate to infinity.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _contains_all(haystack: Sequence[Any], needles: Sequence[Any]) -> bool:
    return all(
        any(strict_equals(item, needle) for item in haystack)
        for needle in needles
    )
