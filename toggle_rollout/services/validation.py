"""
Toggle Definition Validation.

Structural checks run before a toggle is stored or registered. All
problems are collected, so a configuration editor can show them together.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from toggle_rollout.schemas.evaluation import ValidationResult
from toggle_rollout.schemas.toggle import FeatureToggle, RolloutStrategy

AUDIENCE_STRATEGIES = (RolloutStrategy.USER_GROUP, RolloutStrategy.ATTRIBUTES)


def validate_feature_toggle(toggle: FeatureToggle | Mapping[str, Any]) -> ValidationResult:
    """
    Validate a toggle definition.

    Accepts a FeatureToggle or a raw mapping (camelCase or snake_case keys).
    When a mapping cannot be parsed, each field error is reported first,
    followed by the structural errors found in the raw data.

    Args:
        toggle: The definition to check.

    Returns:
        ValidationResult with is_valid and every error found.

    Example:
        >>> validate_feature_toggle({"category": "ui", "type": "boolean"}).errors
        ['Feature key is required', 'Feature name is required']
    """
    if isinstance(toggle, FeatureToggle):
        errors = _structural_errors(lambda name: getattr(toggle, name))
        return ValidationResult(is_valid=not errors, errors=errors)

    try:
        parsed = FeatureToggle.model_validate(toggle)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raw = toggle if isinstance(toggle, Mapping) else {}
        errors.extend(_structural_errors(lambda name: _raw_field(raw, name)))
        return ValidationResult(is_valid=False, errors=errors)

    return validate_feature_toggle(parsed)


def _raw_field(data: Mapping[str, Any], name: str) -> Any:
    if name in data:
        return data[name]
    return data.get(to_camel(name))


def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return not value


def _structural_errors(field) -> list[str]:
    errors: list[str] = []

    if _is_blank(field("key")):
        errors.append("Feature key is required")

    if _is_blank(field("name")):
        errors.append("Feature name is required")

    if not field("category"):
        errors.append("Feature category is required")

    if not field("type"):
        errors.append("Feature type is required")

    strategy = field("rollout_strategy") or RolloutStrategy.ALL.value

    if strategy == RolloutStrategy.PERCENTAGE:
        # Non-integer percentages already surface as parse errors
        percentage = field("rollout_percentage") or 0
        if isinstance(percentage, int) and not isinstance(percentage, bool):
            if percentage < 0 or percentage > 100:
                errors.append("Rollout percentage must be between 0 and 100")

    if strategy in AUDIENCE_STRATEGIES and field("target_audience") is None:
        errors.append(
            "Target audience is required for user group or attributes rollout strategy"
        )

    return errors
