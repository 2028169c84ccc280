"""
Pydantic Schemas for Feature Toggles.

Toggle definitions are supplied by an external store, usually as JSON
produced by a JavaScript admin UI. Attributes are snake_case in Python;
the camelCase keys of the stored documents are accepted as aliases.

Key Design Decisions:
    - The toggle model is lenient: blank or missing descriptive fields are
      accepted so validate_feature_toggle() can report every problem at once
    - Rollout strategy and operators are plain strings, so an unknown value
      evaluates to disabled instead of failing to parse
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RolloutStrategy(str, Enum):
    """Algorithms for deciding which users see a feature."""

    ALL = "all"
    PERCENTAGE = "percentage"
    USER_GROUP = "user_group"
    ATTRIBUTES = "attributes"


class ToggleType(str, Enum):
    """How the variant of an enabled toggle is derived."""

    BOOLEAN = "boolean"
    VARIANT = "variant"


class AudienceType(str, Enum):
    """Target audience kinds. user_group needs all criteria, attributes any."""

    USER_GROUP = "user_group"
    ATTRIBUTES = "attributes"


class CriterionOperator(str, Enum):
    """Operators understood by criterion matching."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


class DependencyCondition(str, Enum):
    """Required state of a dependency toggle."""

    ENABLED = "enabled"
    DISABLED = "disabled"


class ToggleSchema(BaseModel):
    """Base schema accepting both snake_case names and camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Audience Schemas
# =============================================================================

class AudienceCriterion(ToggleSchema):
    """
    A single (field, operator, value) test against the user context.

    Example:
        {"field": "user.plan", "operator": "equals", "value": "pro"}
    """

    field: str = Field(description="Dot-path into the user context")
    operator: str = Field(
        description="Comparison operator",
        examples=["equals", "contains", "greater_than"],
    )
    value: Any = Field(default=None, description="Value compared against")


class TargetAudience(ToggleSchema):
    """Rule set used by the user_group and attributes strategies."""

    type: str = Field(description="user_group or attributes")
    criteria: list[AudienceCriterion] = Field(default_factory=list)


class ToggleDependency(ToggleSchema):
    """Another toggle that must be in a given state for this one to apply."""

    feature_key: str = Field(description="Key of the toggle depended on")
    condition: str = Field(
        default=DependencyCondition.ENABLED.value,
        description="enabled or disabled",
    )


# =============================================================================
# Toggle Schema
# =============================================================================

class FeatureToggle(ToggleSchema):
    """
    A feature toggle definition.

    Example:
        {
            "key": "new-checkout",
            "name": "New Checkout",
            "category": "payment",
            "type": "boolean",
            "isActive": true,
            "environment": "production",
            "rolloutStrategy": "percentage",
            "rolloutPercentage": 25,
            "defaultValue": true
        }
    """

    key: str | None = Field(default=None, description="Unique stable identifier")
    name: str | None = Field(default=None, description="Human-readable name")
    description: str | None = Field(default=None)
    category: str | None = Field(default=None, examples=["ui", "payment", "beta"])
    type: str | None = Field(default=None, description="boolean or variant")

    is_active: bool = Field(
        default=True,
        description="Master switch - if false, the toggle is always disabled",
    )
    environment: str | None = Field(
        default=None,
        description="Environment this toggle applies to; unset never matches",
    )

    rollout_strategy: str = Field(
        default=RolloutStrategy.ALL.value,
        description="all, percentage, user_group or attributes",
    )
    rollout_percentage: int | None = Field(
        default=None,
        description="Percentage of users enabled by the percentage strategy",
    )
    target_audience: TargetAudience | None = Field(default=None)
    dependencies: list[ToggleDependency] = Field(default_factory=list)

    default_value: bool | str | None = Field(
        default=None,
        description="Variant label, or truthiness for boolean toggles",
    )

    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
