"""
Pydantic Schemas for Toggle Evaluation and Validation results.

Results are created fresh on every call and frozen, so they can be shared
freely between callers.
"""

from enum import Enum

from pydantic import Field

from toggle_rollout.schemas.toggle import AudienceCriterion, ToggleSchema


class EvaluationReason(str, Enum):
    """Machine-readable reasons for toggle evaluation results."""

    # Toggle is switched off (is_active=False)
    TOGGLE_INACTIVE = "TOGGLE_INACTIVE"

    # Toggle is configured for another environment
    ENVIRONMENT_MISMATCH = "ENVIRONMENT_MISMATCH"

    # A dependency is not in its required state
    DEPENDENCY_NOT_SATISFIED = "DEPENDENCY_NOT_SATISFIED"

    # A dependency chain is cyclic or too deep
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"

    # "all" strategy
    ALL_USERS = "ALL_USERS"

    # "percentage" strategy
    ROLLOUT_FULL = "ROLLOUT_FULL"
    ROLLOUT_ZERO = "ROLLOUT_ZERO"
    ROLLOUT_MATCH = "ROLLOUT_MATCH"
    ROLLOUT_NO_MATCH = "ROLLOUT_NO_MATCH"

    # "user_group" / "attributes" strategies
    AUDIENCE_MISSING = "AUDIENCE_MISSING"
    AUDIENCE_MATCH = "AUDIENCE_MATCH"
    AUDIENCE_NO_MATCH = "AUDIENCE_NO_MATCH"

    UNKNOWN_STRATEGY = "UNKNOWN_STRATEGY"

    # Unexpected failure, toggle reported disabled
    EVALUATION_ERROR = "EVALUATION_ERROR"


class FeatureToggleEvaluation(ToggleSchema):
    """
    Result of evaluating one toggle for one user context.

    Example:
        {
            "isEnabled": true,
            "variant": "enabled",
            "reason": "Percentage strategy - user in enabled segment (17%)",
            "reasonCode": "ROLLOUT_MATCH"
        }
    """

    is_enabled: bool
    variant: str | None = None
    reason: str | None = None
    reason_code: EvaluationReason | None = None
    matched_criteria: list[AudienceCriterion] | None = None


class ValidationResult(ToggleSchema):
    """All structural problems found in a toggle definition."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
