"""
Pydantic Schemas for evaluation analytics.
"""

from datetime import datetime

from pydantic import Field

from toggle_rollout.schemas.toggle import ToggleSchema


class EvaluationRecord(ToggleSchema):
    """
    One past evaluation, as recorded by the caller.

    Example:
        {
            "toggleKey": "new-checkout",
            "enabled": true,
            "variant": "enabled",
            "segment": "pro",
            "timestamp": "2024-01-15T10:30:00Z"
        }
    """

    toggle_key: str
    enabled: bool
    variant: str | None = None
    segment: str | None = Field(
        default=None,
        description="Optional user segment label for segment distribution",
    )
    timestamp: datetime


class ToggleEvaluationCounts(ToggleSchema):
    """Enabled/disabled counts for a single toggle."""

    enabled: int = 0
    disabled: int = 0


class FeatureToggleAnalytics(ToggleSchema):
    """Aggregated counts over an evaluation history."""

    total_evaluations: int
    enabled_evaluations: int
    disabled_evaluations: int
    variant_distribution: dict[str, int] = Field(default_factory=dict)
    user_segment_distribution: dict[str, int] = Field(default_factory=dict)
    toggle_breakdown: dict[str, ToggleEvaluationCounts] = Field(default_factory=dict)
    error_rate: float
