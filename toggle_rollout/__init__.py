"""
toggle-rollout: feature toggle rollout evaluation.

Public entry points:
    - FeatureToggleEvaluator.evaluate / batch_evaluate
    - validate_feature_toggle
    - get_analytics_summary
    - FeatureToggleRegistry for in-memory toggle sources
"""

from toggle_rollout.schemas.analytics import EvaluationRecord, FeatureToggleAnalytics
from toggle_rollout.schemas.evaluation import (
    EvaluationReason,
    FeatureToggleEvaluation,
    ValidationResult,
)
from toggle_rollout.schemas.toggle import (
    AudienceCriterion,
    FeatureToggle,
    TargetAudience,
    ToggleDependency,
)
from toggle_rollout.services.analytics import get_analytics_summary
from toggle_rollout.services.evaluator import (
    FeatureToggleEvaluator,
    batch_evaluate_feature_toggles,
    evaluate_feature_toggle,
    get_evaluator,
)
from toggle_rollout.services.registry import FeatureToggleRegistry
from toggle_rollout.services.validation import validate_feature_toggle

__version__ = "0.1.0"

__all__ = [
    "AudienceCriterion",
    "EvaluationReason",
    "EvaluationRecord",
    "FeatureToggle",
    "FeatureToggleAnalytics",
    "FeatureToggleEvaluation",
    "FeatureToggleEvaluator",
    "FeatureToggleRegistry",
    "TargetAudience",
    "ToggleDependency",
    "ValidationResult",
    "batch_evaluate_feature_toggles",
    "evaluate_feature_toggle",
    "get_analytics_summary",
    "get_evaluator",
    "validate_feature_toggle",
]
