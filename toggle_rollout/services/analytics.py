"""
Evaluation Analytics.

Pure aggregation over an evaluation history supplied by the caller. Nothing
is evaluated here.
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from toggle_rollout.core.config import settings
from toggle_rollout.schemas.analytics import (
    EvaluationRecord,
    FeatureToggleAnalytics,
    ToggleEvaluationCounts,
)
from toggle_rollout.schemas.toggle import FeatureToggle


def get_analytics_summary(
    toggles: Iterable[FeatureToggle],
    evaluation_history: Iterable[EvaluationRecord | Mapping[str, Any]] | None = None,
    error_count: int | None = None,
) -> FeatureToggleAnalytics:
    """
    Summarize an evaluation history.

    Args:
        toggles: Toggles to break the counts down by. Toggles without any
            history still appear, with zero counts.
        evaluation_history: Flat list of past evaluation records.
        error_count: Failed evaluations reported by an error tracker. When
            omitted the configured ANALYTICS_DEFAULT_ERROR_RATE is reported.

    Returns:
        FeatureToggleAnalytics with totals and distributions.
    """
    records = [
        record if isinstance(record, EvaluationRecord) else EvaluationRecord.model_validate(record)
        for record in evaluation_history or []
    ]

    total = len(records)
    enabled = sum(1 for record in records if record.enabled)

    variants = Counter(record.variant for record in records if record.variant)
    segments = Counter(record.segment for record in records if record.segment)

    per_toggle = Counter((record.toggle_key, record.enabled) for record in records)

    breakdown: dict[str, ToggleEvaluationCounts] = {}
    for toggle in toggles:
        if toggle.key is None:
            continue
        breakdown[toggle.key] = ToggleEvaluationCounts(
            enabled=per_toggle[(toggle.key, True)],
            disabled=per_toggle[(toggle.key, False)],
        )

    if error_count is not None and total > 0:
        error_rate = min(error_count / total, 1.0)
    else:
        error_rate = settings.ANALYTICS_DEFAULT_ERROR_RATE

    return FeatureToggleAnalytics(
        total_evaluations=total,
        enabled_evaluations=enabled,
        disabled_evaluations=total - enabled,
        variant_distribution=dict(variants),
        user_segment_distribution=dict(segments),
        toggle_breakdown=breakdown,
        error_rate=error_rate,
    )
