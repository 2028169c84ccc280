"""
Test configuration and fixtures.
"""

from typing import Any, Callable

import pytest

from toggle_rollout.schemas.toggle import FeatureToggle
from toggle_rollout.services.evaluator import FeatureToggleEvaluator


@pytest.fixture
def evaluator() -> FeatureToggleEvaluator:
    """Evaluator pinned to production, independent of APP_ENV."""
    return FeatureToggleEvaluator(environment="production")


@pytest.fixture
def make_toggle() -> Callable[..., FeatureToggle]:
    """Build a valid production toggle, overriding any field."""

    def _make(**overrides: Any) -> FeatureToggle:
        data: dict[str, Any] = {
            "key": "new-checkout",
            "name": "New Checkout",
            "category": "payment",
            "type": "boolean",
            "is_active": True,
            "environment": "production",
            "rollout_strategy": "all",
            "default_value": True,
        }
        data.update(overrides)
        return FeatureToggle(**data)

    return _make
