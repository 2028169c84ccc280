"""
Toggle Registry.

In-memory toggle source for applications that load their toggle
definitions once (from a store, a file or an API) and evaluate many times.
The registry doubles as the dependency-state source: dependencies are
resolved by evaluating the registered definition of the dependency.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from toggle_rollout.core.exceptions import ConflictError, NotFoundError, ValidationError
from toggle_rollout.schemas.evaluation import FeatureToggleEvaluation
from toggle_rollout.schemas.toggle import FeatureToggle
from toggle_rollout.services.evaluator import FeatureToggleEvaluator, UserContext
from toggle_rollout.services.validation import validate_feature_toggle

logger = logging.getLogger(__name__)


class FeatureToggleRegistry:
    """
    Registry of validated toggle definitions keyed by toggle key.

    Handles:
        - Validation before registration
        - Duplicate key detection
        - Lookups by key, category and active state
        - Evaluation against the registered definitions

    Usage:
        registry = FeatureToggleRegistry(environment="production")
        registry.register_many(toggles_from_store)
        if registry.is_feature_enabled("new-checkout", {"userId": "user-123"}):
            ...
    """

    def __init__(
        self,
        toggles: Iterable[FeatureToggle | Mapping[str, Any]] | None = None,
        environment: str | None = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            toggles: Optional initial definitions.
            environment: Environment for evaluate_* helpers. Defaults to APP_ENV.
        """
        self._toggles: dict[str, FeatureToggle] = {}
        self._evaluator = FeatureToggleEvaluator(environment=environment, toggle_source=self)

        if toggles is not None:
            self.register_many(toggles)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(
        self,
        toggle: FeatureToggle | Mapping[str, Any],
        replace: bool = False,
    ) -> FeatureToggle:
        """
        Validate and register a toggle.

        Args:
            toggle: Toggle definition or raw mapping.
            replace: Overwrite an existing definition with the same key.

        Returns:
            The registered toggle.

        Raises:
            ValidationError: If the definition is invalid.
            ConflictError: If the key is taken and replace is False.
        """
        result = validate_feature_toggle(toggle)
        if not result.is_valid:
            raise ValidationError(
                message="Invalid feature toggle definition",
                details={"errors": result.errors},
            )

        if not isinstance(toggle, FeatureToggle):
            toggle = FeatureToggle.model_validate(toggle)

        if toggle.key in self._toggles and not replace:
            raise ConflictError(
                resource="Feature toggle",
                message=f"Feature toggle with key '{toggle.key}' already exists",
                details={"key": toggle.key},
            )

        self._toggles[toggle.key] = toggle
        logger.info(f"Registered feature toggle '{toggle.key}'")
        return toggle

    def register_many(
        self,
        toggles: Iterable[FeatureToggle | Mapping[str, Any]],
        replace: bool = False,
    ) -> list[FeatureToggle]:
        """Register several toggles, stopping at the first invalid one."""
        return [self.register(toggle, replace=replace) for toggle in toggles]

    def unregister(self, key: str) -> FeatureToggle:
        """
        Remove a toggle.

        Raises:
            NotFoundError: If no toggle has this key.
        """
        toggle = self.get_or_raise(key)
        del self._toggles[key]
        logger.info(f"Unregistered feature toggle '{key}'")
        return toggle

    # =========================================================================
    # Lookups
    # =========================================================================

    def get(self, key: str) -> FeatureToggle | None:
        return self._toggles.get(key)

    def get_or_raise(self, key: str) -> FeatureToggle:
        """
        Get a toggle by key.

        Raises:
            NotFoundError: If no toggle has this key.
        """
        toggle = self._toggles.get(key)
        if toggle is None:
            raise NotFoundError(resource="Feature toggle", identifier=key)
        return toggle

    def keys(self) -> list[str]:
        return list(self._toggles)

    def by_category(self, category: str) -> list[FeatureToggle]:
        return [toggle for toggle in self._toggles.values() if toggle.category == category]

    def active_toggles(self) -> list[FeatureToggle]:
        return [toggle for toggle in self._toggles.values() if toggle.is_active]

    def __contains__(self, key: object) -> bool:
        return key in self._toggles

    def __iter__(self) -> Iterator[FeatureToggle]:
        return iter(list(self._toggles.values()))

    def __len__(self) -> int:
        return len(self._toggles)

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluator(self) -> FeatureToggleEvaluator:
        """Evaluator bound to this registry for dependency lookups."""
        return self._evaluator

    def evaluate(
        self,
        key: str,
        user_context: UserContext | None = None,
    ) -> FeatureToggleEvaluation:
        """
        Evaluate a registered toggle.

        Raises:
            NotFoundError: If no toggle has this key.
        """
        return self._evaluator.evaluate(self.get_or_raise(key), user_context)

    def evaluate_all(
        self,
        user_context: UserContext | None = None,
    ) -> dict[str, FeatureToggleEvaluation]:
        """Evaluate every registered toggle for one user."""
        return self._evaluator.batch_evaluate(self._toggles.values(), user_context)

    def is_feature_enabled(self, key: str, user_context: UserContext | None = None) -> bool:
        """Unknown keys are reported as disabled."""
        toggle = self.get(key)
        if toggle is None:
            return False
        return self._evaluator.evaluate(toggle, user_context).is_enabled

    def get_feature_variant(self, key: str, user_context: UserContext | None = None) -> str | None:
        """Variant of an enabled toggle; None for disabled or unknown keys."""
        toggle = self.get(key)
        if toggle is None:
            return None
        return self._evaluator.evaluate(toggle, user_context).variant
