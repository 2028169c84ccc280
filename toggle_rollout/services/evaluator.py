"""
Toggle Evaluation Service.

This module contains the core logic for evaluating feature toggles.
Evaluation is a pure function of the toggle, the user context, the current
environment and (for dependencies) the toggle source: nothing is cached
and nothing is written.

Evaluation order (stops at the first failing gate):
    1. is_active must be True
    2. toggle.environment must equal the evaluator's environment
    3. every dependency must be in its required state
    4. the rollout strategy decides

Percentage Rollout:
    hash_value = rolling_hash(f"{toggle_key}-{user_id}")
    bucket = (hash_value % 100) + 1       # 1-100
    enabled = bucket <= rollout_percentage

This ensures:
    - Same user always gets the same result for a toggle
    - Raising the percentage only ever adds users
    - No external state needed for evaluation
"""

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from toggle_rollout.core.config import settings
from toggle_rollout.core.exceptions import DependencyResolutionError
from toggle_rollout.schemas.evaluation import EvaluationReason, FeatureToggleEvaluation
from toggle_rollout.schemas.toggle import (
    AudienceCriterion,
    AudienceType,
    DependencyCondition,
    FeatureToggle,
    RolloutStrategy,
    TargetAudience,
    ToggleType,
)
from toggle_rollout.services.matching import evaluate_criterion, get_nested_value

logger = logging.getLogger(__name__)

UserContext = Mapping[str, Any]


class ToggleSource(Protocol):
    """
    Anything that can look up a toggle definition by key.

    A plain ``dict[str, FeatureToggle]`` qualifies, as does
    FeatureToggleRegistry.
    """

    def get(self, key: str) -> FeatureToggle | None: ...


def _disabled(reason: str, code: EvaluationReason) -> FeatureToggleEvaluation:
    return FeatureToggleEvaluation(is_enabled=False, reason=reason, reason_code=code)


def _format_user_id(user_id: Any) -> str:
    """Render a user id the way the stored JSON would spell it, e.g. 1.0 as "1"."""
    if isinstance(user_id, bool):
        return "true" if user_id else "false"
    if isinstance(user_id, float):
        if math.isnan(user_id):
            return "NaN"
        if math.isinf(user_id):
            return "Infinity" if user_id > 0 else "-Infinity"
        if user_id.is_integer():
            return str(int(user_id))
    return str(user_id)


class FeatureToggleEvaluator:
    """
    Service for evaluating feature toggles.

    The evaluator holds only configuration, never per-call state, so one
    instance can be shared between threads and requests.

    Usage:
        evaluator = FeatureToggleEvaluator(environment="production")
        result = evaluator.evaluate(toggle, {"userId": "user-123"})
        print(f"Toggle is {'ON' if result.is_enabled else 'OFF'}")
    """

    def __init__(
        self,
        environment: str | None = None,
        toggle_source: ToggleSource | None = None,
        max_dependency_depth: int | None = None,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            environment: Current deployment environment. Defaults to APP_ENV.
            toggle_source: Lookup used to resolve dependencies. Without one,
                every dependency counts as not enabled (except in batch
                evaluation, which falls back to the batch itself).
            max_dependency_depth: Longest dependency chain followed.
        """
        self.environment = environment or settings.APP_ENV
        self.toggle_source = toggle_source
        self.max_dependency_depth = max_dependency_depth or settings.MAX_DEPENDENCY_DEPTH

    # =========================================================================
    # Core Hashing Logic
    # =========================================================================

    @staticmethod
    def hash_string(value: str) -> int:
        """
        32-bit rolling multiply-add string hash.

        Computes ``h = h * 31 + ord(ch)`` wrapped to a signed 32-bit integer,
        then returns its absolute value.

        Returns:
            Non-negative integer below 2**31 + 1.
        """
        hash_value = 0
        for char in value:
            hash_value = (hash_value * 31 + ord(char)) & 0xFFFFFFFF
        if hash_value & 0x80000000:
            hash_value -= 0x100000000
        return abs(hash_value)

    @classmethod
    def compute_bucket(cls, toggle_key: str, user_id: str) -> int:
        """
        Compute deterministic bucket for a toggle+user combination.

        Args:
            toggle_key: The toggle's key.
            user_id: Stable user identifier.

        Returns:
            Integer from 1-100 representing the user's bucket.

        Example:
            bucket = FeatureToggleEvaluator.compute_bucket("dark-mode", "user-123")
            # The user sees "dark-mode" whenever rollout_percentage >= bucket
        """
        return (cls.hash_string(f"{toggle_key}-{user_id}") % 100) + 1

    @staticmethod
    def resolve_user_id(user_context: UserContext) -> str:
        """userId, then id, then the literal "anonymous" (falsy values fall through)."""
        user_id = user_context.get("userId") or user_context.get("id") or "anonymous"
        return _format_user_id(user_id)

    @staticmethod
    def get_variant(toggle: FeatureToggle) -> str | None:
        """
        Variant label attached to an enabled toggle.

        Variant toggles return their string default value, boolean toggles
        return "enabled" or "disabled" by truthiness of the default value.
        """
        if toggle.type == ToggleType.VARIANT and isinstance(toggle.default_value, str):
            return toggle.default_value

        if toggle.type == ToggleType.BOOLEAN:
            return "enabled" if toggle.default_value else "disabled"

        return None

    # =========================================================================
    # Single Toggle Evaluation
    # =========================================================================

    def evaluate(
        self,
        toggle: FeatureToggle,
        user_context: UserContext | None = None,
    ) -> FeatureToggleEvaluation:
        """
        Evaluate a single feature toggle for a user.

        Never raises: every failed gate, and any unexpected error, yields a
        disabled result with a reason.

        Args:
            toggle: The toggle definition.
            user_context: Arbitrary user attributes, read by dot-path.

        Returns:
            FeatureToggleEvaluation with decision, variant and reason.

        Example:
            result = evaluator.evaluate(toggle, {"userId": "user-123"})
            if result.is_enabled:
                show_new_checkout()
        """
        return self._evaluate_safely(toggle, user_context, self.toggle_source)

    def _evaluate_safely(
        self,
        toggle: FeatureToggle,
        user_context: UserContext | None,
        source: ToggleSource | None,
    ) -> FeatureToggleEvaluation:
        try:
            return self._evaluate(toggle, user_context, (toggle.key or "",), source)

        except DependencyResolutionError as e:
            logger.warning(f"Dependency resolution failed for toggle '{toggle.key}': {e}")
            return _disabled(
                f"Dependency not satisfied: {e.message}",
                EvaluationReason.DEPENDENCY_ERROR,
            )

        except Exception as e:
            logger.error(f"Error evaluating toggle '{toggle.key}': {e}")
            return _disabled(
                f"Evaluation error: {e}",
                EvaluationReason.EVALUATION_ERROR,
            )

    def _evaluate(
        self,
        toggle: FeatureToggle,
        user_context: UserContext | None,
        chain: tuple[str, ...],
        source: ToggleSource | None,
    ) -> FeatureToggleEvaluation:
        context = user_context if isinstance(user_context, Mapping) else {}

        # Step 1: Master switch
        if not toggle.is_active:
            return _disabled("Feature toggle is not active", EvaluationReason.TOGGLE_INACTIVE)

        # Step 2: Environment
        if toggle.environment != self.environment:
            logger.debug(
                f"Toggle '{toggle.key}' targets {toggle.environment}, "
                f"current environment is {self.environment}"
            )
            if toggle.environment is None:
                reason = (
                    "Feature toggle has no environment "
                    f"and is not available in {self.environment} environment"
                )
            else:
                reason = (
                    f"Feature toggle is configured for the {toggle.environment} environment "
                    f"and is not available in {self.environment} environment"
                )
            return _disabled(reason, EvaluationReason.ENVIRONMENT_MISMATCH)

        # Step 3: Dependencies (fail fast, in order)
        failed_dependency = self._check_dependencies(toggle, context, chain, source)
        if failed_dependency is not None:
            return _disabled(
                f"Dependency not satisfied: {failed_dependency}",
                EvaluationReason.DEPENDENCY_NOT_SATISFIED,
            )

        # Step 4: Rollout strategy
        strategy = toggle.rollout_strategy
        if strategy == RolloutStrategy.ALL:
            return FeatureToggleEvaluation(
                is_enabled=True,
                variant=self.get_variant(toggle),
                reason="All users strategy - feature enabled for everyone",
                reason_code=EvaluationReason.ALL_USERS,
            )
        if strategy == RolloutStrategy.PERCENTAGE:
            return self._evaluate_percentage(toggle, context)
        if strategy == RolloutStrategy.USER_GROUP:
            return self._evaluate_audience(toggle, context, AudienceType.USER_GROUP)
        if strategy == RolloutStrategy.ATTRIBUTES:
            return self._evaluate_audience(toggle, context, AudienceType.ATTRIBUTES)

        logger.debug(f"Toggle '{toggle.key}' has unknown rollout strategy '{strategy}'")
        return _disabled("Unknown rollout strategy", EvaluationReason.UNKNOWN_STRATEGY)

    # =========================================================================
    # Dependencies
    # =========================================================================

    def _check_dependencies(
        self,
        toggle: FeatureToggle,
        context: UserContext,
        chain: tuple[str, ...],
        source: ToggleSource | None,
    ) -> str | None:
        """Return a description of the first unsatisfied dependency, or None."""
        for dependency in toggle.dependencies:
            enabled = self._dependency_state(dependency.feature_key, context, chain, source)

            if dependency.condition == DependencyCondition.ENABLED and not enabled:
                return f"Dependency '{dependency.feature_key}' is not enabled"

            if dependency.condition == DependencyCondition.DISABLED and enabled:
                return f"Dependency '{dependency.feature_key}' is not disabled"

        return None

    def _dependency_state(
        self,
        feature_key: str,
        context: UserContext,
        chain: tuple[str, ...],
        source: ToggleSource | None,
    ) -> bool:
        """
        Evaluate a dependency against the same user context.

        Raises:
            DependencyResolutionError: On a cycle or an over-long chain.
        """
        if feature_key in chain:
            cycle = [*chain, feature_key]
            raise DependencyResolutionError(
                f"Dependency cycle detected: {' -> '.join(cycle)}",
                chain=cycle,
            )

        if len(chain) > self.max_dependency_depth:
            raise DependencyResolutionError(
                f"Dependency chain exceeds maximum depth of {self.max_dependency_depth}",
                chain=[*chain, feature_key],
            )

        dependency = source.get(feature_key) if source is not None else None
        if dependency is None:
            logger.debug(f"Dependency '{feature_key}' not found, treating as not enabled")
            return False

        return self._evaluate(dependency, context, (*chain, feature_key), source).is_enabled

    # =========================================================================
    # Strategies
    # =========================================================================

    def _evaluate_percentage(
        self,
        toggle: FeatureToggle,
        context: UserContext,
    ) -> FeatureToggleEvaluation:
        percentage = toggle.rollout_percentage or 0

        if percentage >= 100:
            return FeatureToggleEvaluation(
                is_enabled=True,
                variant=self.get_variant(toggle),
                reason="Percentage strategy - 100% rollout",
                reason_code=EvaluationReason.ROLLOUT_FULL,
            )

        if percentage <= 0:
            return _disabled("Percentage strategy - 0% rollout", EvaluationReason.ROLLOUT_ZERO)

        bucket = self.compute_bucket(toggle.key or "", self.resolve_user_id(context))
        is_enabled = bucket <= percentage

        return FeatureToggleEvaluation(
            is_enabled=is_enabled,
            variant=self.get_variant(toggle) if is_enabled else None,
            reason=(
                f"Percentage strategy - user in "
                f"{'enabled' if is_enabled else 'disabled'} segment ({bucket}%)"
            ),
            reason_code=(
                EvaluationReason.ROLLOUT_MATCH if is_enabled else EvaluationReason.ROLLOUT_NO_MATCH
            ),
        )

    def _evaluate_audience(
        self,
        toggle: FeatureToggle,
        context: UserContext,
        audience_type: AudienceType,
    ) -> FeatureToggleEvaluation:
        label = "User group" if audience_type == AudienceType.USER_GROUP else "Attributes"
        audience = toggle.target_audience

        if audience is None or audience.type != audience_type:
            return _disabled(
                f"No target audience defined for {label.lower()} strategy",
                EvaluationReason.AUDIENCE_MISSING,
            )

        is_match, matched = self.match_target_audience(audience, context)

        if audience_type == AudienceType.USER_GROUP:
            reason = (
                "User group strategy - user matches target audience"
                if is_match
                else "User group strategy - user does not match target audience"
            )
        else:
            reason = (
                "Attributes strategy - user matches criteria"
                if is_match
                else "Attributes strategy - user does not match criteria"
            )

        return FeatureToggleEvaluation(
            is_enabled=is_match,
            variant=self.get_variant(toggle) if is_match else None,
            reason=reason,
            reason_code=(
                EvaluationReason.AUDIENCE_MATCH if is_match else EvaluationReason.AUDIENCE_NO_MATCH
            ),
            matched_criteria=matched,
        )

    @staticmethod
    def match_target_audience(
        audience: TargetAudience,
        user_context: UserContext | None,
    ) -> tuple[bool, list[AudienceCriterion]]:
        """
        Match a user context against an audience.

        user_group audiences need every criterion to match, attributes
        audiences need at least one. An audience without criteria never
        matches.

        Returns:
            Tuple of (is_match, matched_criteria).
        """
        if not audience.criteria:
            return False, []

        context = user_context or {}
        matched = [
            criterion
            for criterion in audience.criteria
            if evaluate_criterion(
                get_nested_value(context, criterion.field),
                criterion.operator,
                criterion.value,
            )
        ]

        if audience.type == AudienceType.USER_GROUP:
            is_match = len(matched) == len(audience.criteria)
        else:
            is_match = len(matched) > 0

        return is_match, matched

    # =========================================================================
    # Batch Evaluation
    # =========================================================================

    def batch_evaluate(
        self,
        toggles: Iterable[FeatureToggle],
        user_context: UserContext | None = None,
    ) -> dict[str, FeatureToggleEvaluation]:
        """
        Evaluate several toggles for one user.

        Each toggle is evaluated independently. If a key appears twice the
        later definition wins. Without a configured toggle source,
        dependencies resolve against the batch itself.

        Returns:
            Dictionary mapping toggle key to its evaluation.
        """
        toggles = list(toggles)
        source = self.toggle_source
        if source is None:
            source = {toggle.key: toggle for toggle in toggles}

        results: dict[str, FeatureToggleEvaluation] = {}
        for toggle in toggles:
            results[toggle.key] = self._evaluate_safely(toggle, user_context, source)

        return results


def get_evaluator(
    environment: str | None = None,
    toggle_source: ToggleSource | None = None,
) -> FeatureToggleEvaluator:
    """Factory function to create an evaluator from settings."""
    return FeatureToggleEvaluator(environment=environment, toggle_source=toggle_source)


def evaluate_feature_toggle(
    toggle: FeatureToggle,
    user_context: UserContext | None = None,
) -> FeatureToggleEvaluation:
    """Evaluate one toggle in the configured environment."""
    return get_evaluator().evaluate(toggle, user_context)


def batch_evaluate_feature_toggles(
    toggles: Iterable[FeatureToggle],
    user_context: UserContext | None = None,
) -> dict[str, FeatureToggleEvaluation]:
    """Evaluate several toggles in the configured environment."""
    return get_evaluator().batch_evaluate(toggles, user_context)
