"""
Custom Exception Classes for toggle-rollout.

Evaluation itself never raises: every failed gate becomes a disabled
result with a reason. These exceptions are raised by the toggle registry
and by dependency resolution, and carry a machine-readable error code.

Exception Hierarchy:
    ToggleRolloutException (base)
    ├── NotFoundError
    ├── ConflictError
    ├── ValidationError
    └── DependencyResolutionError
"""

from typing import Any


class ToggleRolloutException(Exception):
    """
    Base exception for all toggle-rollout errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error identifier.
        details: Additional error context (optional).
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serializable error payload."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class NotFoundError(ToggleRolloutException):
    """
    Raised when a requested toggle does not exist in a registry.

    Examples:
        - Unregistering an unknown key
        - get_or_raise() on an unknown key
    """

    def __init__(
        self,
        resource: str,
        identifier: str | None = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        default_message = f"{resource} not found"
        if identifier:
            default_message = f"{resource} with identifier '{identifier}' not found"

        super().__init__(
            message=message or default_message,
            error_code=f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            details=details or {"resource": resource, "identifier": identifier},
        )


class ConflictError(ToggleRolloutException):
    """Raised when registering a toggle whose key is already registered."""

    def __init__(
        self,
        resource: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message or f"{resource} already exists",
            error_code=f"{resource.upper().replace(' ', '_')}_ALREADY_EXISTS",
            details=details,
        )


class ValidationError(ToggleRolloutException):
    """
    Raised when a toggle definition fails structural validation.

    The full list of problems is available in ``details["errors"]``.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: str = "VALIDATION_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DependencyResolutionError(ToggleRolloutException):
    """
    Raised when a dependency chain cannot be resolved.

    Examples:
        - A toggle depends on itself, directly or transitively
        - The chain is longer than MAX_DEPENDENCY_DEPTH
    """

    def __init__(
        self,
        message: str,
        chain: list[str] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="DEPENDENCY_RESOLUTION_ERROR",
            details={"chain": chain or []},
        )
