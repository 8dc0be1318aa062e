"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling and logging. An admission verdict (allowed/denied)
is a normal result and is never expressed as one of these errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers.

    Fields are optional to keep shapes consistent across the codebase
    without forcing every error to fill them.
    """

    code: str
    message: str
    hint: str
    api: str
    algorithm: str
    field: str
    min_value: int
    actual_value: Any
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when caller input validation fails."""


class ConfigurationAppError(AppError):
    """Raised when rules or engine wiring are misconfigured."""


class RuleNotFoundAppError(ConfigurationAppError):
    """Raised when no rule is configured for an API and no default applies."""


class UnknownAlgorithmAppError(ConfigurationAppError):
    """Raised when a rule names an algorithm the engine was not wired with."""
