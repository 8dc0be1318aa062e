"""In-process request admission engine.

Example:
    from throttle import Algorithm, Rule, StaticRuleService, create_rate_limiter

    rules = StaticRuleService(
        {"search": Rule(window_seconds=10, quota=3, algorithm=Algorithm.SLIDING_WINDOW)},
        default=Rule(window_seconds=60, quota=20),
    )
    limiter = create_rate_limiter(rules)

    if not limiter.is_allowed("search", "user-123"):
        ...  # reject the request
"""

from __future__ import annotations

from throttle.algorithms.base import RateLimitResult
from throttle.core.errors import (
    AppError,
    ConfigurationAppError,
    RuleNotFoundAppError,
    UnknownAlgorithmAppError,
    ValidationAppError,
)
from throttle.core.limiter_factory import create_rate_limiter
from throttle.schemas.rule import Algorithm, Rule
from throttle.services.rate_limiter import RateLimiter
from throttle.services.rule_service import AbstractRuleService, StaticRuleService

__all__ = [
    "AbstractRuleService",
    "Algorithm",
    "AppError",
    "ConfigurationAppError",
    "RateLimitResult",
    "RateLimiter",
    "Rule",
    "RuleNotFoundAppError",
    "StaticRuleService",
    "UnknownAlgorithmAppError",
    "ValidationAppError",
    "create_rate_limiter",
]
