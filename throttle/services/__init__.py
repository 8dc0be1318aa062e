from __future__ import annotations

from throttle.services.rate_limiter import RateLimiter, build_rate_limit_key
from throttle.services.rate_limiter_service import RateLimiterService
from throttle.services.rule_service import (
    AbstractRuleService,
    StaticRuleService,
    build_rule_service,
)

__all__ = [
    "AbstractRuleService",
    "RateLimiter",
    "RateLimiterService",
    "StaticRuleService",
    "build_rate_limit_key",
    "build_rule_service",
]
