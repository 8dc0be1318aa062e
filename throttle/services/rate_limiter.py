"""Public admission-control entry point.

Derives the rate limit key from (api, caller), resolves the API's rule and
asks the rate limiter service for a verdict. Every call re-evaluates; nothing
is cached and nothing is retried.
"""

from __future__ import annotations

import logging

from throttle.algorithms.base import RateLimitResult
from throttle.core.errors import ValidationAppError
from throttle.core.logging import hash_key
from throttle.services.rate_limiter_service import RateLimiterService
from throttle.services.rule_service import AbstractRuleService

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ":"


def build_rate_limit_key(api: str, caller: str) -> str:
    """Build the key identifying one (api, caller) admission stream.

    The API part is escaped so an API identifier containing the separator
    cannot produce the same key as a different (api, caller) pair. Plain
    identifiers yield exactly ``f"{api}:{caller}"``.

    Raises:
        ValidationAppError: If either identifier is empty.
    """

    if not api:
        raise ValidationAppError(code="invalid_api", message="api must be a non-empty string")
    if not caller:
        raise ValidationAppError(code="invalid_caller", message="caller must be a non-empty string")

    escaped_api = api.replace("%", "%25").replace(KEY_SEPARATOR, "%3A")
    return f"{escaped_api}{KEY_SEPARATOR}{caller}"


class RateLimiter:
    """Admission facade consumed in-process by request handlers.

    Instances are constructed explicitly (see
    :func:`throttle.core.limiter_factory.create_rate_limiter`) and shared by
    reference; each instance owns independent state.
    """

    def __init__(
        self,
        rate_limiter_service: RateLimiterService,
        rule_service: AbstractRuleService,
        *,
        idle_key_ttl_seconds: int | None = None,
    ) -> None:
        self._service = rate_limiter_service
        self._rule_service = rule_service
        self._idle_key_ttl_seconds = idle_key_ttl_seconds

    def check(self, api: str, caller: str) -> RateLimitResult:
        """Run one admission check and return the verdict with metadata.

        Raises:
            ValidationAppError: If ``api`` or ``caller`` is empty.
            ConfigurationAppError: If the rule cannot be resolved or names an
                algorithm the engine was not wired with.
        """

        key = build_rate_limit_key(api, caller)
        rule = self._rule_service.get_rule(api)
        result = self._service.check(rule, key)

        if result.allowed:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "rate_limit.allowed",
                    extra={
                        "api": api,
                        "key_hash": hash_key(key),
                        "algorithm": rule.algorithm.value,
                        "limit": result.limit,
                        "remaining": result.remaining,
                    },
                )
        else:
            logger.warning(
                "rate_limit.denied",
                extra={
                    "api": api,
                    "key_hash": hash_key(key),
                    "algorithm": rule.algorithm.value,
                    "limit": result.limit,
                    "window_s": rule.window_seconds,
                    "retry_after_s": result.retry_after_seconds,
                },
            )

        return result

    def is_allowed(self, api: str, caller: str) -> bool:
        """Return True when the request from ``caller`` to ``api`` may proceed."""
        return self.check(api, caller).allowed

    def purge_idle(self, max_idle_seconds: int | None = None) -> int:
        """Drop per-key state idle for longer than ``max_idle_seconds``.

        This walks every stored key, so it is a maintenance call for the host
        to schedule (a timer or periodic job), never run from ``check()``.
        A key is kept for at least the longest window it was checked under,
        so purged keys behave exactly like keys that were never seen.

        Args:
            max_idle_seconds: Idle age to purge at; defaults to the configured
                idle key TTL.

        Returns:
            Number of keys removed across all algorithms.

        Raises:
            ValueError: If no age is given and none is configured, or the age
                is not positive.
        """

        if max_idle_seconds is None:
            max_idle_seconds = self._idle_key_ttl_seconds
        if max_idle_seconds is None:
            raise ValueError("max_idle_seconds is required when no idle key TTL is configured")
        if max_idle_seconds < 1:
            raise ValueError("max_idle_seconds must be >= 1")

        removed = self._service.purge_idle(max_idle_seconds * 1000)
        if removed:
            logger.info(
                "rate_limit.purged",
                extra={"removed": removed, "max_idle_s": max_idle_seconds},
            )
        return removed

