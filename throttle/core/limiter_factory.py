"""Engine factory.

Centralizes construction of a rate limiter (stores, algorithms, rule service,
facade) so callers and tests get isolated instances instead of a process-wide
singleton.
"""

from __future__ import annotations

import logging

from throttle.adapters.store.base import SlidingWindowStore, TokenBucketStore
from throttle.adapters.store.in_memory import (
    InMemorySlidingWindowStore,
    InMemoryTokenBucketStore,
)
from throttle.algorithms.base import Clock, monotonic_millis
from throttle.algorithms.factory import AlgorithmFactory
from throttle.core.config import Settings, settings
from throttle.services.rate_limiter import RateLimiter
from throttle.services.rate_limiter_service import RateLimiterService
from throttle.services.rule_service import AbstractRuleService, build_rule_service

logger = logging.getLogger(__name__)


def create_rate_limiter(
    rule_service: AbstractRuleService | None = None,
    *,
    config: Settings | None = None,
    clock: Clock = monotonic_millis,
    token_bucket_store: TokenBucketStore | None = None,
    sliding_window_store: SlidingWindowStore | None = None,
) -> RateLimiter:
    """Create a fully wired rate limiter.

    Args:
        rule_service: Rule collaborator; built from ``config.rules`` if omitted.
        config: Settings to wire from; defaults to the global settings.
        clock: Millisecond clock shared by all algorithms.
        token_bucket_store: Store for token bucket state (in-memory by default).
        sliding_window_store: Store for sliding window state (in-memory by default).

    Returns:
        RateLimiter: Engine with its own, empty state.

    Raises:
        ConfigurationAppError: If the configured default rule is invalid.
    """

    cfg = config or settings

    # Stores define __len__, so an empty injected store is falsy.
    if token_bucket_store is None:
        token_bucket_store = InMemoryTokenBucketStore()
    if sliding_window_store is None:
        sliding_window_store = InMemorySlidingWindowStore()

    factory = AlgorithmFactory(
        token_bucket_store,
        sliding_window_store,
        clock=clock,
        lock_stripes=cfg.limiter.lock_stripes,
    )
    limiter = RateLimiter(
        RateLimiterService(factory),
        rule_service if rule_service is not None else build_rule_service(cfg.rules),
        idle_key_ttl_seconds=cfg.limiter.idle_key_ttl_seconds,
    )

    logger.info(
        "rate_limiter.created",
        extra={
            "env": cfg.throttle_env,
            "lock_stripes": cfg.limiter.lock_stripes,
            "idle_key_ttl_s": cfg.limiter.idle_key_ttl_seconds,
            "custom_rule_service": rule_service is not None,
        },
    )
    return limiter
