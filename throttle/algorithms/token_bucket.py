"""Token bucket with whole-window bulk refill.

Every key starts with a full bucket of ``quota`` tokens. Tokens come back only
in whole-window steps: once at least one full window has elapsed since the
last refill, the bucket gains ``quota`` tokens per elapsed window (capped at
``quota``) and the refill point moves to now. There is no continuous trickle.
"""

from __future__ import annotations

import logging

from throttle.adapters.store.base import TokenBucketState, TokenBucketStore
from throttle.algorithms.base import (
    Clock,
    RateLimitingAlgorithm,
    RateLimitResult,
    monotonic_millis,
)
from throttle.core.logging import hash_key
from throttle.schemas.rule import Rule
from throttle.utils.striped_lock import StripedLock

logger = logging.getLogger(__name__)


class TokenBucket(RateLimitingAlgorithm):
    """Token bucket admission over a :class:`TokenBucketStore`."""

    def __init__(
        self,
        store: TokenBucketStore,
        *,
        clock: Clock = monotonic_millis,
        lock: StripedLock | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._lock = lock or StripedLock()

    def _refill(self, rule: Rule, state: TokenBucketState, now: int) -> None:
        elapsed = max(0, now - state.last_refill_ms)
        windows_elapsed = elapsed // rule.window_ms
        if windows_elapsed >= 1:
            state.tokens = min(rule.quota, state.tokens + windows_elapsed * rule.quota)
            state.last_refill_ms = now
        # A bucket filled under a larger quota must not exceed the current one.
        state.tokens = max(0, min(state.tokens, rule.quota))

    def check(self, rule: Rule, key: str) -> RateLimitResult:
        with self._lock.hold(key):
            now = self._clock()
            state = self._store.get(key)
            if state is None:
                state = self._store.put(
                    key, TokenBucketState(tokens=rule.quota, last_refill_ms=now)
                )
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "token_bucket.created",
                        extra={"key_hash": hash_key(key), "quota": rule.quota},
                    )

            state.window_ms = max(state.window_ms, rule.window_ms)
            self._refill(rule, state, now)

            if state.tokens > 0:
                state.tokens -= 1
                self._store.put(key, state)
                return RateLimitResult.allow(limit=rule.quota, remaining=state.tokens)

            self._store.put(key, state)
            since_refill = max(0, now - state.last_refill_ms)
            return RateLimitResult.deny(
                limit=rule.quota,
                retry_after_ms=rule.window_ms - since_refill,
            )

    def purge_idle(self, max_idle_ms: int) -> int:
        # Past a full window since the last refill, the next check refills to
        # quota, which is what a fresh bucket holds too.
        removed = 0
        for key in self._store.keys():
            with self._lock.hold(key):
                state = self._store.get(key)
                if state is None:
                    continue
                if self._clock() - state.last_refill_ms > max(max_idle_ms, state.window_ms):
                    self._store.discard(key)
                    removed += 1
        return removed
