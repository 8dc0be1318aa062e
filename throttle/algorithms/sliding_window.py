"""Sliding window log.

Each key keeps the timestamps of its admitted requests, oldest first. A check
trims every timestamp older than ``now - window`` from the front and admits
the request only when fewer than ``quota`` timestamps remain. Denied requests
are never recorded, so a key's deque never grows past its quota.
"""

from __future__ import annotations

import logging

from throttle.adapters.store.base import SlidingWindowStore
from throttle.algorithms.base import (
    Clock,
    RateLimitingAlgorithm,
    RateLimitResult,
    monotonic_millis,
)
from throttle.schemas.rule import Rule
from throttle.utils.striped_lock import StripedLock

logger = logging.getLogger(__name__)


class SlidingWindow(RateLimitingAlgorithm):
    """Sliding window admission over a :class:`SlidingWindowStore`."""

    def __init__(
        self,
        store: SlidingWindowStore,
        *,
        clock: Clock = monotonic_millis,
        lock: StripedLock | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._lock = lock or StripedLock()

    def check(self, rule: Rule, key: str) -> RateLimitResult:
        with self._lock.hold(key):
            timestamps = self._store.get(key)
            timestamps.window_ms = max(timestamps.window_ms, rule.window_ms)
            now = self._clock()
            if timestamps and now < timestamps[-1]:
                # Clock went backwards; keep the log ordered.
                now = timestamps[-1]

            window_start = now - rule.window_ms
            while timestamps and timestamps[0] < window_start:
                timestamps.popleft()

            if len(timestamps) >= rule.quota:
                # The request is admissible once enough old entries age out.
                gate = timestamps[len(timestamps) - rule.quota]
                return RateLimitResult.deny(
                    limit=rule.quota,
                    retry_after_ms=gate + rule.window_ms + 1 - now,
                )

            timestamps.append(now)
            return RateLimitResult.allow(
                limit=rule.quota,
                remaining=rule.quota - len(timestamps),
            )

    def purge_idle(self, max_idle_ms: int) -> int:
        removed = 0
        for key in self._store.keys():
            with self._lock.hold(key):
                timestamps = self._store.get(key)
                # Entries strictly older than the window are trimmed by check().
                idle_after = max(max_idle_ms, timestamps.window_ms)
                if not timestamps or self._clock() - timestamps[-1] > idle_after:
                    self._store.discard(key)
                    removed += 1
        if removed:
            logger.debug("sliding_window.purged", extra={"removed": removed})
        return removed
