"""Admission algorithm interface and shared result type."""

from __future__ import annotations

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from throttle.schemas.rule import Rule

Clock = Callable[[], int]


def monotonic_millis() -> int:
    """Default clock: integer milliseconds from the monotonic clock."""
    return time.monotonic_ns() // 1_000_000


@dataclass(frozen=True)
class RateLimitResult:
    """Result of one admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Quota of the rule the check ran under.
        remaining: Admissions still available right now (0 when blocked).
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int | None = None

    @classmethod
    def allow(cls, *, limit: int, remaining: int) -> RateLimitResult:
        return cls(allowed=True, limit=limit, remaining=max(0, remaining))

    @classmethod
    def deny(cls, *, limit: int, retry_after_ms: int) -> RateLimitResult:
        return cls(
            allowed=False,
            limit=limit,
            remaining=0,
            retry_after_seconds=max(0, math.ceil(retry_after_ms / 1000)),
        )


class RateLimitingAlgorithm(ABC):
    """Stateless admission logic over a store owned by the algorithm."""

    @abstractmethod
    def check(self, rule: Rule, key: str) -> RateLimitResult:
        """Run one admission check for ``key`` under ``rule``.

        The read-modify-write over the key's state is atomic with respect to
        other checks on the same key.
        """
        raise NotImplementedError

    def is_allowed(self, rule: Rule, key: str) -> bool:
        return self.check(rule, key).allowed

    @abstractmethod
    def purge_idle(self, max_idle_ms: int) -> int:
        """Drop state for keys idle for longer than ``max_idle_ms``.

        A key is never dropped before it has been idle for longer than the
        longest window it was checked under, so a purged key behaves exactly
        like one that was never seen, whatever ``max_idle_ms`` is.

        Returns:
            Number of keys removed.
        """
        raise NotImplementedError
