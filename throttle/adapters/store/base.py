"""State store interfaces.

Algorithms depend on these abstractions (not the concrete implementation)
so storage backends can be swapped with minimal changes. The two contracts
are deliberately unrelated: their value shapes differ and they share no
behavior worth abstracting.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Iterator


@dataclass
class TokenBucketState:
    """Mutable per-key token bucket state.

    Attributes:
        tokens: Tokens currently available, within [0, quota].
        last_refill_ms: Clock reading (ms) of the last whole-window refill.
        window_ms: Longest rule window (ms) this key has been checked under.
    """

    tokens: int
    last_refill_ms: int
    window_ms: int = 0


class TimestampLog(deque):
    """Admitted-request timestamps (ms) for one key, oldest first.

    Attributes:
        window_ms: Longest rule window (ms) this key has been checked under.
    """

    window_ms: int = 0


class TokenBucketStore(ABC):
    """Keyed-state store with upsert semantics."""

    @abstractmethod
    def get(self, key: str) -> TokenBucketState | None:
        """Return the state for ``key``, or None when the key was never seen."""
        raise NotImplementedError

    @abstractmethod
    def put(self, key: str, state: TokenBucketState) -> TokenBucketState:
        """Create or overwrite the state for ``key`` and return it."""
        raise NotImplementedError

    @abstractmethod
    def discard(self, key: str) -> None:
        """Drop the state for ``key`` if present."""
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over a snapshot of the stored keys."""
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError


class SlidingWindowStore(ABC):
    """Keyed-sequence store handing out live deques for in-place mutation."""

    @abstractmethod
    def get(self, key: str) -> TimestampLog:
        """Return the timestamp log for ``key``, creating an empty one if absent."""
        raise NotImplementedError

    @abstractmethod
    def discard(self, key: str) -> None:
        """Drop the deque for ``key`` if present."""
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over a snapshot of the stored keys."""
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError
