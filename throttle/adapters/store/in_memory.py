"""In-memory state stores.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- State is lost on restart.
- Single-key dict operations are atomic, so the stores need no lock of their
  own. Read-modify-write sequences over one key are serialized by the
  algorithm holding that key's stripe lock.
"""

from __future__ import annotations

from typing import Iterator

from throttle.adapters.store.base import (
    SlidingWindowStore,
    TimestampLog,
    TokenBucketState,
    TokenBucketStore,
)


class InMemoryTokenBucketStore(TokenBucketStore):
    """Dict-backed token bucket state store."""

    def __init__(self) -> None:
        self._state_by_key: dict[str, TokenBucketState] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryTokenBucketStore(size={len(self._state_by_key)})"

    def get(self, key: str) -> TokenBucketState | None:
        return self._state_by_key.get(key)

    def put(self, key: str, state: TokenBucketState) -> TokenBucketState:
        self._state_by_key[key] = state
        return state

    def discard(self, key: str) -> None:
        self._state_by_key.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._state_by_key))

    def __len__(self) -> int:
        return len(self._state_by_key)


class InMemorySlidingWindowStore(SlidingWindowStore):
    """Dict-backed store of per-key admitted-request timestamps."""

    def __init__(self) -> None:
        self._timestamps_by_key: dict[str, TimestampLog] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemorySlidingWindowStore(size={len(self._timestamps_by_key)})"

    def get(self, key: str) -> TimestampLog:
        timestamps = self._timestamps_by_key.get(key)
        if timestamps is None:
            # setdefault keeps the first log if two threads race here
            timestamps = self._timestamps_by_key.setdefault(key, TimestampLog())
        return timestamps

    def discard(self, key: str) -> None:
        self._timestamps_by_key.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._timestamps_by_key))

    def __len__(self) -> int:
        return len(self._timestamps_by_key)
