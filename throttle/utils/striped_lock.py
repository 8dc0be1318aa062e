"""Key-sharded mutual exclusion.

A fixed array of locks indexed by a stable hash of the key. Two keys only
contend when they land on the same stripe, and memory stays bounded no matter
how many distinct keys are seen.
"""

from __future__ import annotations

import threading
import zlib
from contextlib import contextmanager
from typing import Iterator


class StripedLock:
    """Thread-safe lock striping over string keys.

    Attributes:
        stripes: Number of underlying locks.
    """

    def __init__(self, stripes: int = 1024) -> None:
        if stripes < 1:
            raise ValueError("stripes must be >= 1")
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"StripedLock(stripes={self.stripes})"

    @property
    def stripes(self) -> int:
        return len(self._locks)

    def stripe_for(self, key: str) -> int:
        """Return the stripe index guarding ``key``.

        Uses crc32 so assignment is stable across processes.
        """
        return zlib.crc32(key.encode("utf-8")) % len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._locks[self.stripe_for(key)]
        with lock:
            yield
