"""Factory mapping algorithm kinds to wired algorithm instances."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator

from throttle.adapters.store.base import SlidingWindowStore, TokenBucketStore
from throttle.algorithms.base import Clock, RateLimitingAlgorithm, monotonic_millis
from throttle.algorithms.sliding_window import SlidingWindow
from throttle.algorithms.token_bucket import TokenBucket
from throttle.core.errors import UnknownAlgorithmAppError
from throttle.schemas.rule import Algorithm
from throttle.utils.striped_lock import StripedLock


class AlgorithmFactory:
    """Owns one algorithm instance per kind, each bound to its own store.

    The mapping is built once in the constructor and only read afterwards, so
    concurrent ``get_algorithm`` calls need no locking.
    """

    def __init__(
        self,
        token_bucket_store: TokenBucketStore,
        sliding_window_store: SlidingWindowStore,
        *,
        clock: Clock = monotonic_millis,
        lock_stripes: int = 1024,
    ) -> None:
        self._algorithms: MappingProxyType[Algorithm, RateLimitingAlgorithm] = MappingProxyType(
            {
                Algorithm.TOKEN_BUCKET: TokenBucket(
                    token_bucket_store,
                    clock=clock,
                    lock=StripedLock(lock_stripes),
                ),
                Algorithm.SLIDING_WINDOW: SlidingWindow(
                    sliding_window_store,
                    clock=clock,
                    lock=StripedLock(lock_stripes),
                ),
            }
        )

    def get_algorithm(self, kind: Algorithm) -> RateLimitingAlgorithm:
        """Return the algorithm wired for ``kind``.

        Raises:
            UnknownAlgorithmAppError: If no algorithm is wired for ``kind``.
        """
        algorithm = self._algorithms.get(kind)
        if algorithm is None:
            name = getattr(kind, "value", kind)
            supported = ", ".join(a.value for a in self._algorithms)
            raise UnknownAlgorithmAppError(
                code="unknown_algorithm",
                message=f"Unknown rate limit algorithm: '{name}'. Supported algorithms: {supported}",
                details={"algorithm": str(name)},
            )
        return algorithm

    def __iter__(self) -> Iterator[RateLimitingAlgorithm]:
        return iter(self._algorithms.values())
