from __future__ import annotations

from throttle.algorithms.base import RateLimitingAlgorithm, RateLimitResult
from throttle.algorithms.factory import AlgorithmFactory
from throttle.algorithms.sliding_window import SlidingWindow
from throttle.algorithms.token_bucket import TokenBucket

__all__ = [
    "AlgorithmFactory",
    "RateLimitResult",
    "RateLimitingAlgorithm",
    "SlidingWindow",
    "TokenBucket",
]
