"""Dispatch of admission checks to the algorithm a rule selects."""

from __future__ import annotations

from throttle.algorithms.base import RateLimitResult
from throttle.algorithms.factory import AlgorithmFactory
from throttle.schemas.rule import Rule


class RateLimiterService:
    """Selects the algorithm for a rule and delegates the check to it."""

    def __init__(self, algorithm_factory: AlgorithmFactory) -> None:
        self._algorithm_factory = algorithm_factory

    def check(self, rule: Rule, key: str) -> RateLimitResult:
        algorithm = self._algorithm_factory.get_algorithm(rule.algorithm)
        return algorithm.check(rule, key)

    def is_allowed(self, rule: Rule, key: str) -> bool:
        return self.check(rule, key).allowed

    def purge_idle(self, max_idle_ms: int) -> int:
        """Purge idle keys from every algorithm's store."""
        return sum(algorithm.purge_idle(max_idle_ms) for algorithm in self._algorithm_factory)
