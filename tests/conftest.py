"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment to "testing" before settings are imported so a
developer's .env.development never leaks into test runs.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["THROTTLE_ENV"] = "testing"

for _name in list(os.environ):
    if _name.startswith(("RULE_", "LIMITER_")):
        del os.environ[_name]

import pytest  # noqa: E402


class FakeClock:
    """Deterministic millisecond clock."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, *, seconds: float = 0, ms: int = 0) -> None:
        self.now += int(seconds * 1000) + ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
