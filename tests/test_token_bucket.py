"""Unit tests for the whole-window token bucket."""

import threading
from unittest.mock import Mock

from throttle.adapters.store.in_memory import InMemoryTokenBucketStore
from throttle.algorithms.token_bucket import TokenBucket
from throttle.schemas.rule import Algorithm, Rule

RULE = Rule(window_seconds=60, quota=5, algorithm=Algorithm.TOKEN_BUCKET)


def _bucket(clock) -> tuple[TokenBucket, InMemoryTokenBucketStore]:
    store = InMemoryTokenBucketStore()
    return TokenBucket(store, clock=clock), store


def test_new_key_starts_with_full_bucket(clock) -> None:
    bucket, store = _bucket(clock)

    result = bucket.check(RULE, "k")

    assert result.allowed is True
    assert result.limit == 5
    assert result.remaining == 4
    state = store.get("k")
    assert state is not None
    assert state.tokens == 4
    assert state.last_refill_ms == clock.now


def test_quota_then_deny_then_full_refill_after_one_window(clock) -> None:
    bucket, _ = _bucket(clock)

    assert [bucket.is_allowed(RULE, "k") for _ in range(5)] == [True] * 5
    assert bucket.is_allowed(RULE, "k") is False

    clock.advance(seconds=60)

    assert [bucket.is_allowed(RULE, "k") for _ in range(5)] == [True] * 5
    assert bucket.is_allowed(RULE, "k") is False


def test_no_refill_before_a_whole_window(clock) -> None:
    bucket, store = _bucket(clock)
    for _ in range(5):
        bucket.check(RULE, "k")

    clock.advance(ms=59_999)

    assert bucket.is_allowed(RULE, "k") is False
    state = store.get("k")
    assert state is not None
    assert state.tokens == 0


def test_refill_is_capped_at_quota(clock) -> None:
    bucket, store = _bucket(clock)
    bucket.check(RULE, "k")

    clock.advance(seconds=600)
    result = bucket.check(RULE, "k")

    assert result.remaining == 4
    state = store.get("k")
    assert state is not None
    assert state.tokens == 4
    assert state.last_refill_ms == clock.now


def test_denial_reports_time_until_next_refill(clock) -> None:
    bucket, _ = _bucket(clock)
    for _ in range(5):
        bucket.check(RULE, "k")

    clock.advance(seconds=20)
    blocked = bucket.check(RULE, "k")

    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 40


def test_denial_does_not_change_state(clock) -> None:
    bucket, store = _bucket(clock)
    for _ in range(5):
        bucket.check(RULE, "k")
    state = store.get("k")
    assert state is not None
    before = (state.tokens, state.last_refill_ms)

    for _ in range(10):
        assert bucket.is_allowed(RULE, "k") is False

    assert (state.tokens, state.last_refill_ms) == before


def test_clock_going_backwards_never_refills_or_goes_negative() -> None:
    clock = Mock(return_value=100_000)
    bucket, store = _bucket(clock)
    for _ in range(5):
        bucket.check(RULE, "k")

    clock.return_value = 10_000
    assert bucket.is_allowed(RULE, "k") is False

    state = store.get("k")
    assert state is not None
    assert state.tokens == 0
    assert state.last_refill_ms == 100_000


def test_tokens_clamped_when_quota_shrinks(clock) -> None:
    bucket, store = _bucket(clock)
    bucket.check(Rule(window_seconds=60, quota=10), "k")

    result = bucket.check(Rule(window_seconds=60, quota=3), "k")

    assert result.allowed is True
    assert result.remaining == 2
    state = store.get("k")
    assert state is not None
    assert 0 <= state.tokens <= 3


def test_tokens_stay_within_bounds_over_long_run(clock) -> None:
    bucket, store = _bucket(clock)

    for step in range(500):
        bucket.check(RULE, "k")
        clock.advance(ms=(step * 7919) % 30_000)
        state = store.get("k")
        assert state is not None
        assert 0 <= state.tokens <= RULE.quota


def test_keys_are_isolated(clock) -> None:
    bucket, _ = _bucket(clock)
    for _ in range(5):
        bucket.check(RULE, "a")

    assert bucket.is_allowed(RULE, "a") is False
    assert bucket.is_allowed(RULE, "b") is True


def test_concurrent_checks_admit_exactly_quota(clock) -> None:
    rule = Rule(window_seconds=60, quota=50)
    bucket, _ = _bucket(clock)
    allowed: list[bool] = []
    results_lock = threading.Lock()
    barrier = threading.Barrier(8)

    def _worker() -> None:
        barrier.wait()
        local = [bucket.is_allowed(rule, "hot") for _ in range(25)]
        with results_lock:
            allowed.extend(local)

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(allowed) == 200
    assert sum(allowed) == 50


def test_purge_idle_drops_only_buckets_due_for_full_refill(clock) -> None:
    bucket, store = _bucket(clock)
    bucket.check(RULE, "old")
    clock.advance(seconds=30)
    bucket.check(RULE, "recent")

    clock.advance(seconds=31)

    assert bucket.purge_idle(60_000) == 1
    assert list(store.keys()) == ["recent"]

    # A purged key behaves like a fresh one.
    assert bucket.check(RULE, "old").remaining == 4


def test_purge_never_drops_bucket_before_its_window_ends(clock) -> None:
    bucket, store = _bucket(clock)
    rule = Rule(window_seconds=60, quota=2)
    admitted = 0

    for _ in range(10):
        admitted += bucket.is_allowed(rule, "k")
        clock.advance(seconds=2)
        bucket.purge_idle(1_000)

    assert admitted == 2
    assert list(store.keys()) == ["k"]


def test_purge_keeps_bucket_at_exact_window_age(clock) -> None:
    bucket, store = _bucket(clock)
    bucket.check(RULE, "k")

    clock.advance(seconds=60)
    assert bucket.purge_idle(1_000) == 0

    clock.advance(ms=1)
    assert bucket.purge_idle(1_000) == 1
    assert len(store) == 0


def test_purge_uses_longest_window_seen_for_key(clock) -> None:
    bucket, _ = _bucket(clock)
    bucket.check(Rule(window_seconds=120, quota=5), "k")
    bucket.check(RULE, "k")

    clock.advance(seconds=90)

    assert bucket.purge_idle(1_000) == 0
