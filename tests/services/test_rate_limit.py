# tests/services/test_rate_limit.py
"""Tests for the database-backed fixed-window rate limiter."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from send2me.core.errors import RateLimitedError
from send2me.models import RateLimitCounter
from send2me.services.rate_limit import (
    RateLimiter,
    RateLimitPolicy,
    RateLimitResult,
    global_key,
    target_key,
)


class FakeClock:
    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def limiter(session_factory, clock: FakeClock) -> RateLimiter:
    return RateLimiter(
        session_factory,
        target_policy=RateLimitPolicy(window_ms=10_000, limit=3),
        global_policy=RateLimitPolicy(window_ms=60_000, limit=30),
        clock=clock,
    )


def test_keys() -> None:
    assert target_key("uid-1", "abc") == "target:uid-1:abc"
    assert global_key("abc") == "global:abc"


def test_increment_counts_down_then_rejects(limiter: RateLimiter, session_factory) -> None:
    results = [limiter.increment("k", 10_000, 3) for _ in range(4)]

    assert results == [
        RateLimitResult(allowed=True, remaining=2),
        RateLimitResult(allowed=True, remaining=1),
        RateLimitResult(allowed=True, remaining=0),
        RateLimitResult(allowed=False, remaining=0),
    ]
    with session_factory() as session:
        assert session.get(RateLimitCounter, "k").count == 3


def test_rejection_does_not_extend_window(
    limiter: RateLimiter, clock: FakeClock, session_factory
) -> None:
    for _ in range(3):
        limiter.increment("k", 10_000, 3)
    clock.advance(5_000)
    assert limiter.increment("k", 10_000, 3).allowed is False

    with session_factory() as session:
        assert session.get(RateLimitCounter, "k").window_started_at == 1_000_000


def test_window_resets_after_expiry(limiter: RateLimiter, clock: FakeClock) -> None:
    for _ in range(3):
        limiter.increment("k", 10_000, 3)
    clock.advance(10_000)
    assert limiter.increment("k", 10_000, 3).allowed is False

    clock.advance(1)
    assert limiter.increment("k", 10_000, 3) == RateLimitResult(allowed=True, remaining=2)


def _hammer(limiter: RateLimiter, key: str, limit: int, *, workers: int, per_worker: int):
    start = threading.Barrier(workers)

    def worker() -> list[RateLimitResult]:
        start.wait()
        return [limiter.increment(key, 10_000, limit) for _ in range(per_worker)]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(worker) for _ in range(workers)]
        return [result for future in futures for result in future.result()]


def test_concurrent_increments_are_all_counted(limiter: RateLimiter, session_factory) -> None:
    results = _hammer(limiter, "k", 1_000, workers=8, per_worker=5)

    assert all(result.allowed for result in results)
    # Every caller observed a distinct count.
    assert sorted(result.remaining for result in results) == list(range(960, 1_000))
    with session_factory() as session:
        assert session.get(RateLimitCounter, "k").count == 40


def test_concurrent_increments_never_exceed_limit(limiter: RateLimiter, session_factory) -> None:
    results = _hammer(limiter, "k", 3, workers=8, per_worker=3)

    allowed = [result for result in results if result.allowed]
    assert len(allowed) == 3
    with session_factory() as session:
        assert session.get(RateLimitCounter, "k").count == len(allowed)


def test_keys_are_independent(limiter: RateLimiter) -> None:
    for _ in range(3):
        limiter.increment("a", 10_000, 3)
    assert limiter.increment("b", 10_000, 3).allowed is True


@pytest.mark.asyncio
async def test_check_message_limits_evaluates_both_windows(
    limiter: RateLimiter, session_factory
) -> None:
    target, overall = await limiter.check_message_limits("uid-1", "iphash")

    assert target == RateLimitResult(allowed=True, remaining=2)
    assert overall == RateLimitResult(allowed=True, remaining=29)
    with session_factory() as session:
        assert session.get(RateLimitCounter, "target:uid-1:iphash").count == 1
        assert session.get(RateLimitCounter, "global:iphash").count == 1


@pytest.mark.asyncio
async def test_target_scope_wins_and_global_still_counts(
    limiter: RateLimiter, session_factory
) -> None:
    for _ in range(3):
        await limiter.assert_not_rate_limited("uid-1", "iphash")

    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.assert_not_rate_limited("uid-1", "iphash")

    assert exc_info.value.scope == "target"
    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "You're sending messages too quickly to this user."
    with session_factory() as session:
        assert session.get(RateLimitCounter, "global:iphash").count == 4


@pytest.mark.asyncio
async def test_global_scope(session_factory, clock: FakeClock) -> None:
    limiter = RateLimiter(
        session_factory,
        target_policy=RateLimitPolicy(window_ms=10_000, limit=3),
        global_policy=RateLimitPolicy(window_ms=60_000, limit=2),
        clock=clock,
    )
    await limiter.assert_not_rate_limited("uid-1", "iphash")
    await limiter.assert_not_rate_limited("uid-2", "iphash")

    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.assert_not_rate_limited("uid-3", "iphash")
    assert exc_info.value.scope == "global"
    assert exc_info.value.message == "Too many messages sent. Please wait a moment."


@pytest.mark.asyncio
async def test_missing_ip_hash_is_rejected(limiter: RateLimiter) -> None:
    with pytest.raises(RateLimitedError) as exc_info:
        await limiter.assert_not_rate_limited("uid-1", None)
    assert exc_info.value.message == "Missing metadata for rate limiting."
    assert exc_info.value.scope is None
