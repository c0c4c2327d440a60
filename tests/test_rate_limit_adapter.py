"""Unit tests for the in-memory sliding-window rate limiter."""

import threading

import pytest

from discovery_core.adapters.rate_limit.base import AbstractRateLimiter
from discovery_core.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from fakes import FakeClock


def test_admits_up_to_limit_then_rejects_within_window() -> None:
    clock = FakeClock(start=0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)

    first = limiter.check("k", limit=3, window_ms=1000)
    assert (first.allowed, first.remaining, first.limit) == (True, 2, 3)

    clock.now = 100
    assert limiter.check("k", limit=3, window_ms=1000).remaining == 1
    clock.now = 200
    assert limiter.check("k", limit=3, window_ms=1000).remaining == 0

    clock.now = 300
    blocked = limiter.check("k", limit=3, window_ms=1000)
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 1


def test_oldest_admission_slides_out_of_window() -> None:
    clock = FakeClock(start=0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)
    for t in (0, 100, 200):
        clock.now = t
        limiter.check("k", limit=3, window_ms=1000)

    clock.now = 1001
    result = limiter.check("k", limit=3, window_ms=1000)

    assert result.allowed is True
    assert result.remaining == 0
    assert limiter.count("k") == 3


def test_rejected_calls_do_not_consume_quota() -> None:
    clock = FakeClock(start=0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)
    limiter.check("k", limit=1, window_ms=1000)

    for _ in range(5):
        assert limiter.check("k", limit=1, window_ms=1000).allowed is False

    assert limiter.count("k") == 1
    clock.now = 1000
    assert limiter.check("k", limit=1, window_ms=1000).allowed is True


def test_retry_after_rounds_up_to_whole_seconds() -> None:
    clock = FakeClock(start=0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)
    limiter.check("k", limit=1, window_ms=60 * 60 * 1000)

    clock.now = 1500
    blocked = limiter.check("k", limit=1, window_ms=60 * 60 * 1000)

    assert blocked.retry_after_seconds == 3599


def test_isolated_by_key() -> None:
    limiter = InMemorySlidingWindowRateLimiter(clock=FakeClock())

    assert limiter.check("k1", limit=1).allowed is True
    assert limiter.check("k1", limit=1).allowed is False
    assert limiter.check("k2", limit=1).allowed is True


def test_cleanup_drops_idle_keys_at_most_once_per_interval() -> None:
    clock = FakeClock(start=0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock, cleanup_interval_ms=5000)
    limiter.check("idle", limit=5, window_ms=1000)
    assert len(limiter) == 1

    clock.now = 2000
    limiter.check("other", limit=5, window_ms=1000)
    # Interval not yet elapsed: the expired key is still tracked.
    assert len(limiter) == 2

    clock.now = 6000
    limiter.check("fresh", limit=5, window_ms=1000)
    assert limiter.count("idle") == 0
    assert len(limiter) == 1


def test_reset_clears_one_key_or_all() -> None:
    limiter = InMemorySlidingWindowRateLimiter(clock=FakeClock())
    limiter.check("a", limit=1)
    limiter.check("b", limit=1)

    limiter.reset("a")
    assert limiter.check("a", limit=1).allowed is True
    assert limiter.check("b", limit=1).allowed is False

    limiter.reset()
    assert len(limiter) == 0


@pytest.mark.parametrize(
    "args",
    [
        ("", 1, 1000),
        ("k", 0, 1000),
        ("k", 1, 0),
    ],
)
def test_invalid_check_args(args: tuple) -> None:
    limiter = InMemorySlidingWindowRateLimiter()

    with pytest.raises(ValueError):
        limiter.check(*args)


def test_invalid_cleanup_interval() -> None:
    with pytest.raises(ValueError):
        InMemorySlidingWindowRateLimiter(cleanup_interval_ms=0)


def test_concurrent_checks_never_exceed_limit() -> None:
    limiter = InMemorySlidingWindowRateLimiter(clock=FakeClock())
    allowed: list[bool] = []
    lock = threading.Lock()

    def _worker() -> None:
        result = limiter.check("shared", limit=10, window_ms=60_000)
        with lock:
            allowed.append(result.allowed)

    threads = [threading.Thread(target=_worker) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert allowed.count(True) == 10
    assert limiter.count("shared") == 10


def test_sweep_keeps_timestamps_inside_each_keys_own_window() -> None:
    clock = FakeClock(start=0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock, cleanup_interval_ms=1000)
    for _ in range(2):
        limiter.check("hourly", limit=2, window_ms=3_600_000)

    clock.now = 5000
    # This check triggers a sweep with a much shorter window.
    limiter.check("burst", limit=5, window_ms=1000)

    assert limiter.count("hourly") == 2
    assert limiter.check("hourly", limit=2, window_ms=3_600_000).allowed is False


def test_mixed_windows_on_one_key_count_only_their_own_span() -> None:
    clock = FakeClock(start=0)
    limiter = InMemorySlidingWindowRateLimiter(clock=clock)
    limiter.check("k", limit=5, window_ms=10_000)

    clock.now = 2000
    short = limiter.check("k", limit=1, window_ms=1000)
    long = limiter.check("k", limit=2, window_ms=10_000)

    assert short.allowed is True
    assert long.allowed is False
    assert long.retry_after_seconds == 8


def test_limiter_interface_requires_reset() -> None:
    class CheckOnly(AbstractRateLimiter):
        def check(self, key, limit, window_ms=1000):
            raise NotImplementedError

    with pytest.raises(TypeError):
        CheckOnly()
