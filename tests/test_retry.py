"""Tests for the retry helper."""

import pytest

from campusmart.domain.errors import RemoteError, TransientRemoteError
from campusmart.utils.retry import NO_RETRY, RetryPolicy, call_with_retry


class Flaky:
    """Callable failing a set number of times before succeeding."""

    def __init__(self, failures: int, error: Exception):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


def test_transient_failures_are_retried():
    sleeps = []
    fn = Flaky(2, TransientRemoteError("unavailable"))

    assert call_with_retry(fn, RetryPolicy(attempts=3), sleep=sleeps.append) == "ok"
    assert fn.calls == 3
    assert len(sleeps) == 2


def test_gives_up_after_attempts():
    fn = Flaky(5, TransientRemoteError("unavailable"))
    with pytest.raises(TransientRemoteError):
        call_with_retry(fn, RetryPolicy(attempts=3), sleep=lambda _: None)
    assert fn.calls == 3


def test_permanent_failures_are_not_retried():
    fn = Flaky(1, RemoteError("permission denied"))
    with pytest.raises(RemoteError):
        call_with_retry(fn, RetryPolicy(attempts=3), sleep=lambda _: None)
    assert fn.calls == 1


def test_no_retry_policy():
    fn = Flaky(1, TransientRemoteError("unavailable"))
    with pytest.raises(TransientRemoteError):
        call_with_retry(fn, NO_RETRY, sleep=lambda _: None)
    assert fn.calls == 1


def test_delay_is_capped_full_jitter():
    policy = RetryPolicy(base_delay=0.5, max_delay=1.0)
    ceilings = []

    def upper(low, high):
        ceilings.append((low, high))
        return high

    assert policy.delay_for(1, rng=upper) == 0.5
    assert policy.delay_for(2, rng=upper) == 1.0
    assert policy.delay_for(5, rng=upper) == 1.0
    assert all(low == 0 for low, _ in ceilings)
