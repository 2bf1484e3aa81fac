"""Bounded retry with exponential backoff and full jitter."""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from campusmart.domain.errors import TransientRemoteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times, and how patiently, to retry a transient failure."""

    attempts: int = 3
    base_delay: float = 0.2
    max_delay: float = 2.0
    retry_on: tuple[type[BaseException], ...] = (TransientRemoteError,)

    def delay_for(self, attempt: int, rng: Callable[[float, float], float] = random.uniform) -> float:
        """Sleep before retry number ``attempt`` (1-based): uniform in [0, capped backoff]."""
        ceiling = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        return rng(0, ceiling)


NO_RETRY = RetryPolicy(attempts=1)


def call_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy = RetryPolicy(),
    sleep: Callable[[float], None] = time.sleep,
    description: str = "call",
) -> T:
    """Call ``fn`` until it succeeds or the policy's attempts are used up.

    Only exceptions listed in ``policy.retry_on`` are retried; anything else,
    and the last retryable failure, propagates to the caller.
    """
    attempt = 1
    while True:
        try:
            return fn()
        except policy.retry_on as exc:
            if attempt >= policy.attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                description, attempt, policy.attempts, delay, exc,
            )
            sleep(delay)
            attempt += 1
