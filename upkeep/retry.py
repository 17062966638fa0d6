"""Retry a fallible coroutine with exponential backoff and jitter.

Only rate-limit failures are retried by default: a 429 status on the error
(or on its ``response``), or a message mentioning "rate limit" / "too many".
Everything else propagates on the attempt that raised it.

Example:
    >>> policy = RetryPolicy(max_retries=3, base_delay=0.7, max_delay=6.0)
    >>> user = await with_rate_limit_retry(lambda: store.update(user_id, fields), policy)
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

from upkeep.load_secrets import retry_base_delay, retry_max_delay, retry_max_retries

T = TypeVar("T")

TOO_MANY_REQUESTS = 429
RATE_LIMIT_PHRASES = ("rate limit", "too many")


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff settings; delays are in seconds.

    Attributes:
        max_retries: retries after the first attempt
        base_delay: delay before the first retry, before jitter
        max_delay: cap on the unjittered delay
        jitter_range: (min, max) fraction of the capped delay actually waited
    """

    max_retries: int = 3
    base_delay: float = 0.7
    max_delay: float = 6.0
    jitter_range: Tuple[float, float] = (0.2, 0.5)

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if not 0 < self.base_delay <= self.max_delay:
            raise ValueError("base_delay must be positive and not exceed max_delay")
        low, high = self.jitter_range
        if not 0 <= low <= high < 1:
            raise ValueError("jitter_range must satisfy 0 <= min <= max < 1")

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_retries=retry_max_retries,
            base_delay=retry_base_delay,
            max_delay=retry_max_delay,
        )


def error_status(error: BaseException) -> Optional[int]:
    """Status code carried by ``error`` itself or by its ``response``."""
    for source in (error, getattr(error, "response", None)):
        if source is None:
            continue
        for attr in ("status", "status_code"):
            value = getattr(source, attr, None)
            if isinstance(value, int):
                return value
    return None


def is_rate_limit(error: BaseException) -> bool:
    if error_status(error) == TOO_MANY_REQUESTS:
        return True
    message = str(error).lower()
    return any(phrase in message for phrase in RATE_LIMIT_PHRASES)


def backoff_delay(policy: RetryPolicy, attempt: int, rng: random.Random = random) -> float:
    """Delay before retry ``attempt`` (1-indexed)."""
    capped = min(policy.base_delay * (2 ** (attempt - 1)), policy.max_delay)
    low, high = policy.jitter_range
    return capped * rng.uniform(low, high)


async def with_rate_limit_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    on_retry: Optional[Callable[[int, float, Exception], Any]] = None,
    *,
    is_retryable: Callable[[Exception], bool] = is_rate_limit,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Await ``operation()`` until it succeeds or the failure is final.

    Args:
        operation (Callable): zero-argument factory returning a fresh awaitable
        policy (RetryPolicy, optional): defaults to RetryPolicy()
        on_retry (Callable, optional): called with (attempt, delay, error) before each wait
        is_retryable (Callable): classifies failures worth another attempt
        sleep (Callable): awaitable sleep, replaceable in tests

    Returns:
        T: result of the first successful attempt
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= policy.max_retries or not is_retryable(e):
                raise
            attempt += 1
            delay = backoff_delay(policy, attempt)
            if on_retry is not None:
                try:
                    on_retry(attempt, delay, e)
                except Exception as callback_error:
                    logging.debug(f"on_retry callback failed: {callback_error}")
            logging.info(f"Rate limited, retry {attempt}/{policy.max_retries} in {delay:.2f}s: {e}")
            await sleep(delay)
