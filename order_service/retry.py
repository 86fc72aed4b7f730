"""
Bounded retry with exponential backoff for async calls.

Retry schedule for attempt n (1-based): initial_backoff * 2 ** (n - 1),
capped at max_backoff when set. Only exceptions listed in retry_on are
retried; anything else propagates straight away.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)


class RetryExhausted(Exception):
    """All attempts failed with retryable errors"""

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"gave up after {attempts} attempts: {last_error}")


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    initial_backoff: float = 0.1  # seconds
    max_backoff: Optional[float] = None
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def backoff(self, attempt: int) -> float:
        delay = self.initial_backoff * (2 ** (attempt - 1))
        if self.max_backoff is not None:
            delay = min(self.max_backoff, delay)
        return delay


def retrying(
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
):
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return await fn(*args, **kwargs)
                except policy.retry_on as e:
                    if attempt >= policy.max_retries:
                        raise RetryExhausted(attempt + 1, e) from e

                    attempt += 1
                    delay = policy.backoff(attempt)
                    logger.warning(
                        f"{fn.__name__} failed (retry {attempt}/{policy.max_retries} "
                        f"in {delay * 1000:.0f}ms): {e}"
                    )
                    await sleep(delay)

        return wrapper

    return decorator
