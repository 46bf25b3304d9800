"""Retry utilities with exponential backoff.

Used for external lookups made by insights, which run under a short
overall deadline:
- Initial interval: 0.5 seconds
- Multiplier: 2.0
- Max interval: 4 seconds
"""

import asyncio
import inspect
import logging
import time
from typing import Callable, TypeVar, Optional, Type, Tuple

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INITIAL_INTERVAL = 0.5
DEFAULT_MAX_INTERVAL = 4.0
DEFAULT_MULTIPLIER = 2.0
DEFAULT_MAX_ATTEMPTS = 3


async def retry_with_backoff(
    func: Callable[[], T],
    max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS,
    max_elapsed_time: Optional[float] = None,
    initial_interval: float = DEFAULT_INITIAL_INTERVAL,
    max_interval: float = DEFAULT_MAX_INTERVAL,
    multiplier: float = DEFAULT_MULTIPLIER,
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[Exception, int, float], None]] = None,
) -> T:
    """Execute a function with exponential backoff retry.

    Args:
        func: Sync or async function to execute (no arguments)
        max_attempts: Maximum number of attempts (None for unlimited)
        max_elapsed_time: Maximum total time in seconds (None for unlimited)
        initial_interval: Initial wait between retries
        max_interval: Maximum wait between retries
        multiplier: Backoff multiplier
        retryable_exceptions: Tuple of exception types to retry on
        on_retry: Optional callback(exception, attempt, next_interval)

    Returns:
        Result of the function

    Raises:
        The last exception if all retries fail
    """
    start_time = time.monotonic()
    attempt = 0
    interval = initial_interval
    last_exception: Optional[Exception] = None

    while True:
        attempt += 1

        if max_attempts is not None and attempt > max_attempts:
            if last_exception:
                raise last_exception
            raise RuntimeError("Max attempts exceeded")

        elapsed = time.monotonic() - start_time
        if max_elapsed_time is not None and elapsed >= max_elapsed_time:
            if last_exception:
                raise last_exception
            raise TimeoutError(f"Max elapsed time ({max_elapsed_time}s) exceeded")

        try:
            result = func()
            if inspect.isawaitable(result):
                result = await result
            return result
        except retryable_exceptions as e:
            last_exception = e

            if max_attempts is not None and attempt >= max_attempts:
                raise

            remaining_time = (
                max_elapsed_time - elapsed if max_elapsed_time else float("inf")
            )
            if remaining_time <= 0:
                raise

            wait_time = min(interval, max_interval, remaining_time)

            if on_retry:
                on_retry(e, attempt, wait_time)
            else:
                logger.debug(
                    f"Attempt {attempt} failed: {e}. Retrying in {wait_time:.1f}s"
                )

            await asyncio.sleep(wait_time)
            interval = min(interval * multiplier, max_interval)
