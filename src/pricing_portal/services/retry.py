"""
Retry with exponential backoff for rule storage reads.

Only transient storage errors are retried; not-found, validation and
permission errors are raised on the first attempt.
"""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from ..errors import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_ERRORS = (TransientStoreError, asyncio.TimeoutError, TimeoutError, ConnectionError)


def is_retryable(error: Exception) -> bool:
    return isinstance(error, RETRYABLE_ERRORS)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    initial_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await ``fn()`` up to ``max_retries`` times, sleeping
    ``initial_delay * 2 ** attempt`` between attempts.
    """
    attempts = max(1, max_retries)
    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as e:
            if not is_retryable(e) or attempt == attempts - 1:
                raise
            delay = initial_delay * (2 ** attempt)
            logger.warning(
                "Storage error, retry attempt %d/%d after %.1fs: %s",
                attempt + 1, attempts, delay, e
            )
            await sleep(delay)
    raise AssertionError("unreachable")
