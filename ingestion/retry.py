"""
Bounded retry with exponential backoff for transient remote-call failures
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from core.exceptions import RetryableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    retry_if: Optional[Callable[[RetryableError], bool]] = None,
) -> T:
    """
    Await ``operation()`` until it succeeds or retries are exhausted.

    Only RetryableError is retried; everything else propagates at once.
    The delay doubles after every attempt unless the error carries a
    ``retry_after`` hint from the remote.

    Args:
        operation: Zero-argument coroutine factory
        description: What is being attempted, for log lines
        max_retries: Total number of attempts (at least one is made)
        retry_delay: Initial delay in seconds
        sleep: Awaitable sleep, replaceable in tests
        retry_if: Narrows which transient errors are retried; errors it
            rejects propagate at once

    Raises:
        RetryableError: The last transient error once attempts run out
    """
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            return await operation()
        except RetryableError as e:
            if retry_if is not None and not retry_if(e):
                raise
            if attempt >= attempts - 1:
                e.context["retry_count"] = attempt + 1
                raise

            delay = e.retry_after if e.retry_after is not None else retry_delay * (2 ** attempt)
            logger.warning(
                f"{description} failed ({e.message}). "
                f"Retrying in {delay} seconds (attempt {attempt + 1}/{attempts})"
            )
            await sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{description}: retry loop exited without a result")
