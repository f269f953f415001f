"""
Retry Logic for Generation Requests

Bounded retry with exponential backoff for the HTTP transports:
attempt i (0-based) that fails waits base_delay * 2**i before the next
one; the fault of the last attempt propagates unchanged.

Usage:
    from genux_core.retry import RetryPolicy, retry_async

    data = await retry_async(post_json, url, payload, policy=RetryPolicy())
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Tuple, Type

import aiohttp

from .diagnostics import get_logger
from .exceptions import TransportError

logger = get_logger(__name__)

RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    TransportError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


@dataclass
class RetryPolicy:
    """
    Retry settings.

    Attributes:
        max_attempts: Total number of attempts (not retries)
        base_delay: Delay after the first failure, in seconds
        sleep: Awaitable used to wait between attempts
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    sleep: Callable[[float], Awaitable[Any]] = field(default=asyncio.sleep, repr=False)

    def delay_for(self, attempt_index: int) -> float:
        return self.base_delay * (2 ** attempt_index)


async def retry_async(
    func: Callable[..., Awaitable[Any]],
    *args,
    policy: RetryPolicy = None,
    retryable: Tuple[Type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
    **kwargs,
):
    """
    Execute an async function with retry logic.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        policy: Attempts and backoff settings
        retryable: Exceptions that trigger another attempt
        **kwargs: Keyword arguments for func

    Returns:
        Result of func
    """
    policy = policy or RetryPolicy()
    for attempt in range(policy.max_attempts):
        try:
            return await func(*args, **kwargs)
        except retryable as e:
            if attempt == policy.max_attempts - 1:
                logger.error(f"Request failed after {policy.max_attempts} attempts: {e}")
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{policy.max_attempts} failed: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            await policy.sleep(delay)
