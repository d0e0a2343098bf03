"""
Retry policy for embedding-provider calls.

Only failures that can succeed on their own are retried:
    429 rate limit          → retry (unless the provider says the quota is gone)
    5xx server error        → retry
    429 insufficient_quota  → fail now, someone has to fix billing
    other 4xx               → fail now, the request itself is wrong

Backoff before retry n (n = 1, 2, ...) is min(30s, 0.5s * 2**(n-1)):
0.5, 1, 2, 4, 8, 16, 30, 30, ... After max_retries retries the last
error is re-raised unchanged, so a call makes at most max_retries + 1
attempts.

Usage:
    vectors = await with_retry(lambda: provider.embed(model, texts), max_retries=5)
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from docrag.errors import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_DELAY_SECONDS = 0.5
MAX_DELAY_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 5


def is_retryable(exc: BaseException) -> bool:
    """True for provider rate limits (without quota exhaustion) and 5xx errors."""
    return isinstance(exc, ProviderError) and exc.retryable


def backoff_seconds(attempt: int) -> float:
    """Delay before retry number `attempt` (1-based)."""
    return min(MAX_DELAY_SECONDS, BASE_DELAY_SECONDS * 2 ** (attempt - 1))


def _wait_backoff(retry_state: RetryCallState) -> float:
    return backoff_seconds(retry_state.attempt_number)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        f"Embedding request failed ({exc!r}), retry {retry_state.attempt_number} "
        f"in {delay:.1f}s"
    )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await `operation()`, retrying retryable provider failures with backoff.

    Args:
        operation: Zero-arg callable returning a fresh awaitable per attempt.
        max_retries: Retries after the first attempt.
        sleep: Awaitable sleep used between attempts.

    Returns:
        The first successful result.

    Raises:
        The last error, once it is non-retryable or retries are exhausted.
    """
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(max_retries + 1),
        wait=_wait_backoff,
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    # operation may be a plain lambda; its awaitable is awaited per attempt
    async for attempt in retrying:
        with attempt:
            return await operation()
