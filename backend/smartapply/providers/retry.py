"""Retry strategy for embedding provider calls.

Exponential backoff: the wait after attempt ``n`` (0-indexed) is
``retry_base_delay_ms * 2**n`` plus a small positive jitter. Attempts are
strictly sequential; the next one starts only after the wait elapses.
"""

import logging
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from smartapply.core.cancellation import CancellationToken, cancellable_sleep
from smartapply.providers.errors import RateLimitError, TransientError

__all__ = ["backoff_delay_seconds", "with_retries"]

if TYPE_CHECKING:
    from smartapply.providers.config import ProviderConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Jitter is a fraction of the base delay and only ever lengthens the wait.
_JITTER_RATIO = 0.1


def backoff_delay_seconds(
    attempt: int,
    config: "ProviderConfig",
    error: Exception | None = None,
) -> float:
    """Compute the wait before the retry that follows ``attempt``.

    Args:
        attempt: 0-indexed attempt that just failed.
        config: Provider configuration with retry settings.
        error: The error raised by that attempt.

    Returns:
        Delay in seconds. Never shorter than ``base * 2**attempt``.
    """
    base_delay_ms = config.retry_base_delay_ms * (2**attempt)
    jitter_ms = random.uniform(0, base_delay_ms * _JITTER_RATIO)
    delay = (base_delay_ms + jitter_ms) / 1000

    if isinstance(error, RateLimitError) and error.retry_after_seconds:
        delay = max(delay, error.retry_after_seconds)

    return delay


async def with_retries(
    func: Callable[[], Awaitable[T]],
    config: "ProviderConfig",
    retryable_errors: tuple[type[Exception], ...] = (TransientError, RateLimitError),
    cancel_token: CancellationToken | None = None,
) -> T:
    """Execute function with exponential backoff retry.

    Args:
        func: Async function to execute (no arguments).
        config: Provider configuration with retry settings.
        retryable_errors: Tuple of error types that should trigger retry.
        cancel_token: Optional token checked before every attempt and
            observed during backoff waits.

    Returns:
        Result from successful function execution.

    Raises:
        TransientError: If all attempts failed with transient failures.
        RateLimitError: If all attempts failed due to rate limiting.
        OperationCancelledError: If the token was cancelled.
        RuntimeError: If configured with fewer than one attempt.
    """
    last_error: Exception | None = None
    max_attempts = config.max_attempts

    for attempt in range(max_attempts):
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        try:
            return await func()
        except retryable_errors as e:
            last_error = e

            if attempt == max_attempts - 1:
                break

            delay = backoff_delay_seconds(attempt, config, e)
            logger.warning(
                "Embedding provider error (attempt %d/%d): %s. Retrying in %.2fs",
                attempt + 1,
                max_attempts,
                e,
                delay,
            )

            await cancellable_sleep(delay, cancel_token)

    if last_error is not None:
        logger.error(
            "Embedding provider failed after %d attempts: %s",
            max_attempts,
            last_error,
        )
        raise last_error
    raise RuntimeError("Retry loop exited without error or result")
