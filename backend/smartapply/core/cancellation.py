"""Cooperative cancellation for long-running async flows.

A CancellationToken is passed down through embedding retries, search
dispatch and the backfill loop. Those flows check it before each attempt or
item and wait on it instead of sleeping blindly, so a caller that no longer
needs the result can abandon the work promptly.
"""

import asyncio
import contextlib


class OperationCancelledError(Exception):
    """Raised when a flow observes that its token was cancelled."""

    pass


class CancellationToken:
    """Explicit cancellation signal backed by an asyncio.Event.

    Cancelling is one-way: once cancelled, a token stays cancelled.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Reason passed to cancel(), if any."""
        return self._reason

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Signal cancellation to every flow holding this token."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if the token was cancelled.

        Raises:
            OperationCancelledError: If cancel() has been called.
        """
        if self._event.is_set():
            raise OperationCancelledError(self._reason or "cancelled")

    async def sleep(self, delay: float) -> None:
        """Wait for ``delay`` seconds or until cancelled, whichever is first.

        Args:
            delay: Seconds to wait.

        Raises:
            OperationCancelledError: If cancelled before or during the wait.
        """
        self.raise_if_cancelled()
        sleeper = asyncio.ensure_future(asyncio.sleep(delay))
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task
        self.raise_if_cancelled()


async def cancellable_sleep(delay: float, token: CancellationToken | None) -> None:
    """Sleep that honours an optional cancellation token.

    Args:
        delay: Seconds to wait.
        token: Token to observe, or None for a plain sleep.
    """
    if token is None:
        await asyncio.sleep(delay)
    else:
        await token.sleep(delay)
