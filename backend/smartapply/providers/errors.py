"""Embedding provider error taxonomy.

Error classes for the embedding provider layer. Adapters translate SDK
exceptions into these so callers never depend on a vendor's exception types.
"""


__all__ = [
    "ProviderError",
    "InvalidInputError",
    "MissingCredentialsError",
    "RateLimitError",
    "AuthenticationError",
    "TransientError",
]


class ProviderError(Exception):
    """Base class for all provider errors.

    Callers can catch every embedding failure with a single handler.
    Not retried unless a subclass says otherwise.
    """

    pass


class InvalidInputError(ProviderError):
    """Caller error detected before any network call.

    Raised for empty text or an empty search query. Never retried.
    """

    pass


class MissingCredentialsError(InvalidInputError):
    """No API key configured for the embedding provider."""

    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded (HTTP 429).

    Retried with exponential backoff, then terminal.
    """

    def __init__(self, message: str, retry_after_seconds: float | None = None):
        """Initialize RateLimitError.

        Args:
            message: Error description from the provider.
            retry_after_seconds: Optional hint from provider on when to retry.
        """
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(ProviderError):
    """Invalid or revoked API key.

    Requires operator intervention, so it is not retried.
    """

    pass


class TransientError(ProviderError):
    """Temporary failure: connection errors, timeouts, 5xx responses,
    or an empty/malformed embedding payload.

    Retried with exponential backoff, then terminal.
    """

    pass
