"""Single-text embedding client with retry policy.

EmbeddingClient is the only component that talks to the embedding
provider. It validates input up front, retries rate-limited and transient
failures with exponential backoff, and rejects malformed payloads. It keeps
no state between calls and never caches vectors, so the same text is
re-embedded every time it is requested.
"""

import logging
import math

from smartapply.core.cancellation import CancellationToken
from smartapply.providers.config import ProviderConfig
from smartapply.providers.embedding.base import (
    Embedding,
    EmbeddingProvider,
    EmbeddingResult,
)
from smartapply.providers.errors import (
    InvalidInputError,
    MissingCredentialsError,
    TransientError,
)
from smartapply.providers.retry import with_retries

logger = logging.getLogger(__name__)

# Providers that authenticate with an API key from ProviderConfig
_KEYED_PROVIDERS = {"openai": "openai_api_key"}


class EmbeddingClient:
    """Turn one text into one embedding, retrying per the provider config.

    Safe to share between concurrent callers. Callers that must respect the
    provider's request ceiling (the backfill loop) serialize themselves.

    Args:
        provider: Adapter performing single provider round trips.
        config: Provider configuration (credentials, retry policy, dimensions).
    """

    def __init__(self, provider: EmbeddingProvider, config: ProviderConfig) -> None:
        self._provider = provider
        self._config = config

    @property
    def model(self) -> str:
        """Embedding model identifier."""
        return self._config.embedding_model

    @property
    def dimensions(self) -> int:
        """Expected vector length."""
        return self._config.embedding_dimensions

    async def embed(
        self,
        text: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Embedding:
        """Embed a single text.

        Args:
            text: Text to embed. Must contain non-whitespace characters.
            cancel_token: Optional token checked before each attempt.

        Returns:
            Immutable embedding of the configured dimension.

        Raises:
            InvalidInputError: Empty text or missing credentials (no call made).
            RateLimitError: Still rate limited after the final attempt.
            TransientError: Transport failure or malformed payload after the
                final attempt.
            ProviderError: Non-retryable provider failure.
            OperationCancelledError: If the token was cancelled.
        """
        if not text or not text.strip():
            raise InvalidInputError("Cannot embed empty text")
        self._check_credentials()

        async def _attempt() -> Embedding:
            result = await self._provider.embed([text])
            return self._extract_vector(result)

        embedding = await with_retries(
            _attempt,
            self._config,
            cancel_token=cancel_token,
        )
        logger.debug(
            "Generated %d-dimension embedding for %d characters",
            len(embedding),
            len(text),
        )
        return embedding

    def _check_credentials(self) -> None:
        key_field = _KEYED_PROVIDERS.get(self._config.embedding_provider)
        if key_field and not getattr(self._config, key_field):
            raise MissingCredentialsError(
                f"No API key configured for embedding provider "
                f"'{self._config.embedding_provider}'"
            )

    def _extract_vector(self, result: EmbeddingResult) -> Embedding:
        """Validate a provider response and return its single vector.

        Raises:
            TransientError: If the payload is empty or malformed.
        """
        if len(result.vectors) != 1:
            raise TransientError(
                f"Expected exactly one embedding vector, got {len(result.vectors)}"
            )

        vector = result.vectors[0]
        if not vector:
            raise TransientError("Embedding response contained an empty vector")
        if len(vector) != self.dimensions:
            raise TransientError(
                f"Embedding has {len(vector)} dimensions, expected {self.dimensions}"
            )

        try:
            values = tuple(float(v) for v in vector)
        except (TypeError, ValueError) as e:
            raise TransientError("Embedding vector contains non-numeric values") from e
        if not all(math.isfinite(v) for v in values):
            raise TransientError("Embedding vector contains non-finite values")
        return values
