"""OpenAI embedding adapter.

One request per call against the embeddings endpoint, with OpenAI SDK
exceptions mapped onto the provider error taxonomy. The SDK's own retry
loop is disabled so backoff stays under EmbeddingClient's control.
"""

import contextlib
from typing import TYPE_CHECKING

import openai
import structlog
from openai import AsyncOpenAI

from smartapply.providers.embedding.base import EmbeddingProvider, EmbeddingResult
from smartapply.providers.errors import (
    AuthenticationError,
    ProviderError,
    RateLimitError,
    TransientError,
)

if TYPE_CHECKING:
    from smartapply.providers.config import ProviderConfig

logger = structlog.get_logger()


def _classify_openai_error(error: Exception) -> ProviderError:
    """Map OpenAI SDK exceptions to internal error taxonomy.

    Returns a ProviderError subclass instance (does not raise).
    The caller is responsible for raising via ``raise _classify_openai_error(e) from e``.

    Args:
        error: Exception raised by the OpenAI SDK.

    Returns:
        The matching ProviderError subclass instance.
    """
    if isinstance(error, openai.RateLimitError):
        retry_after = None
        headers = getattr(getattr(error, "response", None), "headers", None)
        if headers is not None:
            raw = headers.get("retry-after")
            if raw is not None:
                with contextlib.suppress(ValueError):
                    retry_after = float(raw)
        return RateLimitError(str(error), retry_after_seconds=retry_after)

    if isinstance(error, openai.AuthenticationError):
        return AuthenticationError(str(error))

    # APITimeoutError subclasses APIConnectionError
    if isinstance(error, (openai.APIConnectionError, openai.InternalServerError)):
        return TransientError(str(error))

    return ProviderError(str(error))


class OpenAIEmbeddingAdapter(EmbeddingProvider):
    """OpenAI adapter for text embeddings."""

    def __init__(self, config: "ProviderConfig") -> None:
        """Initialize OpenAI embedding adapter.

        Args:
            config: Provider configuration with OpenAI API key.
        """
        super().__init__(config)
        self.client = AsyncOpenAI(
            api_key=config.openai_api_key,
            max_retries=0,
            timeout=config.request_timeout_seconds,
        )
        self._model = config.embedding_model
        self._dimensions = config.embedding_dimensions

    async def embed(self, texts: list[str]) -> EmbeddingResult:
        """Generate embeddings using OpenAI.

        Args:
            texts: List of texts to embed.

        Returns:
            EmbeddingResult with vectors in same order as input.

        Raises:
            RateLimitError: On HTTP 429.
            TransientError: On connection errors, timeouts and 5xx.
            AuthenticationError: On an invalid API key.
            ProviderError: On any other API error.
        """
        try:
            response = await self.client.embeddings.create(
                model=self._model,
                input=texts,
            )
        except (
            openai.RateLimitError,
            openai.AuthenticationError,
            openai.APIConnectionError,
            openai.APIStatusError,
        ) as e:
            logger.warning(
                "openai_embedding_failed",
                model=self._model,
                error_type=type(e).__name__,
            )
            raise _classify_openai_error(e) from e

        vectors = [item.embedding for item in response.data]
        total_tokens = response.usage.total_tokens if response.usage else 0

        return EmbeddingResult(
            vectors=vectors,
            model=self._model,
            dimensions=self._dimensions,
            total_tokens=total_tokens,
        )

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions (e.g., 1536 for text-embedding-3-small)."""
        return self._dimensions
