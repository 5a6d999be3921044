"""Abstract base class and types for embedding providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smartapply.providers.config import ProviderConfig


# Immutable once produced; identity is the text and model that generated it.
Embedding = tuple[float, ...]


@dataclass
class EmbeddingResult:
    """Result of a single provider round trip.

    Attributes:
        vectors: One embedding vector per input text, in same order.
        model: Model identifier used for embedding.
        dimensions: Number of dimensions in each vector.
        total_tokens: Total tokens processed across all inputs.
    """

    vectors: list[list[float]]
    model: str
    dimensions: int
    total_tokens: int


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    Adapters perform exactly one request per ``embed`` call and translate
    vendor exceptions into the provider error taxonomy. Retrying is the
    job of the EmbeddingClient, never of an adapter.
    """

    def __init__(self, config: "ProviderConfig") -> None:
        """Initialize with provider configuration.

        Args:
            config: Provider configuration including API keys.
        """
        self.config = config

    @abstractmethod
    async def embed(self, texts: list[str]) -> EmbeddingResult:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of strings to embed.

        Returns:
            EmbeddingResult with vectors in same order as input.

        Raises:
            ProviderError: On API failure (not retried here).
        """
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Return the embedding dimensions (e.g., 1536)."""
        ...
