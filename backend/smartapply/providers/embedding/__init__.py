"""Embedding provider module.

Exports:
    Embedding: Immutable vector type
    EmbeddingClient: Single-text client with retry policy
    EmbeddingProvider: Abstract base class for embeddings
    EmbeddingResult: Result dataclass from embedding operations
    MockEmbeddingProvider: Deterministic provider for tests
    OpenAIEmbeddingAdapter: OpenAI implementation
"""

from smartapply.providers.embedding.base import (
    Embedding,
    EmbeddingProvider,
    EmbeddingResult,
)
from smartapply.providers.embedding.client import EmbeddingClient
from smartapply.providers.embedding.mock_adapter import MockEmbeddingProvider
from smartapply.providers.embedding.openai_adapter import OpenAIEmbeddingAdapter

__all__ = [
    "Embedding",
    "EmbeddingClient",
    "EmbeddingProvider",
    "EmbeddingResult",
    "MockEmbeddingProvider",
    "OpenAIEmbeddingAdapter",
]
