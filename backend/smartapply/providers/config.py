"""Embedding provider configuration.

Configuration is built once at startup and handed to the embedding client,
so the client itself never reads process environment at call time.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderConfig:
    """Centralized embedding provider configuration.

    Attributes:
        embedding_provider: Which embedding provider to use ("openai", "mock").
        openai_api_key: OpenAI API key.
        embedding_model: Embedding model identifier.
        embedding_dimensions: Vector dimensions (must match pgvector columns).
        max_attempts: Total attempts per embed call, first try included.
        retry_base_delay_ms: Base delay for exponential backoff.
        request_timeout_seconds: Per-request timeout passed to the SDK.
    """

    embedding_provider: str = "openai"
    openai_api_key: str | None = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    max_attempts: int = 3
    retry_base_delay_ms: int = 5000
    request_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Load configuration from environment variables.

        Returns:
            ProviderConfig instance with values from environment.
        """
        return cls(
            embedding_provider=os.getenv("EMBEDDING_PROVIDER", "openai"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            embedding_dimensions=int(os.getenv("EMBEDDING_DIMENSIONS", "1536")),
            max_attempts=int(os.getenv("EMBEDDING_MAX_ATTEMPTS", "3")),
            retry_base_delay_ms=int(
                os.getenv("EMBEDDING_RETRY_BASE_DELAY_MS", "5000")
            ),
        )
