"""Provider factory functions.

Singleton pattern for the embedding provider instance, so HTTP connections
are reused across requests. The singleton remembers the config it was built
from; asking for a different config replaces it, so a client never pairs an
adapter with another config's model or dimensions.
"""

from smartapply.providers.config import ProviderConfig
from smartapply.providers.embedding.base import EmbeddingProvider
from smartapply.providers.embedding.client import EmbeddingClient
from smartapply.providers.embedding.mock_adapter import MockEmbeddingProvider
from smartapply.providers.embedding.openai_adapter import OpenAIEmbeddingAdapter

_embedding_provider: EmbeddingProvider | None = None
_embedding_config: ProviderConfig | None = None


def _build_provider(config: ProviderConfig) -> EmbeddingProvider:
    if config.embedding_provider == "openai":
        return OpenAIEmbeddingAdapter(config)
    if config.embedding_provider == "mock":
        return MockEmbeddingProvider(dimensions=config.embedding_dimensions)
    raise ValueError(f"Unknown embedding provider: {config.embedding_provider}")


def get_embedding_provider(
    config: ProviderConfig | None = None,
) -> EmbeddingProvider:
    """Get or create the embedding provider singleton.

    Args:
        config: Optional provider configuration. If None and no provider
            exists, loads from environment. A config that differs from the
            one the singleton was built from rebuilds it.

    Returns:
        EmbeddingProvider instance.

    Raises:
        ValueError: If the configured provider is unknown.
    """
    global _embedding_provider, _embedding_config

    # An injected provider (tests) has no recorded config and is kept as is
    stale = (
        _embedding_config is not None
        and config is not None
        and config != _embedding_config
    )

    if _embedding_provider is None or stale:
        if config is None:
            config = ProviderConfig.from_env()
        _embedding_provider = _build_provider(config)
        _embedding_config = config

    return _embedding_provider


def get_embedding_client(config: ProviderConfig | None = None) -> EmbeddingClient:
    """Build an EmbeddingClient around the provider singleton.

    The client is stateless, so a fresh one per caller is cheap.

    Args:
        config: Optional provider configuration. Loaded from environment
            when omitted.

    Returns:
        EmbeddingClient bound to a provider built from the same config.
    """
    if config is None:
        config = ProviderConfig.from_env()
    return EmbeddingClient(get_embedding_provider(config), config)


def reset_providers() -> None:
    """Reset provider singletons.

    Used in tests to ensure isolation between test cases.
    """
    global _embedding_provider, _embedding_config
    _embedding_provider = None
    _embedding_config = None
