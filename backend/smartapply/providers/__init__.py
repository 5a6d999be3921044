"""Embedding provider layer.

Exports:
    Error classes for provider error handling
    ProviderConfig for configuration
    Factory functions for provider and client instances
"""

from smartapply.providers.config import ProviderConfig
from smartapply.providers.errors import (
    AuthenticationError,
    InvalidInputError,
    MissingCredentialsError,
    ProviderError,
    RateLimitError,
    TransientError,
)
from smartapply.providers.factory import get_embedding_client, get_embedding_provider

__all__ = [
    # Config
    "ProviderConfig",
    # Errors
    "ProviderError",
    "InvalidInputError",
    "MissingCredentialsError",
    "RateLimitError",
    "AuthenticationError",
    "TransientError",
    # Factory
    "get_embedding_client",
    "get_embedding_provider",
]
