import uuid
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from smartapply.core.config import settings
from smartapply.providers import factory
from smartapply.providers.config import ProviderConfig
from smartapply.providers.embedding.client import EmbeddingClient
from smartapply.providers.embedding.mock_adapter import MockEmbeddingProvider

# Test user ID (consistent across tests for predictable auth)
TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

# Security: test-only key, never sent anywhere
TEST_API_KEY = "sk-test-key"  # nosec B105  # gitleaks:allow

# Small vectors keep assertion output readable
TEST_DIMENSIONS = 8


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Provider config with a fake key and small vectors."""
    return ProviderConfig(
        embedding_provider="openai",
        openai_api_key=TEST_API_KEY,
        embedding_dimensions=TEST_DIMENSIONS,
        max_attempts=3,
        retry_base_delay_ms=5000,
    )


@pytest.fixture
def mock_embedding() -> Iterator[MockEmbeddingProvider]:
    """Fixture that provides mock embedding provider and resets after test.

    Automatically injects into factory singleton and resets after test.

    Yields:
        MockEmbeddingProvider instance with TEST_DIMENSIONS-length vectors.
    """
    mock = MockEmbeddingProvider(dimensions=TEST_DIMENSIONS)

    # Inject mock into factory singleton
    factory._embedding_provider = mock

    yield mock

    # Reset after test
    factory.reset_providers()


@pytest.fixture
def embedding_client(
    mock_embedding: MockEmbeddingProvider,
    provider_config: ProviderConfig,
) -> EmbeddingClient:
    """EmbeddingClient wired to the mock provider."""
    return EmbeddingClient(mock_embedding, provider_config)


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with DEFAULT_USER_ID set (local-first mode).

    Tests override service dependencies on ``app.dependency_overrides``;
    overrides are cleared on teardown.

    Yields:
        AsyncClient bound to the app via ASGI transport.
    """
    from smartapply.main import app

    original_user_id = settings.default_user_id
    settings.default_user_id = TEST_USER_ID

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    settings.default_user_id = original_user_id
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def unauthenticated_client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with no DEFAULT_USER_ID, for 401 tests."""
    from smartapply.main import app

    original_user_id = settings.default_user_id
    settings.default_user_id = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    settings.default_user_id = original_user_id
    app.dependency_overrides.clear()
