"""Tests for the OpenAI embedding adapter.

The SDK client is replaced with a mock; no network access.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from smartapply.providers.config import ProviderConfig
from smartapply.providers.embedding.openai_adapter import (
    OpenAIEmbeddingAdapter,
    _classify_openai_error,
)
from smartapply.providers.errors import (
    AuthenticationError,
    ProviderError,
    RateLimitError,
    TransientError,
)

_URL = "https://api.openai.com/v1/embeddings"


def _response(status_code: int, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers=headers or {},
        request=httpx.Request("POST", _URL),
    )


@pytest.fixture
def adapter():
    config = ProviderConfig(
        openai_api_key="sk-test",  # nosec B106
        embedding_model="text-embedding-3-small",
        embedding_dimensions=3,
    )
    adapter = OpenAIEmbeddingAdapter(config)
    adapter.client = MagicMock()
    adapter.client.embeddings.create = AsyncMock()
    return adapter


class TestEmbed:
    @pytest.mark.asyncio
    async def test_returns_vectors_and_usage(self, adapter):
        adapter.client.embeddings.create.return_value = SimpleNamespace(
            data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])],
            usage=SimpleNamespace(total_tokens=7),
        )

        result = await adapter.embed(["hello"])

        assert result.vectors == [[0.1, 0.2, 0.3]]
        assert result.total_tokens == 7
        assert result.model == "text-embedding-3-small"
        adapter.client.embeddings.create.assert_awaited_once_with(
            model="text-embedding-3-small", input=["hello"]
        )

    @pytest.mark.asyncio
    async def test_sdk_error_is_translated(self, adapter):
        adapter.client.embeddings.create.side_effect = openai.RateLimitError(
            "Rate limit reached", response=_response(429), body=None
        )

        with pytest.raises(RateLimitError) as exc_info:
            await adapter.embed(["hello"])

        assert isinstance(exc_info.value.__cause__, openai.RateLimitError)

    def test_sdk_retries_disabled(self, adapter):
        fresh = OpenAIEmbeddingAdapter(ProviderConfig(openai_api_key="sk-test"))  # nosec B106

        assert fresh.client.max_retries == 0
        assert fresh.dimensions == 1536


class TestClassifyOpenAIError:
    def test_rate_limit_with_retry_after(self):
        error = openai.RateLimitError(
            "slow down", response=_response(429, {"retry-after": "12"}), body=None
        )

        result = _classify_openai_error(error)

        assert isinstance(result, RateLimitError)
        assert result.retry_after_seconds == 12.0

    def test_rate_limit_with_unparseable_retry_after(self):
        error = openai.RateLimitError(
            "slow down", response=_response(429, {"retry-after": "soon"}), body=None
        )

        result = _classify_openai_error(error)

        assert isinstance(result, RateLimitError)
        assert result.retry_after_seconds is None

    def test_authentication_error(self):
        error = openai.AuthenticationError(
            "bad key", response=_response(401), body=None
        )

        assert isinstance(_classify_openai_error(error), AuthenticationError)

    def test_connection_error_is_transient(self):
        error = openai.APIConnectionError(request=httpx.Request("POST", _URL))

        assert isinstance(_classify_openai_error(error), TransientError)

    def test_timeout_is_transient(self):
        error = openai.APITimeoutError(request=httpx.Request("POST", _URL))

        assert isinstance(_classify_openai_error(error), TransientError)

    def test_server_error_is_transient(self):
        error = openai.InternalServerError("boom", response=_response(500), body=None)

        assert isinstance(_classify_openai_error(error), TransientError)

    def test_bad_request_is_plain_provider_error(self):
        error = openai.BadRequestError("bad input", response=_response(400), body=None)

        result = _classify_openai_error(error)

        assert type(result) is ProviderError
