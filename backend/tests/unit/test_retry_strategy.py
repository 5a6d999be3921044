"""Tests for provider retry strategy.

Tests behavior of retry logic:
- Exponential backoff with jitter that never shortens the wait
- Rate limit retry_after_seconds handling
- Non-retryable errors fail immediately
- Attempt count enforcement
- Cancellation during backoff
"""

from unittest.mock import AsyncMock, patch

import pytest

from smartapply.core.cancellation import CancellationToken, OperationCancelledError
from smartapply.providers.config import ProviderConfig
from smartapply.providers.errors import (
    AuthenticationError,
    InvalidInputError,
    RateLimitError,
    TransientError,
)
from smartapply.providers.retry import backoff_delay_seconds, with_retries

_SLEEP = "smartapply.core.cancellation.asyncio.sleep"
_UNIFORM = "smartapply.providers.retry.random.uniform"


@pytest.fixture
def config():
    """Provider config with test retry settings."""
    return ProviderConfig(max_attempts=3, retry_base_delay_ms=100)


class TestWithRetriesSuccess:
    """Test successful execution paths."""

    @pytest.mark.asyncio
    async def test_returns_result_on_success(self, config):
        """Should return function result when no error occurs."""
        func = AsyncMock(return_value="success")

        result = await with_retries(func, config)

        assert result == "success"
        func.assert_called_once()

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_error(self, config):
        """Should retry and succeed after transient error."""
        func = AsyncMock(side_effect=[TransientError("temporary"), "success"])

        with patch(_SLEEP, new_callable=AsyncMock):
            result = await with_retries(func, config)

        assert result == "success"
        assert func.call_count == 2

    @pytest.mark.asyncio
    async def test_succeeds_after_rate_limit_error(self, config):
        """Should retry and succeed after rate limit error."""
        func = AsyncMock(side_effect=[RateLimitError("rate limited"), "success"])

        with patch(_SLEEP, new_callable=AsyncMock):
            result = await with_retries(func, config)

        assert result == "success"
        assert func.call_count == 2


class TestWithRetriesFailure:
    """Test failure paths."""

    @pytest.mark.asyncio
    async def test_raises_last_error_after_max_attempts(self, config):
        """max_attempts counts the first try, so 3 means 3 calls total."""
        func = AsyncMock(
            side_effect=[
                TransientError("fail 1"),
                TransientError("fail 2"),
                TransientError("fail 3"),
            ]
        )

        with (
            patch(_SLEEP, new_callable=AsyncMock),
            pytest.raises(TransientError, match="fail 3"),
        ):
            await with_retries(func, config)

        assert func.call_count == 3

    @pytest.mark.asyncio
    async def test_no_sleep_after_final_attempt(self, config):
        """Waits happen only between attempts."""
        func = AsyncMock(side_effect=RateLimitError("429"))

        with (
            patch(_SLEEP, new_callable=AsyncMock) as mock_sleep,
            pytest.raises(RateLimitError),
        ):
            await with_retries(func, config)

        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_authentication_error_fails_immediately(self, config):
        """Non-retryable errors should not trigger retry."""
        func = AsyncMock(side_effect=AuthenticationError("invalid key"))

        with pytest.raises(AuthenticationError, match="invalid key"):
            await with_retries(func, config)

        func.assert_called_once()

    @pytest.mark.asyncio
    async def test_invalid_input_fails_immediately(self, config):
        func = AsyncMock(side_effect=InvalidInputError("empty"))

        with pytest.raises(InvalidInputError):
            await with_retries(func, config)

        func.assert_called_once()

    @pytest.mark.asyncio
    async def test_single_attempt_config_never_sleeps(self):
        config = ProviderConfig(max_attempts=1, retry_base_delay_ms=100)
        func = AsyncMock(side_effect=TransientError("down"))

        with (
            patch(_SLEEP, new_callable=AsyncMock) as mock_sleep,
            pytest.raises(TransientError),
        ):
            await with_retries(func, config)

        func.assert_called_once()
        mock_sleep.assert_not_awaited()


class TestExponentialBackoff:
    """Test exponential backoff delay calculation."""

    @pytest.mark.asyncio
    async def test_delays_double_with_each_attempt(self):
        """With the 5s base, waits are 5s then 10s."""
        config = ProviderConfig(max_attempts=3, retry_base_delay_ms=5000)
        func = AsyncMock(
            side_effect=[
                RateLimitError("429"),
                RateLimitError("429"),
                "success",
            ]
        )
        sleep_calls = []

        async def mock_sleep(delay):
            sleep_calls.append(delay)

        with (
            patch(_SLEEP, side_effect=mock_sleep),
            patch(_UNIFORM, return_value=0),
        ):
            result = await with_retries(func, config)

        assert result == "success"
        assert sleep_calls == [5.0, 10.0]

    def test_jitter_only_lengthens_delay(self, config):
        with patch(_UNIFORM, return_value=8.0) as mock_uniform:
            delay = backoff_delay_seconds(1, config)

        # base 100ms * 2**1 = 200ms, jitter drawn from [0, 10% of 200ms]
        mock_uniform.assert_called_once_with(0, pytest.approx(20.0))
        assert delay == pytest.approx(0.208)

    def test_no_upper_cap(self, config):
        with patch(_UNIFORM, return_value=0):
            delay = backoff_delay_seconds(10, config)

        assert delay == pytest.approx(102.4)

    def test_retry_after_extends_delay(self, config):
        error = RateLimitError("429", retry_after_seconds=30)

        with patch(_UNIFORM, return_value=0):
            delay = backoff_delay_seconds(0, config, error)

        assert delay == 30

    def test_retry_after_never_shortens_delay(self):
        config = ProviderConfig(retry_base_delay_ms=5000)
        error = RateLimitError("429", retry_after_seconds=1)

        with patch(_UNIFORM, return_value=0):
            delay = backoff_delay_seconds(0, config, error)

        assert delay == 5.0


class TestRetryCancellation:
    """Test cancellation token handling."""

    @pytest.mark.asyncio
    async def test_cancelled_token_prevents_first_attempt(self, config):
        token = CancellationToken()
        token.cancel("shutting down")
        func = AsyncMock(return_value="success")

        with pytest.raises(OperationCancelledError, match="shutting down"):
            await with_retries(func, config, cancel_token=token)

        func.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_stops_retrying(self, config):
        token = CancellationToken()

        async def fail_and_cancel():
            token.cancel()
            raise TransientError("down")

        func = AsyncMock(side_effect=fail_and_cancel)

        with pytest.raises(OperationCancelledError):
            await with_retries(func, config, cancel_token=token)

        func.assert_called_once()
