"""
Retry Policy Tests.

Only rate limiting is retried; the recorded sleeps prove the backoff.
"""

import pytest
from unittest.mock import AsyncMock

from market_data.exceptions import (
    MalformedPayloadError,
    RateLimitError,
    UpstreamUnavailableError,
)
from market_data.retry import RetryPolicy


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def policy(sleeps):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    return RetryPolicy(max_attempts=3, base_delay=2.0, sleep=fake_sleep)


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    @pytest.mark.asyncio
    async def test_success_first_try(self, policy, sleeps):
        attempt = AsyncMock(return_value={"bitcoin": {"usd": 1.0}})

        result = await policy.run(attempt)

        assert result == {"bitcoin": {"usd": 1.0}}
        assert attempt.await_count == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_always_rate_limited_exhausts_attempts(self, policy, sleeps):
        attempt = AsyncMock(side_effect=RateLimitError(source_name="coingecko"))

        with pytest.raises(RateLimitError):
            await policy.run(attempt)

        assert attempt.await_count == 3
        assert sleeps == [2.0, 4.0]
        assert all(a <= b for a, b in zip(sleeps, sleeps[1:]))

    @pytest.mark.asyncio
    async def test_last_rate_limit_error_is_raised(self, policy):
        errors = [RateLimitError(message=f"429 #{i}") for i in range(3)]
        attempt = AsyncMock(side_effect=errors)

        with pytest.raises(RateLimitError) as exc_info:
            await policy.run(attempt)

        assert exc_info.value is errors[-1]

    @pytest.mark.asyncio
    async def test_non_rate_limit_failure_not_retried(self, policy, sleeps):
        attempt = AsyncMock(side_effect=UpstreamUnavailableError("HTTP 500", status_code=500))

        with pytest.raises(UpstreamUnavailableError):
            await policy.run(attempt)

        assert attempt.await_count == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_malformed_payload_not_retried(self, policy):
        attempt = AsyncMock(side_effect=MalformedPayloadError("Empty OHLC data"))

        with pytest.raises(MalformedPayloadError):
            await policy.run(attempt)

        assert attempt.await_count == 1

    @pytest.mark.asyncio
    async def test_recovers_after_rate_limit(self, policy, sleeps):
        attempt = AsyncMock(side_effect=[RateLimitError(), [[1, 1.0, 1.0, 1.0, 1.0]]])

        result = await policy.run(attempt)

        assert result == [[1, 1.0, 1.0, 1.0, 1.0]]
        assert attempt.await_count == 2
        assert sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_other_failure_after_rate_limit_stops(self, policy, sleeps):
        attempt = AsyncMock(side_effect=[RateLimitError(), UpstreamUnavailableError("HTTP 401", status_code=401)])

        with pytest.raises(UpstreamUnavailableError):
            await policy.run(attempt)

        assert attempt.await_count == 2
        assert sleeps == [2.0]

    def test_delay_doubles(self):
        policy = RetryPolicy(base_delay=1.5)

        assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.5, 3.0, 6.0]

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)
        with pytest.raises(ValueError):
            RetryPolicy(base_delay=-1)
