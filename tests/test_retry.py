"""Tests for retry logic."""

import asyncio

import pytest
import httpx

from hackmd_client.classifier import (
    FatalFailure,
    RateLimited,
    RetryableFailure,
    Success,
    TransportFailure,
)
from hackmd_client.retry import RetryConfig, RetryHandler, delay_for, should_retry


class RecordingSleep:
    """Sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class TestShouldRetry:
    """Test suite for should_retry()."""

    def test_retry_on_retryable_failure(self):
        """Test retry on transient server errors."""
        assert should_retry(RetryableFailure(503), 1, 3) is True

    def test_retry_on_transient_transport_failure(self):
        """Test retry on connection errors and timeouts."""
        outcome = TransportFailure(httpx.ConnectError("down"), transient=True)
        assert should_retry(outcome, 1, 3) is True

    def test_no_retry_on_permanent_transport_failure(self):
        """Test no retry on protocol errors."""
        outcome = TransportFailure(httpx.UnsupportedProtocol("ftp"))
        assert should_retry(outcome, 1, 3) is False

    def test_no_retry_on_rate_limit(self):
        """Test that 429 is never retried silently."""
        assert should_retry(RateLimited(remaining=5), 1, 3) is False

    def test_no_retry_on_fatal_failure(self):
        """Test no retry on client errors."""
        assert should_retry(FatalFailure(404), 1, 3) is False

    def test_no_retry_on_success(self):
        """Test no retry on success."""
        assert should_retry(Success(200), 1, 3) is False

    def test_should_not_retry_after_max_attempts(self):
        """Test no retry once max attempts are used."""
        assert should_retry(RetryableFailure(500), 2, 3) is True
        assert should_retry(RetryableFailure(500), 3, 3) is False
        assert should_retry(RetryableFailure(500), 4, 3) is False


class TestDelayFor:
    """Test suite for delay_for()."""

    def test_exponential_backoff(self):
        """Test backoff time calculation."""
        # Exponential backoff: base * (2 ** (attempt - 1))
        assert delay_for(1, 0.1) == pytest.approx(0.1)
        assert delay_for(2, 0.1) == pytest.approx(0.2)
        assert delay_for(3, 0.1) == pytest.approx(0.4)

    def test_delay_for_is_pure(self):
        """Test that identical inputs give identical delays."""
        assert [delay_for(2, 1.0) for _ in range(5)] == [2.0] * 5


class TestRetryConfig:
    """Test suite for RetryConfig."""

    def test_default_retry_config(self):
        """Test default retry configuration."""
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay == 0.1
        assert config.max_delay is None
        assert config.jitter == 0.0

    def test_custom_retry_config(self):
        """Test custom retry configuration."""
        config = RetryConfig(max_attempts=5, base_delay=1.0, max_delay=10.0, jitter=0.2)
        assert config.max_attempts == 5
        assert config.base_delay == 1.0
        assert config.max_delay == 10.0
        assert config.jitter == 0.2

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"base_delay": -1.0},
            {"max_delay": -1.0},
            {"jitter": 1.5},
        ],
    )
    def test_invalid_retry_config(self, kwargs):
        """Test that invalid settings are rejected."""
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)

    def test_backoff_without_jitter(self):
        """Test that backoff matches delay_for without jitter."""
        config = RetryConfig(base_delay=1.0)
        assert config.backoff(1) == 1.0
        assert config.backoff(3) == 4.0

    def test_backoff_with_max(self):
        """Test backoff time respects max_delay."""
        config = RetryConfig(base_delay=1.0, max_delay=3.0)
        assert config.backoff(5) == 3.0

    def test_backoff_with_jitter(self):
        """Test that jitter stays within its bounds."""
        config = RetryConfig(base_delay=2.0, jitter=0.5)

        # Base: 2.0 * 2^1 = 4.0, jitter +/- 50%
        for _ in range(20):
            assert 2.0 <= config.backoff(2) <= 6.0

    def test_merge_overrides(self):
        """Test per-call overrides produce a new config."""
        config = RetryConfig(max_attempts=3, base_delay=0.1, max_delay=5.0)
        merged = config.merge(max_attempts=5)

        assert merged.max_attempts == 5
        assert merged.base_delay == 0.1
        assert merged.max_delay == 5.0
        assert config.max_attempts == 3


class TestRetryHandler:
    """Test suite for RetryHandler."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """Test that successful request on first try doesn't retry."""
        sleep = RecordingSleep()
        handler = RetryHandler(RetryConfig(), sleep=sleep)
        calls = 0

        async def attempt():
            nonlocal calls
            calls += 1
            return Success(200)

        outcome = await handler.execute_async(attempt)

        assert isinstance(outcome, Success)
        assert calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_on_503(self):
        """Test that 503 errors trigger retries until success."""
        sleep = RecordingSleep()
        handler = RetryHandler(RetryConfig(max_attempts=3, base_delay=0.1), sleep=sleep)
        calls = 0

        async def attempt():
            nonlocal calls
            calls += 1
            return RetryableFailure(503) if calls < 3 else Success(200)

        outcome = await handler.execute_async(attempt)

        assert isinstance(outcome, Success)
        assert calls == 3
        assert sleep.delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_exhausts_retries(self):
        """Test that the last failing outcome is returned after exhausting retries."""
        sleep = RecordingSleep()
        handler = RetryHandler(RetryConfig(max_attempts=3, base_delay=0.1), sleep=sleep)
        calls = 0

        async def attempt():
            nonlocal calls
            calls += 1
            return RetryableFailure(500 + calls)

        outcome = await handler.execute_async(attempt)

        assert isinstance(outcome, RetryableFailure)
        assert outcome.status == 503
        assert calls == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_is_returned_immediately(self):
        """Test that rate-limited outcomes end the loop."""
        sleep = RecordingSleep()
        handler = RetryHandler(RetryConfig(max_attempts=5), sleep=sleep)
        calls = 0

        async def attempt():
            nonlocal calls
            calls += 1
            return RateLimited(remaining=10)

        outcome = await handler.execute_async(attempt)

        assert isinstance(outcome, RateLimited)
        assert calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_raises_exceptions_from_attempt(self):
        """Test that exceptions raised by an attempt propagate immediately."""
        handler = RetryHandler(RetryConfig(), sleep=RecordingSleep())

        async def attempt():
            raise ValueError("Invalid value")

        with pytest.raises(ValueError):
            await handler.execute_async(attempt)

    @pytest.mark.asyncio
    async def test_deadline_stops_before_wait_past_it(self):
        """Test that the loop stops instead of sleeping into the deadline."""
        sleep = RecordingSleep()
        handler = RetryHandler(
            RetryConfig(max_attempts=10, base_delay=0.4), deadline=1.0, sleep=sleep
        )
        calls = 0

        async def attempt():
            nonlocal calls
            calls += 1
            return RetryableFailure(503)

        outcome = await handler.execute_async(attempt)

        assert sleep.delays == pytest.approx([0.4])
        assert calls == 2
        assert outcome == RetryableFailure(503)

    @pytest.mark.asyncio
    async def test_deadline_shorter_than_first_wait(self):
        """Test that no wait happens when even the first one is too long."""
        sleep = RecordingSleep()
        handler = RetryHandler(
            RetryConfig(max_attempts=3, base_delay=10.0), deadline=1.0, sleep=sleep
        )

        async def attempt():
            return RetryableFailure(503)

        outcome = await handler.execute_async(attempt)

        assert sleep.delays == []
        assert outcome.status == 503

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_stops_attempts(self):
        """Test that cancelling during the backoff wait stops the loop."""
        handler = RetryHandler(RetryConfig(max_attempts=5, base_delay=10.0))
        calls = 0
        first_attempt_done = asyncio.Event()

        async def attempt():
            nonlocal calls
            calls += 1
            first_attempt_done.set()
            return RetryableFailure(503)

        task = asyncio.ensure_future(handler.execute_async(attempt))
        await first_attempt_done.wait()
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert calls == 1
