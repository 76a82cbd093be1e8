"""Tests for endpoint retry utilities."""

import asyncio
from unittest.mock import patch

import pytest

from lifeguard.errors import AnalysisCancelledError, ServiceOverloadedError
from lifeguard.llm.retry import (
    RetryConfig,
    backoff_delay_ms,
    is_retryable_error,
    with_retry,
)

from tests.conftest import FakeAPIError


class TestIsRetryableError:
    """Tests for is_retryable_error."""

    def test_rate_limit_error(self):
        """Test rate limit and quota errors are retryable."""
        assert is_retryable_error(Exception("Rate limit exceeded"))
        assert is_retryable_error(Exception("Too many requests"))
        assert is_retryable_error(Exception("Quota exceeded for project"))
        assert is_retryable_error(Exception("RESOURCE_EXHAUSTED"))

    def test_capacity_status_in_message(self):
        """Test 429/503 markers in the message are retryable."""
        assert is_retryable_error(Exception("429 Too Many Requests"))
        assert is_retryable_error(Exception("503 Service Unavailable"))
        assert is_retryable_error(Exception("The model is overloaded"))
        assert is_retryable_error(Exception("service_unavailable"))

    def test_status_code_attributes(self):
        """Test errors carrying numeric status codes."""
        assert is_retryable_error(FakeAPIError(429))
        assert is_retryable_error(FakeAPIError(503))
        assert not is_retryable_error(FakeAPIError(400, "INVALID_ARGUMENT"))
        assert not is_retryable_error(FakeAPIError(401, "UNAUTHENTICATED"))
        assert not is_retryable_error(FakeAPIError(403, "PERMISSION_DENIED"))

    def test_status_name_attribute(self):
        """Test protocol status names are retryable."""

        class StatusError(Exception):
            def __init__(self, status: str):
                self.status = status
                super().__init__("request failed")

        assert is_retryable_error(StatusError("RESOURCE_EXHAUSTED"))
        assert is_retryable_error(StatusError("unavailable"))
        assert not is_retryable_error(StatusError("INTERNAL"))

    def test_grpc_resource_exhausted_code(self):
        """Test gRPC code 8 is retryable."""

        class GrpcError(Exception):
            code = 8

        assert is_retryable_error(GrpcError("call failed"))

    def test_non_retryable_errors(self):
        """Test auth, malformed request and connectivity errors fail fast."""
        assert not is_retryable_error(Exception("401 Unauthorized"))
        assert not is_retryable_error(Exception("API key not valid"))
        assert not is_retryable_error(Exception("Bad request"))
        assert not is_retryable_error(
            OSError("getaddrinfo ENOTFOUND generativelanguage.googleapis.com")
        )
        assert not is_retryable_error(ValueError("Invalid parameter"))

    def test_number_inside_larger_token_is_not_a_status(self):
        assert not is_retryable_error(Exception("request id 15033 failed"))

    def test_genai_client_error(self):
        """Test the Gemini SDK error type is classified by its code."""
        from google.genai import errors

        exhausted = errors.ClientError(
            429,
            {
                "error": {
                    "code": 429,
                    "message": "Resource has been exhausted.",
                    "status": "RESOURCE_EXHAUSTED",
                }
            },
        )
        denied = errors.ClientError(
            401,
            {
                "error": {
                    "code": 401,
                    "message": "Request had invalid authentication credentials.",
                    "status": "UNAUTHENTICATED",
                }
            },
        )
        assert is_retryable_error(exhausted)
        assert not is_retryable_error(denied)


class TestBackoffDelay:
    """Tests for backoff_delay_ms."""

    def test_nominal_schedule_without_jitter(self):
        config = RetryConfig()
        with patch("lifeguard.llm.retry.random.random", return_value=0.0):
            delays = [backoff_delay_ms(n, config) for n in range(4)]
        assert delays == [2000, 4000, 8000, 16000]

    def test_jitter_stays_within_thirty_percent(self):
        config = RetryConfig()
        with patch("lifeguard.llm.retry.random.random", return_value=0.999999):
            for attempt in range(4):
                floor = 2000 * 2**attempt
                delay = backoff_delay_ms(attempt, config)
                assert floor <= delay < floor * 1.3

    def test_random_jitter_bounds(self):
        config = RetryConfig()
        for _ in range(200):
            for attempt in range(4):
                floor = 2000 * 2**attempt
                assert floor <= backoff_delay_ms(attempt, config) < floor * 1.3


class TestWithRetry:
    """Tests for with_retry."""

    async def test_success_no_retry(self):
        """Test successful call without retry."""
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            return "success"

        result = await with_retry(func)
        assert result == "success"
        assert call_count == 1

    async def test_retry_on_transient_error(self, backoff_waits):
        """Test retry on transient error."""
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise FakeAPIError(429, "RESOURCE_EXHAUSTED")
            return "success"

        result = await with_retry(func, config=RetryConfig())
        assert result == "success"
        assert call_count == 3
        assert len(backoff_waits) == 2

    async def test_no_retry_on_non_retryable_error(self, backoff_waits):
        """Test no retry on non-retryable error."""
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            raise FakeAPIError(401, "UNAUTHENTICATED", "API key not valid")

        with pytest.raises(FakeAPIError):
            await with_retry(func, config=RetryConfig())
        assert call_count == 1
        assert backoff_waits == []

    async def test_exhaustion_raises_consolidated_error(self, backoff_waits):
        """Test the last raw transient error is not leaked."""
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            raise FakeAPIError(503, "UNAVAILABLE", "The model is overloaded")

        with pytest.raises(ServiceOverloadedError, match="overloaded") as exc_info:
            await with_retry(func, config=RetryConfig())

        assert call_count == 5
        assert isinstance(exc_info.value.__cause__, FakeAPIError)
        # No wait after the final attempt
        assert len(backoff_waits) == 4

    async def test_exhaustion_waits_at_least_nominal_schedule(self, backoff_waits):
        async def func():
            raise FakeAPIError(503)

        with pytest.raises(ServiceOverloadedError):
            await with_retry(func, config=RetryConfig())

        for attempt, delay_s in enumerate(backoff_waits):
            floor_s = 2 * 2**attempt
            assert floor_s <= delay_s < floor_s * 1.3
        assert sum(backoff_waits) >= 2 + 4 + 8 + 16

    async def test_retry_disabled(self):
        """Test retry disabled."""
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            raise FakeAPIError(429)

        with pytest.raises(FakeAPIError):
            await with_retry(func, config=RetryConfig(enabled=False))
        assert call_count == 1

    async def test_exponential_backoff(self):
        """Test real delays grow between attempts."""
        import time

        call_times: list[float] = []

        async def func():
            call_times.append(time.monotonic())
            if len(call_times) < 3:
                raise Exception("rate_limit_error")
            return "success"

        config = RetryConfig(max_attempts=5, base_delay_ms=50)
        await with_retry(func, config=config)

        delay1 = call_times[1] - call_times[0]
        delay2 = call_times[2] - call_times[1]

        assert delay1 >= 0.045
        assert delay2 >= 0.095
        assert delay2 > delay1


class TestCancellation:
    """Tests for cancellation before, during and between attempts."""

    async def test_cancel_before_first_attempt(self):
        cancel = asyncio.Event()
        cancel.set()
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            return "never"

        with pytest.raises(AnalysisCancelledError):
            await with_retry(func, config=RetryConfig(), cancel=cancel)
        assert call_count == 0

    async def test_cancel_during_backoff_aborts_immediately(self):
        cancel = asyncio.Event()
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            raise FakeAPIError(503)

        # 10s nominal delay; cancellation must cut it short
        config = RetryConfig(max_attempts=3, base_delay_ms=10_000)
        task = asyncio.create_task(with_retry(func, config=config, cancel=cancel))
        await asyncio.sleep(0.05)
        cancel.set()

        with pytest.raises(AnalysisCancelledError):
            await asyncio.wait_for(task, timeout=1.0)
        assert call_count == 1

    async def test_unset_cancel_event_waits_full_delay(self):
        cancel = asyncio.Event()
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise FakeAPIError(429)
            return "ok"

        config = RetryConfig(max_attempts=2, base_delay_ms=20)
        assert await with_retry(func, config=config, cancel=cancel) == "ok"
        assert call_count == 2

    @pytest.mark.parametrize("enabled", [True, False])
    async def test_cancel_during_attempt_abandons_call(self, enabled):
        cancel = asyncio.Event()
        call_count = 0
        finished = False

        async def func():
            nonlocal call_count, finished
            call_count += 1
            await asyncio.sleep(10)
            finished = True
            return "late"

        config = RetryConfig(enabled=enabled, max_attempts=3)
        task = asyncio.create_task(with_retry(func, config=config, cancel=cancel))
        await asyncio.sleep(0.05)
        cancel.set()

        with pytest.raises(AnalysisCancelledError, match="during request"):
            await asyncio.wait_for(task, timeout=1.0)
        assert call_count == 1
        assert finished is False

    async def test_completed_attempt_wins_over_unset_cancel(self):
        cancel = asyncio.Event()

        async def func():
            await asyncio.sleep(0.01)
            return "ok"

        assert await with_retry(func, config=RetryConfig(), cancel=cancel) == "ok"
        assert not cancel.is_set()
