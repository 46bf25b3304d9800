"""Tests for retry_with_backoff."""

import pytest

from app_diagnostics.utils.retry import retry_with_backoff


class Flaky:
    """Fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, exc: Exception):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return "ok"


class TestRetryWithBackoff:
    """Tests for the backoff loop."""

    @pytest.mark.asyncio
    async def test_sync_function(self):
        """Plain functions are called without awaiting."""
        assert await retry_with_backoff(lambda: 42) == 42

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        """Should retry retryable failures."""
        flaky = Flaky(failures=2, exc=ConnectionError("down"))
        retries = []

        result = await retry_with_backoff(
            flaky,
            max_attempts=3,
            initial_interval=0,
            on_retry=lambda e, attempt, wait: retries.append(attempt),
        )

        assert result == "ok"
        assert flaky.calls == 3
        assert retries == [1, 2]

    @pytest.mark.asyncio
    async def test_lambda_returning_coroutine(self):
        """A lambda that returns a coroutine is awaited."""
        flaky = Flaky(failures=0, exc=ConnectionError("down"))
        assert await retry_with_backoff(lambda: flaky()) == "ok"

    @pytest.mark.asyncio
    async def test_raises_last_exception(self):
        """Should re-raise after the last attempt."""
        flaky = Flaky(failures=5, exc=ConnectionError("still down"))

        with pytest.raises(ConnectionError, match="still down"):
            await retry_with_backoff(flaky, max_attempts=2, initial_interval=0)
        assert flaky.calls == 2

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self):
        """Exceptions outside retryable_exceptions are not retried."""
        flaky = Flaky(failures=5, exc=ValueError("bad"))

        with pytest.raises(ValueError):
            await retry_with_backoff(
                flaky,
                max_attempts=3,
                initial_interval=0,
                retryable_exceptions=(ConnectionError,),
            )
        assert flaky.calls == 1
