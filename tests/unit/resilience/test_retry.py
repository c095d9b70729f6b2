"""Unit tests for retry logic"""
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from habit_quest.resilience.retry import (
    MAX_DELAY,
    calculate_backoff,
    is_retryable_error,
    retry_with_backoff,
    with_retry,
)


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://store.test/api/storage/x")
    return httpx.HTTPStatusError("Error", request=request, response=httpx.Response(code, request=request))


def test_is_retryable_error_timeout():
    """Test that timeout errors are retryable"""
    assert is_retryable_error(httpx.TimeoutException("Timeout")) is True
    assert is_retryable_error(httpx.ReadTimeout("Read timeout")) is True
    assert is_retryable_error(httpx.ConnectError("Refused")) is True


def test_is_retryable_error_http_status():
    """Test that only 429 and 5xx gateway errors are retryable"""
    for code in [429, 500, 502, 503, 504]:
        assert is_retryable_error(_status_error(code)) is True, f"HTTP {code} should be retryable"

    for code in [400, 401, 403, 404, 422]:
        assert is_retryable_error(_status_error(code)) is False, f"HTTP {code} should not be retryable"


def test_is_retryable_error_non_retryable():
    assert is_retryable_error(ValueError("Bad value")) is False
    assert is_retryable_error(KeyError("Missing key")) is False


def test_calculate_backoff():
    """Test exponential backoff calculation"""
    assert 0.45 <= calculate_backoff(0) <= 0.55  # 0.5s ± 10% jitter
    assert 0.9 <= calculate_backoff(1) <= 1.1
    assert 1.8 <= calculate_backoff(2) <= 2.2


def test_calculate_backoff_max_delay():
    assert calculate_backoff(20) <= MAX_DELAY * 1.1


@pytest.mark.asyncio
async def test_retry_with_backoff_success_first_try():
    func = AsyncMock(return_value="ok")

    assert await retry_with_backoff(func, max_retries=3) == "ok"
    assert func.await_count == 1


@pytest.mark.asyncio
async def test_retry_with_backoff_recovers_from_transient_error():
    func = AsyncMock(side_effect=[_status_error(503), _status_error(502), "ok"])
    func.__name__ = "flaky"

    with patch("habit_quest.resilience.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        assert await retry_with_backoff(func, max_retries=3) == "ok"

    assert func.await_count == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_retry_with_backoff_gives_up():
    func = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
    func.__name__ = "always_slow"

    with patch("habit_quest.resilience.retry.asyncio.sleep", new=AsyncMock()):
        with pytest.raises(httpx.ReadTimeout):
            await retry_with_backoff(func, max_retries=2)

    assert func.await_count == 3


@pytest.mark.asyncio
async def test_retry_with_backoff_does_not_retry_client_errors():
    func = AsyncMock(side_effect=_status_error(404))
    func.__name__ = "missing"

    with pytest.raises(httpx.HTTPStatusError):
        await retry_with_backoff(func, max_retries=3)

    assert func.await_count == 1


@pytest.mark.asyncio
async def test_with_retry_decorator():
    calls = []

    @with_retry(max_retries=1)
    async def fetch(value):
        calls.append(value)
        if len(calls) == 1:
            raise httpx.ConnectError("reset")
        return value * 2

    with patch("habit_quest.resilience.retry.asyncio.sleep", new=AsyncMock()):
        assert await fetch(21) == 42

    assert calls == [21, 21]
