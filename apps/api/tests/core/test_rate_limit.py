"""
Tests for the sliding-window rate limiter (in-memory fallback).
"""

from unittest.mock import patch

import pytest

from bursary.core.rate_limit import RateLimitExceeded, check_rate_limit, enforce_rate_limit


@pytest.fixture(autouse=True)
def no_redis():
    with patch("bursary.core.redis.redis_client", None):
        yield


@pytest.mark.asyncio
async def test_allows_up_to_limit():
    results = [await check_rate_limit("contact:10.0.0.1", 3, 60) for _ in range(4)]

    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_keys_are_independent():
    assert await check_rate_limit("sign_in:10.0.0.1", 1, 60)
    assert await check_rate_limit("sign_in:10.0.0.2", 1, 60)
    assert not await check_rate_limit("sign_in:10.0.0.1", 1, 60)


@pytest.mark.asyncio
async def test_old_hits_leave_the_window():
    with patch("bursary.core.rate_limit.time.time", return_value=1000.0):
        assert await check_rate_limit("admin:set_status:x", 1, 60)
    with patch("bursary.core.rate_limit.time.time", return_value=1061.0):
        assert await check_rate_limit("admin:set_status:x", 1, 60)


@pytest.mark.asyncio
async def test_enforce_raises_429():
    await enforce_rate_limit("contact:10.0.0.9", 1, 3600)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await enforce_rate_limit("contact:10.0.0.9", 1, 3600)

    assert exc_info.value.status_code == 429
    assert exc_info.value.headers["Retry-After"] == "3600"
    assert exc_info.value.detail["error"] == "RATE_LIMIT_EXCEEDED"
