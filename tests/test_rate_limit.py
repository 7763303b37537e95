from __future__ import annotations

import asyncio

import pytest

from voicechat_api.common.errors import RateLimited
from voicechat_api.gateway.rate_limit import RATE_LIMIT_MESSAGE, ClientRateLimiter


@pytest.mark.asyncio
async def test_under_limit_counts_requests() -> None:
    limiter = ClientRateLimiter(limit=3, window=60)
    for _ in range(3):
        await limiter.hit("1.2.3.4")
    assert await limiter.count("1.2.3.4") == 3


@pytest.mark.asyncio
async def test_over_limit_rejects_with_seconds_left() -> None:
    limiter = ClientRateLimiter(limit=2, window=60)
    await limiter.hit("a")
    await limiter.hit("a")
    with pytest.raises(RateLimited) as exc_info:
        await limiter.hit("a")
    err = exc_info.value
    assert err.status_code == 429
    assert err.message == RATE_LIMIT_MESSAGE
    assert 59 <= err.retry_after <= 60


@pytest.mark.asyncio
async def test_rejected_requests_keep_counting() -> None:
    limiter = ClientRateLimiter(limit=1, window=60)
    await limiter.hit("a")
    for _ in range(3):
        with pytest.raises(RateLimited):
            await limiter.hit("a")
    assert await limiter.count("a") == 4


@pytest.mark.asyncio
async def test_window_expiry_admits_again() -> None:
    limiter = ClientRateLimiter(limit=1, window=1)
    await limiter.hit("a")
    with pytest.raises(RateLimited) as exc_info:
        await limiter.hit("a")
    assert exc_info.value.retry_after == 1
    await asyncio.sleep(1.1)
    await limiter.hit("a")
    assert await limiter.count("a") == 1


@pytest.mark.asyncio
async def test_clients_are_limited_independently() -> None:
    limiter = ClientRateLimiter(limit=1, window=60)
    await limiter.hit("a")
    await limiter.hit("b")
    with pytest.raises(RateLimited):
        await limiter.hit("a")
    assert await limiter.count("b") == 1


@pytest.mark.asyncio
async def test_concurrent_hits_are_not_lost() -> None:
    limiter = ClientRateLimiter(limit=100, window=60)
    await asyncio.gather(*(limiter.hit("a") for _ in range(50)))
    assert await limiter.count("a") == 50


@pytest.mark.asyncio
async def test_reset_clears_all_clients() -> None:
    limiter = ClientRateLimiter(limit=1, window=60)
    await limiter.hit("a")
    await limiter.reset()
    assert await limiter.count("a") == 0
    await limiter.hit("a")
