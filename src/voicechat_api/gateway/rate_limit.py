"""Per-client fixed-window rate limiting on top of ``limits``.

Each client address gets a counter that expires one window after its first
hit. It is not a sliding window, so a burst straddling a window boundary can
admit up to twice the nominal rate.

Rejected hits still increment the counter, so repeated over-limit calls keep
being rejected until the window expires. Expired counters are dropped by the
storage itself, which keeps the map bounded by the number of recently active
clients.
"""
from __future__ import annotations
import logging
import math
import time

from limits import RateLimitItemPerSecond
from limits.aio.storage import MemoryStorage, Storage
from limits.aio.strategies import FixedWindowRateLimiter

from voicechat_api.common.errors import RateLimited

LOGGER = logging.getLogger("voicechat.gateway.rate_limit")

RATE_LIMIT_MESSAGE = "Too many requests. Please wait ~1 minute and retry."


class ClientRateLimiter:
    """Counts requests per client key inside fixed windows.

    Usage:
        limiter = ClientRateLimiter(limit=20, window=60)
        await limiter.hit(client_ip)  # raises RateLimited when over the limit
    """

    def __init__(self, limit: int, window: int = 60, storage: Storage | None = None) -> None:
        self.item = RateLimitItemPerSecond(limit, window, namespace="voicechat")
        self.storage = storage or MemoryStorage()
        self.strategy = FixedWindowRateLimiter(self.storage)

    @property
    def limit(self) -> int:
        return self.item.amount

    async def count(self, key: str) -> int:
        """Requests seen for ``key`` in its current window, rejected ones included."""
        return await self.storage.get(self.item.key_for(key))

    async def hit(self, key: str) -> None:
        """Record one request for ``key``.

        Raises:
            RateLimited: when the window's count exceeds the limit. ``retry_after``
                holds the whole seconds left until the window resets (at least 1).
        """
        if await self.strategy.hit(self.item, key):
            return
        stats = await self.strategy.get_window_stats(self.item, key)
        retry_after = max(1, math.ceil(stats.reset_time - time.time()))
        LOGGER.info("Rate limit hit for %s (limit %d), retry in %ss", key, self.limit, retry_after)
        raise RateLimited(RATE_LIMIT_MESSAGE, retry_after=retry_after)

    async def reset(self) -> None:
        await self.storage.reset()
