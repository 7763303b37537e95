"""Throttle-only retry with exponential backoff.

Only "429 Too Many Requests" failures are retried. Every other failure is
raised on the spot. The wait before each retry is the upstream retry hint when
one was sent, otherwise a base delay (1s, doubling per retry, capped at 8s)
plus up to 250ms of jitter; either way it is clamped to ``max_wait`` so a
single sleep cannot eat the whole request deadline.
"""
from __future__ import annotations
import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from voicechat_api.common.errors import RateLimited, UpstreamError

LOGGER = logging.getLogger("voicechat.upstream.retry")

T = TypeVar("T")

INITIAL_DELAY = 1.0
MAX_DELAY = 8.0
MAX_JITTER = 0.25

UPSTREAM_THROTTLE_MESSAGE = "Rate limited upstream. Please reduce frequency or wait and retry."


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    attempts: int = 3,
    max_wait: float = 5.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    jitter: Callable[[], float] = lambda: random.uniform(0.0, MAX_JITTER),
    on_attempt: Callable[[int], None] | None = None,
) -> T:
    """
    Await ``fn()`` up to ``attempts`` times, backing off only on throttling.

    Args:
        fn: Zero-argument coroutine factory performing one upstream call.
        attempts: Maximum number of calls.
        max_wait: Ceiling in seconds for any single sleep.
        sleep: Awaitable sleep, injectable for tests.
        jitter: Returns the random extra delay added to the base delay.
        on_attempt: Called with the 1-based attempt number before each call.

    Raises:
        RateLimited: still throttled after the last attempt. ``retry_after`` is
            the upstream hint if one was given, else the current base delay.
        UpstreamError: any non-throttle failure, unchanged.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    delay = INITIAL_DELAY
    for attempt in range(1, attempts + 1):
        if on_attempt is not None:
            on_attempt(attempt)
        try:
            return await fn()
        except UpstreamError as e:
            if not e.is_throttle:
                raise
            if attempt >= attempts:
                LOGGER.warning("Upstream still throttling after %d attempts", attempts)
                hint = e.retry_after if e.retry_after is not None else delay
                raise RateLimited(UPSTREAM_THROTTLE_MESSAGE, retry_after=hint) from e

            wait = e.retry_after if e.retry_after is not None else delay + jitter()
            wait = min(wait, max_wait)
            LOGGER.warning(
                "Upstream throttled (attempt %d/%d), retrying in %.2fs",
                attempt,
                attempts,
                wait,
            )
            await sleep(wait)
            delay = min(delay * 2, MAX_DELAY)

    raise AssertionError("unreachable")
