"""Upstream caller: deadline race around the retry loop, plus normalization."""
from __future__ import annotations
import asyncio
import logging
import time

from voicechat_api.common.config import Settings
from voicechat_api.common.errors import UpstreamTimeout
from voicechat_api.common.schema import CompletionRequest, CompletionResult, normalize_text
from voicechat_api.upstream.clients import UpstreamClient
from voicechat_api.upstream.retry import call_with_retry

LOGGER = logging.getLogger("voicechat.upstream.caller")

TIMEOUT_MESSAGE = "Upstream timeout"


class CompletionCaller:
    """Turns a validated prompt into a CompletionResult within a deadline.

    Usage:
        caller = CompletionCaller(client, settings)
        result = await caller.complete("hello")

    Failures are raised: RateLimited (throttled after all attempts),
    UpstreamTimeout (deadline hit), UpstreamError (anything else).
    """

    def __init__(self, client: UpstreamClient, settings: Settings, system_prompt: str = "") -> None:
        self.client = client
        self.settings = settings
        self.system_prompt = system_prompt

    def build_request(self, prompt: str) -> CompletionRequest:
        return CompletionRequest(
            prompt=prompt,
            model=self.settings.model,
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
            system_prompt=self.system_prompt,
        )

    async def complete(self, prompt: str) -> CompletionResult:
        request = self.build_request(prompt)
        attempts = 0

        def _count(n: int) -> None:
            nonlocal attempts
            attempts = n

        start = time.monotonic()
        try:
            content = await asyncio.wait_for(
                call_with_retry(
                    lambda: self.client.complete(request),
                    attempts=self.settings.retry_attempts,
                    max_wait=self.settings.retry_max_wait,
                    on_attempt=_count,
                ),
                timeout=self.settings.request_timeout,
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Upstream deadline of %dms hit after %d attempt(s)",
                self.settings.request_timeout_ms,
                attempts,
            )
            raise UpstreamTimeout(TIMEOUT_MESSAGE) from None

        latency_ms = int((time.monotonic() - start) * 1000)
        text = normalize_text(content)
        LOGGER.info("Completion ok: %dms, %d attempt(s), %d chars", latency_ms, attempts, len(text))
        return CompletionResult(text=text, latency_ms=latency_ms, attempts=attempts)
