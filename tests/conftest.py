from __future__ import annotations

import asyncio
from typing import Any

import pytest

from voicechat_api.common.config import Settings
from voicechat_api.common.schema import CompletionRequest
from voicechat_api.upstream.clients import UpstreamClient


class ScriptedClient(UpstreamClient):
    """Upstream stand-in that replays a list of outcomes.

    Each outcome is either an exception to raise or a value to return. The last
    outcome repeats once the script runs out.
    """

    name = "scripted"

    def __init__(self, *outcomes: Any, delay: float = 0.0) -> None:
        super().__init__("http://upstream.test", "test-key")
        self.outcomes = list(outcomes) or [" ok "]
        self.delay = delay
        self.calls = 0
        self.requests: list[CompletionRequest] = []

    def _headers(self) -> dict[str, str]:
        return {}

    async def complete(self, request: CompletionRequest) -> Any:
        self.calls += 1
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def scripted_client() -> type[ScriptedClient]:
    return ScriptedClient


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", model="test/model", rpm_limit=5)

