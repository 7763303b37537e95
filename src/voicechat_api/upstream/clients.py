"""Chat-completion clients for the hosted model API.

Two interchangeable adapters over the same ``/chat/completions`` call:
  - azure: Azure AI Inference REST (GitHub Models endpoint by default)
  - openai: any OpenAI-compatible endpoint

Adapters return the raw content of the first choice and raise UpstreamError
for every non-2xx response or transport failure. Retrying is left to the
caller.
"""
from __future__ import annotations
import logging
import math
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

import httpx

from voicechat_api.common.config import Settings
from voicechat_api.common.errors import UpstreamError
from voicechat_api.common.schema import CompletionRequest

LOGGER = logging.getLogger("voicechat.upstream.clients")


def _finite(raw: str | None) -> float | None:
    """Parse a numeric header value; None for missing, malformed, inf or nan."""
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_retry_after(headers: Mapping[str, str]) -> float | None:
    """Return the upstream retry hint in seconds, or None when absent/unparseable.

    ``retry-after-ms`` (sent by Azure) takes precedence over ``retry-after``,
    which may be delta-seconds or an HTTP-date.
    """
    ms = _finite(headers.get("retry-after-ms"))
    if ms is not None:
        return max(0.0, ms / 1000.0)
    raw = headers.get("retry-after")
    if not raw:
        return None
    seconds = _finite(raw)
    if seconds is not None:
        return max(0.0, seconds)
    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return "Upstream error"
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"]:
            return err["message"]
        if isinstance(err, str) and err:
            return err
        if isinstance(body.get("message"), str) and body["message"]:
            return body["message"]
    return "Upstream error"


def _first_content(data: Any) -> Any:
    """``data["choices"][0]["message"]["content"]``, or None if any step is missing."""
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None


class UpstreamClient(ABC):
    """Base class for chat-completion adapters."""

    name: str

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._http = http_client

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        """Auth headers for this provider."""
        ...

    def _params(self) -> dict[str, str]:
        return {}

    @property
    def url(self) -> str:
        return f"{self.endpoint}/chat/completions"

    def build_payload(self, request: CompletionRequest) -> dict[str, Any]:
        return {
            "model": request.model,
            "messages": request.messages(),
            "temperature": request.temperature,
            "top_p": request.top_p,
        }

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        kwargs = dict(json=payload, headers=self._headers(), params=self._params())
        if self._http is not None:
            return await self._http.post(self.url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, **kwargs)

    async def complete(self, request: CompletionRequest) -> Any:
        """Send one completion request; return the first choice's raw content."""
        start = time.monotonic()
        try:
            resp = await self._post(self.build_payload(request))
        except httpx.HTTPError as e:
            LOGGER.error("%s request failed: %s", self.name, e)
            raise UpstreamError("Upstream request failed.") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if not resp.is_success:
            LOGGER.debug("%s returned %s after %dms", self.name, resp.status_code, elapsed_ms)
            raise UpstreamError(
                _error_message(resp),
                status_code=resp.status_code if resp.status_code >= 400 else 500,
                retry_after=parse_retry_after(resp.headers),
            )

        try:
            data = resp.json()
        except ValueError:
            LOGGER.warning("%s returned a non-JSON body", self.name)
            return None
        return _first_content(data)


class AzureInferenceClient(UpstreamClient):
    """Azure AI Inference REST API (also serves GitHub Models)."""

    name = "azure"

    def __init__(self, endpoint: str, api_key: str, api_version: str = "", **kwargs: Any) -> None:
        super().__init__(endpoint, api_key, **kwargs)
        self.api_version = api_version

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def _params(self) -> dict[str, str]:
        return {"api-version": self.api_version} if self.api_version else {}


class OpenAICompatibleClient(UpstreamClient):
    """OpenAI Chat Completions and compatible servers."""

    name = "openai"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }


ADAPTER_REGISTRY: dict[str, type[UpstreamClient]] = {
    AzureInferenceClient.name: AzureInferenceClient,
    OpenAICompatibleClient.name: OpenAICompatibleClient,
}


def get_client(settings: Settings, http_client: httpx.AsyncClient | None = None) -> UpstreamClient:
    """Build the adapter selected by ``settings.provider``."""
    cls = ADAPTER_REGISTRY.get(settings.provider)
    if cls is None:
        raise ValueError(f"Unknown upstream provider: {settings.provider}")
    kwargs: dict[str, Any] = dict(timeout=settings.request_timeout, http_client=http_client)
    if cls is AzureInferenceClient:
        kwargs["api_version"] = settings.api_version
    return cls(settings.endpoint, settings.api_key, **kwargs)
