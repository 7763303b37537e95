"""Error taxonomy shared by the gate, the upstream caller and the HTTP layer."""
from __future__ import annotations


class ProxyError(Exception):
    """Base error rendered to the client as ``{"error": message}``."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.retry_after = retry_after


class InvalidInput(ProxyError):
    status_code = 400


class Unconfigured(ProxyError):
    status_code = 400


class RateLimited(ProxyError):
    """Local or upstream throttle. ``retry_after`` is in seconds."""

    status_code = 429


class UpstreamTimeout(ProxyError):
    status_code = 504


class UpstreamError(ProxyError):
    """Any other upstream failure, carrying the upstream status when known."""

    @property
    def is_throttle(self) -> bool:
        return self.status_code == 429
