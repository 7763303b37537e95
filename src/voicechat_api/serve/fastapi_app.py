"""FastAPI proxy between the voice chat UI and a hosted chat-completion API.

Endpoints:
- GET /health
- POST /api/generate  { "prompt": "..." } -> { "text": "..." } | { "error": "..." }
"""
from __future__ import annotations
import logging
import math

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from voicechat_api.common.config import Settings
from voicechat_api.common.errors import InvalidInput, ProxyError, Unconfigured
from voicechat_api.common.logging_setup import log_settings_summary, setup_logging
from voicechat_api.common.templates import load_system_prompt
from voicechat_api.gateway.rate_limit import ClientRateLimiter
from voicechat_api.upstream.caller import CompletionCaller
from voicechat_api.upstream.clients import UpstreamClient, get_client

LOGGER = logging.getLogger("voicechat.serve.app")

PROMPT_REQUIRED = "Prompt is required."
KEY_MISSING = "Upstream API key missing; set UPSTREAM_API_KEY."

# Upper bound for the Retry-After header, one day
MAX_RETRY_AFTER = 86400

class GenerateOut(BaseModel):
    text: str

class ErrorOut(BaseModel):
    error: str

def client_address(request: Request) -> str:
    """Peer address, else the first X-Forwarded-For hop, else "local"."""
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    return first or "local"

async def read_prompt(request: Request) -> str:
    """Return the trimmed ``prompt`` from a JSON object body or raise InvalidInput."""
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput(PROMPT_REQUIRED) from None
    prompt = body.get("prompt") if isinstance(body, dict) else None
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidInput(PROMPT_REQUIRED)
    return prompt.strip()

def retry_after_header(seconds: float) -> int:
    """Whole seconds for the Retry-After header, clamped to [0, MAX_RETRY_AFTER]."""
    if not math.isfinite(seconds):
        return MAX_RETRY_AFTER
    return min(MAX_RETRY_AFTER, max(0, math.ceil(seconds)))

async def enforce_rate_limit(request: Request) -> None:
    limiter: ClientRateLimiter = request.app.state.limiter
    await limiter.hit(client_address(request))

def create_app(settings: Settings | None = None, client: UpstreamClient | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Process configuration; read from the environment when omitted.
        client: Upstream adapter; chosen from ``settings.provider`` when omitted.
    """
    settings = settings or Settings()
    client = client or get_client(settings)

    app = FastAPI(title="Voice Chat API")
    app.state.settings = settings
    app.state.limiter = ClientRateLimiter(limit=settings.rpm_limit, window=settings.rate_window_s)
    app.state.caller = CompletionCaller(
        client,
        settings,
        system_prompt=load_system_prompt(settings.system_prompt_path),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
    )

    @app.on_event("startup")
    def _log_configuration() -> None:
        log_settings_summary(LOGGER, settings, client.name)

    @app.exception_handler(ProxyError)
    async def _proxy_error(request: Request, exc: ProxyError) -> JSONResponse:
        headers = None
        if exc.retry_after is not None:
            headers = {"Retry-After": str(retry_after_header(exc.retry_after))}
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.status_code)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code, headers=headers)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Request failed"}, status_code=500)

    @app.get("/health")
    def health() -> dict[str, object]:
        return {"status": "ok", "model": settings.model, "configured": settings.configured}

    @app.post(
        "/api/generate",
        response_model=GenerateOut,
        responses={400: {"model": ErrorOut}, 429: {"model": ErrorOut}, 504: {"model": ErrorOut}},
        dependencies=[Depends(enforce_rate_limit)],
    )
    async def generate(request: Request) -> GenerateOut:
        prompt = await read_prompt(request)
        if not settings.configured:
            raise Unconfigured(KEY_MISSING)
        caller: CompletionCaller = request.app.state.caller
        result = await caller.complete(prompt)
        return GenerateOut(text=result.text)

    return app

_settings = Settings()
setup_logging(_settings.log_level)
app = create_app(_settings)
