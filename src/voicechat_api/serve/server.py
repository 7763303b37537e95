"""Run the proxy under uvicorn."""
from __future__ import annotations
import argparse

import uvicorn

from voicechat_api.common.config import Settings
from voicechat_api.common.logging_setup import setup_logging

def main() -> None:
    settings = Settings()
    ap = argparse.ArgumentParser(description="Serve the voice chat API")
    ap.add_argument("--host", default=settings.host)
    ap.add_argument("--port", type=int, default=settings.port)
    ap.add_argument("--log-level", default=settings.log_level)
    args = ap.parse_args()

    setup_logging(args.log_level)
    uvicorn.run(
        "voicechat_api.serve.fastapi_app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        log_config=None,
    )

if __name__ == "__main__":
    main()
