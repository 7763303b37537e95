"""Central logging setup for the project."""
from __future__ import annotations
import logging
import sys

from voicechat_api.common.config import Settings

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

# Libraries that log every outbound request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")

def resolve_level(level: int | str) -> int:
    """Map a level name such as ``"debug"`` to its number; unknown names give INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO

def setup_logging(level: int | str = logging.INFO) -> None:
    """
    Send all records to stdout in one format, replacing any earlier handlers.

    Args:
        level: Root level, as a number or a name.
    """
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(console)
    root.setLevel(resolve_level(level))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

def log_settings_summary(logger: logging.Logger, settings: Settings, provider: str) -> None:
    """One line describing the upstream and the limits; a warning when no key is set."""
    logger.info(
        "Upstream %s at %s, model=%s, deadline=%dms, attempts=%d, rpm=%d/%ds",
        provider,
        settings.endpoint,
        settings.model,
        settings.request_timeout_ms,
        settings.retry_attempts,
        settings.rpm_limit,
        settings.rate_window_s,
    )
    if not settings.configured:
        logger.warning("No upstream API key configured; /api/generate will answer 400")
