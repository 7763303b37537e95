from __future__ import annotations

import logging

import pytest

from voicechat_api.common.config import Settings
from voicechat_api.common.logging_setup import log_settings_summary, resolve_level, setup_logging


@pytest.mark.parametrize(
    "level, expected",
    [("debug", logging.DEBUG), (" WARNING ", logging.WARNING), ("chatty", logging.INFO), (logging.ERROR, logging.ERROR)],
)
def test_resolve_level(level, expected: int) -> None:
    assert resolve_level(level) == expected


def test_setup_logging_replaces_handlers_and_quiets_httpx() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("debug")
        setup_logging("debug")
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_summary_warns_without_credential(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("voicechat.test")
    with caplog.at_level(logging.INFO, logger="voicechat.test"):
        log_settings_summary(logger, Settings(api_key="", model="test/model", rpm_limit=7), "azure")
    messages = [r.getMessage() for r in caplog.records]
    assert any("model=test/model" in m and "rpm=7/60s" in m for m in messages)
    assert any(r.levelno == logging.WARNING and "No upstream API key" in r.getMessage() for r in caplog.records)
