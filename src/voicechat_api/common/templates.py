"""System prompt loading."""
from __future__ import annotations
from pathlib import Path

def load_system_prompt(path: str = "") -> str:
    """
    Load the system prompt sent ahead of every user message.

    Args:
        path: Path to a UTF-8 text file. Empty means no system prompt.

    Returns:
        The stripped file content, or an empty string.
    """
    if not path:
        return ""
    return Path(path).read_text(encoding="utf-8").strip()
