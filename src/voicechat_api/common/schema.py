"""Dataclasses passed between the HTTP layer and the upstream caller."""
from __future__ import annotations
from dataclasses import dataclass

PLACEHOLDER_TEXT = "No output."

@dataclass(frozen=True)
class CompletionRequest:
    """One prompt plus the process-wide generation parameters."""
    prompt: str
    model: str
    temperature: float = 1.0
    top_p: float = 1.0
    system_prompt: str = ""

    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.prompt},
        ]

@dataclass
class CompletionResult:
    """Successful completion; ``text`` is never empty."""
    text: str
    latency_ms: int
    attempts: int = 1

def normalize_text(content: object) -> str:
    """Trim upstream content, substituting the placeholder when nothing is left."""
    if not isinstance(content, str):
        return PLACEHOLDER_TEXT
    return content.strip() or PLACEHOLDER_TEXT
