"""
Voice chat API package.

Provides:
- FastAPI proxy exposing POST /api/generate for the voice chat UI
- Per-client fixed-window rate limiting
- Throttle-aware retry and deadline handling around one chat-completion call
"""
