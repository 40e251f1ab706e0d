"""Anthropic Messages API adapter.

Purpose:
- Map a ``ChatRequest`` to the ``/v1/messages`` payload and extract text
  from ``content_block_start`` / ``content_block_delta`` stream events and
  from complete message bodies.

Notes:
- ``max_tokens`` is mandatory for this API; 1024 is used when the request
  leaves it unset.
- Lifecycle events (``message_start``, ``ping``, ``content_block_stop``,
  ``message_delta``) carry no text and yield ``None``. ``message_stop`` is
  recognized as end-of-stream by the SSE decoder before reaching here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..base.models import ChatRequest, ContentSegment, ExtractOptions
from ..base.utils.content import normalize_content, render_segments

DEFAULT_MAX_TOKENS = 1024


def _delta_segments(delta: Dict[str, Any]) -> List[ContentSegment]:
    kind = delta.get("type")
    if kind == "thinking_delta":
        text = delta.get("thinking")
        return [ContentSegment("reasoning", text)] if isinstance(text, str) else []
    text = delta.get("text")
    if kind in (None, "text_delta") and isinstance(text, str):
        return [ContentSegment("text", text)]
    return []


class AnthropicMessagesAdapter:
    """Stateless adapter for the Anthropic Messages API."""

    name = "anthropic"

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": request.model}
        if request.system_prompt:
            payload["system"] = request.system_prompt
        payload["messages"] = [{"role": "user", "content": request.user_prompt}]
        payload["stream"] = request.stream
        payload["max_tokens"] = (
            request.max_tokens if request.max_tokens is not None else DEFAULT_MAX_TOKENS
        )
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        payload.update(request.extra_params)
        return payload

    def extract_stream_delta(self, event: Any, opts: ExtractOptions) -> Optional[str]:
        if not isinstance(event, dict):
            return None
        kind = event.get("type")
        if kind == "content_block_delta":
            delta = event.get("delta")
            segments = _delta_segments(delta) if isinstance(delta, dict) else []
        elif kind == "content_block_start":
            block = event.get("content_block")
            segments = normalize_content([block]) if isinstance(block, dict) else []
        else:
            return None
        text = render_segments(segments, opts)
        return text or None

    def extract_final_text(self, message: Any, opts: ExtractOptions) -> str:
        """Concatenate the text (and optionally thinking) blocks of a message."""
        if not isinstance(message, dict):
            return ""
        return render_segments(normalize_content(message.get("content")), opts)


__all__ = ["AnthropicMessagesAdapter", "DEFAULT_MAX_TOKENS"]
