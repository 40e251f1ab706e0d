"""OpenAI-style chat-completions adapter.

Purpose:
- Map a ``ChatRequest`` to the ``/chat/completions`` wire payload and pull
  text out of streamed ``chat.completion.chunk`` events and complete
  responses. Used for OpenAI itself and every OpenAI-compatible endpoint
  (Groq, OpenRouter, local gateways).

External dependencies:
- None. Payloads are plain dictionaries serialized by the transport layer.

Reasoning handling:
- Reasoning-capable models stream their thinking either as typed content
  parts or via ``reasoning_content`` / ``reasoning`` delta fields. Both are
  normalized into reasoning segments placed before the visible content, and
  dropped when ``ExtractOptions.trim_thinking`` is set.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..base.models import ChatRequest, ContentSegment, ExtractOptions
from ..base.utils.content import normalize_content, render_segments

_REASONING_FIELDS = ("reasoning_content", "reasoning")


def _first_choice(body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    return first if isinstance(first, dict) else None


def _segments(message: Dict[str, Any]) -> List[ContentSegment]:
    """Collect reasoning fields then content parts from a delta or message."""
    segments: List[ContentSegment] = []
    for key in _REASONING_FIELDS:
        value = message.get(key)
        if isinstance(value, str) and value:
            segments.append(ContentSegment("reasoning", value))
            break
    segments.extend(normalize_content(message.get("content")))
    return segments


class OpenAIChatAdapter:
    """Stateless adapter for OpenAI-compatible chat-completions endpoints."""

    name = "openai"

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        """Build the chat-completions payload.

        The system message is omitted when ``system_prompt`` is empty.
        ``extra_params`` are applied last and may override any key.
        """
        messages: List[Dict[str, Any]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.user_prompt})
        payload: Dict[str, Any] = {
            "model": request.model,
            "messages": messages,
            "stream": request.stream,
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        payload.update(request.extra_params)
        return payload

    def extract_stream_delta(self, event: Any, opts: ExtractOptions) -> Optional[str]:
        if not isinstance(event, dict):
            return None
        choice = _first_choice(event)
        if choice is None:
            return None
        delta = choice.get("delta")
        if not isinstance(delta, dict):
            return None
        text = render_segments(_segments(delta), opts)
        return text or None

    def extract_final_text(self, message: Any, opts: ExtractOptions) -> str:
        """Return the text of a complete response body or bare message.

        A body carrying ``choices`` is unwrapped to ``choices[0].message``.
        """
        if not isinstance(message, dict):
            return ""
        if "choices" in message:
            choice = _first_choice(message)
            message = choice.get("message") if choice else None
            if not isinstance(message, dict):
                return ""
        return render_segments(_segments(message), opts)


__all__ = ["OpenAIChatAdapter"]
