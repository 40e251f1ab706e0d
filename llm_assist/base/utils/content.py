"""Content normalization helpers shared by provider adapters.

Providers deliver message content as a plain string, as an ordered list of
typed parts, or (for reasoning-capable OpenAI-style models) with a separate
reasoning field. These helpers normalize all of them into
``ContentSegment`` lists and apply the thinking-trim rules uniformly.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional

from ..models import ContentSegment, ExtractOptions

_THINK_SPAN = re.compile(r"<think>.*?</think>", re.DOTALL)

_TEXT_TYPES = {"text", "output_text", "text_delta"}
_REASONING_TYPES = {"reasoning", "thinking", "thinking_delta"}


_OPEN_TAG = "<think>"
_CLOSE_TAG = "</think>"


def strip_think_tags(text: str) -> str:
    """Remove ``<think>...</think>`` spans contained within ``text``.

    Spans split across separate stream fragments are handled by
    ``ThinkSpanFilter``.
    """
    return _THINK_SPAN.sub("", text)


def _partial_tag_suffix(text: str, tag: str) -> int:
    """Length of the longest suffix of ``text`` that is a proper prefix of ``tag``."""
    for size in range(min(len(text), len(tag) - 1), 0, -1):
        if text.endswith(tag[:size]):
            return size
    return 0


class ThinkSpanFilter:
    """Stateful ``<think>`` span remover for a sequence of stream fragments.

    Text between an opening and a closing tag is dropped even when the tags
    and the reasoning arrive in separate fragments. A fragment ending in a
    possible partial tag (``<thi``) holds that tail back until the next
    fragment decides it. One filter serves one stream.
    """

    def __init__(self) -> None:
        self._inside = False
        self._pending = ""

    @property
    def inside(self) -> bool:
        return self._inside

    def feed(self, fragment: str) -> str:
        """Return the visible part of ``fragment``."""
        text = self._pending + fragment
        self._pending = ""
        visible: List[str] = []
        while text:
            tag = _CLOSE_TAG if self._inside else _OPEN_TAG
            index = text.find(tag)
            if index >= 0:
                if not self._inside:
                    visible.append(text[:index])
                text = text[index + len(tag):]
                self._inside = not self._inside
                continue
            held = _partial_tag_suffix(text, tag)
            if not self._inside:
                visible.append(text[: len(text) - held])
            self._pending = text[len(text) - held:]
            break
        return "".join(visible)

    def flush(self) -> str:
        """Release a held-back tail at end of stream (dropped inside a span)."""
        pending, self._pending = self._pending, ""
        return "" if self._inside else pending


def _segment_from_part(part: Any) -> Optional[ContentSegment]:
    if isinstance(part, str):
        return ContentSegment("text", part)
    if not isinstance(part, dict):
        return None
    kind = part.get("type", "text")
    if kind in _REASONING_TYPES:
        text = part.get("text")
        if text is None:
            text = part.get("thinking")
        return ContentSegment("reasoning", text) if isinstance(text, str) else None
    if kind in _TEXT_TYPES:
        text = part.get("text")
        return ContentSegment("text", text) if isinstance(text, str) else None
    return None


def normalize_content(content: Any) -> List[ContentSegment]:
    """Return ``content`` as an ordered list of segments.

    ``None`` yields ``[]``; a string yields one text segment; a list yields
    one segment per recognized part (unknown part types are skipped).
    """
    if content is None:
        return []
    if isinstance(content, str):
        return [ContentSegment("text", content)]
    if isinstance(content, list):
        segments = []
        for part in content:
            seg = _segment_from_part(part)
            if seg is not None:
                segments.append(seg)
        return segments
    return []


def render_segments(segments: Iterable[ContentSegment], opts: ExtractOptions) -> str:
    """Concatenate segments, dropping reasoning when ``opts.trim_thinking``."""
    parts = []
    for seg in segments:
        if opts.trim_thinking:
            if seg.is_reasoning:
                continue
            parts.append(strip_think_tags(seg.text))
        else:
            parts.append(seg.text)
    return "".join(parts)


__all__ = ["ThinkSpanFilter", "strip_think_tags", "normalize_content", "render_segments"]
