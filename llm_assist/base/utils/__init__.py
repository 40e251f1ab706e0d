"""Small shared helpers for the assistant's base layer."""

from .content import ThinkSpanFilter, normalize_content, render_segments, strip_think_tags

__all__ = ["ThinkSpanFilter", "normalize_content", "render_segments", "strip_think_tags"]
