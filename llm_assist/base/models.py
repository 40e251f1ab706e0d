"""
Provider-agnostic domain models (DTOs) public surface.

This module re-exports the implementations under
``llm_assist.base.models_parts``.
"""

from .models_parts.chat_request import ChatRequest
from .models_parts.content_segment import ContentSegment, SegmentType
from .models_parts.extract_options import ExtractOptions

__all__ = [
    "ChatRequest",
    "ContentSegment",
    "SegmentType",
    "ExtractOptions",
]
