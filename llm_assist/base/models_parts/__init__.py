"""Models parts package public surface.

Re-exports individual DTOs so callers can import from
`llm_assist.base.models_parts` if needed, while `llm_assist.base.models`
remains the primary stable import path.
"""

from .chat_request import ChatRequest
from .content_segment import ContentSegment, SegmentType
from .extract_options import ExtractOptions

__all__ = [
    "ChatRequest",
    "ContentSegment",
    "SegmentType",
    "ExtractOptions",
]
