"""Streaming package for the assistant.

Exposes the SSE decoder, line buffer, session state, registry, edit
scheduler and the ingestion state machine under a single namespace.
"""

from .sse import StreamEvent, decode_line, is_data_line
from .line_buffer import LineBuffer
from .metrics import StreamMetrics
from .session import SessionState, StreamSession
from .registry import SessionRegistry
from .scheduler import EditScheduler
from .result import StopReason, StreamResult
from .finalize import finalize_stream
from .ingestor import StreamIngestor

__all__ = [
    "StreamEvent",
    "decode_line",
    "is_data_line",
    "LineBuffer",
    "StreamMetrics",
    "SessionState",
    "StreamSession",
    "SessionRegistry",
    "EditScheduler",
    "StopReason",
    "StreamResult",
    "finalize_stream",
    "StreamIngestor",
]
