"""Streaming metrics data structures.

Isolated within the streaming package to keep the ingestion loop small.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class StreamMetrics:
    """Counters collected for a single stream session.

    Fields:
      bytes_received: stdout bytes read from the process
      lines: logical lines decoded
      sse_lines: lines carrying an SSE ``data:`` field
      emitted: non-empty fragments written to the sink
      time_to_first_token_ms: delay between start and the first write
      total_duration_ms: wall time from start to stop
    """

    bytes_received: int = 0
    lines: int = 0
    sse_lines: int = 0
    emitted: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["StreamMetrics"]
