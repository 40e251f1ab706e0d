"""Terminal summary of a stream session."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from ..errors import ProviderError
from .metrics import StreamMetrics
from .session import SessionState

StopReason = Literal[
    "done",
    "eof",
    "provider_error",
    "malformed_payload",
    "timeout_no_response",
    "timeout_stalled",
    "timeout_no_output",
    "cancelled",
    "launch_failed",
    "process_failed",
]


@dataclass(frozen=True)
class StreamResult:
    """What ``StreamIngestor.run`` returns once the session has stopped.

    ``state`` is the state the session passed through just before STOPPED
    (DRAINING, TIMED_OUT or CANCELLED; STARTING when launch failed).
    """

    handle: str
    state: SessionState
    reason: StopReason
    error: Optional[ProviderError]
    has_tokens: bool
    metrics: StreamMetrics
    text: str

    @property
    def ok(self) -> bool:
        return self.error is None and self.reason in ("done", "eof")


__all__ = ["StreamResult", "StopReason"]
