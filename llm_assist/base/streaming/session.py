"""Stream session state.

A ``StreamSession`` is owned by exactly one ingestion loop and lives in the
``SessionRegistry`` while in flight. External code interacts with it only
through ``cancel`` (directly or via the registry).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
import time
from typing import Any, List, Optional
import uuid

from ..cancellation import CancellationToken
from ..interfaces import ProcessHandle, Sink
from ..utils.content import ThinkSpanFilter
from .line_buffer import LineBuffer
from .metrics import StreamMetrics

_LOGGER = logging.getLogger("llm_assist.streaming.session")


class SessionState(str, Enum):
    """Lifecycle states of a stream session."""

    STARTING = "starting"
    READING = "reading"
    DRAINING = "draining"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    STOPPED = "stopped"


_TRANSITIONS = {
    SessionState.STARTING: {SessionState.READING, SessionState.CANCELLED},
    SessionState.READING: {SessionState.DRAINING, SessionState.TIMED_OUT, SessionState.CANCELLED},
    SessionState.DRAINING: {SessionState.CANCELLED},
    SessionState.TIMED_OUT: set(),
    SessionState.CANCELLED: set(),
    SessionState.STOPPED: set(),
}


def _new_handle() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class StreamSession:
    """Mutable state of one in-flight streaming call.

    ``has_tokens`` flips to ``True`` only once a non-empty fragment has been
    written to the sink. ``body`` holds raw stdout bytes until the first SSE
    ``data:`` line is seen; it feeds the non-streamed fallback.
    ``think_filter`` hides ``<think>`` spans that straddle fragments when the
    run trims thinking.
    """

    sink: Sink
    mark: Any
    provider: str = "unknown"
    model: Optional[str] = None
    token: CancellationToken = field(default_factory=CancellationToken)
    handle: str = field(default_factory=_new_handle)
    line_buffer: LineBuffer = field(default_factory=LineBuffer)
    metrics: StreamMetrics = field(default_factory=StreamMetrics)
    started_at: float = field(default_factory=time.monotonic)
    last_byte_at: Optional[float] = None
    has_tokens: bool = False
    seen_data: bool = False
    state: SessionState = SessionState.STARTING
    history: List[SessionState] = field(default_factory=list)
    process: Optional[ProcessHandle] = None
    body: bytearray = field(default_factory=bytearray)
    fragments: List[str] = field(default_factory=list)
    think_filter: ThinkSpanFilter = field(default_factory=ThinkSpanFilter)

    def __post_init__(self) -> None:
        self.history.append(self.state)
        self.token.on_cancel(self._on_cancel)

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def stopped(self) -> bool:
        return self.state is SessionState.STOPPED

    @property
    def text(self) -> str:
        return "".join(self.fragments)

    def elapsed(self, now: Optional[float] = None) -> float:
        return (now if now is not None else time.monotonic()) - self.started_at

    def transition(self, target: SessionState) -> None:
        """Move to ``target``; STOPPED is reachable from any state.

        Raises ``RuntimeError`` for any other transition not in the lifecycle.
        """
        if target is not SessionState.STOPPED and target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal session transition {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)

    def attach_process(self, process: ProcessHandle) -> None:
        self.process = process
        if self.cancelled:
            process.terminate()

    def record_bytes(self, count: int) -> None:
        self.metrics.bytes_received += count
        self.last_byte_at = time.monotonic()

    def record_write(self, fragment: str) -> None:
        if not self.has_tokens:
            self.metrics.time_to_first_token_ms = self.elapsed() * 1000.0
        self.has_tokens = True
        self.metrics.emitted += 1
        self.fragments.append(fragment)

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation; the ingestion loop observes it at its next poll."""
        self.token.cancel(reason or "cancelled")

    def _on_cancel(self, reason: Optional[str]) -> None:
        if self.process is not None and not self.stopped:
            _LOGGER.debug("terminating process for session %s (%s)", self.handle, reason)
            self.process.terminate()


__all__ = ["SessionState", "StreamSession"]
