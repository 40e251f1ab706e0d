"""Finalize stream helper.

Localizes terminal logging for stream sessions: one ``stream.error`` event
when the session ended with an error and one ``stream.stop`` event carrying
the counters, ``has_tokens`` and the stop reason.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..errors import ProviderError
from ..logging import LogContext, log_event, normalized_log_event
from .session import StreamSession


def session_context(session: StreamSession) -> LogContext:
    return LogContext(provider=session.provider, model=session.model, session=session.handle)


def finalize_stream(
    *,
    logger: logging.Logger,
    session: StreamSession,
    reason: str,
    error: Optional[ProviderError],
) -> None:
    """Record the duration and emit the terminal log events for ``session``."""
    ctx = session_context(session)
    session.metrics.total_duration_ms = session.elapsed() * 1000.0
    error_code = error.code.value if error is not None else None
    if error is not None:
        log_event(
            logger,
            "stream.error",
            ctx,
            level=logging.WARNING,
            reason=reason,
            error_code=error_code,
            message=error.message,
        )
    m = session.metrics
    normalized_log_event(
        logger,
        "stream.stop",
        ctx,
        phase="finalize",
        attempt=None,
        error_code=error_code,
        emitted=session.has_tokens,
        reason=reason,
        bytes=m.bytes_received,
        lines=m.lines,
        sse_lines=m.sse_lines,
        emitted_count=m.emitted,
        time_to_first_token_ms=m.time_to_first_token_ms,
        total_duration_ms=m.total_duration_ms,
    )


__all__ = ["finalize_stream", "session_context"]
