"""Streaming ingestion state machine.

Purpose
-------
Drive one streaming provider call end to end: launch the request process,
poll its stdout/stderr with bounded waits, split stdout into lines, decode
SSE events, ask the adapter for text fragments and write them to the sink
through the ``EditScheduler``.

States::

    STARTING -> READING -> {DRAINING, TIMED_OUT, CANCELLED} -> STOPPED

Timeout strategy
----------------
- First response: if no byte has arrived, nothing has been written and the
  elapsed time since STARTING exceeds ``timeout``, the session times out
  (``timeout_no_response``).
- Stall (optional): once bytes have arrived, if ``idle_timeout`` is set and
  no new byte arrives for that long, the session times out. The reason is
  ``timeout_stalled`` after partial output and ``timeout_no_output`` when
  nothing had been written yet (role-only deltas, trimmed reasoning).

Fallback semantics
------------------
If stdout reaches EOF without a single ``data:`` line, the whole body is
parsed as one JSON response: a top-level ``error`` is surfaced, otherwise
``extract_final_text`` is written to the sink. This covers providers that
ignore ``stream: true`` and HTTP error bodies.

Failure handling
----------------
Errors are terminal for the session but never raised: ``run`` returns a
``StreamResult`` carrying the ``ProviderError``, notifies the user, and
always tears the session down (process released, session unregistered).
"""
from __future__ import annotations

import asyncio
from dataclasses import replace
import json
import logging
import time
from typing import Any, Optional, Sequence, Tuple

from ..cancellation import CancellationToken
from ..errors import ErrorCode, ProviderError, classify_exception
from ..interfaces import LoggingNotifier, Notifier, ProcessRunner, ProviderAdapter, Sink
from ..logging import get_logger, log_event
from ..models import ExtractOptions
from ..timeouts import TimeoutConfig, get_timeout_config
from .finalize import finalize_stream, session_context
from .registry import SessionRegistry
from .result import StreamResult
from .scheduler import EditScheduler
from .session import SessionState, StreamSession
from .sse import StreamEvent, decode_line, error_message, is_data_line

_Outcome = Tuple[str, Optional[ProviderError]]

# curl exit codes that mean the request itself timed out
_CURL_TIMEOUT_EXIT_CODES = frozenset({28})
_STDERR_LOG_LIMIT = 2000


class StreamIngestor:
    """Runs stream sessions against an injected process runner."""

    def __init__(
        self,
        runner: ProcessRunner,
        registry: SessionRegistry,
        scheduler: EditScheduler,
        *,
        notifier: Optional[Notifier] = None,
        timeouts: Optional[TimeoutConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._runner = runner
        self._registry = registry
        self._scheduler = scheduler
        self._notifier = notifier or LoggingNotifier()
        self._timeouts = timeouts or get_timeout_config()
        self._logger = logger or get_logger("llm_assist.streaming")

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    def create_session(
        self,
        sink: Sink,
        mark: Any,
        *,
        provider: str = "unknown",
        model: Optional[str] = None,
        parent: Optional[CancellationToken] = None,
    ) -> StreamSession:
        """Create a session in STARTING state (not yet registered)."""
        token = parent.child() if parent is not None else CancellationToken()
        return StreamSession(sink=sink, mark=mark, provider=provider, model=model, token=token)

    async def stream(
        self,
        argv: Sequence[str],
        *,
        adapter: ProviderAdapter,
        sink: Sink,
        mark: Any,
        timeout: float,
        opts: Optional[ExtractOptions] = None,
        provider: str = "unknown",
        model: Optional[str] = None,
        parent: Optional[CancellationToken] = None,
    ) -> StreamResult:
        """Create a session and run it to completion."""
        session = self.create_session(sink, mark, provider=provider, model=model, parent=parent)
        return await self.run(session, argv, adapter=adapter, timeout=timeout, opts=opts)

    async def run(
        self,
        session: StreamSession,
        argv: Sequence[str],
        *,
        adapter: ProviderAdapter,
        timeout: float,
        opts: Optional[ExtractOptions] = None,
        idle_timeout: Optional[float] = None,
    ) -> StreamResult:
        """Drive ``session`` through its lifecycle and return the terminal summary."""
        opts = opts or ExtractOptions()
        if idle_timeout is None:
            idle_timeout = self._timeouts.idle_timeout
        self._registry.register(session)
        log_event(self._logger, "stream.start", session_context(session), timeout=timeout)
        reason, error = "launch_failed", None
        try:
            if session.cancelled:
                session.transition(SessionState.CANCELLED)
                reason = "cancelled"
            else:
                try:
                    session.attach_process(await self._runner.start(argv))
                except (OSError, ValueError) as exc:
                    error = self._error(session, classify_exception(exc), f"failed to launch request: {exc}", raw=exc)
                else:
                    session.transition(SessionState.READING)
                    reason, error = await self._read_loop(session, adapter, opts, timeout, idle_timeout)
                    if session.state is SessionState.DRAINING:
                        reason, error = await self._drain(session, adapter, opts, reason, error)
            terminal = session.state
        finally:
            await self._stop(session, reason, error)
        return StreamResult(
            handle=session.handle,
            state=terminal,
            reason=reason,  # type: ignore[arg-type]
            error=error,
            has_tokens=session.has_tokens,
            metrics=session.metrics,
            text=session.text,
        )

    # READING ---------------------------------------------------------------
    async def _read_loop(
        self,
        session: StreamSession,
        adapter: ProviderAdapter,
        opts: ExtractOptions,
        timeout: float,
        idle_timeout: Optional[float],
    ) -> _Outcome:
        proc = session.process
        assert proc is not None
        poll = self._timeouts.poll_interval
        stderr_open = True
        while True:
            if session.cancelled:
                session.transition(SessionState.CANCELLED)
                return "cancelled", None
            if stderr_open:
                out, err = await asyncio.gather(proc.read_stdout(poll), proc.read_stderr(poll))
                if err is None:
                    stderr_open = False
                elif err:
                    self._log_stderr(session, err)
            else:
                out = await proc.read_stdout(poll)
            if session.cancelled:
                session.transition(SessionState.CANCELLED)
                return "cancelled", None
            if out is None:
                session.transition(SessionState.DRAINING)
                return "eof", None
            if out:
                session.record_bytes(len(out))
                if not session.seen_data:
                    session.body.extend(out)
                for line in session.line_buffer.feed(out):
                    outcome = await self._handle_line(session, line, adapter, opts)
                    if outcome is not None:
                        target = SessionState.CANCELLED if outcome[0] == "cancelled" else SessionState.DRAINING
                        session.transition(target)
                        return outcome
                continue
            outcome = self._check_timeouts(session, timeout, idle_timeout)
            if outcome is not None:
                session.transition(SessionState.TIMED_OUT)
                return outcome

    def _check_timeouts(
        self, session: StreamSession, timeout: float, idle_timeout: Optional[float]
    ) -> Optional[_Outcome]:
        now = time.monotonic()
        if session.metrics.bytes_received == 0:
            if not session.has_tokens and session.elapsed(now) > timeout:
                return "timeout_no_response", self._error(
                    session, ErrorCode.TIMEOUT, f"no response within {timeout:g}s"
                )
            return None
        if idle_timeout is not None and session.last_byte_at is not None:
            if now - session.last_byte_at > idle_timeout:
                if not session.has_tokens:
                    return "timeout_no_output", self._error(
                        session, ErrorCode.TIMEOUT, f"stream stalled for more than {idle_timeout:g}s before any output"
                    )
                return "timeout_stalled", self._error(
                    session, ErrorCode.TIMEOUT, f"stream stalled for more than {idle_timeout:g}s after partial output"
                )
        return None

    async def _handle_line(
        self,
        session: StreamSession,
        line: str,
        adapter: ProviderAdapter,
        opts: ExtractOptions,
    ) -> Optional[_Outcome]:
        """Decode one line; returns an outcome when the session must leave READING."""
        session.metrics.lines += 1
        if is_data_line(line):
            if not session.seen_data:
                session.seen_data = True
                session.body.clear()
            session.metrics.sse_lines += 1
        try:
            event = decode_line(line)
        except ProviderError as exc:
            return "malformed_payload", replace(exc, provider=session.provider, model=session.model)
        if event is None:
            return None
        return await self._handle_event(session, event, adapter, opts)

    async def _handle_event(
        self,
        session: StreamSession,
        event: StreamEvent,
        adapter: ProviderAdapter,
        opts: ExtractOptions,
    ) -> Optional[_Outcome]:
        if event.kind == "done":
            return "done", None
        if event.kind == "error":
            return "provider_error", self._error(session, ErrorCode.PROVIDER, event.message or "provider error")
        fragment = adapter.extract_stream_delta(event.data, opts)
        if fragment and opts.trim_thinking:
            fragment = session.think_filter.feed(fragment)
        if fragment and not await self._write(session, fragment):
            return "cancelled", None
        return None

    async def _write(self, session: StreamSession, fragment: str) -> bool:
        """Pace, re-check cancellation, then write through the scheduler."""
        await asyncio.sleep(self._timeouts.pacing_delay)
        if session.cancelled:
            return False

        def _apply() -> bool:
            if session.cancelled:
                return False
            session.sink.write_at_mark(session.mark, fragment)
            return True

        if not await self._scheduler.submit(_apply):
            return False
        session.record_write(fragment)
        log_event(
            self._logger,
            "stream.delta",
            session_context(session),
            level=logging.DEBUG,
            chars=len(fragment),
            emitted=session.metrics.emitted,
        )
        return True

    # DRAINING --------------------------------------------------------------
    async def _drain(
        self,
        session: StreamSession,
        adapter: ProviderAdapter,
        opts: ExtractOptions,
        reason: str,
        error: Optional[ProviderError],
    ) -> _Outcome:
        if reason != "eof":
            session.line_buffer.discard()
            if reason == "done":
                return await self._release_held(session, opts, (reason, error))
            return reason, error
        tail = session.line_buffer.flush()
        if tail is not None and tail.strip():
            outcome = await self._handle_line(session, tail, adapter, opts)
            if outcome is not None:
                if outcome[0] == "cancelled":
                    session.transition(SessionState.CANCELLED)
                    return outcome
                if outcome[0] == "done":
                    return await self._release_held(session, opts, outcome)
                return outcome
        outcome = await self._release_held(session, opts, ("eof", None))
        if outcome[0] == "cancelled":
            return outcome
        if not session.seen_data and bytes(session.body).strip():
            outcome = await self._fallback_body(session, adapter, opts)
            if outcome is not None:
                if outcome[0] == "cancelled":
                    session.transition(SessionState.CANCELLED)
                return outcome
        proc = session.process
        returncode = await proc.close() if proc is not None else None
        if returncode not in (None, 0) and not session.has_tokens:
            code = ErrorCode.TIMEOUT if returncode in _CURL_TIMEOUT_EXIT_CODES else ErrorCode.UNAVAILABLE
            return "process_failed", self._error(
                session, code, f"request process exited with code {returncode}"
            )
        return "eof", None

    async def _release_held(self, session: StreamSession, opts: ExtractOptions, outcome: _Outcome) -> _Outcome:
        """Write text the think filter held back once the stream ended normally."""
        held = session.think_filter.flush() if opts.trim_thinking else ""
        if held and not await self._write(session, held):
            session.transition(SessionState.CANCELLED)
            return "cancelled", None
        return outcome

    async def _fallback_body(
        self,
        session: StreamSession,
        adapter: ProviderAdapter,
        opts: ExtractOptions,
    ) -> Optional[_Outcome]:
        """Treat a stream without ``data:`` lines as one complete JSON response."""
        raw = bytes(session.body).decode("utf-8", errors="replace")
        try:
            body = json.loads(raw)
        except ValueError as exc:
            return "malformed_payload", self._error(
                session, ErrorCode.MALFORMED_PAYLOAD, f"unparseable response body: {raw[:200]}", raw=exc
            )
        if isinstance(body, dict) and body.get("error") is not None:
            return "provider_error", self._error(session, ErrorCode.PROVIDER, error_message(body["error"]))
        text = adapter.extract_final_text(body, opts)
        if text and not await self._write(session, text):
            return "cancelled", None
        return None

    # STOPPED ---------------------------------------------------------------
    async def _stop(self, session: StreamSession, reason: str, error: Optional[ProviderError]) -> None:
        try:
            if session.process is not None:
                if session.process.returncode is None:
                    session.process.terminate()
                await session.process.close()
        finally:
            session.transition(SessionState.STOPPED)
            self._registry.unregister(session)
            session.token.unlink_from_parent()
            finalize_stream(logger=self._logger, session=session, reason=reason, error=error)
            if error is not None:
                self._notifier.notify(error.message, logging.ERROR)

    def _log_stderr(self, session: StreamSession, data: bytes) -> None:
        text = data.decode("utf-8", errors="replace").strip()
        if text:
            log_event(
                self._logger,
                "stream.stderr",
                session_context(session),
                level=logging.WARNING,
                stderr=text[:_STDERR_LOG_LIMIT],
            )

    @staticmethod
    def _error(
        session: StreamSession,
        code: ErrorCode,
        message: str,
        *,
        raw: Optional[Exception] = None,
    ) -> ProviderError:
        return ProviderError(code=code, message=message, provider=session.provider, model=session.model, raw=raw)


__all__ = ["StreamIngestor"]
