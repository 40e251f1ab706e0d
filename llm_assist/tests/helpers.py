"""Shared fakes for the assistant test suite.

The fakes implement the runtime protocols (``ProcessRunner``,
``ProcessHandle``, ``Notifier``, ``PatchTool``) with scripted behaviour so
the streaming and patch engines can be exercised without launching real
processes.
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from llm_assist.base.interfaces import CompletedRun
from llm_assist.base.timeouts import TimeoutConfig
from llm_assist.patch import ToolResult

# Fast timings for ingestion tests.
FAST_TIMEOUTS = TimeoutConfig(poll_interval=0.001, pacing_delay=0.0)

# ``None`` in a stdout script means "one poll with no data".
IDLE = None


def openai_chunk(text: str) -> bytes:
    body = {"choices": [{"delta": {"content": text}}]}
    return f"data: {json.dumps(body)}\n\n".encode("utf-8")


def anthropic_chunk(text: str) -> bytes:
    body = {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}}
    return f"event: content_block_delta\ndata: {json.dumps(body)}\n\n".encode("utf-8")


DONE = b"data: [DONE]\n\n"


class FakeProcessHandle:
    """Scripted process: yields stdout chunks in order, then EOF.

    ``hang=True`` keeps stdout open (idle polls) after the script runs out,
    until ``terminate`` is called.
    """

    def __init__(
        self,
        stdout: Sequence[Optional[bytes]] = (),
        stderr: Sequence[bytes] = (),
        *,
        exit_code: int = 0,
        hang: bool = False,
    ) -> None:
        self._stdout: List[Optional[bytes]] = list(stdout)
        self._stderr: List[bytes] = list(stderr)
        self._exit_code = exit_code
        self._hang = hang
        self._returncode: Optional[int] = None
        self.terminated = False
        self.close_calls = 0

    @property
    def returncode(self) -> Optional[int]:
        return self._returncode

    async def read_stdout(self, wait: float) -> Optional[bytes]:
        await asyncio.sleep(0)
        if self.terminated:
            return None
        if self._stdout:
            item = self._stdout.pop(0)
            if item is IDLE:
                await asyncio.sleep(wait)
                return b""
            return item
        if self._hang:
            await asyncio.sleep(wait)
            return b""
        self._returncode = self._exit_code
        return None

    async def read_stderr(self, wait: float) -> Optional[bytes]:
        if self._stderr:
            return self._stderr.pop(0)
        return None

    def terminate(self) -> None:
        self.terminated = True
        if self._returncode is None:
            self._returncode = -15

    async def close(self) -> Optional[int]:
        self.close_calls += 1
        if self._returncode is None:
            self._returncode = self._exit_code
        return self._returncode


class FakeProcessRunner:
    """Hands out prepared handles and canned one-shot results."""

    def __init__(
        self,
        handles: Iterable[FakeProcessHandle] = (),
        results: Iterable[Any] = (),
        *,
        start_error: Optional[Exception] = None,
    ) -> None:
        self.handles = list(handles)
        self.results = list(results)
        self.start_error = start_error
        self.started: List[List[str]] = []
        self.ran: List[Tuple[List[str], float]] = []

    async def start(self, argv: Sequence[str]) -> FakeProcessHandle:
        self.started.append(list(argv))
        if self.start_error is not None:
            raise self.start_error
        return self.handles.pop(0)

    async def run(self, argv: Sequence[str], timeout: float) -> CompletedRun:
        self.ran.append((list(argv), timeout))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def completed(body: Any, returncode: int = 0, stderr: bytes = b"") -> CompletedRun:
    raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    return CompletedRun(returncode=returncode, stdout=raw, stderr=stderr)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: List[Tuple[str, int]] = []

    def notify(self, message: str, level: int = logging.INFO) -> None:
        self.messages.append((message, level))


class FakePatchTool:
    """Patch tool returning scripted check results; records every call."""

    def __init__(self, checks: Sequence[bool] = (True,), apply_ok: bool = True) -> None:
        self._checks = list(checks)
        self._apply_ok = apply_ok
        self.checked: List[str] = []
        self.applied: List[str] = []

    def check(self, patch_text: str, root: Path) -> ToolResult:
        self.checked.append(patch_text)
        ok = self._checks.pop(0) if self._checks else False
        return ToolResult(ok=ok, output="" if ok else "error: patch failed: a.txt:1")

    def apply(self, patch_text: str, root: Path) -> ToolResult:
        self.applied.append(patch_text)
        return ToolResult(ok=self._apply_ok, output="" if self._apply_ok else "error: while applying")


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def events(self, name: Optional[str] = None) -> List[dict]:
        out = []
        for record in self.records:
            try:
                payload = json.loads(record.getMessage())
            except ValueError:
                continue
            if isinstance(payload, dict) and (name is None or payload.get("event") == name):
                out.append(payload)
        return out
