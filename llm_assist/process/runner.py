"""Asyncio-backed process runner.

Purpose
    Launch request commands (``curl``) and expose their output through the
    bounded-read ``ProcessHandle`` contract used by the stream ingestor.

External Dependencies
    * Local executables started via :func:`asyncio.create_subprocess_exec`
      (argument vector, never a shell).

Fallback Semantics
    Launch errors (``FileNotFoundError``, ``PermissionError``) propagate to
    the caller, which classifies them into ``ProviderError`` codes.

Timeout Strategy
    Reads wait at most ``wait`` seconds. ``run`` enforces its ``timeout``
    with :func:`asyncio.wait_for` and kills the process when it elapses.
    ``close`` waits ``close_grace`` seconds before killing.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
import os
import shutil
from typing import Optional, Sequence

from ..base.interfaces import CompletedRun

READ_CHUNK_SIZE = 4096
DEFAULT_CLOSE_GRACE = 2.0


def resolve_executable(name: str) -> str:
    """Return the absolute path of ``name`` on ``PATH``.

    Raises
    ------
    FileNotFoundError
        If the executable cannot be located.
    """
    exe_path = shutil.which(name)
    if not exe_path:
        raise FileNotFoundError(f"'{name}' executable not found on PATH")
    return os.path.abspath(exe_path)


class AsyncioProcessHandle:
    """Running subprocess with bounded, non-blocking output reads."""

    def __init__(self, process: asyncio.subprocess.Process, *, close_grace: float = DEFAULT_CLOSE_GRACE) -> None:
        self._process = process
        self._close_grace = close_grace
        self._stdout_eof = False
        self._stderr_eof = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    async def _read(self, stream: Optional[asyncio.StreamReader], wait: float) -> Optional[bytes]:
        if stream is None:
            return None
        try:
            chunk = await asyncio.wait_for(stream.read(READ_CHUNK_SIZE), timeout=wait)
        except asyncio.TimeoutError:
            return b""
        return chunk if chunk else None

    async def read_stdout(self, wait: float) -> Optional[bytes]:
        if self._stdout_eof:
            return None
        chunk = await self._read(self._process.stdout, wait)
        if chunk is None:
            self._stdout_eof = True
        return chunk

    async def read_stderr(self, wait: float) -> Optional[bytes]:
        if self._stderr_eof:
            return None
        chunk = await self._read(self._process.stderr, wait)
        if chunk is None:
            self._stderr_eof = True
        return chunk

    def terminate(self) -> None:
        if self._process.returncode is None:
            with suppress(ProcessLookupError):
                self._process.terminate()

    async def close(self) -> Optional[int]:
        """Wait for exit (killing after the grace period) and return the exit code."""
        if self._process.returncode is not None:
            return self._process.returncode
        try:
            return await asyncio.wait_for(self._process.wait(), timeout=self._close_grace)
        except asyncio.TimeoutError:
            with suppress(ProcessLookupError):
                self._process.kill()
            return await self._process.wait()


class AsyncioProcessRunner:
    """Default ``ProcessRunner`` built on :mod:`asyncio` subprocesses."""

    def __init__(self, *, close_grace: float = DEFAULT_CLOSE_GRACE) -> None:
        self._close_grace = close_grace

    async def start(self, argv: Sequence[str]) -> AsyncioProcessHandle:
        if not argv:
            raise ValueError("empty argument vector")
        argv = [resolve_executable(argv[0]), *argv[1:]]
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        return AsyncioProcessHandle(process, close_grace=self._close_grace)

    async def run(self, argv: Sequence[str], timeout: float) -> CompletedRun:
        """Run ``argv`` to completion and capture its output.

        Raises
        ------
        TimeoutError
            If the process does not finish within ``timeout`` seconds.
        """
        if not argv:
            raise ValueError("empty argument vector")
        argv = [resolve_executable(argv[0]), *argv[1:]]
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            with suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise TimeoutError(f"command exceeded {timeout}s: {argv[0]}") from exc
        return CompletedRun(returncode=process.returncode or 0, stdout=stdout, stderr=stderr)


__all__ = [
    "AsyncioProcessHandle",
    "AsyncioProcessRunner",
    "resolve_executable",
    "READ_CHUNK_SIZE",
]
