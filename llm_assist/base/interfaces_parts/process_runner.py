"""ProcessRunner / ProcessHandle Protocols.

The streaming engine treats "run an external command and stream its
stdout/stderr" as an opaque capability. Reads are bounded: an empty ``bytes``
result means "no data yet", ``None`` means end of stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class CompletedRun:
    """Result of a one-shot command execution."""

    returncode: int
    stdout: bytes
    stderr: bytes


@runtime_checkable
class ProcessHandle(Protocol):
    """A running process whose output can be polled without blocking."""

    @property
    def returncode(self) -> Optional[int]:
        ...

    async def read_stdout(self, wait: float) -> Optional[bytes]:
        """Return available stdout bytes, ``b""`` if none within ``wait``, ``None`` at EOF."""
        ...

    async def read_stderr(self, wait: float) -> Optional[bytes]:
        """Return available stderr bytes, ``b""`` if none within ``wait``, ``None`` at EOF."""
        ...

    def terminate(self) -> None:
        """Ask the process to stop; its output streams reach EOF shortly after."""
        ...

    async def close(self) -> Optional[int]:
        """Release the process and return its exit code."""
        ...


@runtime_checkable
class ProcessRunner(Protocol):
    """Launches external commands."""

    async def start(self, argv: Sequence[str]) -> ProcessHandle:
        ...

    async def run(self, argv: Sequence[str], timeout: float) -> CompletedRun:
        ...


__all__ = ["CompletedRun", "ProcessHandle", "ProcessRunner"]
