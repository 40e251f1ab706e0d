"""Single-writer queue for document mutations.

Stream deltas and user edits both mutate the live document. Every mutation
is funnelled through one ``EditScheduler`` so that no two writes interleave,
whatever the number of concurrent sessions. Waiters are served in FIFO order
by ``asyncio.Lock``.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, TypeVar

T = TypeVar("T")


class EditScheduler:
    """Serializes callables that mutate shared editor state."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.applied = 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn(*args, **kwargs)`` while holding the writer slot."""
        async with self._lock:
            result = fn(*args, **kwargs)
            self.applied += 1
            return result

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Hold the writer slot for a multi-step user edit."""
        async with self._lock:
            yield


__all__ = ["EditScheduler"]
