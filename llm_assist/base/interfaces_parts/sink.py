"""Sink Protocol (single-class module).

Destination for streamed text. The editor surface implements it; the
in-memory ``TextDocument`` is the reference implementation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Sink(Protocol):
    """Writes text fragments at a moving insertion point.

    ``write_at_mark`` inserts ``text`` at the mark's current location and
    advances the mark to the end of the inserted text. Repeated calls for the
    same mark append in document order. Not safe for concurrent use on the
    same mark without external serialization.
    """

    def write_at_mark(self, mark: Any, text: str) -> None:
        ...


__all__ = ["Sink"]
