"""Byte-stream to logical-line splitter.

Process output arrives in arbitrary chunks; a chunk may end mid-line or even
mid-character. ``LineBuffer`` keeps the unterminated tail as raw bytes and
only decodes complete lines, so multi-byte UTF-8 sequences split across
chunks are reassembled correctly.
"""
from __future__ import annotations

from typing import List, Optional


class LineBuffer:
    """Accumulates bytes and yields complete ``\\n`` / ``\\r\\n`` lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._pending = bytearray()
        self._encoding = encoding

    def __len__(self) -> int:
        return len(self._pending)

    def _decode(self, raw: bytes) -> str:
        return raw.decode(self._encoding, errors="replace")

    def feed(self, chunk: bytes) -> List[str]:
        """Append ``chunk`` and return every line it completed, in order."""
        if not chunk:
            return []
        self._pending.extend(chunk)
        lines: List[str] = []
        while True:
            idx = self._pending.find(b"\n")
            if idx < 0:
                break
            raw = bytes(self._pending[:idx])
            del self._pending[: idx + 1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            lines.append(self._decode(raw))
        return lines

    def flush(self) -> Optional[str]:
        """Return the unterminated tail as a final line (``None`` if empty)."""
        if not self._pending:
            return None
        raw = bytes(self._pending)
        self._pending.clear()
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return self._decode(raw)

    def discard(self) -> None:
        self._pending.clear()


__all__ = ["LineBuffer"]
