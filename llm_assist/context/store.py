"""Extra-context store for prompts and edits.

Holds free-form context entries and file snapshots that are prefixed to
prompts. File entries are remembered by relative path so the list can be
edited as text (``path | note`` per line) and rebuilt from disk.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

DEFAULT_MAX_BYTES = 12000
DEFAULT_MAX_CHARS = 16000


class ContextError(Exception):
    """Raised when a context file cannot be read."""


def estimate_tokens(text: str) -> int:
    """Rough token estimate (four characters per token)."""
    return math.ceil(len(text) / 4)


@dataclass(frozen=True)
class ContextEntry:
    text: str
    label: str = ""

    @property
    def tokens(self) -> int:
        return estimate_tokens(self.text)


@dataclass(frozen=True)
class ContextPath:
    path: str
    note: Optional[str] = None
    max_bytes: int = DEFAULT_MAX_BYTES


def parse_context_line(line: str) -> Optional[ContextPath]:
    """Parse one ``path | note`` line; ``None`` for blanks and ``#`` comments."""
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#"):
        return None
    path, sep, note = trimmed.partition("|")
    path = path.strip()
    if not path:
        return None
    return ContextPath(path=path, note=(note.strip() or None) if sep else None)


class ContextStore:
    """Ordered collection of context entries rooted at ``root``."""

    def __init__(self, root: Union[str, Path] = ".") -> None:
        self.root = Path(root)
        self._entries: List[ContextEntry] = []
        self._paths: List[ContextPath] = []

    @property
    def entries(self) -> Tuple[ContextEntry, ...]:
        return tuple(self._entries)

    @property
    def paths(self) -> Tuple[ContextPath, ...]:
        return tuple(self._paths)

    def clear(self) -> None:
        self._entries = []
        self._paths = []

    def add_context(self, text: str, label: str = "") -> ContextEntry:
        entry = ContextEntry(text=text, label=label)
        self._entries.append(entry)
        return entry

    def _relative(self, path: Union[str, Path]) -> str:
        p = Path(path)
        if p.is_absolute():
            try:
                return p.relative_to(self.root.resolve()).as_posix()
            except ValueError:
                return p.as_posix()
        return Path(os.path.normpath(p)).as_posix()

    def _read_entry(self, item: ContextPath) -> ContextEntry:
        target = self.root / item.path
        try:
            with open(target, "rb") as fh:
                data = fh.read(item.max_bytes)
        except OSError as exc:
            raise ContextError(f"cannot open file: {item.path}") from exc
        text = data.decode("utf-8", errors="replace")
        return ContextEntry(
            text=f"file: {item.path}\n```\n{text}\n```",
            label=item.note or item.path,
        )

    def add_context_path(
        self,
        path: Union[str, Path],
        note: Optional[str] = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> ContextEntry:
        """Snapshot at most ``max_bytes`` of ``path`` as a fenced entry.

        Raises
        ------
        ContextError
            If the file cannot be opened.
        """
        item = ContextPath(path=self._relative(path), note=note, max_bytes=max_bytes)
        entry = self._read_entry(item)
        self._entries.append(entry)
        self._paths.append(item)
        return entry

    def remove_context_path(self, rel: str) -> None:
        self._paths = [p for p in self._paths if p.path != rel]
        self.rebuild()

    def rebuild(self) -> List[str]:
        """Re-read every remembered path; returns the paths that failed.

        Free-form entries added with ``add_context`` are dropped.
        """
        self._entries = []
        failed: List[str] = []
        for item in self._paths:
            try:
                self._entries.append(self._read_entry(item))
            except ContextError:
                failed.append(item.path)
        return failed

    def load_context_list(self, lines: Iterable[str]) -> List[str]:
        """Replace the remembered paths from ``path | note`` lines and rebuild."""
        parsed = (parse_context_line(line) for line in lines)
        self._paths = [
            ContextPath(path=self._relative(p.path), note=p.note) for p in parsed if p is not None
        ]
        return self.rebuild()

    def context_list_lines(self) -> List[str]:
        """Render the remembered paths in the editable ``path | note`` form."""
        return [f"{p.path} | {p.note}" if p.note else p.path for p in self._paths]

    def extra_context_string(self, max_chars: int = DEFAULT_MAX_CHARS) -> str:
        """Join entries in order, skipping any that would exceed ``max_chars``."""
        parts: List[str] = []
        total = 0
        for entry in self._entries:
            if total + len(entry.text) <= max_chars:
                parts.append(entry.text)
                total += len(entry.text)
        return "\n\n".join(parts)


__all__ = [
    "ContextStore",
    "ContextEntry",
    "ContextPath",
    "ContextError",
    "parse_context_line",
    "estimate_tokens",
]
