"""In-memory text document with tracked marks.

Stands in for the editor buffer: it implements the ``Sink`` contract used by
the stream ingestor and the user-edit operations that happen concurrently
with streaming. Rows and columns are 0-based; columns count characters.

Marks have left gravity: text inserted exactly at a mark's position does
not move that mark. Only ``write_at_mark`` advances the mark it writes
through.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import itertools

_mark_ids = itertools.count(1)


@dataclass(eq=False)
class Mark:
    """A position in a ``TextDocument`` that follows edits around it."""

    row: int
    col: int
    id: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            self.id = next(_mark_ids)

    @property
    def position(self) -> tuple:
        return (self.row, self.col)


class TextDocument:
    """List-of-lines buffer whose marks shift with inserts and deletes."""

    def __init__(self, text: str = "") -> None:
        self._lines: List[str] = text.split("\n")
        self._marks: List[Mark] = []

    # Reading -----------------------------------------------------------------
    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def line(self, row: int) -> str:
        return self._lines[row]

    def lines_until(self, row: int) -> str:
        """Text of rows ``0..row`` inclusive (prompt source for ``prompt``)."""
        return "\n".join(self._lines[: row + 1])

    # Marks -------------------------------------------------------------------
    def create_mark(self, row: int, col: Optional[int] = None) -> Mark:
        """Create a tracked mark; ``col=None`` means end of the row."""
        self._check_row(row)
        if col is None:
            col = len(self._lines[row])
        mark = Mark(row=row, col=min(col, len(self._lines[row])))
        self._marks.append(mark)
        return mark

    def remove_mark(self, mark: Mark) -> None:
        if mark in self._marks:
            self._marks.remove(mark)

    @property
    def marks(self) -> List[Mark]:
        return list(self._marks)

    def open_line_below(self, row: int) -> Mark:
        """Insert an empty line after ``row`` and return a mark at its start."""
        self.insert_lines(row + 1, [""])
        return self.create_mark(row + 1, 0)

    # Sink --------------------------------------------------------------------
    def write_at_mark(self, mark: Mark, text: str) -> None:
        """Insert ``text`` at ``mark`` and advance the mark past it."""
        row, col = mark.row, mark.col
        end_row, end_col = self._insert(row, col, text, skip=mark)
        mark.row, mark.col = end_row, end_col

    # User edits --------------------------------------------------------------
    def insert(self, row: int, col: int, text: str) -> None:
        """Insert ``text`` at ``(row, col)`` as a user edit."""
        self._insert(row, col, text, skip=None)

    def insert_lines(self, row: int, new_lines: List[str]) -> None:
        """Insert whole lines before ``row`` (``row == len`` appends)."""
        if not 0 <= row <= len(self._lines):
            raise IndexError(f"row {row} out of range")
        if not new_lines:
            return
        self._lines[row:row] = list(new_lines)
        for mark in self._marks:
            if mark.row >= row:
                mark.row += len(new_lines)

    def delete_lines(self, start: int, end: int) -> None:
        """Delete rows ``start`` up to (excluding) ``end``.

        Marks inside the deleted range collapse to the start of the row that
        follows it.
        """
        if not 0 <= start <= end <= len(self._lines):
            raise IndexError(f"invalid line range {start}:{end}")
        count = end - start
        if count == 0:
            return
        del self._lines[start:end]
        if not self._lines:
            self._lines.append("")
        for mark in self._marks:
            if mark.row >= end:
                mark.row -= count
            elif mark.row >= start:
                mark.row, mark.col = min(start, len(self._lines) - 1), 0

    # Internals ---------------------------------------------------------------
    def _check_row(self, row: int) -> None:
        if not 0 <= row < len(self._lines):
            raise IndexError(f"row {row} out of range")

    def _insert(self, row: int, col: int, text: str, *, skip: Optional[Mark]) -> tuple:
        self._check_row(row)
        current = self._lines[row]
        col = min(col, len(current))
        head, tail = current[:col], current[col:]
        pieces = text.split("\n")
        added = len(pieces) - 1
        if added == 0:
            self._lines[row] = head + text + tail
            end_row, end_col = row, col + len(text)
        else:
            new_lines = [head + pieces[0], *pieces[1:-1], pieces[-1] + tail]
            self._lines[row : row + 1] = new_lines
            end_row, end_col = row + added, len(pieces[-1])
        for mark in self._marks:
            if mark is skip:
                continue
            if mark.row > row:
                mark.row += added
            elif mark.row == row and mark.col > col:
                mark.row = end_row
                mark.col = end_col + (mark.col - col)
        return end_row, end_col


__all__ = ["Mark", "TextDocument"]
