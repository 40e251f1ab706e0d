"""Diff block extraction from model responses.

The edit system prompt asks the model to answer with nothing but fenced
blocks of the form::

    ```diff file=path/to/file
    @@ -1,3 +1,3 @@
    -old
    +new
    ```

Parsing is all-or-nothing: stray prose, an unsafe path or a body without a
hunk header rejects the whole response.
"""
from __future__ import annotations

import re
from typing import List

from ..base.errors import (
    InvalidDiffBodyError,
    InvalidFormatError,
    InvalidPathError,
    NoDiffBlocksError,
)
from .models import DiffBlock

DIFF_BLOCK_RE = re.compile(r"```diff file=([^\n]+)\n(.*?)```", re.DOTALL)
_WINDOWS_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def is_safe_path(path: str) -> bool:
    """Whether ``path`` is relative and free of parent traversal."""
    if not path or path.startswith(("/", "\\")):
        return False
    if _WINDOWS_DRIVE_RE.match(path):
        return False
    return ".." not in path


def validate_path(path: str) -> None:
    """Raise ``InvalidPathError`` unless ``path`` is a safe relative path."""
    if not is_safe_path(path):
        raise InvalidPathError(path)


def has_hunk_header(body: str) -> bool:
    return any(line.startswith("@@") for line in body.splitlines())


class PatchParser:
    """Parses model output into ``DiffBlock`` objects in document order."""

    def parse(self, text: str) -> List[DiffBlock]:
        """Return the diff blocks of ``text``.

        Raises
        ------
        InvalidFormatError
            Non-whitespace content outside the fenced blocks.
        NoDiffBlocksError
            No block at all.
        InvalidPathError / InvalidDiffBodyError
            First offending block, checked path first then body.
        """
        if DIFF_BLOCK_RE.sub("", text).strip():
            raise InvalidFormatError("invalid diff format")
        blocks = [
            DiffBlock(path=m.group(1).strip(), diff_body=m.group(2))
            for m in DIFF_BLOCK_RE.finditer(text)
        ]
        if not blocks:
            raise NoDiffBlocksError("no diff blocks found")
        for block in blocks:
            validate_path(block.path)
            if not has_hunk_header(block.diff_body):
                raise InvalidDiffBodyError(block.path)
        return blocks


def parse_diff_blocks(text: str) -> List[DiffBlock]:
    """Module-level shortcut for ``PatchParser().parse``."""
    return PatchParser().parse(text)


__all__ = [
    "PatchParser",
    "parse_diff_blocks",
    "validate_path",
    "is_safe_path",
    "has_hunk_header",
    "DIFF_BLOCK_RE",
]
