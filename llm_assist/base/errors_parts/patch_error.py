"""
Patch engine error hierarchy.

Every failure raised by the diff parser or the patch applier derives from
:class:`PatchError` and carries a normalized :class:`ErrorCode` plus the
offending path when one applies. Raising any of these guarantees the working
tree has not been mutated by the failing call.
"""
from __future__ import annotations

from typing import Optional

from .error_code import ErrorCode


class PatchError(Exception):
    """Base class for diff parsing and patch application failures."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code.value}: {self.message}"


class InvalidFormatError(PatchError):
    """Response contains content outside ``diff file=`` fenced blocks."""

    code = ErrorCode.INVALID_FORMAT


class NoDiffBlocksError(PatchError):
    """Response parsed cleanly but contained zero diff blocks."""

    code = ErrorCode.NO_DIFF_BLOCKS


class InvalidPathError(PatchError):
    """Block path is absolute or contains a parent-directory traversal."""

    code = ErrorCode.INVALID_PATH

    def __init__(self, path: str) -> None:
        super().__init__(f"invalid path: {path}", path=path)


class InvalidDiffBodyError(PatchError):
    """Block body lacks a ``@@`` hunk header line."""

    code = ErrorCode.INVALID_DIFF_BODY

    def __init__(self, path: str) -> None:
        super().__init__(f"invalid diff for file: {path}", path=path)


class NewFileNotAllowedError(PatchError):
    """Block targets a missing file while new files are disallowed."""

    code = ErrorCode.NEW_FILE_NOT_ALLOWED

    def __init__(self, path: str) -> None:
        super().__init__(f"new file not allowed: {path}", path=path)


class PathNotInContextError(PatchError):
    """Block targets a file outside the caller's allowed path set."""

    code = ErrorCode.PATH_NOT_IN_CONTEXT

    def __init__(self, path: str) -> None:
        super().__init__(f"file not in context: {path}", path=path)


class PatchRejectedError(PatchError):
    """External patch tool refused the combined patch."""

    code = ErrorCode.PATCH_REJECTED


__all__ = [
    "PatchError",
    "InvalidFormatError",
    "NoDiffBlocksError",
    "InvalidPathError",
    "InvalidDiffBodyError",
    "NewFileNotAllowedError",
    "PathNotInContextError",
    "PatchRejectedError",
]
