"""Patch engine data types."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple


@dataclass(frozen=True)
class DiffBlock:
    """One ```` ```diff file=<path> ```` block extracted from a model response.

    ``is_new_file`` is always ``False`` at parse time; the applier decides it
    by looking at the working tree.
    """

    path: str
    diff_body: str
    is_new_file: bool = False


@dataclass(frozen=True)
class PatchApplyOptions:
    """Knobs for ``PatchApplier.apply``.

    Attributes:
        retry_count: Extra check attempts after the first failure (>= 0).
        dry_run: Stop after a successful check phase.
        allow_new_files: Permit blocks targeting files that do not exist.
        allowed_paths: When set, only these relative paths may be edited
            (new files are exempt when ``allow_new_files`` is true).
    """

    retry_count: int = 0
    dry_run: bool = False
    allow_new_files: bool = False
    allowed_paths: Optional[FrozenSet[str]] = None

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError(f"retry_count must be >= 0, got {self.retry_count}")
        if self.allowed_paths is not None and not isinstance(self.allowed_paths, frozenset):
            object.__setattr__(self, "allowed_paths", frozenset(self.allowed_paths))

    @classmethod
    def for_files(cls, files: Optional[Iterable[str]], **kwargs) -> "PatchApplyOptions":
        """Build options restricted to ``files`` (``None`` means unrestricted)."""
        allowed = frozenset(files) if files is not None else None
        return cls(allowed_paths=allowed, **kwargs)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one external patch-tool invocation."""

    ok: bool
    output: str = ""


@dataclass(frozen=True)
class ApplyResult:
    """Summary of a successful ``PatchApplier.apply`` call."""

    blocks: Tuple[DiffBlock, ...]
    patch_text: str
    attempts: int
    dry_run: bool
    output: str = ""

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(b.path for b in self.blocks)

    @property
    def new_files(self) -> Tuple[str, ...]:
        return tuple(b.path for b in self.blocks if b.is_new_file)


__all__ = ["DiffBlock", "PatchApplyOptions", "ToolResult", "ApplyResult"]
