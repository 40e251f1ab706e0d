"""Validated, two-phase patch application.

Flow
----
1. Re-validate every block path before touching the filesystem.
2. Decide ``is_new_file`` from the working tree.
3. Enforce ``allowed_paths`` and ``allow_new_files``.
4. Build one combined patch (``--- <path or /dev/null>`` / ``+++ <path>``).
5. Check phase, retried ``retry_count`` extra times with identical text.
6. Commit phase unless ``dry_run``.

Every failure raises a ``PatchError`` subclass before the commit phase
starts, so a failing call never mutates the tree. Check/commit pairs on one
root are serialized by the per-root lock of the ``RootLocks`` the applier
is given; callers share one ``RootLocks`` per service.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
import threading
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..base.errors import (
    NewFileNotAllowedError,
    PatchRejectedError,
    PathNotInContextError,
)
from ..base.logging import LogContext, get_logger, log_event, normalized_log_event
from .git_tool import GitApplyTool, PatchTool
from .models import ApplyResult, DiffBlock, PatchApplyOptions
from .parser import PatchParser, validate_path

DEV_NULL = "/dev/null"


class RootLocks:
    """Per-root locks for check/commit pairs, keyed by resolved path.

    Owned by one service; appliers that share an instance never run two
    check/commit pairs on the same root at once. Entries live as long as the
    owner.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def lock_for(self, root: Path) -> threading.Lock:
        key = str(root.resolve())
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


def build_patch(blocks: Sequence[DiffBlock]) -> str:
    """Concatenate blocks into one unified patch, bodies newline-terminated."""
    parts: List[str] = []
    for block in blocks:
        old = DEV_NULL if block.is_new_file else block.path
        body = block.diff_body if block.diff_body.endswith("\n") else block.diff_body + "\n"
        parts.append(f"--- {old}\n+++ {block.path}\n{body}")
    return "".join(parts)


class PatchApplier:
    """Applies parsed diff blocks to the working tree rooted at ``root``."""

    def __init__(
        self,
        root: Union[str, Path] = ".",
        tool: Optional[PatchTool] = None,
        *,
        locks: Optional[RootLocks] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.root = Path(root)
        self.locks = locks if locks is not None else RootLocks()
        self._tool = tool if tool is not None else GitApplyTool()
        self._logger = logger or get_logger("llm_assist.patch")

    def resolve_blocks(self, blocks: Sequence[DiffBlock], options: PatchApplyOptions) -> List[DiffBlock]:
        """Validate blocks against the tree and options; returns them with ``is_new_file`` set."""
        for block in blocks:
            validate_path(block.path)
        resolved: List[DiffBlock] = []
        allowed = options.allowed_paths
        for block in blocks:
            is_new = not (self.root / block.path).exists()
            if allowed is not None and block.path not in allowed and not (is_new and options.allow_new_files):
                raise PathNotInContextError(block.path)
            if is_new and not options.allow_new_files:
                raise NewFileNotAllowedError(block.path)
            resolved.append(replace(block, is_new_file=is_new))
        return resolved

    def apply(
        self,
        blocks: Sequence[DiffBlock],
        options: Optional[PatchApplyOptions] = None,
        *,
        before_retry: Optional[Callable[[int], None]] = None,
    ) -> ApplyResult:
        """Check (with retries) and, unless ``dry_run``, commit ``blocks``.

        ``before_retry(attempt)`` runs before every retry of the check phase.

        Raises
        ------
        InvalidPathError, PathNotInContextError, NewFileNotAllowedError
            Validation failures, before any tool invocation.
        PatchRejectedError
            The tool refused the patch in the check or commit phase.
        """
        options = options or PatchApplyOptions()
        resolved = self.resolve_blocks(blocks, options)
        patch_text = build_patch(resolved)
        ctx = LogContext(extra={"root": str(self.root), "files": len(resolved)})

        with self.locks.lock_for(self.root):
            attempt = 0
            while True:
                attempt += 1
                result = self._tool.check(patch_text, self.root)
                normalized_log_event(
                    self._logger,
                    "patch.check",
                    ctx,
                    phase="check",
                    attempt=attempt,
                    emitted=result.ok,
                    level=logging.INFO if result.ok else logging.WARNING,
                )
                if result.ok:
                    break
                if attempt > options.retry_count:
                    self._rejected(ctx, "check", attempt, result.output)
                    raise PatchRejectedError(result.output.strip() or "patch check failed")
                if before_retry is not None:
                    before_retry(attempt)

            output = result.output
            if not options.dry_run:
                committed = self._tool.apply(patch_text, self.root)
                if not committed.ok:
                    self._rejected(ctx, "commit", attempt, committed.output)
                    raise PatchRejectedError(committed.output.strip() or "patch apply failed")
                output = committed.output
                log_event(self._logger, "patch.commit", ctx, paths=[b.path for b in resolved])

        return ApplyResult(
            blocks=tuple(resolved),
            patch_text=patch_text,
            attempts=attempt,
            dry_run=options.dry_run,
            output=output,
        )

    def apply_response(
        self,
        text: str,
        options: Optional[PatchApplyOptions] = None,
        *,
        before_retry: Optional[Callable[[int], None]] = None,
    ) -> ApplyResult:
        """Parse ``text`` into diff blocks and apply them."""
        return self.apply(PatchParser().parse(text), options, before_retry=before_retry)

    def _rejected(self, ctx: LogContext, phase: str, attempt: int, output: str) -> None:
        normalized_log_event(
            self._logger,
            "patch.rejected",
            ctx,
            phase=phase,
            attempt=attempt,
            error_code="patch_rejected",
            emitted=False,
            level=logging.WARNING,
            output=output.strip()[:2000],
        )


__all__ = ["PatchApplier", "RootLocks", "build_patch", "DEV_NULL"]
