"""``git apply`` wrapper used as the default patch tool.

Purpose
    Check and apply a combined unified patch against a working tree.

External Dependencies
    * Local ``git`` executable executed via :mod:`subprocess` with a fixed
      argument vector (``shell=False``). The patch is passed on stdin.
      ``git apply`` also works outside a repository.

Timeout Strategy
    Each invocation is bounded by ``TimeoutConfig.patch_timeout``. A timeout
    or a missing executable is reported as a failed ``ToolResult`` so the
    applier surfaces it as a rejected patch.
"""

from __future__ import annotations

from pathlib import Path
import subprocess  # nosec B404 - fixed git argument vector, patch on stdin
from typing import List, Optional, Protocol, runtime_checkable

from ..base.timeouts import get_timeout_config
from .models import ToolResult


@runtime_checkable
class PatchTool(Protocol):
    """External tool able to validate and apply a unified patch."""

    def check(self, patch_text: str, root: Path) -> ToolResult:
        ...

    def apply(self, patch_text: str, root: Path) -> ToolResult:
        ...


class GitApplyTool:
    """Runs ``git apply [--check] -p0`` in the working-tree root."""

    def __init__(self, *, executable: str = "git", timeout: Optional[float] = None) -> None:
        self._executable = executable
        self._timeout = timeout

    def _cmd(self, check: bool) -> List[str]:
        cmd = [self._executable, "apply"]
        if check:
            cmd.append("--check")
        cmd.append("-p0")
        return cmd

    def _run(self, patch_text: str, root: Path, check: bool) -> ToolResult:
        timeout = self._timeout if self._timeout is not None else get_timeout_config().patch_timeout
        try:
            completed = subprocess.run(  # nosec B603 - fixed arg list; shell=False
                self._cmd(check),
                input=patch_text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                cwd=str(root),
                timeout=timeout,
            )
        except FileNotFoundError:
            return ToolResult(ok=False, output=f"'{self._executable}' executable not found on PATH")
        except subprocess.TimeoutExpired:
            return ToolResult(ok=False, output=f"git apply exceeded {timeout}s")
        return ToolResult(ok=completed.returncode == 0, output=(completed.stdout or "") + (completed.stderr or ""))

    def check(self, patch_text: str, root: Path) -> ToolResult:
        return self._run(patch_text, root, check=True)

    def apply(self, patch_text: str, root: Path) -> ToolResult:
        return self._run(patch_text, root, check=False)


__all__ = ["PatchTool", "GitApplyTool"]
