"""
Diff extraction and patch application.

Exports:
- PatchParser / parse_diff_blocks: model output -> DiffBlock list
- PatchApplier: validated check/commit application against a working tree
- RootLocks: per-root serialization of check/commit pairs
- GitApplyTool: default ``git apply`` backed PatchTool
"""

from .models import ApplyResult, DiffBlock, PatchApplyOptions, ToolResult
from .parser import PatchParser, parse_diff_blocks
from .git_tool import GitApplyTool, PatchTool
from .applier import PatchApplier, RootLocks, build_patch

__all__ = [
    "ApplyResult",
    "DiffBlock",
    "PatchApplyOptions",
    "ToolResult",
    "PatchParser",
    "parse_diff_blocks",
    "GitApplyTool",
    "PatchTool",
    "PatchApplier",
    "RootLocks",
    "build_patch",
]
