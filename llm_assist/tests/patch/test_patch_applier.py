"""Patch applier tests.

The first group uses ``FakePatchTool`` to exercise validation, retry and
logging; the second runs the real ``git apply`` when git is installed.
"""

from __future__ import annotations

import shutil

import pytest

from llm_assist.base.errors import (
    InvalidPathError,
    NewFileNotAllowedError,
    PatchRejectedError,
    PathNotInContextError,
)
from llm_assist.patch import DiffBlock, GitApplyTool, PatchApplier, PatchApplyOptions, RootLocks, build_patch
from llm_assist.tests.helpers import FakePatchTool

HUNK = "@@ -1,3 +1,3 @@\n A\n-B\n+B2\n C\n"
NEW_FILE_HUNK = "@@ -0,0 +1,2 @@\n+hello\n+world\n"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


@pytest.fixture()
def tree(tmp_path):
    (tmp_path / "a.txt").write_text("A\nB\nC\n", encoding="utf-8")
    return tmp_path


def test_build_patch_headers():
    text = build_patch([DiffBlock("a.txt", HUNK), DiffBlock("new.txt", NEW_FILE_HUNK.rstrip("\n"), is_new_file=True)])
    assert text == (
        "--- a.txt\n+++ a.txt\n" + HUNK + "--- /dev/null\n+++ new.txt\n" + NEW_FILE_HUNK
    )


def test_options_validation():
    with pytest.raises(ValueError):
        PatchApplyOptions(retry_count=-1)
    opts = PatchApplyOptions.for_files(["a.txt", "a.txt"], dry_run=True)
    assert opts.allowed_paths == frozenset({"a.txt"})
    assert PatchApplyOptions.for_files(None).allowed_paths is None


def test_invalid_path_rejected_before_any_tool_call(tree):
    tool = FakePatchTool()
    applier = PatchApplier(tree, tool=tool)
    with pytest.raises(InvalidPathError):
        applier.apply([DiffBlock("a.txt", HUNK), DiffBlock("../escape.txt", HUNK)])
    assert tool.checked == []


def test_new_file_requires_permission(tree):
    tool = FakePatchTool()
    applier = PatchApplier(tree, tool=tool)
    with pytest.raises(NewFileNotAllowedError):
        applier.apply([DiffBlock("missing.txt", NEW_FILE_HUNK)])
    result = applier.apply([DiffBlock("missing.txt", NEW_FILE_HUNK)], PatchApplyOptions(allow_new_files=True))
    assert result.new_files == ("missing.txt",)
    assert tool.checked[0].startswith("--- /dev/null\n+++ missing.txt\n")


def test_allowed_paths_restrict_existing_files(tree):
    (tree / "b.txt").write_text("x\n", encoding="utf-8")
    tool = FakePatchTool()
    applier = PatchApplier(tree, tool=tool)
    with pytest.raises(PathNotInContextError) as info:
        applier.apply([DiffBlock("b.txt", HUNK)], PatchApplyOptions.for_files(["a.txt"]))
    assert info.value.path == "b.txt"
    assert tool.checked == []

    opts = PatchApplyOptions.for_files(["a.txt"], allow_new_files=True)
    result = applier.apply([DiffBlock("a.txt", HUNK), DiffBlock("fresh.txt", NEW_FILE_HUNK)], opts)
    assert result.paths == ("a.txt", "fresh.txt")


def test_retry_reuses_identical_patch_text(tree, log_capture):
    tool = FakePatchTool(checks=[False, False, True])
    attempts = []
    applier = PatchApplier(tree, tool=tool)

    result = applier.apply([DiffBlock("a.txt", HUNK)], PatchApplyOptions(retry_count=2), before_retry=attempts.append)

    assert result.attempts == 3
    assert attempts == [1, 2]
    assert len(set(tool.checked)) == 1
    assert tool.applied == [tool.checked[0]]
    checks = log_capture.events("patch.check")
    assert [c["attempt"] for c in checks] == [1, 2, 3]
    assert [c["emitted"] for c in checks] == [False, False, True]
    assert log_capture.events("patch.commit")[0]["paths"] == ["a.txt"]


def test_rejected_after_retries_never_commits(tree, log_capture):
    tool = FakePatchTool(checks=[False, False])
    applier = PatchApplier(tree, tool=tool)
    with pytest.raises(PatchRejectedError) as info:
        applier.apply([DiffBlock("a.txt", HUNK)], PatchApplyOptions(retry_count=1))
    assert "patch failed" in info.value.message
    assert len(tool.checked) == 2
    assert tool.applied == []
    rejected = log_capture.events("patch.rejected")[0]
    assert rejected["phase"] == "check"
    assert rejected["error_code"] == "patch_rejected"


def test_dry_run_skips_commit(tree):
    tool = FakePatchTool()
    result = PatchApplier(tree, tool=tool).apply([DiffBlock("a.txt", HUNK)], PatchApplyOptions(dry_run=True))
    assert result.dry_run is True
    assert tool.applied == []


def test_commit_failure_is_rejected(tree):
    tool = FakePatchTool(apply_ok=False)
    with pytest.raises(PatchRejectedError):
        PatchApplier(tree, tool=tool).apply([DiffBlock("a.txt", HUNK)])


def test_root_locks_are_keyed_by_resolved_root(tree):
    locks = RootLocks()
    assert locks.lock_for(tree) is locks.lock_for(tree / ".")
    assert len(locks) == 1
    assert RootLocks().lock_for(tree) is not locks.lock_for(tree)


def test_check_and_commit_hold_the_shared_root_lock(tree):
    locks = RootLocks()
    held = []

    class LockAwareTool(FakePatchTool):
        def check(self, patch_text, root):
            held.append(locks.lock_for(root).locked())
            return super().check(patch_text, root)

        def apply(self, patch_text, root):
            held.append(locks.lock_for(root).locked())
            return super().apply(patch_text, root)

    PatchApplier(tree, tool=LockAwareTool(), locks=locks).apply([DiffBlock("a.txt", HUNK)])

    assert held == [True, True]
    assert not locks.lock_for(tree).locked()


def test_apply_response_parses_first(tree):
    tool = FakePatchTool()
    result = PatchApplier(tree, tool=tool).apply_response(f"```diff file=a.txt\n{HUNK}```\n")
    assert result.paths == ("a.txt",)


# Real git -----------------------------------------------------------------


@requires_git
def test_git_dry_run_leaves_tree_untouched(tree):
    result = PatchApplier(tree, tool=GitApplyTool()).apply([DiffBlock("a.txt", HUNK)], PatchApplyOptions(dry_run=True))
    assert result.attempts == 1
    assert (tree / "a.txt").read_text(encoding="utf-8") == "A\nB\nC\n"


@requires_git
def test_git_commit_modifies_file(tree):
    PatchApplier(tree, tool=GitApplyTool()).apply([DiffBlock("a.txt", HUNK)])
    assert (tree / "a.txt").read_text(encoding="utf-8") == "A\nB2\nC\n"


@requires_git
def test_git_creates_new_file_when_allowed(tree):
    PatchApplier(tree, tool=GitApplyTool()).apply(
        [DiffBlock("pkg/new.txt", NEW_FILE_HUNK)], PatchApplyOptions(allow_new_files=True)
    )
    assert (tree / "pkg" / "new.txt").read_text(encoding="utf-8") == "hello\nworld\n"


@requires_git
def test_git_rejects_stale_hunk_without_changes(tree):
    stale = "@@ -1,3 +1,3 @@\n X\n-Y\n+Y2\n Z\n"
    with pytest.raises(PatchRejectedError):
        PatchApplier(tree, tool=GitApplyTool()).apply([DiffBlock("a.txt", HUNK), DiffBlock("a.txt", stale)])
    assert (tree / "a.txt").read_text(encoding="utf-8") == "A\nB\nC\n"


def test_missing_git_executable_is_a_failed_result(tree):
    result = GitApplyTool(executable="definitely-not-git-xyz").check("", tree)
    assert result.ok is False
    assert "not found" in result.output
