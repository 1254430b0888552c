"""Tests for merging branches in the main checkout."""

import os
from pathlib import Path

import pytest

from gwt.exceptions import (
    BranchNotFoundError,
    InvalidBranchError,
    MergeConflictError,
    MergeError,
    UncommittedChangesError,
)
from gwt.git_utils import get_current_branch
from gwt.merge import merge_branches


@pytest.fixture
def feature_branch(temp_git_repo: Path, git, commit_file) -> str:
    """Branch 'feature' one commit ahead of main, with main checked out."""
    git("checkout", "-b", "feature", cwd=temp_git_repo)
    commit_file(temp_git_repo, "feature.txt", "new content\n", "feature commit")
    git("checkout", "main", cwd=temp_git_repo)
    return "feature"


def test_merge_into_main(temp_git_repo: Path, feature_branch: str) -> None:
    """Merging brings the source commits into the target checkout."""
    result = merge_branches(feature_branch)

    assert result.source == "feature"
    assert result.target == "main"
    assert result.repo_root == temp_git_repo
    assert (temp_git_repo / "feature.txt").read_text() == "new content\n"


def test_merge_checks_out_target(temp_git_repo: Path, feature_branch: str, git) -> None:
    """The target is checked out before merging."""
    git("checkout", "-b", "develop", "main~0", cwd=temp_git_repo)
    git("checkout", feature_branch, cwd=temp_git_repo)

    merge_branches(feature_branch, "develop")

    assert get_current_branch(temp_git_repo) == "develop"
    assert (temp_git_repo / "feature.txt").exists()


def test_merge_from_worktree_moves_to_repo_root(
    temp_git_repo: Path, feature_branch: str, git
) -> None:
    """Merging from a linked worktree runs in the main checkout."""
    git("branch", "other", cwd=temp_git_repo)
    other = temp_git_repo.parent / "other"
    git("worktree", "add", str(other), "other", cwd=temp_git_repo)
    os.chdir(other)

    merge_branches(feature_branch)

    assert Path.cwd() == temp_git_repo
    assert (temp_git_repo / "feature.txt").exists()
    assert not (other / "feature.txt").exists()


def test_missing_source_fails_before_checkout(temp_git_repo: Path, git) -> None:
    """A nonexistent source is rejected without touching the checkout."""
    git("checkout", "-b", "work", cwd=temp_git_repo)

    with pytest.raises(BranchNotFoundError, match="Source branch 'nonexistent' not found"):
        merge_branches("nonexistent")

    assert get_current_branch(temp_git_repo) == "work"


def test_missing_target(temp_git_repo: Path, feature_branch: str) -> None:
    """A nonexistent target is rejected."""
    with pytest.raises(BranchNotFoundError, match="Target branch 'release' not found"):
        merge_branches(feature_branch, "release")


def test_self_merge_rejected_without_checkout(temp_git_repo: Path, git) -> None:
    """Merging a branch into itself fails and leaves HEAD alone."""
    git("checkout", "-b", "work", cwd=temp_git_repo)

    with pytest.raises(InvalidBranchError, match="Cannot merge branch into itself"):
        merge_branches("main", "main")

    assert get_current_branch(temp_git_repo) == "work"


def test_empty_source_rejected(temp_git_repo: Path) -> None:
    """A source branch name is required."""
    with pytest.raises(InvalidBranchError, match="Source branch name required"):
        merge_branches("")


def test_dirty_target_blocks_merge(temp_git_repo: Path, feature_branch: str) -> None:
    """Uncommitted changes in the target checkout stop the merge."""
    (temp_git_repo / "scratch.txt").write_text("wip")

    with pytest.raises(UncommittedChangesError, match="Uncommitted changes in 'main'"):
        merge_branches(feature_branch)

    assert not (temp_git_repo / "feature.txt").exists()


def test_conflict_left_in_progress(temp_git_repo: Path, git, commit_file) -> None:
    """A conflicting merge raises and stays mid-merge for manual resolution."""
    git("checkout", "-b", "feature", cwd=temp_git_repo)
    commit_file(temp_git_repo, "README.md", "feature side\n")
    git("checkout", "main", cwd=temp_git_repo)
    commit_file(temp_git_repo, "README.md", "main side\n")

    with pytest.raises(MergeConflictError) as excinfo:
        merge_branches("feature")

    error = excinfo.value
    assert (error.source, error.target, error.repo_root) == ("feature", "main", temp_git_repo)
    assert "git merge --abort" in str(error)
    assert (temp_git_repo / ".git" / "MERGE_HEAD").exists()
    assert "<<<<<<<" in (temp_git_repo / "README.md").read_text()
    assert get_current_branch(temp_git_repo) == "main"


def test_target_checkout_failure(temp_git_repo: Path, feature_branch: str, git) -> None:
    """A target that can't be checked out in the main checkout stops the merge."""
    git("checkout", "-b", "side", cwd=temp_git_repo)
    git("worktree", "add", str(temp_git_repo.parent / "main-wt"), "main", cwd=temp_git_repo)

    with pytest.raises(MergeError, match="Failed to checkout 'main'") as excinfo:
        merge_branches(feature_branch)

    assert not isinstance(excinfo.value, MergeConflictError)
    assert excinfo.value.repo_root == temp_git_repo
    assert get_current_branch(temp_git_repo) == "side"
    assert not (temp_git_repo / "feature.txt").exists()


def test_dirty_target_reports_repo_root(temp_git_repo: Path, feature_branch: str) -> None:
    """Failures after moving to the main checkout say where the process is."""
    (temp_git_repo / "scratch.txt").write_text("wip")

    with pytest.raises(UncommittedChangesError) as excinfo:
        merge_branches(feature_branch)

    assert excinfo.value.repo_root == temp_git_repo
