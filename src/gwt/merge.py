"""Merge one branch into another from the main checkout."""

import os
from dataclasses import dataclass
from pathlib import Path

from rich.markup import escape

from .console import get_console
from .constants import DEFAULT_MERGE_TARGET
from .exceptions import (
    BranchNotFoundError,
    InvalidBranchError,
    MergeConflictError,
    MergeError,
    UncommittedChangesError,
)
from .git_utils import (
    branch_exists,
    get_main_repo_root,
    get_repo_root,
    git_command,
    has_uncommitted_changes,
)

console = get_console()


@dataclass(frozen=True)
class MergeResult:
    source: str
    target: str
    repo_root: Path


def check_merge_preconditions(source: str, target: str) -> None:
    """
    Validate a merge request without touching any checkout.

    Raises:
        InvalidBranchError: If a name is empty or source equals target
        GitError: If not in a git repository
        BranchNotFoundError: If source or target doesn't exist
    """
    if not source:
        raise InvalidBranchError("Source branch name required")
    if not target:
        raise InvalidBranchError("Target branch name required")

    get_repo_root()

    if not branch_exists(source):
        raise BranchNotFoundError(f"Source branch '{source}' not found")
    if not branch_exists(target):
        raise BranchNotFoundError(f"Target branch '{target}' not found")
    if source == target:
        raise InvalidBranchError("Cannot merge branch into itself")


def merge_branches(source: str, target: str = DEFAULT_MERGE_TARGET) -> MergeResult:
    """
    Merge source into target in the main checkout.

    The process moves to the main repository root and checks out target
    there. On conflict the merge is left in progress for manual resolution;
    nothing is aborted or retried.

    Args:
        source: Branch to merge
        target: Branch to merge into

    Returns:
        MergeResult describing the completed merge

    Raises:
        InvalidBranchError: If a name is empty or source equals target
        BranchNotFoundError: If source or target doesn't exist
        MergeError: If target can't be checked out
        UncommittedChangesError: If the main checkout has uncommitted changes
        MergeConflictError: If git merge fails
    """
    check_merge_preconditions(source, target)

    repo_root = get_main_repo_root()
    os.chdir(repo_root)

    console.print(f"checking out '{target}'...")
    checkout = git_command("checkout", target, repo=repo_root, check=False, capture=True)
    if checkout.returncode != 0:
        raise MergeError(
            f"Failed to checkout '{target}'\n{checkout.stdout.strip()}".rstrip(),
            repo_root=repo_root,
        )

    if has_uncommitted_changes(repo_root):
        raise UncommittedChangesError(
            f"Uncommitted changes in '{target}'\n"
            f"  → commit or stash changes before merging",
            repo_root=repo_root,
        )

    console.print(f"merging '{source}' into '{target}'...")
    result = git_command("merge", "--no-edit", source, repo=repo_root, check=False, capture=True)
    if result.stdout.strip():
        console.print(escape(result.stdout.strip()), style="dim", highlight=False)

    if result.returncode != 0:
        raise MergeConflictError(
            f"Merge failed (you are now at {repo_root} on '{target}')\n"
            f"  Resolve conflicts manually, then:\n"
            f"    git merge --continue  # to complete merge\n"
            f"    git merge --abort     # to cancel merge",
            source=source,
            target=target,
            repo_root=repo_root,
        )

    console.print(f"[bold green]✓[/bold green] merged '{source}' into '{target}'")
    return MergeResult(source, target, repo_root)
