"""Worktree directories under the workspace root.

The workspace directory is the only record of which worktrees exist; there is
no index file. All check-then-act sequences on it go through WorktreeStore.
"""

import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .console import get_console
from .constants import WORKSPACE_DIR_NAME, worktree_path
from .exceptions import GitError
from .git_utils import (
    get_git_common_dir,
    get_main_repo_root,
    git_command,
    local_branch_exists,
)
from .links import LinkResult, link_shared_resources

console = get_console()


@dataclass
class CreateResult:
    path: Path
    created: bool
    links: list[LinkResult] = field(default_factory=list)


def resolve_create_args(
    branch_name: str, extra_args: Sequence[str], repo: Path
) -> list[str]:
    """
    Compute the arguments passed to `git worktree add` after the path.

    If `-b <name>` is given and refs/heads/<name> already exists, the flag is
    dropped and the existing branch is checked out instead. With no extra
    arguments an existing local branch is passed explicitly.

    Args:
        branch_name: Branch the worktree is for
        extra_args: User supplied git-native flags
        repo: Repository path

    Returns:
        Argument list for git
    """
    args = list(extra_args)
    if not args:
        return [branch_name] if local_branch_exists(branch_name, repo) else []

    target_branch: str | None = None
    for i, arg in enumerate(args):
        if arg == "-b" and i + 1 < len(args):
            target_branch = args[i + 1]

    if target_branch and local_branch_exists(target_branch, repo):
        console.print(f"[dim]info: branch '{target_branch}' exists, using existing branch[/dim]")
        return [target_branch]
    return args


class WorktreeStore:
    """Managed worktrees of one repository."""

    def __init__(self, repo_root: Path, workspace_root: Path) -> None:
        self.repo_root = repo_root
        self.workspace_root = workspace_root

    @classmethod
    def for_repo(cls, path: Path | None = None) -> "WorktreeStore":
        """
        Build the store for the repository containing path.

        Args:
            path: Any directory in the main checkout or one of its worktrees

        Returns:
            WorktreeStore rooted at <git-common-dir>/worktree-workspace

        Raises:
            GitError: If not in a git repository
        """
        repo_root = get_main_repo_root(path)
        workspace_root = get_git_common_dir(path) / WORKSPACE_DIR_NAME
        return cls(repo_root, workspace_root)

    def path_for(self, branch_name: str) -> Path:
        return worktree_path(self.workspace_root, branch_name)

    def exists(self, branch_name: str) -> bool:
        return self.path_for(branch_name).is_dir()

    def list(self) -> Iterator[str]:
        """Yield worktree directory names in filesystem order."""
        if not self.workspace_root.is_dir():
            return
        for entry in os.scandir(self.workspace_root):
            if entry.is_dir():
                yield entry.name

    def create(self, branch_name: str, extra_args: Sequence[str] = ()) -> CreateResult:
        """
        Create the worktree for a branch unless its directory already exists.

        On success the process moves into the new worktree, checks out
        branch_name and links shared resources from the main checkout.

        Args:
            branch_name: Branch the worktree is for
            extra_args: Extra arguments for `git worktree add`

        Returns:
            CreateResult; created is False when the directory already existed

        Raises:
            GitError: If the workspace can't be created or git fails
        """
        path = self.path_for(branch_name)
        if path.is_dir():
            return CreateResult(path, created=False)

        try:
            self.workspace_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GitError(f"Failed to create workspace directory: {e}") from e

        args = resolve_create_args(branch_name, extra_args, self.repo_root)

        console.print(f"creating worktree: [blue]{path}[/blue]")
        result = git_command(
            "worktree", "add", str(path), *args, repo=self.repo_root, check=False, capture=True
        )
        if result.returncode != 0:
            raise GitError(f"Failed to create worktree\n{result.stdout.strip()}".rstrip())

        os.chdir(path)

        checkout = git_command("checkout", branch_name, repo=path, check=False, capture=True)
        if checkout.returncode != 0:
            console.print(f"[yellow]warning:[/yellow] could not checkout '{branch_name}'")

        links = link_shared_resources(self.repo_root, path)
        return CreateResult(path, created=True, links=links)

    def remove(self, path: Path) -> None:
        """
        Force-remove a worktree, uncommitted changes included.

        Args:
            path: Worktree directory

        Raises:
            GitError: If git fails to remove it
        """
        result = git_command(
            "worktree", "remove", "--force", str(path),
            repo=self.repo_root, check=False, capture=True,
        )
        if result.returncode != 0:
            raise GitError(f"Failed to remove worktree\n{result.stdout.strip()}".rstrip())
