"""Git operations wrapper utilities."""

import subprocess
from pathlib import Path
from typing import List, Optional

from .exceptions import GitError, InvalidBranchError


def run_command(
    cmd: List[str],
    cwd: Optional[Path] = None,
    check: bool = True,
    capture: bool = False,
) -> subprocess.CompletedProcess:
    """
    Run a shell command.

    Args:
        cmd: Command and arguments as a list
        cwd: Working directory for the command
        check: Raise exception on non-zero exit code
        capture: Capture stdout/stderr

    Returns:
        CompletedProcess instance

    Raises:
        GitError: If command fails and check=True
    """
    kwargs = {}
    if capture:
        kwargs["stdout"] = subprocess.PIPE
        kwargs["stderr"] = subprocess.STDOUT
        kwargs["text"] = True

    try:
        result = subprocess.run(cmd, cwd=cwd, check=False, **kwargs)
        if check and result.returncode != 0:
            output = result.stdout if capture else ""
            raise GitError(f"Command failed: {' '.join(cmd)}\n{output}".rstrip())
        return result
    except FileNotFoundError as e:
        raise GitError(f"Command not found: {cmd[0]}") from e


def git_command(
    *args: str,
    repo: Optional[Path] = None,
    check: bool = True,
    capture: bool = False,
) -> subprocess.CompletedProcess:
    """
    Run a git command.

    Args:
        *args: Git command arguments
        repo: Repository path
        check: Raise exception on non-zero exit code
        capture: Capture stdout/stderr

    Returns:
        CompletedProcess instance

    Raises:
        GitError: If git command fails
    """
    cmd = ["git"] + list(args)
    return run_command(cmd, cwd=repo, check=check, capture=capture)


def get_repo_root(path: Optional[Path] = None) -> Path:
    """
    Get the top-level directory of the current checkout.

    Inside a linked worktree this is the worktree itself, not the main
    repository (see get_main_repo_root).

    Args:
        path: Optional path to start from (defaults to current directory)

    Returns:
        Path to the checkout root

    Raises:
        GitError: If not in a git repository
    """
    try:
        result = git_command("rev-parse", "--show-toplevel", repo=path, capture=True)
        return Path(result.stdout.strip())
    except GitError:
        raise GitError("Not a git repository")


def get_git_dir(path: Optional[Path] = None) -> Path:
    """Absolute git dir of the current checkout (per-worktree for linked worktrees)."""
    try:
        result = git_command(
            "rev-parse", "--path-format=absolute", "--git-dir", repo=path, capture=True
        )
    except GitError:
        raise GitError("Not a git repository")
    return Path(result.stdout.strip())


def get_git_common_dir(path: Optional[Path] = None) -> Path:
    """Absolute git dir shared by the main checkout and all of its worktrees."""
    try:
        result = git_command(
            "rev-parse", "--path-format=absolute", "--git-common-dir", repo=path, capture=True
        )
    except GitError:
        raise GitError("Not a git repository")
    return Path(result.stdout.strip())


def get_main_repo_root(path: Optional[Path] = None) -> Path:
    """
    Get the canonical repository root shared by all worktrees.

    Resolved from the common git dir by stripping its '.git' component, so it
    is the same whether called from the main checkout or a linked worktree.

    Args:
        path: Optional path to start from (defaults to current directory)

    Returns:
        Path to the main checkout

    Raises:
        GitError: If not in a git repository
    """
    common_dir = get_git_common_dir(path)
    if common_dir.name == ".git":
        return common_dir.parent
    return get_repo_root(path)


def is_inside_worktree(path: Optional[Path] = None) -> bool:
    """
    Check whether a path is inside a linked worktree (not the main checkout).

    Args:
        path: Optional path to check (defaults to current directory)

    Returns:
        True for a linked worktree, False for the main checkout or outside git
    """
    try:
        return get_git_dir(path) != get_git_common_dir(path)
    except GitError:
        return False


def get_current_branch(repo: Optional[Path] = None) -> str:
    """
    Get the current branch name.

    Args:
        repo: Repository path

    Returns:
        Current branch name

    Raises:
        InvalidBranchError: If in detached HEAD state
    """
    result = git_command("rev-parse", "--abbrev-ref", "HEAD", repo=repo, capture=True)
    branch = result.stdout.strip()
    if branch == "HEAD":
        raise InvalidBranchError("In detached HEAD state")
    return branch


def branch_exists(branch: str, repo: Optional[Path] = None) -> bool:
    """
    Check if a branch (or any revision) resolves.

    Args:
        branch: Branch name
        repo: Repository path

    Returns:
        True if branch exists, False otherwise
    """
    result = git_command("rev-parse", "--verify", branch, repo=repo, check=False, capture=True)
    return result.returncode == 0


def local_branch_exists(branch: str, repo: Optional[Path] = None) -> bool:
    """
    Check if a local branch exists under refs/heads/.

    Args:
        branch: Branch name
        repo: Repository path

    Returns:
        True if refs/heads/<branch> exists, False otherwise
    """
    result = git_command(
        "show-ref", "--verify", "--quiet", f"refs/heads/{branch}",
        repo=repo, check=False, capture=True,
    )
    return result.returncode == 0


def has_uncommitted_changes(repo: Optional[Path] = None) -> bool:
    """
    Check a checkout for uncommitted changes, untracked files included.

    Args:
        repo: Checkout path

    Returns:
        True if `git status --porcelain` reports anything. A failing status
        (e.g. broken worktree) counts as clean.
    """
    result = git_command("status", "--porcelain", repo=repo, check=False, capture=True)
    return result.returncode == 0 and bool(result.stdout.strip())


def has_command(name: str) -> bool:
    """
    Check if a command is available in PATH.

    Args:
        name: Command name

    Returns:
        True if command exists, False otherwise
    """
    from shutil import which
    return bool(which(name))
