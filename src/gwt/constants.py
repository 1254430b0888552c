"""Constants and default values for gwt."""

from pathlib import Path

# Workspace directory, created inside the repository's git common dir
WORKSPACE_DIR_NAME = "worktree-workspace"

# Branch merged into when `-m` is given without a target
DEFAULT_MERGE_TARGET = "main"


def branch_to_dirname(branch_name: str) -> str:
    """
    Convert a branch name to a worktree directory name.

    Every '/' becomes '-', so 'feature/login' maps to 'feature-login'.
    Note that 'feature-login' maps to the same name.
    """
    return branch_name.replace("/", "-")


def worktree_path(workspace_root: Path, branch_name: str) -> Path:
    """
    Compute the worktree directory for a branch.

    Args:
        workspace_root: Directory holding all managed worktrees
        branch_name: Branch name (may contain '/')

    Returns:
        Path of the worktree directory (not checked for existence)

    Example:
        >>> worktree_path(Path("/repo/.git/worktree-workspace"), "feature/login")
        PosixPath('/repo/.git/worktree-workspace/feature-login')
    """
    return workspace_root / branch_to_dirname(branch_name)
