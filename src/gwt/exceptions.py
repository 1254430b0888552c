"""Exception hierarchy for gwt.

Components raise these; the CLI turns them into an error message and a
non-zero exit status.
"""

from pathlib import Path


class GwtError(Exception):
    """
    Base class for all gwt errors.

    repo_root is set when the process already moved to the repository root
    before failing; the CLI prints it so the shell wrapper follows.
    """

    def __init__(self, message: str = "", repo_root: Path | None = None) -> None:
        super().__init__(message)
        self.repo_root = repo_root


class GitError(GwtError):
    """A git command failed or the current directory is not a repository."""


class InvalidBranchError(GwtError):
    """Branch name is missing or unusable (e.g. detached HEAD)."""


class BranchNotFoundError(GwtError):
    """Branch does not exist in the repository."""


class WorktreeNotFoundError(GwtError):
    """No worktree directory exists for the requested branch."""


class UncommittedChangesError(GwtError):
    """A checkout has uncommitted changes and the operation was not forced."""


class MergeError(GwtError):
    """Merge could not be started."""


class MergeConflictError(MergeError):
    """
    Merge ran but git reported a conflict or failure.

    The repository is left mid-merge with the target branch checked out at
    repo_root, for the operator to resolve.
    """

    def __init__(self, message: str, source: str, target: str, repo_root: Path) -> None:
        super().__init__(message, repo_root=repo_root)
        self.source = source
        self.target = target


class ToolNotFoundError(GwtError):
    """Configured AI tool executable is not on PATH."""


class ConfigError(GwtError):
    """Invalid configuration value."""
