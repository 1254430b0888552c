"""Core business logic for gwt commands."""

import os
import subprocess
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from rich.prompt import Confirm

from .config import ToolConfig
from .console import get_console
from .constants import DEFAULT_MERGE_TARGET
from .exceptions import (
    GwtError,
    InvalidBranchError,
    MergeConflictError,
    ToolNotFoundError,
    UncommittedChangesError,
    WorktreeNotFoundError,
)
from .git_utils import (
    get_current_branch,
    get_main_repo_root,
    get_repo_root,
    git_command,
    has_command,
    has_uncommitted_changes,
    is_inside_worktree,
)
from .links import report_links
from .merge import merge_branches
from .store import CreateResult, WorktreeStore

console = get_console()


class StrictConfirm(Confirm):
    """Yes/no prompt where any answer other than y cancels instead of asking again."""

    def process_response(self, value: str) -> bool:
        return value.strip() in ("y", "Y")


def _require_branch_name(branch_name: str | None) -> str:
    if not branch_name:
        raise InvalidBranchError("Branch name required")
    return branch_name


def _require_worktree(store: WorktreeStore, branch_name: str) -> Path:
    path = store.path_for(branch_name)
    if not path.is_dir():
        raise WorktreeNotFoundError(f"Worktree '{branch_name}' not found at {path}")
    return path


def add_worktree(branch_name: str | None, extra_args: Sequence[str] = ()) -> CreateResult:
    """
    Create a worktree for a branch, or reuse the existing one.

    Args:
        branch_name: Branch the worktree is for
        extra_args: Extra arguments for `git worktree add` (e.g. -b <name>)

    Returns:
        CreateResult for the worktree

    Raises:
        GitError: If not in a git repository or git fails
        InvalidBranchError: If branch_name is empty
    """
    get_repo_root()
    branch_name = _require_branch_name(branch_name)

    store = WorktreeStore.for_repo()
    result = store.create(branch_name, extra_args)

    if not result.created:
        console.print(f"[cyan]info:[/cyan] worktree '{branch_name}' already exists")
        # Directory names collide for e.g. 'a/b' and 'a-b'
        checked_out = git_command(
            "rev-parse", "--abbrev-ref", "HEAD", repo=result.path, check=False, capture=True
        )
        current = checked_out.stdout.strip()
        if checked_out.returncode == 0 and current not in (branch_name, "HEAD"):
            console.print(
                f"[yellow]⚠[/yellow] {result.path.name} has '{current}' checked out, "
                f"not '{branch_name}'"
            )
        return result

    report_links(result.links)
    console.print(f"→ {result.path}")
    return result


@dataclass
class RemoveOptions:
    """Parsed `gwt rm` arguments."""

    name: str | None = None
    self_mode: bool = False
    all_mode: bool = False
    force: bool = False
    merge_target: str | None = None

    @property
    def merge(self) -> bool:
        return self.merge_target is not None


@dataclass
class RemovalReport:
    removed: int = 0
    skipped: int = 0
    relocated_to: Path | None = None


def parse_remove_args(args: Sequence[str]) -> RemoveOptions:
    """
    Parse `gwt rm` arguments.

    `-m/--merge` takes the following token as its target unless that token
    starts with '-'; the target defaults to main.

    Args:
        args: Arguments after `rm`

    Returns:
        RemoveOptions

    Raises:
        GwtError: On an unknown option
    """
    options = RemoveOptions()
    args = list(args)
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("-s", "--self"):
            options.self_mode = True
        elif arg in ("-a", "--all"):
            options.all_mode = True
        elif arg in ("-f", "--force"):
            options.force = True
        elif arg in ("-m", "--merge"):
            options.merge_target = DEFAULT_MERGE_TARGET
            if i + 1 < len(args) and args[i + 1] and not args[i + 1].startswith("-"):
                options.merge_target = args[i + 1]
                i += 1
        elif arg.startswith("-"):
            raise GwtError(f"Unknown option '{arg}'")
        else:
            options.name = arg
        i += 1
    return options


def _merge_before_removal(branch: str, target: str, retry_cmd: str, skip_cmd: str) -> None:
    console.print("merging before removal...")
    try:
        merge_branches(branch, target)
    except GwtError as e:
        hint = f"{e}\n  After resolving: {retry_cmd}\n  Or skip merge: {skip_cmd}"
        if isinstance(e, MergeConflictError):
            raise MergeConflictError(
                hint, source=e.source, target=e.target, repo_root=e.repo_root
            ) from e
        raise type(e)(hint, repo_root=e.repo_root) from e


def remove(options: RemoveOptions) -> RemovalReport:
    """
    Run `gwt rm` in the mode selected by options.

    Args:
        options: Parsed rm arguments

    Returns:
        RemovalReport; relocated_to is set when the process moved to the
        repository root

    Raises:
        GwtError: On any precondition, dirty-state or merge failure
    """
    get_repo_root()

    if options.all_mode:
        if options.merge:
            raise GwtError("-a and -m options cannot be used together")
        return remove_all_worktrees(force=options.force)

    if options.self_mode:
        root = remove_current_worktree(force=options.force, merge_target=options.merge_target)
        return RemovalReport(removed=1, relocated_to=root)

    if not options.name:
        raise InvalidBranchError("Worktree name required (or use -s for current)")

    relocated = remove_worktree(
        options.name, force=options.force, merge_target=options.merge_target
    )
    return RemovalReport(removed=1, relocated_to=relocated)


def remove_worktree(
    name: str, force: bool = False, merge_target: str | None = None
) -> Path | None:
    """
    Remove the worktree for a branch name.

    Args:
        name: Branch name the worktree was created for
        force: Remove even with uncommitted changes
        merge_target: Merge the worktree's branch into this branch first

    Returns:
        The repository root if a merge moved the process there, else None

    Raises:
        WorktreeNotFoundError: If no worktree exists for name
        InvalidBranchError: If the worktree is in detached HEAD state
        UncommittedChangesError: If the worktree is dirty and not forced
        GwtError: If the pre-removal merge fails, with retry hints added
        GitError: If git fails to remove the worktree
    """
    store = WorktreeStore.for_repo()
    path = _require_worktree(store, name)

    try:
        branch = get_current_branch(path)
    except InvalidBranchError:
        raise InvalidBranchError(f"Worktree '{name}' is in detached HEAD state")

    if not force and has_uncommitted_changes(path):
        raise UncommittedChangesError(
            f"Uncommitted changes in worktree '{name}'\n  → commit or stash changes first"
        )

    relocated: Path | None = None
    if merge_target is not None:
        _merge_before_removal(
            branch,
            merge_target,
            retry_cmd=f"gwt rm {name} -m {merge_target}",
            skip_cmd=f"gwt rm {name}",
        )
        relocated = store.repo_root

    console.print(f"removing worktree: [blue]{path}[/blue]")
    store.remove(path)
    console.print("[bold green]✓[/bold green] worktree removed")
    return relocated


def remove_current_worktree(force: bool = False, merge_target: str | None = None) -> Path:
    """
    Remove the worktree the process is currently in.

    Args:
        force: Remove even with uncommitted changes
        merge_target: Merge the worktree's branch into this branch first

    Returns:
        The repository root, which is the new working directory

    Raises:
        GwtError: If not inside a worktree
        InvalidBranchError: If the worktree is in detached HEAD state
        UncommittedChangesError: If the worktree is dirty and not forced
        GwtError: If the pre-removal merge fails, with retry hints added
        GitError: If git fails to remove the worktree
    """
    if not is_inside_worktree():
        raise GwtError("Not in a worktree")

    path = get_repo_root()
    try:
        branch = get_current_branch(path)
    except InvalidBranchError:
        raise InvalidBranchError(
            "Worktree is in detached HEAD state\n"
            "  → create a branch first: git checkout -b <branch>"
        )

    if not force and has_uncommitted_changes(path):
        raise UncommittedChangesError(
            "Uncommitted changes in worktree\n  → commit or stash changes first"
        )

    store = WorktreeStore.for_repo()

    if merge_target is not None:
        _merge_before_removal(
            branch,
            merge_target,
            retry_cmd=f"gwt rm -s -m {merge_target}",
            skip_cmd="gwt rm -s",
        )

    # The worktree can't stay the working directory once it's gone
    os.chdir(store.repo_root)

    console.print(f"removing worktree: [blue]{path}[/blue]")
    store.remove(path)
    console.print("[bold green]✓[/bold green] worktree removed")
    console.print(f"→ {store.repo_root}")
    return store.repo_root


def remove_all_worktrees(force: bool = False) -> RemovalReport:
    """
    Remove every worktree in the workspace.

    Each worktree is handled independently: a dirty worktree (unless forced)
    or a failed removal is counted as skipped and the batch continues.

    Args:
        force: Skip the confirmation prompt and the uncommitted-changes check

    Returns:
        RemovalReport with the removed and skipped counts
    """
    store = WorktreeStore.for_repo()
    report = RemovalReport()

    names = list(store.list())
    if not names:
        console.print("No worktrees found")
        return report

    console.print(f"found {len(names)} worktree(s):")
    for name in names:
        console.print(f"  - {name}")
    console.print()

    if not force:
        try:
            confirmed = StrictConfirm.ask("Remove all worktrees?", default=False, console=console)
        except EOFError:
            # stdin closed
            console.print()
            confirmed = False
        if not confirmed:
            console.print("Cancelled")
            return report

    if is_inside_worktree():
        console.print("moving to git root...")
        os.chdir(store.repo_root)
        report.relocated_to = store.repo_root

    for name in names:
        path = store.workspace_root / name

        if not force and has_uncommitted_changes(path):
            console.print(f"[yellow]⚠[/yellow] skipped '{name}' (uncommitted changes)")
            report.skipped += 1
            continue

        try:
            store.remove(path)
        except GwtError:
            console.print(f"[bold red]✗[/bold red] failed to remove '{name}'")
            report.skipped += 1
            continue

        console.print(f"[bold green]✓[/bold green] removed '{name}'")
        report.removed += 1

    console.print()
    console.print(f"done: {report.removed} removed, {report.skipped} skipped")
    return report


def get_worktree_path(branch_name: str | None) -> Path:
    """
    Look up the worktree directory for a branch.

    Raises:
        GitError: If not in a git repository
        InvalidBranchError: If branch_name is empty
        WorktreeNotFoundError: If the directory doesn't exist
    """
    get_repo_root()
    branch_name = _require_branch_name(branch_name)
    return _require_worktree(WorktreeStore.for_repo(), branch_name)


def change_to_worktree(branch_name: str | None) -> Path:
    """Make the worktree for a branch the working directory and return it."""
    path = get_worktree_path(branch_name)
    os.chdir(path)
    return path


def split_tool_args(args: Sequence[str]) -> tuple[str | None, list[str]]:
    """
    Split AI tool arguments into the branch and pass-through arguments.

    Only arguments after the first literal '--' are passed through.

    Example:
        >>> split_tool_args(["feat", "--", "--resume"])
        ('feat', ['--resume'])
    """
    args = list(args)
    if not args or args[0] == "--":
        branch = None
    else:
        branch = args.pop(0)

    if "--" in args:
        return branch, args[args.index("--") + 1:]
    return branch, []


def run_ai_tool(tool: ToolConfig, branch_name: str | None, args: Sequence[str] = ()) -> int:
    """
    Run an AI tool with a worktree as its working directory.

    Args:
        tool: Tool configuration
        branch_name: Branch whose worktree to run in
        args: Arguments appended after the tool's default arguments

    Returns:
        Exit status of the tool

    Raises:
        GitError: If not in a git repository
        InvalidBranchError: If branch_name is empty
        WorktreeNotFoundError: If the worktree doesn't exist
        ToolNotFoundError: If the tool executable isn't on PATH
        ConfigError: If the tool's environment overrides can't be parsed
    """
    path = get_worktree_path(branch_name)

    argv = tool.argv(args)
    if not has_command(tool.executable):
        raise ToolNotFoundError(
            f"'{tool.command}' command not found\n"
            f"  → install {tool.name} or set {tool.env_prefix}_CMD"
        )

    result = subprocess.run(argv, cwd=path, check=False)
    return result.returncode


def forward_to_git(command: str, args: Sequence[str] = ()) -> int:
    """
    Run a native `git worktree` subcommand.

    Output is re-emitted on the matching stream and the exit status is
    returned unchanged.

    Args:
        command: git worktree subcommand (e.g. 'list', 'prune')
        args: Its arguments

    Returns:
        git's exit status
    """
    result = subprocess.run(
        ["git", "worktree", command, *args],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        check=False,
    )
    if result.stdout:
        sys.stdout.write(result.stdout)
    if result.stderr:
        sys.stderr.write(result.stderr)
    return result.returncode
