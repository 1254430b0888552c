"""Typer-based CLI interface for gwt."""

import typer
import typer.core
from rich.markup import escape

from . import __version__
from .config import ToolConfig, load_tool_configs
from .console import get_console
from .constants import DEFAULT_MERGE_TARGET
from .core import (
    add_worktree,
    change_to_worktree,
    forward_to_git,
    get_worktree_path,
    parse_remove_args,
    remove,
    run_ai_tool,
    split_tool_args,
)
from .exceptions import GwtError
from .merge import merge_branches
from .store import WorktreeStore

console = get_console()

PASS_THROUGH_SETTINGS = {"ignore_unknown_options": True, "allow_extra_args": True}


def fail(error: GwtError) -> typer.Exit:
    """Report an error and build the exit to raise."""
    if error.repo_root is not None:
        # Shell wrapper follows the process to the checkout it moved to
        print(error.repo_root)
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    return typer.Exit(code=1)


class RawArgsCommand(typer.core.TyperCommand):
    """
    Command that hands its arguments to the callback untouched, '--' included.

    The callback receives the raw arguments and the tool configs loaded by
    the root callback.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        ctx.args = list(args)
        return ctx.args

    def invoke(self, ctx: typer.Context) -> None:
        tools = ctx.find_root().obj or load_tool_configs()
        self.callback(ctx.args, tools)


def _tool_command(name: str) -> RawArgsCommand:
    def callback(args: list[str], tools: dict[str, ToolConfig]) -> None:
        branch, extra_args = split_tool_args(args)
        try:
            code = run_ai_tool(tools[name], branch, extra_args)
        except GwtError as e:
            raise fail(e)
        raise typer.Exit(code=code)

    return RawArgsCommand(
        name=name,
        callback=callback,
        help=f"Run {name} in a worktree: {name} <branch> [-- args]",
        add_help_option=False,
    )


def _git_worktree_command(name: str) -> RawArgsCommand:
    def callback(args: list[str], tools: dict[str, ToolConfig]) -> None:
        raise typer.Exit(code=forward_to_git(name, args))

    return RawArgsCommand(
        name=name,
        callback=callback,
        help=f"git worktree {name}",
        add_help_option=False,
    )


class WorktreeGroup(typer.core.TyperGroup):
    """
    Command group with two fallbacks for unknown command names.

    Configured AI tool names run the tool inside a worktree; any other name
    is forwarded to `git worktree`.
    """

    def get_command(self, ctx: typer.Context, cmd_name: str):
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        if cmd_name.startswith("-"):
            return None
        if cmd_name in load_tool_configs():
            return _tool_command(cmd_name)
        return _git_worktree_command(cmd_name)


app = typer.Typer(
    name="gwt",
    cls=WorktreeGroup,
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        print(f"gwt version {__version__}")
        raise typer.Exit()


def complete_worktree_names() -> list[str]:
    """Autocomplete function for worktree directory names."""
    try:
        return sorted(WorktreeStore.for_repo().list())
    except Exception:
        return []


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Git worktree wrapper with auto-setup.

    Worktrees live in .git/worktree-workspace/<branch>, with '/' in branch
    names turned into '-'. New worktrees get .env, node_modules and .venv
    (or venv) symlinked from the main checkout.

    AI tools: `gwt claude <branch> [-- args]` and `gwt opencode <branch>
    [-- args]` run the tool inside the worktree. Override the executable and
    default arguments with GWT_<TOOL>_CMD and GWT_<TOOL>_ARGS.

    Any other command is passed to `git worktree`, e.g. `gwt list`.
    """
    ctx.obj = load_tool_configs()


@app.command(context_settings=PASS_THROUGH_SETTINGS)
def add(
    ctx: typer.Context,
    branch_name: str | None = typer.Argument(
        None, help="Branch to create the worktree for (e.g. 'feature/login')"
    ),
) -> None:
    """
    Create a worktree for a branch (idempotent).

    Extra arguments are passed to `git worktree add`. With `-b <name>` an
    existing branch of that name is reused instead of recreated.
    Prints the worktree path.

    Example:
        gwt add feature/login
        gwt add my-fix -b my-fix
    """
    try:
        result = add_worktree(branch_name, ctx.args)
    except GwtError as e:
        raise fail(e)
    print(result.path)


@app.command(context_settings=PASS_THROUGH_SETTINGS)
def rm(ctx: typer.Context) -> None:
    """
    Remove a worktree.

    Options:
        -s, --self            Remove the current worktree (cd to git root after)
        -a, --all             Remove all worktrees
        -f, --force           Skip uncommitted check (+ skip confirmation for -a)
        -m, --merge TARGET    Merge branch into TARGET before removing (default: main)

    Example:
        gwt rm feature/login
        gwt rm -s -m develop
        gwt rm -a -f
    """
    try:
        options = parse_remove_args(ctx.args)
        report = remove(options)
    except GwtError as e:
        raise fail(e)
    if report.relocated_to is not None:
        print(report.relocated_to)


@app.command()
def cd(
    branch_name: str | None = typer.Argument(
        None, help="Branch whose worktree to enter", autocompletion=complete_worktree_names
    ),
) -> None:
    """
    Change to a worktree directory.

    A program can't change its parent shell's directory, so this prints the
    path; the shell function from `gwt _shell-function` performs the cd.
    """
    try:
        path = change_to_worktree(branch_name)
    except GwtError as e:
        raise fail(e)
    print(path)


@app.command()
def path(
    branch_name: str | None = typer.Argument(
        None, help="Branch whose worktree path to print", autocompletion=complete_worktree_names
    ),
) -> None:
    """Print a worktree path (stdout only)."""
    try:
        print(get_worktree_path(branch_name))
    except GwtError as e:
        raise fail(e)


@app.command()
def merge(
    source: str | None = typer.Argument(None, help="Branch to merge"),
    target: str = typer.Argument(DEFAULT_MERGE_TARGET, help="Branch to merge into"),
) -> None:
    """
    Merge a branch into another in the main checkout.

    On conflict the merge is left in progress; resolve it, then run
    `git merge --continue` or `git merge --abort`.

    Example:
        gwt merge feature/login
        gwt merge feature/login develop
    """
    try:
        result = merge_branches(source or "", target)
    except GwtError as e:
        raise fail(e)
    print(result.repo_root)


@app.command(name="_shell-function", hidden=True)
def shell_function(
    shell: str = typer.Argument(
        ...,
        help="Shell type (bash, zsh, or fish)",
    ),
) -> None:
    """
    [Internal] Output shell function for sourcing.

    Example:
        source <(gwt _shell-function bash)
        gwt _shell-function fish | source
    """
    import sys
    from importlib.resources import files

    shell = shell.lower()
    valid_shells = ["bash", "zsh", "fish"]

    if shell not in valid_shells:
        print(
            f"Error: Invalid shell '{shell}'. Must be one of: {', '.join(valid_shells)}",
            file=sys.stderr,
        )
        raise typer.Exit(code=1)

    shell_file = "gwt.fish" if shell == "fish" else "gwt.bash"
    try:
        script_content = (files("gwt") / "shell_functions" / shell_file).read_text()
    except OSError as e:
        print(f"Error: Failed to read shell function: {e}", file=sys.stderr)
        raise typer.Exit(code=1)

    print(script_content)


if __name__ == "__main__":
    app()
