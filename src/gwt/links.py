"""Symlink shared, untracked resources from the main checkout into worktrees."""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .console import get_console


@dataclass(frozen=True)
class LinkedResource:
    """A file or directory that worktrees share with the main checkout."""

    name: str
    is_dir: bool

    def present_in(self, root: Path) -> bool:
        path = root / self.name
        return path.is_dir() if self.is_dir else path.is_file()


ENV_FILE = LinkedResource(".env", is_dir=False)
NODE_MODULES = LinkedResource("node_modules", is_dir=True)
VENV = LinkedResource(".venv", is_dir=True)
VENV_ALT = LinkedResource("venv", is_dir=True)

# Only one of these is linked, the first present wins
VENV_CANDIDATES = (VENV, VENV_ALT)


class LinkStatus(Enum):
    LINKED = "linked"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class LinkResult:
    resource: LinkedResource
    status: LinkStatus
    detail: str = ""


def resources_to_link(source_root: Path) -> list[LinkedResource]:
    """
    Select the resources present in source_root, in linking order.

    Args:
        source_root: Main checkout

    Returns:
        Present resources: .env, node_modules, then .venv or venv
    """
    selected = [r for r in (ENV_FILE, NODE_MODULES) if r.present_in(source_root)]
    for venv in VENV_CANDIDATES:
        if venv.present_in(source_root):
            selected.append(venv)
            break
    return selected


def link_resource(resource: LinkedResource, source_root: Path, dest_dir: Path) -> LinkResult:
    """Symlink one resource. Never overwrites an existing destination."""
    src = source_root / resource.name
    dest = dest_dir / resource.name

    # lexists so that a dangling symlink also counts as present
    if os.path.lexists(dest):
        return LinkResult(resource, LinkStatus.SKIPPED, "already exists")

    try:
        dest.symlink_to(src, target_is_directory=resource.is_dir)
    except OSError as e:
        return LinkResult(resource, LinkStatus.FAILED, e.strerror or str(e))
    return LinkResult(resource, LinkStatus.LINKED)


def link_shared_resources(source_root: Path, dest_dir: Path) -> list[LinkResult]:
    """
    Link every shared resource found in source_root into dest_dir.

    Each resource is attempted independently; a failure is recorded in the
    result and the remaining resources are still linked. Resources absent
    from source_root produce no result.

    Args:
        source_root: Main checkout holding the originals
        dest_dir: New worktree

    Returns:
        One LinkResult per attempted resource
    """
    return [link_resource(r, source_root, dest_dir) for r in resources_to_link(source_root)]


def report_links(results: list[LinkResult]) -> None:
    """Print one line per link attempt."""
    console = get_console()
    for result in results:
        name = result.resource.name
        if result.status is LinkStatus.LINKED:
            console.print(f"[bold green]✓[/bold green] linked {name} to worktree")
        elif result.status is LinkStatus.SKIPPED:
            console.print(f"[yellow]⚠[/yellow] {name} already exists in worktree, skipped")
        else:
            console.print(f"[yellow]warning:[/yellow] failed to link {name}: {result.detail}")
