"""Shared rich console.

All human-readable output goes to stderr so that stdout only carries paths
for the shell wrapper and scripts.
"""

from rich.console import Console

_console = Console(stderr=True, soft_wrap=True)


def get_console() -> Console:
    """Return the shared stderr console."""
    return _console
