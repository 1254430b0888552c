"""gwt - git worktree wrapper with auto-setup."""

__version__ = "0.2.0"
