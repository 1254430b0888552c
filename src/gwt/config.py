"""AI tool configuration loaded from the environment.

Each supported tool reads two variables:

    GWT_<TOOL>_CMD   executable (may include leading arguments), default: tool name
    GWT_<TOOL>_ARGS  default arguments, always passed before user arguments
"""

import os
import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .exceptions import ConfigError

SUPPORTED_TOOLS = ("claude", "opencode")


@dataclass(frozen=True)
class ToolConfig:
    """Resolved command line for one AI tool."""

    name: str
    command: str
    default_args: str = ""

    @property
    def env_prefix(self) -> str:
        return f"GWT_{self.name.upper()}"

    @property
    def executable(self) -> str:
        """First word of the command, the program looked up on PATH."""
        return self.command_parts()[0]

    def command_parts(self) -> list[str]:
        try:
            parts = shlex.split(self.command)
        except ValueError as e:
            raise ConfigError(f"Invalid {self.env_prefix}_CMD: {e}") from e
        if not parts:
            raise ConfigError(f"{self.env_prefix}_CMD is empty")
        return parts

    def argv(self, extra_args: Sequence[str] = ()) -> list[str]:
        """
        Build the full argument vector.

        Args:
            extra_args: User arguments, appended after the default arguments

        Returns:
            Command, default arguments and extra arguments as one list

        Raises:
            ConfigError: If the command or default arguments can't be parsed
        """
        try:
            defaults = shlex.split(self.default_args)
        except ValueError as e:
            raise ConfigError(f"Invalid {self.env_prefix}_ARGS: {e}") from e
        return [*self.command_parts(), *defaults, *extra_args]


def load_tool_configs(environ: Mapping[str, str] | None = None) -> dict[str, ToolConfig]:
    """
    Read tool overrides from the environment.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Mapping of tool name to its configuration, for every supported tool
    """
    if environ is None:
        environ = os.environ

    configs: dict[str, ToolConfig] = {}
    for name in SUPPORTED_TOOLS:
        prefix = f"GWT_{name.upper()}"
        configs[name] = ToolConfig(
            name=name,
            command=environ.get(f"{prefix}_CMD") or name,
            default_args=environ.get(f"{prefix}_ARGS", ""),
        )
    return configs
