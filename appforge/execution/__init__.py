"""Sandbox layer -- isolated environments and the tools agents use inside them.

Provides the sandbox interface, the E2B and local providers, and the
terminal / createOrUpdateFiles / readFiles tools.
"""

from .output import clean_output, strip_ansi, truncate_output
from .sandbox import (
    DEFAULT_SANDBOX_TIMEOUT,
    CommandFailedError,
    CommandResult,
    SandboxHandle,
    SandboxProvider,
    SandboxUnavailable,
    create_sandbox_provider,
    get_sandbox,
)
from .sandbox_tools import sandbox_tools
from .tools import create_read_files_tool, create_terminal_tool, create_write_files_tool

__all__ = [
    "DEFAULT_SANDBOX_TIMEOUT",
    "CommandFailedError",
    "CommandResult",
    "SandboxHandle",
    "SandboxProvider",
    "SandboxUnavailable",
    "create_sandbox_provider",
    "get_sandbox",
    "sandbox_tools",
    "create_terminal_tool",
    "create_write_files_tool",
    "create_read_files_tool",
    "clean_output",
    "strip_ansi",
    "truncate_output",
]
