"""Sandbox tool factories."""

from .files import (
    CreateOrUpdateFilesInput,
    FileEntry,
    ReadFilesInput,
    create_read_files_tool,
    create_write_files_tool,
)
from .terminal import TerminalInput, create_terminal_tool

__all__ = [
    "CreateOrUpdateFilesInput",
    "FileEntry",
    "ReadFilesInput",
    "TerminalInput",
    "create_read_files_tool",
    "create_terminal_tool",
    "create_write_files_tool",
]
