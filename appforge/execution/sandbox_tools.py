"""Sandbox tools factory.

Creates the three tools (terminal, createOrUpdateFiles, readFiles) bound to one
sandbox id. Every tool call reconnects by id instead of reusing a live handle,
because each call runs as its own durable step.

Example::

    tools = sandbox_tools(provider, sandbox_id)
    agent = Agent(id="code-agent", ..., tools=tools)
"""

from __future__ import annotations

from ..tools.tool import Tool
from .sandbox import SandboxHandle, SandboxProvider, get_sandbox
from .tools.files import create_read_files_tool, create_write_files_tool
from .tools.terminal import create_terminal_tool


def sandbox_tools(
    provider: SandboxProvider, sandbox_id: str, timeout: int | None = None
) -> list[Tool]:
    """Create the sandbox tools for a code-writing agent.

    Args:
        provider: Provider that owns the sandbox
        sandbox_id: Id returned by ``provider.create``
        timeout: Idle timeout applied on every reconnect (defaults to the provider's)
    """

    async def get_handle() -> SandboxHandle:
        return await get_sandbox(provider, sandbox_id, timeout)

    return [
        create_terminal_tool(get_handle),
        create_write_files_tool(get_handle),
        create_read_files_tool(get_handle),
    ]
