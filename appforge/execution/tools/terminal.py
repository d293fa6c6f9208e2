"""Terminal tool -- run shell commands inside the job's sandbox."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field

from ...core.context import JobContext
from ...tools.tool import Tool
from ..output import clean_output
from ..sandbox import CommandFailedError, SandboxHandle

logger = logging.getLogger(__name__)


class TerminalInput(BaseModel):
    """Input schema for the terminal tool."""

    command: str = Field(description="The shell command to execute")


def format_command_failure(error: Exception, stdout: str, stderr: str) -> str:
    """Describe a failed command with everything it printed before failing."""
    return (
        f"Command failed: {error}\n"
        f"stdout: {clean_output(stdout)}\n"
        f"stderr: {clean_output(stderr)}"
    )


def create_terminal_tool(get_sandbox: Callable[[], Awaitable[SandboxHandle]]) -> Tool:
    """Create the terminal tool for running shell commands.

    Failures never raise: a non-zero exit or a transport error is returned as text
    containing the captured stdout and stderr, so the agent can correct itself.

    Args:
        get_sandbox: Async callable that reconnects to the job's sandbox.

    Returns:
        A Tool instance for the terminal.
    """

    async def handler(ctx: JobContext, input: TerminalInput, step_key: str) -> str:
        async def run_command() -> str:
            stdout_chunks: list[str] = []
            stderr_chunks: list[str] = []

            def on_stdout(data: str) -> None:
                stdout_chunks.append(data)

            def on_stderr(data: str) -> None:
                stderr_chunks.append(data)

            try:
                sandbox = await get_sandbox()
                result = await sandbox.run_command(
                    input.command, on_stdout=on_stdout, on_stderr=on_stderr
                )
            except CommandFailedError as e:
                logger.info("Command exited with %s: %s", e.exit_code, input.command[:200])
                return format_command_failure(
                    e, "".join(stdout_chunks) or e.stdout, "".join(stderr_chunks) or e.stderr
                )
            except Exception as e:
                logger.warning("Command could not run: %s (%s)", input.command[:200], e)
                return format_command_failure(e, "".join(stdout_chunks), "".join(stderr_chunks))
            return clean_output(result.stdout or "".join(stdout_chunks))

        return await ctx.step.run(step_key, run_command)

    return Tool(
        id="terminal",
        description="Use the terminal to run commands",
        input_schema=TerminalInput,
        func=handler,
    )
