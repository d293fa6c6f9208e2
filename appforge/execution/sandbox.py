"""Abstract interface for remote sandboxes.

A sandbox is a stateful environment (filesystem, command runner, exposed ports)
identified by an opaque id. Jobs never hold a live handle across steps: every
step reconnects by id, because consecutive steps may run on different workers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Default idle timeout of a sandbox, in seconds
DEFAULT_SANDBOX_TIMEOUT = 30 * 60

OutputCallback = Callable[[str], Awaitable[None] | None]


class SandboxUnavailable(Exception):
    """Raised when a sandbox id is unknown or its idle timeout has elapsed."""

    def __init__(self, sandbox_id: str, reason: str | None = None):
        self.sandbox_id = sandbox_id
        self.reason = reason
        message = f"Sandbox {sandbox_id} is unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CommandFailedError(Exception):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, exit_code: int, stdout: str = "", stderr: str = ""):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Command exited with code {exit_code}")


class CommandResult(BaseModel):
    """Final buffers of a finished command."""

    exit_code: int = Field(default=0, description="Process exit code (0 = success)")
    stdout: str = Field(default="", description="Standard output")
    stderr: str = Field(default="", description="Standard error")


class SandboxHandle(ABC):
    """A live connection to one sandbox."""

    @property
    @abstractmethod
    def sandbox_id(self) -> str: ...

    @abstractmethod
    async def run_command(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """Run a shell command and wait for it to finish.

        Output chunks are delivered to the callbacks as they arrive.

        Raises:
            CommandFailedError: If the command exits with a non-zero status
        """
        ...

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Write a whole file, creating parent directories as needed."""
        ...

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a whole file as text."""
        ...

    @abstractmethod
    def get_host(self, port: int) -> str:
        """Return the externally reachable host for a port inside the sandbox."""
        ...

    @abstractmethod
    async def set_timeout(self, seconds: int) -> None:
        """Reset the idle expiry to ``seconds`` from now."""
        ...


class SandboxProvider(ABC):
    """Creates sandboxes and reconnects to them by id."""

    default_timeout: int = DEFAULT_SANDBOX_TIMEOUT

    @abstractmethod
    async def create(self, template: str | None = None, timeout: int | None = None) -> str:
        """Provision a new sandbox and return its id."""
        ...

    @abstractmethod
    async def connect(self, sandbox_id: str) -> SandboxHandle:
        """Reconnect to a sandbox.

        Raises:
            SandboxUnavailable: If the id is unknown or expired
        """
        ...


async def get_sandbox(
    provider: SandboxProvider, sandbox_id: str, timeout: int | None = None
) -> SandboxHandle:
    """Reconnect to a sandbox and refresh its idle expiry."""
    handle = await provider.connect(sandbox_id)
    await handle.set_timeout(timeout or provider.default_timeout)
    return handle


def create_sandbox_provider(
    name: str,
    template: str | None = None,
    timeout: int | None = None,
    root_dir: str | None = None,
) -> SandboxProvider:
    """Build a sandbox provider by name (``"e2b"`` or ``"local"``)."""
    name = name.lower()
    if name == "e2b":
        from .e2b import E2BSandboxProvider

        return E2BSandboxProvider(template=template, timeout=timeout)
    if name == "local":
        from .local import LocalSandboxProvider

        return LocalSandboxProvider(root_dir=root_dir, timeout=timeout)
    raise ValueError(f"Unknown sandbox provider: {name}. Supported providers: e2b, local")
