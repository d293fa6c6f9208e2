"""E2B sandbox provider -- runs commands in an E2B cloud sandbox.

Requires ``e2b-code-interpreter``. The sandbox image must be pre-built as an
E2B template; ``E2B_API_KEY`` is read by the SDK.
"""

from __future__ import annotations

import logging
from typing import Any

from e2b import CommandExitException, NotFoundException, SandboxException
from e2b_code_interpreter import AsyncSandbox

from .sandbox import (
    CommandFailedError,
    CommandResult,
    OutputCallback,
    SandboxHandle,
    SandboxProvider,
    SandboxUnavailable,
)

logger = logging.getLogger(__name__)


class E2BSandboxHandle(SandboxHandle):
    """Sandbox handle backed by an ``AsyncSandbox`` connection."""

    def __init__(self, inner: Any) -> None:
        self._inner = inner

    @property
    def sandbox_id(self) -> str:
        return self._inner.sandbox_id

    async def run_command(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        kwargs: dict[str, Any] = {}
        if on_stdout is not None:
            kwargs["on_stdout"] = on_stdout
        if on_stderr is not None:
            kwargs["on_stderr"] = on_stderr
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug("[e2b %s] run: %s", self.sandbox_id, command[:200])
        try:
            result = await self._inner.commands.run(command, **kwargs)
        except CommandExitException as e:
            # e2b raises on non-zero exits, carrying the final buffers
            raise CommandFailedError(e.exit_code, e.stdout or "", e.stderr or "") from e
        return CommandResult(
            exit_code=result.exit_code or 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    async def write_file(self, path: str, content: str) -> None:
        # E2B creates parent directories automatically
        await self._inner.files.write(path, content)

    async def read_file(self, path: str) -> str:
        return await self._inner.files.read(path)

    def get_host(self, port: int) -> str:
        return self._inner.get_host(port)

    async def set_timeout(self, seconds: int) -> None:
        await self._inner.set_timeout(seconds)


class E2BSandboxProvider(SandboxProvider):
    """Sandbox provider backed by E2B."""

    def __init__(self, template: str | None = None, timeout: int | None = None):
        self.template = template
        if timeout is not None:
            self.default_timeout = timeout

    async def create(self, template: str | None = None, timeout: int | None = None) -> str:
        kwargs: dict[str, Any] = {"timeout": timeout or self.default_timeout}
        resolved_template = template or self.template
        if resolved_template:
            kwargs["template"] = resolved_template
        sandbox = await AsyncSandbox.create(**kwargs)
        logger.info(
            "E2B sandbox created: id=%s template=%s",
            sandbox.sandbox_id,
            resolved_template or "<provider-default>",
        )
        return sandbox.sandbox_id

    async def connect(self, sandbox_id: str) -> SandboxHandle:
        try:
            inner = await AsyncSandbox.connect(sandbox_id)
        except NotFoundException as e:
            raise SandboxUnavailable(sandbox_id, "not found or expired") from e
        except SandboxException as e:
            raise SandboxUnavailable(sandbox_id, str(e)) from e
        return E2BSandboxHandle(inner)
