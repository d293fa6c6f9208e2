"""Local sandbox provider.

Each sandbox is a directory under a root directory on the host; commands run
through ``sh -c`` with that directory as the working directory. Idle expiry is
recorded next to the directory so every provider instance sharing the root sees
the same sandboxes. Intended for development and tests, not for untrusted code.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import os
import re
import shutil
import tempfile
import time
import uuid

from .sandbox import (
    CommandFailedError,
    CommandResult,
    OutputCallback,
    SandboxHandle,
    SandboxProvider,
    SandboxUnavailable,
)

logger = logging.getLogger(__name__)

# Default command timeout in seconds
DEFAULT_TIMEOUT_SECONDS = 300

_READ_CHUNK = 4096

_SANDBOX_ID_RE = re.compile(r"[0-9a-f]{32}")


async def _emit(callback: OutputCallback | None, chunk: str) -> None:
    if callback is None:
        return
    result = callback(chunk)
    if inspect.isawaitable(result):
        await result


async def _pump(
    stream: asyncio.StreamReader, sink: list[str], callback: OutputCallback | None
) -> None:
    while True:
        data = await stream.read(_READ_CHUNK)
        if not data:
            return
        chunk = data.decode("utf-8", errors="replace")
        sink.append(chunk)
        await _emit(callback, chunk)


class LocalSandboxHandle(SandboxHandle):
    def __init__(self, provider: LocalSandboxProvider, sandbox_id: str, path: str) -> None:
        self._provider = provider
        self._sandbox_id = sandbox_id
        self._path = path

    @property
    def sandbox_id(self) -> str:
        return self._sandbox_id

    @property
    def path(self) -> str:
        return self._path

    def _resolve(self, file_path: str) -> str:
        resolved = os.path.realpath(os.path.join(self._path, file_path.lstrip("/")))
        if os.path.commonpath([resolved, os.path.realpath(self._path)]) != os.path.realpath(
            self._path
        ):
            raise ValueError(f"Path escapes the sandbox: {file_path}")
        return resolved

    async def run_command(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self._provider._assert_alive(self._sandbox_id)
        proc = await asyncio.create_subprocess_exec(
            "sh",
            "-c",
            command,
            cwd=self._path,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout_chunks: list[str] = []
        stderr_chunks: list[str] = []
        pumps = asyncio.gather(
            _pump(proc.stdout, stdout_chunks, on_stdout),
            _pump(proc.stderr, stderr_chunks, on_stderr),
        )
        try:
            await asyncio.wait_for(
                asyncio.gather(pumps, proc.wait()),
                timeout=timeout or DEFAULT_TIMEOUT_SECONDS,
            )
            exit_code = proc.returncode if proc.returncode is not None else 1
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            stderr_chunks.append("\n[Process killed: timeout exceeded]")
            exit_code = 137

        stdout = "".join(stdout_chunks)
        stderr = "".join(stderr_chunks)
        if exit_code != 0:
            raise CommandFailedError(exit_code, stdout, stderr)
        return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

    async def write_file(self, path: str, content: str) -> None:
        self._provider._assert_alive(self._sandbox_id)
        resolved = self._resolve(path)
        os.makedirs(os.path.dirname(resolved), exist_ok=True)
        with open(resolved, "w", encoding="utf-8") as f:
            f.write(content)

    async def read_file(self, path: str) -> str:
        self._provider._assert_alive(self._sandbox_id)
        with open(self._resolve(path), encoding="utf-8") as f:
            return f.read()

    def get_host(self, port: int) -> str:
        return f"localhost:{port}"

    async def set_timeout(self, seconds: int) -> None:
        self._provider._write_expiry(self._sandbox_id, time.time() + seconds)


class LocalSandboxProvider(SandboxProvider):
    """Sandbox provider that keeps one directory per sandbox on the host."""

    def __init__(self, root_dir: str | None = None, timeout: int | None = None):
        self.root_dir = os.path.abspath(
            root_dir or os.path.join(tempfile.gettempdir(), "appforge-sandboxes")
        )
        if timeout is not None:
            self.default_timeout = timeout
        os.makedirs(self.root_dir, exist_ok=True)

    def _sandbox_path(self, sandbox_id: str) -> str:
        return os.path.join(self.root_dir, sandbox_id)

    def _meta_path(self, sandbox_id: str) -> str:
        return os.path.join(self.root_dir, f"{sandbox_id}.json")

    def _write_expiry(self, sandbox_id: str, expire_at: float) -> None:
        with open(self._meta_path(sandbox_id), "w", encoding="utf-8") as f:
            json.dump({"expire_at": expire_at}, f)

    def _read_expiry(self, sandbox_id: str) -> float | None:
        try:
            with open(self._meta_path(sandbox_id), encoding="utf-8") as f:
                return float(json.load(f)["expire_at"])
        except (OSError, ValueError, KeyError):
            return None

    def _assert_alive(self, sandbox_id: str) -> None:
        if not _SANDBOX_ID_RE.fullmatch(sandbox_id):
            raise SandboxUnavailable(sandbox_id, "malformed id")
        expire_at = self._read_expiry(sandbox_id)
        if expire_at is None or not os.path.isdir(self._sandbox_path(sandbox_id)):
            raise SandboxUnavailable(sandbox_id, "not found")
        if time.time() >= expire_at:
            self.destroy(sandbox_id)
            raise SandboxUnavailable(sandbox_id, "expired")

    async def create(self, template: str | None = None, timeout: int | None = None) -> str:
        sandbox_id = uuid.uuid4().hex
        os.makedirs(self._sandbox_path(sandbox_id))
        self._write_expiry(sandbox_id, time.time() + (timeout or self.default_timeout))
        logger.info(
            "Local sandbox created: id=%s path=%s", sandbox_id, self._sandbox_path(sandbox_id)
        )
        return sandbox_id

    async def connect(self, sandbox_id: str) -> SandboxHandle:
        self._assert_alive(sandbox_id)
        return LocalSandboxHandle(self, sandbox_id, self._sandbox_path(sandbox_id))

    def destroy(self, sandbox_id: str) -> None:
        """Remove a sandbox directory and its metadata."""
        shutil.rmtree(self._sandbox_path(sandbox_id), ignore_errors=True)
        try:
            os.remove(self._meta_path(sandbox_id))
        except FileNotFoundError:
            pass
