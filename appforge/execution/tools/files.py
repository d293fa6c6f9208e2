"""File tools -- create, update and read files inside the job's sandbox."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, Field

from ...core.context import JobContext
from ...tools.tool import Tool
from ..sandbox import SandboxHandle

logger = logging.getLogger(__name__)


class FileEntry(BaseModel):
    path: str = Field(description="Path of the file, relative to the app root")
    content: str = Field(description="Full content of the file")


class CreateOrUpdateFilesInput(BaseModel):
    """Input schema for the createOrUpdateFiles tool."""

    files: list[FileEntry] = Field(description="Files to create or overwrite")


class ReadFilesInput(BaseModel):
    """Input schema for the readFiles tool."""

    files: list[str] = Field(description="Paths of the files to read")


def create_write_files_tool(get_sandbox: Callable[[], Awaitable[SandboxHandle]]) -> Tool:
    """Create the createOrUpdateFiles tool.

    Files are written in order. Every file written before a failure stays written and is
    merged into ``ctx.state.files``; the failure itself is returned as an error string.
    The merge happens outside the memoized step so a replayed job rebuilds the same state.
    """

    async def handler(ctx: JobContext, input: CreateOrUpdateFilesInput, step_key: str) -> str:
        async def write_files() -> dict[str, Any]:
            written: dict[str, str] = {}
            try:
                sandbox = await get_sandbox()
                for entry in input.files:
                    await sandbox.write_file(entry.path, entry.content)
                    written[entry.path] = entry.content
            except Exception as e:
                logger.warning(
                    "Writing files failed after %d of %d: %s", len(written), len(input.files), e
                )
                return {"written": written, "error": str(e)}
            return {"written": written, "error": None}

        outcome = await ctx.step.run(step_key, write_files)
        ctx.state.merge_files(outcome["written"])

        if outcome["error"]:
            return f"Error: {outcome['error']}"
        if not outcome["written"]:
            return "No files to update"
        return "Updated files: " + ", ".join(outcome["written"])

    return Tool(
        id="createOrUpdateFiles",
        description="Create or update files in the sandbox",
        input_schema=CreateOrUpdateFilesInput,
        func=handler,
    )


def create_read_files_tool(get_sandbox: Callable[[], Awaitable[SandboxHandle]]) -> Tool:
    """Create the readFiles tool.

    Returns a JSON array of ``{"path", "content"}``. Any failed read fails the whole
    batch with a single error string.
    """

    async def handler(ctx: JobContext, input: ReadFilesInput, step_key: str) -> str:
        async def read_files() -> str:
            try:
                sandbox = await get_sandbox()
                contents = []
                for path in input.files:
                    contents.append({"path": path, "content": await sandbox.read_file(path)})
            except Exception as e:
                logger.warning("Reading files failed: %s", e)
                return f"Error: {e}"
            return json.dumps(contents)

        return await ctx.step.run(step_key, read_files)

    return Tool(
        id="readFiles",
        description="Read files from the sandbox",
        input_schema=ReadFilesInput,
        func=handler,
    )
