"""The code-generation job.

Triggered by ``code-agent/run``. Creates a sandbox, runs the coding network until the agent
reports a task summary (or runs out of iterations) and stores the outcome as one assistant
message, with a fragment when the run produced files.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from ..agents.agent import Agent
from ..agents.completion import completion_hook
from ..agents.network import Network, summary_router
from ..agents.output import DEFAULT_RESPONSE, DEFAULT_TITLE, run_single_shot
from ..core.context import JobContext
from ..core.job import job
from ..core.state import RunState
from ..execution.sandbox import SandboxProvider, get_sandbox
from ..execution.sandbox_tools import sandbox_tools
from ..features.events import CODE_AGENT_RUN, CodeAgentRunData
from ..storage.database import Database
from ..storage.messages import MessageRepository
from ..storage.models import MessageRole, MessageType
from ..storage.schemas import MessageRecord, NewFragment
from ..utils.config import Settings
from .prompts import FRAGMENT_TITLE_PROMPT, PROMPT, RESPONSE_PROMPT

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Something went wrong. Please try again."
HISTORY_WINDOW = 5


class JobResult(BaseModel):
    """Result returned by a finished code-agent execution."""

    url: str
    title: str = ""
    files: dict[str, str] = Field(default_factory=dict)
    summary: str = ""


def _to_agent_messages(records: list[MessageRecord]) -> list[dict[str, Any]]:
    return [
        {
            "role": "assistant" if record.role == MessageRole.ASSISTANT else "user",
            "content": record.content,
        }
        for record in records
    ]


@job(
    id="code-agent",
    trigger_on_event=CODE_AGENT_RUN,
    state_schema=RunState,
    description="Generate an app in a sandbox from the user's prompt",
)
async def code_agent(ctx: JobContext, payload: CodeAgentRunData) -> JobResult:
    settings: Settings = ctx.resources.get("settings") or Settings()
    database: Database = ctx.get_resource("database")
    sandbox_provider: SandboxProvider = ctx.get_resource("sandbox_provider")
    llm_provider = ctx.resources.get("llm_provider") or settings.llm_provider
    timeout = settings.sandbox_timeout_seconds

    async def create_sandbox() -> str:
        return await sandbox_provider.create(template=settings.e2b_template, timeout=timeout)

    sandbox_id = await ctx.step.run("get-sandbox-id", create_sandbox)

    async def load_previous_messages() -> list[dict[str, Any]]:
        records = await MessageRepository(database).find_recent(
            payload.project_id, limit=HISTORY_WINDOW
        )
        return _to_agent_messages(records)

    messages = list(await ctx.step.run("get-previous-messages", load_previous_messages))
    # The triggering prompt is normally already stored as the newest user message
    if not messages or messages[-1] != {"role": "user", "content": payload.value}:
        messages.append({"role": "user", "content": payload.value})

    coder = Agent(
        id="code-agent",
        provider=llm_provider,
        model=settings.code_model,
        system_prompt=PROMPT,
        tools=sandbox_tools(sandbox_provider, sandbox_id, timeout),
        temperature=settings.code_temperature,
        on_agent_step_end=[completion_hook],
        max_tool_calls=settings.max_tool_calls,
    )
    network = Network(
        id="coding-agent-network",
        agents=[coder],
        router=summary_router(coder),
        max_iterations=settings.max_iterations,
    )
    network_result = await network.run(ctx, messages)

    state: RunState = ctx.state
    is_error = not state.summary or not state.files

    async def get_sandbox_url() -> str:
        handle = await get_sandbox(sandbox_provider, sandbox_id, timeout)
        return f"https://{handle.get_host(settings.preview_port)}"

    sandbox_url = await ctx.step.run("get-sandbox-url", get_sandbox_url)

    title = ""
    response = ""
    if not is_error:
        title_agent = Agent(
            id="fragment-title-generator",
            provider=llm_provider,
            model=settings.postprocess_model,
            system_prompt=FRAGMENT_TITLE_PROMPT,
        )
        response_agent = Agent(
            id="response-generator",
            provider=llm_provider,
            model=settings.postprocess_model,
            system_prompt=RESPONSE_PROMPT,
        )
        title = await run_single_shot(
            ctx, title_agent, state.summary, "fragment-title-generator", DEFAULT_TITLE
        )
        response = await run_single_shot(
            ctx, response_agent, state.summary, "response-generator", DEFAULT_RESPONSE
        )

    async def save_result() -> MessageRecord:
        repository = MessageRepository(database)
        if is_error:
            return await repository.create(
                payload.project_id, MessageRole.ASSISTANT, MessageType.ERROR, ERROR_MESSAGE
            )
        return await repository.create(
            payload.project_id,
            MessageRole.ASSISTANT,
            MessageType.RESULT,
            response,
            fragment=NewFragment(sandbox_url=sandbox_url, title=title, files=state.files),
        )

    saved = await ctx.step.run("save-result", save_result)
    logger.info(
        "Code agent finished for project %s: %s after %d iterations, message %s (%s)",
        payload.project_id,
        network_result.status.value,
        network_result.iterations,
        saved.id,
        saved.type.value,
    )

    return JobResult(url=sandbox_url, title=title, files=state.files, summary=state.summary)
