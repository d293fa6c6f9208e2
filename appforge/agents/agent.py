"""Agent class for LLM-powered roles inside a job."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..core.context import JobContext
from ..llm.providers import LLMProvider
from ..middleware.hook import normalize_hooks
from ..tools.tool import Tool
from .turn import TurnResult, run_agent_turn

DEFAULT_MAX_TOOL_CALLS = 25


class Agent:
    """
    A conversational role bound to a system prompt, a model configuration and a tool set.

    Agents hold no conversation state between turns: every turn receives the full history.
    They run inside a job so every model call and tool call is a memoized step.

    Usage:
        code_agent = Agent(
            id="code-agent",
            provider="openai",
            model="gpt-4.1",
            system_prompt=PROMPT,
            tools=sandbox_tools(provider, sandbox_id),
            on_agent_step_end=[completion_hook],
        )

        # Inside a job
        turn = await code_agent.run_turn(ctx, messages, step_key_prefix="turn:0")
    """

    def __init__(
        self,
        id: str,
        provider: str | LLMProvider,
        model: str,
        system_prompt: str | None = None,
        tools: list[Tool] | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        on_agent_step_end: Callable | list[Callable] | None = None,
        max_tool_calls: int = DEFAULT_MAX_TOOL_CALLS,
    ):
        if max_tool_calls < 1:
            raise ValueError("max_tool_calls must be at least 1")

        tool_ids = [tool.id for tool in tools or []]
        duplicates = {tool_id for tool_id in tool_ids if tool_ids.count(tool_id) > 1}
        if duplicates:
            raise ValueError(f"Agent '{id}' has duplicate tools: {sorted(duplicates)}")

        self.id = id
        self.provider = provider
        self.model = model
        self.system_prompt = system_prompt
        self.tools = tools or []
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.on_agent_step_end = normalize_hooks(on_agent_step_end)
        self.max_tool_calls = max_tool_calls

    async def run_turn(
        self, ctx: JobContext, messages: list[dict[str, Any]], step_key_prefix: str
    ) -> TurnResult:
        """Run one turn against ``messages``. See ``run_agent_turn``."""
        return await run_agent_turn(self, ctx, messages, step_key_prefix)

    def __repr__(self) -> str:
        return f"Agent(id={self.id!r}, model={self.model!r})"
