"""One agent turn: model calls and tool execution until the model answers in text."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from ..core.context import JobContext
from ..core.job import StepExecutionError
from ..llm.generate import _llm_generate
from ..middleware.hook import HookAction, HookContext
from ..middleware.hook_executor import apply_state_modifications, execute_hooks
from ..tools.tool import Tool
from ..types.types import AgentStep, ToolCall, ToolResult, Usage
from ..utils.serializer import json_serialize

if TYPE_CHECKING:
    from .agent import Agent

logger = logging.getLogger(__name__)

TOOL_LIMIT_MESSAGE = "Error: tool call limit reached"


class TurnResult(BaseModel):
    """Outcome of one agent turn.

    Attributes:
        messages: Messages produced during the turn (assistant and tool messages), in order
        steps: One entry per model call
        usage: Token usage summed over the turn
        error: Set when the turn ended abnormally (e.g. too many tool calls)
    """

    messages: list[dict[str, Any]] = Field(default_factory=list)
    steps: list[AgentStep] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)
    error: str | None = None


def _assistant_message(content: str | None, tool_calls: list[ToolCall]) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = [tc.model_dump() for tc in tool_calls]
    return message


def _tool_message(tool_call: ToolCall, content: str) -> dict[str, Any]:
    return {
        "role": "tool",
        "tool_call_id": tool_call.id,
        "name": tool_call.function.name,
        "content": content,
    }


async def _execute_tool_call(
    ctx: JobContext, tools: dict[str, Tool], tool_call: ToolCall, step_key: str
) -> tuple[str, str]:
    """Run one tool call and return ``(status, output)``.

    Bad input from the model (unknown tool, malformed arguments) and tool failures become
    ``"Error: ..."`` outputs so the model sees them on its next call.
    """
    tool_name = tool_call.function.name
    tool = tools.get(tool_name)
    if tool is None:
        logger.warning("Model called unknown tool '%s'", tool_name)
        return "failed", f"Error: unknown tool '{tool_name}'"

    try:
        args = tool_call.parse_arguments()
    except ValueError as e:
        return "failed", f"Error: {e}"

    try:
        result = await tool.execute(ctx, args, step_key)
    except Exception as e:
        logger.warning("Tool '%s' failed: %s", tool_name, e)
        return "failed", f"Error: {e}"
    return "completed", json_serialize(result)


async def run_agent_turn(
    agent: Agent,
    ctx: JobContext,
    messages: list[dict[str, Any]],
    step_key_prefix: str,
) -> TurnResult:
    """
    Run one turn of ``agent`` against the conversation ``messages``.

    Loop: model call -> execute requested tools and append their results -> model call,
    until the model answers without tool calls. After every model call (and its tools)
    the agent's ``on_agent_step_end`` hooks run and their state modifications are applied.

    Every model call and tool call is a memoized step keyed under ``step_key_prefix``, so
    a replayed job reproduces the same turn.

    Returns:
        TurnResult with the new messages. ``error`` is set when the agent exceeded its
        tool call budget; this does not raise.
    """
    conversation = list(messages)
    result = TurnResult()
    tools = {tool.id: tool for tool in agent.tools}
    tool_definitions = [tool.to_llm_tool_definition() for tool in agent.tools] or None
    tool_call_count = 0
    agent_step = 1

    while True:
        llm_response = await _llm_generate(
            ctx,
            {
                "step_key": f"{step_key_prefix}:llm:{agent_step}",
                "provider": agent.provider,
                "model": agent.model,
                "system_prompt": agent.system_prompt,
                "messages": conversation,
                "tools": tool_definitions,
                "temperature": agent.temperature,
                "max_tokens": agent.max_output_tokens,
            },
        )
        result.usage = result.usage + llm_response.usage

        assistant_message = _assistant_message(llm_response.content, llm_response.tool_calls)
        conversation.append(assistant_message)
        result.messages.append(assistant_message)

        tool_results: list[ToolResult] = []
        for idx, tool_call in enumerate(llm_response.tool_calls):
            if tool_call_count >= agent.max_tool_calls:
                # Every tool call still needs a tool message to keep the history valid
                status, output = "failed", TOOL_LIMIT_MESSAGE
                result.error = (
                    f"Agent '{agent.id}' exceeded {agent.max_tool_calls} tool calls in one turn"
                )
            else:
                tool_call_count += 1
                status, output = await _execute_tool_call(
                    ctx,
                    tools,
                    tool_call,
                    f"{step_key_prefix}:tool:{agent_step}.{idx}:{tool_call.function.name}",
                )
            tool_message = _tool_message(tool_call, output)
            conversation.append(tool_message)
            result.messages.append(tool_message)
            tool_results.append(
                ToolResult(
                    tool_name=tool_call.function.name,
                    tool_call_id=tool_call.id,
                    status=status,
                    output=output,
                )
            )

        result.steps.append(
            AgentStep(
                step=agent_step,
                content=llm_response.content,
                tool_calls=llm_response.tool_calls,
                tool_results=tool_results,
                usage=llm_response.usage,
            )
        )

        if agent.on_agent_step_end:
            hook_context = HookContext(
                job_id=ctx.job_id,
                agent_id=agent.id,
                steps=result.steps.copy(),
                state=ctx.state.model_dump() if ctx.state is not None else None,
                current_output={
                    "content": llm_response.content,
                    "tool_calls": [tc.model_dump() for tc in llm_response.tool_calls],
                },
            )
            hook_result = await execute_hooks(
                f"{step_key_prefix}:hook:{agent_step}.on_agent_step_end",
                agent.on_agent_step_end,
                hook_context,
                ctx,
            )
            if hook_result.action == HookAction.FAIL:
                raise StepExecutionError(hook_result.error_message or "Hook execution failed")
            apply_state_modifications(ctx, hook_result.modified_state)

        if result.error:
            logger.warning("%s", result.error)
            return result
        if not llm_response.tool_calls:
            return result
        agent_step += 1
