"""Built-in LLM generation function for executing LLM API calls."""

from typing import Any

from ..core.context import JobContext
from ..core.job import _execution_context
from .providers import LLMProvider, LLMResponse, get_provider


async def _llm_generate(ctx: JobContext, payload: dict[str, Any]) -> LLMResponse:
    """
    Durable LLM response generation.

    Must be executed within a job execution context. The provider call runs as a step, so a
    re-executed job gets the recorded response back instead of calling the model again.

    Args:
        ctx: JobContext for the current execution
        payload: Dictionary containing:
            - step_key: str - Step key for the call (unique per execution)
            - provider: str | LLMProvider - Provider name or instance
            - model: str - Model identifier
            - messages: List[Dict] - Conversation history
            - system_prompt: Optional[str]
            - tools: Optional[List[Dict]] - Tool definitions in OpenAI function format
            - temperature: Optional[float]
            - max_tokens: Optional[int]

    Returns:
        LLMResponse with content, tool_calls, usage, etc.
    """
    exec_context = _execution_context.get()
    if not exec_context or not exec_context.get("execution_id"):
        raise ValueError("_llm_generate must be executed within a job execution context")

    provider = payload.get("provider") or "openai"
    if not isinstance(provider, LLMProvider):
        provider = get_provider(provider)

    return await ctx.step.run(
        payload["step_key"],
        provider.generate,
        messages=payload.get("messages") or [],
        model=payload["model"],
        system_prompt=payload.get("system_prompt"),
        tools=payload.get("tools"),
        temperature=payload.get("temperature"),
        max_tokens=payload.get("max_tokens"),
    )
