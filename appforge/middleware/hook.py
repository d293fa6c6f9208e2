"""Agent lifecycle hooks.

A hook is a callable ``(ctx: JobContext, hook_context: HookContext) -> HookResult`` that an
agent runs after each of its model calls. Hooks run as memoized steps, so they must return
their effects as ``HookResult.modified_state`` instead of mutating ``ctx.state`` directly.
"""

import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..types.types import AgentStep


class HookAction(str, Enum):
    CONTINUE = "continue"
    FAIL = "fail"


class HookContext(BaseModel):
    """What a hook sees of the running turn.

    Attributes:
        job_id: Job the agent runs in
        agent_id: Agent whose model call just finished
        steps: Model calls of the turn so far, the latest last
        state: Snapshot of the job's shared state
        current_output: The latest model response as ``{"content", "tool_calls"}``
    """

    job_id: str
    agent_id: str | None = None
    steps: list[AgentStep] = Field(default_factory=list)
    state: dict[str, Any] | None = None
    current_output: dict[str, Any] | None = None


class HookResult(BaseModel):
    action: HookAction = HookAction.CONTINUE
    # Field values to assign on ctx.state once the hook step has completed
    modified_state: dict[str, Any] | None = None
    error_message: str | None = None

    @classmethod
    def continue_with(cls, modified_state: dict[str, Any] | None = None) -> "HookResult":
        return cls(action=HookAction.CONTINUE, modified_state=modified_state)

    @classmethod
    def fail(cls, message: str) -> "HookResult":
        """Stop the turn; the agent raises ``StepExecutionError`` with ``message``."""
        return cls(action=HookAction.FAIL, error_message=message)


def _validate_hook_signature(func: Callable) -> None:
    params = list(inspect.signature(func).parameters.values())
    if len(params) != 2:
        raise TypeError(
            f"Hook '{getattr(func, '__name__', func)}' must take exactly 2 parameters "
            f"(ctx, hook_context), got {len(params)}"
        )


def hook(func: Callable | None = None):
    """Mark a function as an agent hook, checking its signature at decoration time.

    Usage:
        @hook
        def record_summary(ctx: JobContext, hook_context: HookContext) -> HookResult:
            return HookResult.continue_with(modified_state={"summary": "..."})
    """

    def decorator(f: Callable) -> Callable:
        _validate_hook_signature(f)
        return f

    if func is not None:
        return decorator(func)
    return decorator


def normalize_hooks(hooks: Callable | list[Callable] | None) -> list[Callable]:
    if hooks is None:
        return []
    if callable(hooks):
        return [hooks]
    if isinstance(hooks, list):
        return hooks
    raise TypeError(f"Expected a hook or a list of hooks, got {type(hooks).__name__}")
