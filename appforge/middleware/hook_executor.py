"""Runs agent hooks as memoized steps and applies what they return to the job state."""

import logging
from collections.abc import Callable
from typing import Any

from ..core.context import JobContext
from ..core.job import _execution_context
from .hook import HookAction, HookContext, HookResult

logger = logging.getLogger(__name__)


def _hook_step_name(func: Callable, index: int) -> str:
    name = getattr(func, "__name__", None)
    if not name or name == "<lambda>":
        return f"hook_{index}"
    return name


async def execute_hooks(
    hook_name: str,
    hooks: list[Callable],
    hook_context: HookContext,
    ctx: JobContext,
) -> HookResult:
    """
    Run ``hooks`` in order, each as the step ``<hook_name>.<function>.<index>``.

    A replayed job gets each hook's recorded result back instead of calling it again.
    ``modified_state`` from all hooks is merged (later hooks win) and returned for the
    caller to apply with ``apply_state_modifications``; each hook already sees the state
    as the hooks before it left it. The first FAIL result is returned as is.

    Raises:
        ValueError: If called outside a job execution
    """
    if not hooks:
        return HookResult.continue_with()

    exec_context = _execution_context.get()
    if not exec_context or not exec_context.get("execution_id"):
        raise ValueError("Hooks must be executed within a job")

    modified_state: dict[str, Any] = {}
    for index, hook_func in enumerate(hooks):
        name = _hook_step_name(hook_func, index)
        step_key = f"{hook_name}.{name}.{index}"
        hook_result = await ctx.step.run(step_key, hook_func, ctx, hook_context)

        if not isinstance(hook_result, HookResult):
            logger.warning("Hook '%s' returned %s", name, type(hook_result).__name__)
            return HookResult.fail(
                f"Hook '{name}' returned invalid result type {type(hook_result).__name__}"
            )
        if hook_result.action == HookAction.FAIL:
            return hook_result
        if hook_result.modified_state:
            modified_state.update(hook_result.modified_state)
            hook_context.state = {**(hook_context.state or {}), **hook_result.modified_state}

    return HookResult.continue_with(modified_state=modified_state or None)


def apply_state_modifications(ctx: JobContext, modified_state: dict[str, Any] | None) -> None:
    """Assign hook state modifications onto ``ctx.state``."""
    if not modified_state:
        return
    if ctx.state is None:
        raise ValueError(f"Job '{ctx.job_id}' has no state to modify")
    for field, value in modified_state.items():
        logger.debug("Hook sets state.%s for %s", field, ctx.execution_id)
        setattr(ctx.state, field, value)
