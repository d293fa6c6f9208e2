"""Lifecycle hook that records the agent's completion summary."""

from ..core.context import JobContext
from ..middleware.hook import HookContext, HookResult, hook

TASK_SUMMARY_MARKER = "<task_summary>"


@hook
def completion_hook(ctx: JobContext, hook_context: HookContext) -> HookResult:
    """Set ``state.summary`` the first time the agent's text contains the summary marker."""
    output = hook_context.current_output or {}
    content = output.get("content")
    if not isinstance(content, str) or TASK_SUMMARY_MARKER not in content:
        return HookResult.continue_with()

    state = hook_context.state or {}
    if state.get("summary"):
        return HookResult.continue_with()

    return HookResult.continue_with(modified_state={"summary": content})
