__version__ = "0.1.0"

from .agents.agent import Agent
from .agents.completion import TASK_SUMMARY_MARKER, completion_hook
from .agents.network import Continue, Done, Network, NetworkResult, NetworkStatus, summary_router
from .agents.output import last_assistant_text, parse_agent_output, run_single_shot
from .agents.turn import TurnResult
from .core.context import JobContext
from .core.job import Job, StepExecutionError, get_all_jobs, get_job, job
from .core.state import JobState, RunState
from .execution import (
    CommandFailedError,
    CommandResult,
    SandboxHandle,
    SandboxProvider,
    SandboxUnavailable,
    create_sandbox_provider,
    get_sandbox,
    sandbox_tools,
)
from .features.events import CODE_AGENT_RUN, CodeAgentRunData, Event
from .llm import LLMProvider, LLMResponse, get_provider
from .middleware.hook import HookAction, HookContext, HookResult, hook
from .runtime.client import AppForgeClient
from .runtime.step_store import InMemoryStepStore, SqlStepStore, StepStore
from .runtime.worker import ExecutionFailedError, ExecutionHandle, Worker
from .tools.tool import Tool
from .usage.tracker import RateLimitExceeded, UsageStatus, UsageTracker, get_usage_tracker
from .utils.config import Settings, load_settings

__all__ = [
    "Agent",
    "AppForgeClient",
    "CODE_AGENT_RUN",
    "CodeAgentRunData",
    "CommandFailedError",
    "CommandResult",
    "Continue",
    "Done",
    "Event",
    "ExecutionFailedError",
    "ExecutionHandle",
    "HookAction",
    "HookContext",
    "HookResult",
    "InMemoryStepStore",
    "Job",
    "JobContext",
    "JobState",
    "LLMProvider",
    "LLMResponse",
    "Network",
    "NetworkResult",
    "NetworkStatus",
    "RateLimitExceeded",
    "RunState",
    "SandboxHandle",
    "SandboxProvider",
    "SandboxUnavailable",
    "Settings",
    "SqlStepStore",
    "StepExecutionError",
    "StepStore",
    "TASK_SUMMARY_MARKER",
    "Tool",
    "TurnResult",
    "UsageStatus",
    "UsageTracker",
    "Worker",
    "completion_hook",
    "create_sandbox_provider",
    "get_all_jobs",
    "get_job",
    "get_provider",
    "get_sandbox",
    "get_usage_tracker",
    "hook",
    "job",
    "last_assistant_text",
    "load_settings",
    "parse_agent_output",
    "run_single_shot",
    "sandbox_tools",
    "summary_router",
]
