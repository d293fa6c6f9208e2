"""Background job definitions and the process-wide job registry."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from contextvars import ContextVar
from datetime import datetime
from typing import TYPE_CHECKING, Any

from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel

from ..features.tracing import get_tracer
from .context import JobContext

if TYPE_CHECKING:
    from ..runtime.step_store import StepStore

logger = logging.getLogger(__name__)

# Global registry of jobs
_JOB_REGISTRY: dict[str, Job] = {}

# Context variables for tracking execution state
_execution_context: ContextVar[dict[str, Any] | None] = ContextVar(
    "execution_context", default=None
)


class StepExecutionError(Exception):
    """
    Exception raised when a step fails and the job must fail.
    """

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(reason)


class Job:
    """A durable background job.

    A job is an async function ``(ctx: JobContext, payload)`` that is started by the worker,
    either directly or because an event it subscribes to was sent. When the function raises,
    the worker may execute it again under the same ``execution_id``; steps that completed in an
    earlier attempt return their memoized output instead of running again.
    """

    def __init__(
        self,
        id: str,
        func: Callable,
        description: str | None = None,
        trigger_on_event: str | None = None,
        state_schema: type[BaseModel] | None = None,
        payload_schema_class: type[BaseModel] | None = None,
        max_attempts: int = 3,
    ):
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"Job '{id}' must be an async function")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.id = id
        self.func = func
        self.description = description
        self.trigger_on_event = trigger_on_event
        self.state_schema = state_schema
        self.max_attempts = max_attempts
        self._payload_schema_class = payload_schema_class or _extract_payload_schema(func)

    def _prepare_payload(self, payload: Any) -> Any:
        if self._payload_schema_class is None or not isinstance(payload, dict):
            return payload
        try:
            return self._payload_schema_class.model_validate(payload)
        except Exception as e:
            raise ValueError(
                f"Invalid payload for job '{self.id}': failed to "
                f"validate against {self._payload_schema_class.__name__}: {e}"
            ) from e

    async def _execute(
        self,
        execution_id: str,
        payload: Any,
        step_store: StepStore,
        attempt: int = 0,
        created_at: datetime | None = None,
        resources: dict[str, Any] | None = None,
    ) -> Any:
        """Execute one attempt of the job under an execution context."""
        ctx = JobContext(
            job_id=self.id,
            execution_id=execution_id,
            step_store=step_store,
            attempt=attempt,
            created_at=created_at,
            state_schema=self.state_schema,
            resources=resources,
        )
        prepared_payload = self._prepare_payload(payload)

        token = _execution_context.set(ctx.to_dict())
        tracer = get_tracer()
        try:
            with tracer.start_as_current_span(
                name=f"job.{self.id}",
                attributes={
                    "job.id": self.id,
                    "job.execution_id": execution_id,
                    "job.attempt": attempt,
                },
            ) as span:
                try:
                    result = await self.func(ctx, prepared_payload)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
                span.set_status(Status(StatusCode.OK))
                return result
        finally:
            _execution_context.reset(token)


def _extract_payload_schema(func: Callable) -> type[BaseModel] | None:
    """Return the Pydantic model annotated on the job's payload parameter, if any."""
    params = list(inspect.signature(func).parameters.values())
    if len(params) < 2:
        return None
    annotation = params[1].annotation
    if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
        return annotation
    return None


def job(
    id: str | None = None,
    trigger_on_event: str | None = None,
    state_schema: type[BaseModel] | None = None,
    max_attempts: int = 3,
    description: str | None = None,
):
    """
    Decorator to register an async function as a job.

    Usage:
        @job(id="code-agent", trigger_on_event="code-agent/run", state_schema=RunState)
        async def code_agent(ctx: JobContext, payload: CodeAgentRunData):
            ...

    Args:
        id: Job identifier (defaults to the function name)
        trigger_on_event: Event name that starts this job
        state_schema: JobState subclass created fresh for every execution attempt
        max_attempts: How many times the worker runs the job before giving up
        description: Optional human-readable description

    Returns:
        The registered Job
    """

    def decorator(func: Callable) -> Job:
        job_id = id or func.__name__
        job_obj = Job(
            id=job_id,
            func=func,
            description=description,
            trigger_on_event=trigger_on_event,
            state_schema=state_schema,
            max_attempts=max_attempts,
        )
        if job_id in _JOB_REGISTRY:
            logger.warning("Job '%s' is already registered and will be replaced", job_id)
        _JOB_REGISTRY[job_id] = job_obj
        return job_obj

    return decorator


def get_job(job_id: str) -> Job | None:
    """Get a registered job by id."""
    return _JOB_REGISTRY.get(job_id)


def get_all_jobs() -> dict[str, Job]:
    """Get a copy of the job registry."""
    return _JOB_REGISTRY.copy()


def get_jobs_for_event(event_name: str) -> list[Job]:
    """Get every registered job triggered by ``event_name``."""
    return [j for j in _JOB_REGISTRY.values() if j.trigger_on_event == event_name]
