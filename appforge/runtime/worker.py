"""In-process worker that runs event-triggered jobs with durable retries."""

import asyncio
import logging
import traceback
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ..core.job import Job, get_all_jobs, get_job, get_jobs_for_event
from ..features.events import Event
from .step_store import StepStore

logger = logging.getLogger(__name__)


class ExecutionStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionFailedError(Exception):
    """Raised by ``ExecutionHandle.get_result`` when the execution failed for good."""

    def __init__(self, execution_id: str, error: str):
        self.execution_id = execution_id
        self.error = error
        super().__init__(f"Execution {execution_id} failed: {error}")


class ExecutionHandle:
    """Tracks one execution of a job."""

    def __init__(self, job: Job, payload: Any, event_id: str | None = None):
        self.id = str(uuid.uuid4())
        self.job_id = job.id
        self.payload = payload
        self.event_id = event_id
        self.created_at = datetime.now(timezone.utc)
        self.status = ExecutionStatus.QUEUED
        self.attempts = 0
        self.result: Any = None
        self.error: str | None = None
        self._done = asyncio.get_running_loop().create_future()

    def _complete(self, result: Any) -> None:
        self.status = ExecutionStatus.COMPLETED
        self.result = result
        if not self._done.done():
            self._done.set_result(result)

    def _fail(self, error: str) -> None:
        self.status = ExecutionStatus.FAILED
        self.error = error
        if not self._done.done():
            self._done.set_result(None)

    @property
    def done(self) -> bool:
        return self._done.done()

    async def get_result(self, timeout: float | None = None) -> Any:
        """Wait for the execution to finish and return the job's result.

        Raises:
            ExecutionFailedError: If the job failed on every attempt
            asyncio.TimeoutError: If ``timeout`` elapses first
        """
        await asyncio.wait_for(asyncio.shield(self._done), timeout)
        if self.status == ExecutionStatus.FAILED:
            raise ExecutionFailedError(self.id, self.error or "unknown error")
        return self.result

    def to_dict(self) -> dict[str, Any]:
        result = self.result
        if isinstance(result, BaseModel):
            result = result.model_dump(mode="json")
        return {
            "id": self.id,
            "job_id": self.job_id,
            "event_id": self.event_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "created_at": self.created_at.isoformat(),
            "result": result,
            "error": self.error,
        }

    def __repr__(self) -> str:
        return (
            f"ExecutionHandle(id={self.id!r}, job_id={self.job_id!r}, status={self.status.value})"
        )


class Worker:
    """
    Runs jobs for events sent to it.

    Executions are queued and run concurrently up to ``max_concurrent_jobs``. An execution
    whose job raises is run again under the same ``execution_id`` (steps that completed are
    returned from the step store) until ``Job.max_attempts`` is reached, or the worker's own
    ``max_attempts`` when one is given. Finished executions stay available through
    ``get_execution`` for the last ``retained_executions`` of them only.

    Usage:
        worker = Worker(step_store=SqlStepStore(database), resources={"database": database})
        await worker.start()
        handles = await worker.send_event("code-agent/run", {"value": "...", "projectId": "..."})
        result = await handles[0].get_result(timeout=600)
        await worker.shutdown()
    """

    def __init__(
        self,
        step_store: StepStore,
        resources: dict[str, Any] | None = None,
        max_concurrent_jobs: int = 10,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 30.0,
        max_attempts: int | None = None,
        retained_executions: int = 100,
    ):
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.step_store = step_store
        self.resources = resources or {}
        self.max_concurrent_jobs = max_concurrent_jobs
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.max_attempts = max_attempts
        self.retained_executions = retained_executions

        # Queued and running executions
        self.executions: dict[str, ExecutionHandle] = {}
        self._finished: OrderedDict[str, ExecutionHandle] = OrderedDict()
        self.running = False
        self._queue: asyncio.Queue[ExecutionHandle] = asyncio.Queue()
        self._semaphore = asyncio.Semaphore(max_concurrent_jobs)
        self._dispatch_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    async def start(self) -> None:
        """Start dispatching queued executions."""
        if self.running:
            return
        self.running = True
        self._dispatch_task = asyncio.create_task(self._dispatch_loop())
        logger.info(
            "Worker started (max %d concurrent jobs), jobs: %s",
            self.max_concurrent_jobs,
            ", ".join(sorted(get_all_jobs())) or "none",
        )

    async def send_event(
        self, name: str, data: dict[str, Any] | None = None
    ) -> list[ExecutionHandle]:
        """Start one execution of every job triggered by event ``name``.

        Raises:
            ValueError: If ``data`` is not a valid payload for a triggered job
        """
        event = Event(name=name, data=data or {})
        jobs = get_jobs_for_event(name)
        if not jobs:
            logger.warning("No job is triggered by event %s", name)

        # Validate every payload before queueing anything
        for job in jobs:
            job._prepare_payload(event.data)
        handles = [self._enqueue(job, event.data, event.id) for job in jobs]
        logger.info("Event %s (%s) started %d execution(s)", name, event.id, len(handles))
        return handles

    async def invoke(self, job_id: str, payload: Any) -> ExecutionHandle:
        """Start one execution of a registered job.

        Raises:
            ValueError: If the job is unknown or the payload is invalid
        """
        job = get_job(job_id)
        if job is None:
            raise ValueError(f"Job {job_id} not found in registry")
        job._prepare_payload(payload)
        return self._enqueue(job, payload)

    def get_execution(self, execution_id: str) -> ExecutionHandle | None:
        return self.executions.get(execution_id) or self._finished.get(execution_id)

    def _retire(self, handle: ExecutionHandle) -> None:
        self.executions.pop(handle.id, None)
        if self.retained_executions <= 0:
            return
        self._finished[handle.id] = handle
        while len(self._finished) > self.retained_executions:
            self._finished.popitem(last=False)

    def _enqueue(self, job: Job, payload: Any, event_id: str | None = None) -> ExecutionHandle:
        handle = ExecutionHandle(job, payload, event_id=event_id)
        self.executions[handle.id] = handle
        self._queue.put_nowait(handle)
        return handle

    async def _dispatch_loop(self) -> None:
        while self.running:
            try:
                handle = await self._queue.get()
            except asyncio.CancelledError:
                break
            task = asyncio.create_task(self._execute_with_semaphore(handle))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _execute_with_semaphore(self, handle: ExecutionHandle) -> None:
        """Execute a job with semaphore control for concurrency limiting."""
        async with self._semaphore:
            try:
                await self._execute(handle)
            finally:
                self._retire(handle)

    async def _execute(self, handle: ExecutionHandle) -> None:
        job = get_job(handle.job_id)
        if job is None:
            handle._fail(f"Job {handle.job_id} not found in registry")
            return

        max_attempts = self.max_attempts or job.max_attempts
        handle.status = ExecutionStatus.RUNNING
        for attempt in range(max_attempts):
            handle.attempts = attempt + 1
            try:
                result = await job._execute(
                    execution_id=handle.id,
                    payload=handle.payload,
                    step_store=self.step_store,
                    attempt=attempt,
                    created_at=handle.created_at,
                    resources=self.resources,
                )
            except asyncio.CancelledError:
                handle._fail("cancelled")
                raise
            except Exception as error:
                logger.error(
                    "Execution %s of %s failed (attempt %d/%d): %s\nStack trace:\n%s",
                    handle.id,
                    job.id,
                    attempt + 1,
                    max_attempts,
                    error,
                    traceback.format_exc(),
                )
                if attempt + 1 >= max_attempts:
                    handle._fail(str(error))
                    return
                delay = min(self.retry_base_delay * (2**attempt), self.retry_max_delay)
                await asyncio.sleep(delay)
                continue

            handle._complete(result)
            logger.info("Execution %s of %s completed", handle.id, job.id)
            return

    async def shutdown(self) -> None:
        """Stop dispatching and cancel running executions."""
        if not self.running:
            return
        logger.info("Shutting down worker...")
        self.running = False

        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Worker shutdown complete")

    async def __aenter__(self) -> "Worker":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()
