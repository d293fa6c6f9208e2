"""Step execution helper for durable execution within jobs."""

from __future__ import annotations

import asyncio
import contextvars
import json
import logging
from collections.abc import Callable
from typing import Any

from opentelemetry.trace import Status, StatusCode

from ..features.tracing import get_tracer
from ..utils.retry import retry_with_backoff
from ..utils.serializer import deserialize, safe_serialize, schema_name_for, serialize
from .context import JobContext
from .job import StepExecutionError

logger = logging.getLogger(__name__)


def _func_name(func: Callable) -> str:
    return func.__name__ if hasattr(func, "__name__") else str(func)


class Step:
    """Step execution helper - provides durable execution primitives.

    Steps are executed within a job context and their outputs are saved in the
    step store so a re-executed job returns them instead of running the step again.
    """

    def __init__(self, ctx: JobContext):
        """Initialize Step with a JobContext.

        Args:
            ctx: The job execution context
        """
        self.ctx = ctx

    async def _check_existing_step(self, step_key: str) -> dict[str, Any] | None:
        """Return the stored record for ``step_key`` in this execution, if any."""
        return await self.ctx.step_store.get(self.ctx.execution_id, step_key)

    async def _handle_existing_step(self, existing_step: dict[str, Any]) -> Any:
        """Return the cached result of a completed step, or raise if it failed."""
        if existing_step.get("success", True):
            return await deserialize(
                existing_step.get("outputs"), existing_step.get("output_schema_name")
            )
        error = existing_step.get("error") or {}
        error_message = (
            error.get("message", "Step execution failed") if isinstance(error, dict) else str(error)
        )
        raise StepExecutionError(error_message)

    async def _save_step_output(self, step_key: str, result: Any) -> None:
        """Save a successful step output.

        Pydantic models (and lists of them) are stored as JSON together with the import
        path of their class so they can be rebuilt on replay. Other results must be JSON
        serializable.
        """
        await self.ctx.step_store.put(
            execution_id=self.ctx.execution_id,
            step_key=step_key,
            outputs=serialize(result),
            output_schema_name=schema_name_for(result),
        )

    async def run(
        self,
        step_key: str,
        func: Callable,
        *args,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        **kwargs,
    ) -> Any:
        """
        Execute a callable as a durable step with retry support.

        Checks the step store for an existing result. If found, returns the cached result.
        Otherwise, executes the function with retries, saves the output, and returns it.
        A step that exhausts its retries is not recorded, so a re-executed job tries it again.

        Args:
            step_key: Step key identifier (must be unique per execution)
            func: Callable to execute (sync or async)
            *args: Positional arguments to pass to function
            max_retries: Maximum number of retries on failure (default: 2)
            base_delay: Base delay in seconds for exponential backoff (default: 1.0)
            max_delay: Maximum delay in seconds (default: 10.0)
            **kwargs: Keyword arguments to pass to function

        Returns:
            Result of function execution

        Raises:
            StepExecutionError: If function fails after all retries
        """
        existing_step = await self._check_existing_step(step_key)
        if existing_step is not None:
            logger.debug("Step %s already completed for %s", step_key, self.ctx.execution_id)
            return await self._handle_existing_step(existing_step)

        tracer = get_tracer()
        with tracer.start_as_current_span(
            name=f"step.{step_key}",
            attributes={
                "step.key": step_key,
                "step.function": _func_name(func),
                "step.execution_id": self.ctx.execution_id,
                "step.max_retries": max_retries,
            },
        ) as step_span:
            # Function arguments may be complex objects (handles, clients)
            safe_args = [safe_serialize(arg) for arg in args]
            safe_kwargs = {k: safe_serialize(v) for k, v in kwargs.items()}
            step_span.set_attribute(
                "step.input", json.dumps({"args": safe_args, "kwargs": safe_kwargs}, default=str)
            )

            async def _execute_func() -> Any:
                if asyncio.iscoroutinefunction(func):
                    return await func(*args, **kwargs)
                # Run sync functions in the executor with the caller's ContextVar values
                func_ctx = contextvars.copy_context()
                loop = asyncio.get_running_loop()
                return await loop.run_in_executor(None, lambda: func_ctx.run(func, *args, **kwargs))

            try:
                result = await retry_with_backoff(
                    _execute_func,
                    max_retries=max_retries,
                    base_delay=base_delay,
                    max_delay=max_delay,
                )
            except Exception as e:
                step_span.set_status(Status(StatusCode.ERROR, str(e)))
                step_span.record_exception(e)
                step_span.set_attribute("step.status", "failed")
                logger.warning(
                    "Step %s failed for execution %s: %s", step_key, self.ctx.execution_id, e
                )
                raise StepExecutionError(
                    f"Step execution failed after {max_retries} retries: {e}"
                ) from e

            await self._save_step_output(step_key, result)
            step_span.set_status(Status(StatusCode.OK))
            step_span.set_attribute("step.status", "completed")
            return result
