"""Context object passed to every job function."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from ..runtime.step_store import StepStore


class JobContext:
    """Context available to all job functions.

    Provides the identifiers of the running execution, the job-scoped state object
    and a Step helper for durable execution. One context exists per execution attempt;
    the state it carries is never shared between executions.
    """

    def __init__(
        self,
        job_id: str,
        execution_id: str,
        step_store: "StepStore",
        attempt: int = 0,
        created_at: datetime | None = None,
        state_schema: type[BaseModel] | None = None,
        initial_state: dict[str, Any] | None = None,
        resources: dict[str, Any] | None = None,
    ):
        self.job_id = job_id
        self.execution_id = execution_id
        self.step_store = step_store
        self.attempt = attempt
        self.created_at = created_at
        # Shared collaborators (database, sandbox provider, settings) injected by the worker
        self.resources = resources or {}

        if state_schema:
            if initial_state:
                self.state = state_schema.model_validate(initial_state)
            else:
                self.state = state_schema()
        else:
            self.state = None

        from .step import Step

        self.step = Step(self)

    def get_resource(self, name: str) -> Any:
        """Return a collaborator registered with the worker.

        Raises:
            KeyError: If no resource with that name was registered
        """
        try:
            return self.resources[name]
        except KeyError:
            raise KeyError(
                f"Resource '{name}' is not available to job '{self.job_id}'. "
                f"Register it with Worker(resources={{'{name}': ...}})."
            ) from None

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for the execution context variable."""
        return {
            "job_id": self.job_id,
            "execution_id": self.execution_id,
            "attempt": self.attempt,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
