"""Persistence of memoized step outputs, keyed by (execution_id, step_key)."""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..storage.database import Database
from ..storage.models import StepOutput

logger = logging.getLogger(__name__)


class StepStore(ABC):
    """Key-value store checked before every side-effecting step."""

    @abstractmethod
    async def get(self, execution_id: str, step_key: str) -> dict[str, Any] | None:
        """Return ``{"success", "outputs", "output_schema_name"}`` for a completed step, or None."""
        ...

    @abstractmethod
    async def put(
        self,
        execution_id: str,
        step_key: str,
        outputs: Any,
        output_schema_name: str | None = None,
    ) -> None:
        """Record the output of a completed step. The first recorded output wins."""
        ...

    @abstractmethod
    async def list_keys(self, execution_id: str) -> list[str]:
        """Return the keys of every completed step of an execution, in completion order."""
        ...


class InMemoryStepStore(StepStore):
    """Process-local step store, used by tests and single-process development runs."""

    def __init__(self):
        self._records: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, execution_id: str, step_key: str) -> dict[str, Any] | None:
        record = self._records.get((execution_id, step_key))
        # Outputs are copied both ways, as a persistent store would
        return copy.deepcopy(record) if record is not None else None

    async def put(
        self,
        execution_id: str,
        step_key: str,
        outputs: Any,
        output_schema_name: str | None = None,
    ) -> None:
        async with self._lock:
            self._records.setdefault(
                (execution_id, step_key),
                {
                    "success": True,
                    "outputs": copy.deepcopy(outputs),
                    "output_schema_name": output_schema_name,
                },
            )

    async def list_keys(self, execution_id: str) -> list[str]:
        return [key for (eid, key) in self._records if eid == execution_id]


class SqlStepStore(StepStore):
    """Step store backed by the ``step_outputs`` table."""

    def __init__(self, database: Database):
        self.database = database

    async def get(self, execution_id: str, step_key: str) -> dict[str, Any] | None:
        async with self.database.session() as session:
            result = await session.execute(
                select(StepOutput).where(
                    StepOutput.execution_id == execution_id,
                    StepOutput.step_key == step_key,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return {
                "success": True,
                "outputs": row.outputs,
                "output_schema_name": row.output_schema_name,
            }

    async def put(
        self,
        execution_id: str,
        step_key: str,
        outputs: Any,
        output_schema_name: str | None = None,
    ) -> None:
        try:
            async with self.database.session() as session:
                async with session.begin():
                    session.add(
                        StepOutput(
                            execution_id=execution_id,
                            step_key=step_key,
                            outputs=outputs,
                            output_schema_name=output_schema_name,
                        )
                    )
        except IntegrityError:
            # Another attempt of the same execution recorded this step first
            logger.debug("Step %s of %s already stored", step_key, execution_id)

    async def list_keys(self, execution_id: str) -> list[str]:
        async with self.database.session() as session:
            result = await session.execute(
                select(StepOutput.step_key)
                .where(StepOutput.execution_id == execution_id)
                .order_by(StepOutput.id.asc())
            )
            return list(result.scalars().all())
