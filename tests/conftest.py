"""Shared pytest configuration and fixtures."""

import uuid
from contextlib import contextmanager

import pytest

from appforge.core.context import JobContext
from appforge.core.job import _execution_context
from appforge.core.state import RunState
from appforge.runtime.step_store import InMemoryStepStore
from appforge.storage.database import Database
from tests.fakes import FakeSandboxProvider


@pytest.fixture
def step_store():
    """In-memory step store."""
    return InMemoryStepStore()


@pytest.fixture
def job_context(step_store):
    """JobContext with a fresh RunState."""
    return JobContext(
        job_id="test-job",
        execution_id=str(uuid.uuid4()),
        step_store=step_store,
        state_schema=RunState,
    )


@pytest.fixture
def execution_scope():
    """Return a context manager that marks code as running inside a job execution."""

    @contextmanager
    def scope(ctx: JobContext):
        token = _execution_context.set(ctx.to_dict())
        try:
            yield ctx
        finally:
            _execution_context.reset(token)

    return scope


@pytest.fixture
def sandbox_provider():
    """In-memory sandbox provider."""
    return FakeSandboxProvider()


@pytest.fixture
async def database():
    """In-memory SQLite database with every table created."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    """Make step retries immediate."""
    import asyncio

    real_sleep = asyncio.sleep

    async def no_sleep(delay, *args, **kwargs):
        await real_sleep(0)

    monkeypatch.setattr("appforge.utils.retry.asyncio.sleep", no_sleep)
