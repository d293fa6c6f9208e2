"""Unit tests for appforge.core.job module."""

import pytest
from pydantic import BaseModel

from appforge.core.job import (
    _JOB_REGISTRY,
    Job,
    _execution_context,
    get_all_jobs,
    get_job,
    get_jobs_for_event,
    job,
)
from appforge.core.state import RunState


class GreetPayload(BaseModel):
    name: str


@pytest.fixture
def clean_registry():
    original = _JOB_REGISTRY.copy()
    yield
    _JOB_REGISTRY.clear()
    _JOB_REGISTRY.update(original)


class TestJobDecorator:
    """Tests for the job decorator."""

    def test_registers_job(self, clean_registry):
        """Test that the decorator registers the job under its id."""

        @job(id="greet", trigger_on_event="greet/requested")
        async def greet(ctx, payload: GreetPayload):
            return f"hello {payload.name}"

        assert isinstance(greet, Job)
        assert get_job("greet") is greet
        assert get_jobs_for_event("greet/requested") == [greet]
        assert get_jobs_for_event("other/event") == []
        assert get_all_jobs()["greet"] is greet

    def test_defaults_id_to_function_name(self, clean_registry):
        """Test that the id defaults to the function name."""

        @job()
        async def unnamed_job(ctx, payload):
            return None

        assert unnamed_job.id == "unnamed_job"

    def test_rejects_sync_functions(self):
        """Test that only async functions can be jobs."""
        with pytest.raises(TypeError, match="must be an async function"):
            Job(id="sync", func=lambda ctx, payload: None)

    def test_rejects_zero_attempts(self):
        """Test that max_attempts must be positive."""

        async def never(ctx, payload):
            return None

        with pytest.raises(ValueError, match="max_attempts"):
            Job(id="never", func=never, max_attempts=0)


class TestPreparePayload:
    """Tests for payload validation."""

    def test_validates_annotated_schema(self, clean_registry):
        """Test that dict payloads are validated into the annotated model."""

        @job(id="greet-validate")
        async def greet(ctx, payload: GreetPayload):
            return payload.name

        assert greet._prepare_payload({"name": "Ada"}) == GreetPayload(name="Ada")

    def test_invalid_payload_raises_value_error(self, clean_registry):
        """Test that an invalid payload raises ValueError naming the job."""

        @job(id="greet-invalid")
        async def greet(ctx, payload: GreetPayload):
            return payload.name

        with pytest.raises(ValueError, match="Invalid payload for job 'greet-invalid'"):
            greet._prepare_payload({"nom": "Ada"})

    def test_untyped_payload_is_passed_through(self, clean_registry):
        """Test that payloads of jobs without a schema are not touched."""

        @job(id="raw")
        async def raw(ctx, payload):
            return payload

        assert raw._prepare_payload({"anything": 1}) == {"anything": 1}


class TestJobExecute:
    """Tests for Job._execute."""

    @pytest.mark.asyncio
    async def test_execute_sets_context_and_fresh_state(self, clean_registry, step_store):
        """Test that each attempt gets a fresh state and runs inside an execution context."""
        seen = []

        @job(id="stateful", state_schema=RunState)
        async def stateful(ctx, payload):
            seen.append((dict(_execution_context.get()), ctx.state.model_dump()))
            ctx.state.summary = "changed"
            return ctx.state.summary

        first = await stateful._execute("exec-1", {}, step_store)
        second = await stateful._execute("exec-1", {}, step_store, attempt=1)

        assert first == second == "changed"
        assert seen[0][0]["execution_id"] == "exec-1"
        assert seen[1][0]["attempt"] == 1
        assert seen[1][1] == {"summary": "", "files": {}}
        assert _execution_context.get() is None

    @pytest.mark.asyncio
    async def test_execute_propagates_errors(self, clean_registry, step_store):
        """Test that job errors propagate and the execution context is reset."""

        @job(id="broken")
        async def broken(ctx, payload):
            raise RuntimeError("broken job")

        with pytest.raises(RuntimeError, match="broken job"):
            await broken._execute("exec-2", None, step_store)
        assert _execution_context.get() is None

    @pytest.mark.asyncio
    async def test_execute_exposes_resources(self, clean_registry, step_store):
        """Test that worker resources are reachable from the context."""

        @job(id="resourceful")
        async def resourceful(ctx, payload):
            return ctx.get_resource("answer")

        result = await resourceful._execute("exec-3", None, step_store, resources={"answer": 42})
        assert result == 42

        with pytest.raises(KeyError, match="Resource 'answer'"):
            await resourceful._execute("exec-4", None, step_store)
