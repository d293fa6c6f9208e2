"""Unit tests for appforge.runtime.worker module."""

import asyncio

import pytest
from pydantic import BaseModel

from appforge.core.job import _JOB_REGISTRY, job
from appforge.runtime.step_store import InMemoryStepStore
from appforge.runtime.worker import ExecutionFailedError, ExecutionStatus, Worker


class EchoPayload(BaseModel):
    text: str


@pytest.fixture
def clean_registry():
    original = _JOB_REGISTRY.copy()
    yield
    _JOB_REGISTRY.clear()
    _JOB_REGISTRY.update(original)


@pytest.fixture
async def worker():
    w = Worker(step_store=InMemoryStepStore(), retry_base_delay=0, retry_max_delay=0)
    await w.start()
    yield w
    await w.shutdown()


class TestSendEvent:
    """Tests for Worker.send_event."""

    @pytest.mark.asyncio
    async def test_event_starts_triggered_job(self, clean_registry, worker):
        """Test that sending an event runs every job triggered by it."""

        @job(id="echo", trigger_on_event="echo/requested")
        async def echo(ctx, payload: EchoPayload):
            return payload.text.upper()

        handles = await worker.send_event("echo/requested", {"text": "hi"})

        assert len(handles) == 1
        assert await handles[0].get_result(timeout=5) == "HI"
        assert handles[0].status == ExecutionStatus.COMPLETED
        assert worker.get_execution(handles[0].id) is handles[0]

    @pytest.mark.asyncio
    async def test_event_without_jobs(self, clean_registry, worker):
        """Test that an event nobody listens to starts nothing."""
        assert await worker.send_event("nobody/listens", {}) == []

    @pytest.mark.asyncio
    async def test_invalid_payload_is_rejected(self, clean_registry, worker):
        """Test that an invalid payload raises before anything is queued."""

        @job(id="echo-strict", trigger_on_event="echo/strict")
        async def echo(ctx, payload: EchoPayload):
            return payload.text

        with pytest.raises(ValueError, match="Invalid payload"):
            await worker.send_event("echo/strict", {"wrong": "field"})
        assert worker.executions == {}


class TestRetries:
    """Tests for durable retries."""

    @pytest.mark.asyncio
    async def test_retry_reuses_execution_id_and_completed_steps(self, clean_registry, worker):
        """Test that a retried execution skips steps that already completed."""
        calls = {"side_effect": 0, "attempts": 0}
        execution_ids = []

        @job(id="flaky", trigger_on_event="flaky/run", max_attempts=3)
        async def flaky(ctx, payload):
            execution_ids.append(ctx.execution_id)

            async def side_effect():
                calls["side_effect"] += 1
                return "created"

            created = await ctx.step.run("side-effect", side_effect)
            calls["attempts"] += 1
            if calls["attempts"] < 2:
                raise RuntimeError("transient")
            return created

        handles = await worker.send_event("flaky/run", {})
        result = await handles[0].get_result(timeout=5)

        assert result == "created"
        assert calls["side_effect"] == 1
        assert handles[0].attempts == 2
        assert len(set(execution_ids)) == 1

    @pytest.mark.asyncio
    async def test_execution_fails_after_max_attempts(self, clean_registry, worker):
        """Test that get_result raises once every attempt failed."""

        @job(id="doomed", max_attempts=2)
        async def doomed(ctx, payload):
            raise RuntimeError("always")

        handle = await worker.invoke("doomed", None)

        with pytest.raises(ExecutionFailedError, match="always"):
            await handle.get_result(timeout=5)
        assert handle.status == ExecutionStatus.FAILED
        assert handle.attempts == 2
        assert handle.to_dict()["error"] == "always"

    @pytest.mark.asyncio
    async def test_worker_max_attempts_overrides_job(self, clean_registry):
        """Test that the worker's max_attempts replaces the attempts a job declares."""
        attempts = 0

        @job(id="stubborn", max_attempts=5)
        async def stubborn(ctx, payload):
            nonlocal attempts
            attempts += 1
            raise RuntimeError("still failing")

        async with Worker(
            step_store=InMemoryStepStore(), max_attempts=1, retry_base_delay=0
        ) as w:
            handle = await w.invoke("stubborn", None)
            with pytest.raises(ExecutionFailedError):
                await handle.get_result(timeout=5)

        assert attempts == 1
        assert handle.attempts == 1

    def test_rejects_zero_max_attempts(self):
        """Test that a worker-wide max_attempts must be positive."""
        with pytest.raises(ValueError, match="max_attempts"):
            Worker(step_store=InMemoryStepStore(), max_attempts=0)

    @pytest.mark.asyncio
    async def test_invoke_unknown_job(self, worker):
        """Test that invoking an unregistered job raises ValueError."""
        with pytest.raises(ValueError, match="not found"):
            await worker.invoke("no-such-job", None)


class TestRetention:
    """Tests for how long finished executions are kept."""

    @pytest.mark.asyncio
    async def test_finished_executions_are_bounded(self, clean_registry):
        """Test that only the most recent finished executions are retained."""

        @job(id="noop", trigger_on_event="noop/run")
        async def noop(ctx, payload):
            return None

        handles = []
        async with Worker(step_store=InMemoryStepStore(), retained_executions=5) as w:
            for _ in range(50):
                (handle,) = await w.send_event("noop/run", {})
                await handle.get_result(timeout=5)
                handles.append(handle)
            # Let the last execution task finish its bookkeeping
            for _ in range(5):
                await asyncio.sleep(0)

            assert w.executions == {}
            assert w.get_execution(handles[0].id) is None
            assert w.get_execution(handles[-1].id) is handles[-1]
            assert len(w._finished) == 5

    @pytest.mark.asyncio
    async def test_running_executions_are_listed(self, clean_registry):
        """Test that an execution stays in executions until it finishes."""
        release = asyncio.Event()

        @job(id="blocked", trigger_on_event="blocked/run")
        async def blocked(ctx, payload):
            await release.wait()
            return "done"

        async with Worker(step_store=InMemoryStepStore()) as w:
            (handle,) = await w.send_event("blocked/run", {})
            await asyncio.sleep(0)
            assert handle.id in w.executions

            release.set()
            assert await handle.get_result(timeout=5) == "done"
            for _ in range(5):
                await asyncio.sleep(0)
            assert handle.id not in w.executions
            assert w.get_execution(handle.id) is handle


class TestConcurrency:
    """Tests for the concurrency limit."""

    @pytest.mark.asyncio
    async def test_max_concurrent_jobs(self, clean_registry):
        """Test that no more than max_concurrent_jobs executions run at once."""
        running = 0
        peak = 0

        @job(id="slow", trigger_on_event="slow/run")
        async def slow(ctx, payload):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            for _ in range(5):
                await asyncio.sleep(0)
            running -= 1
            return True

        async with Worker(step_store=InMemoryStepStore(), max_concurrent_jobs=2) as w:
            handles = []
            for _ in range(5):
                handles.extend(await w.send_event("slow/run", {}))
            results = await asyncio.gather(*(h.get_result(timeout=5) for h in handles))

        assert results == [True] * 5
        assert peak <= 2

    def test_rejects_zero_concurrency(self):
        """Test that max_concurrent_jobs must be positive."""
        with pytest.raises(ValueError):
            Worker(step_store=InMemoryStepStore(), max_concurrent_jobs=0)
