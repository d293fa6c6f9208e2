"""Unit tests for the code-agent job."""

import json
import uuid

import pytest

from appforge.functions.code_agent import ERROR_MESSAGE, JobResult, code_agent
from appforge.functions.prompts import FRAGMENT_TITLE_PROMPT, PROMPT, RESPONSE_PROMPT
from appforge.storage.messages import MessageRepository
from appforge.storage.models import MessageRole, MessageType
from appforge.storage.projects import ProjectRepository
from appforge.utils.config import Settings
from tests.fakes import ScriptedProvider, text_response, tool_response

SUMMARY = "<task_summary>Built a counter with increment and reset buttons.</task_summary>"
COUNTER = "export default function Counter() { return <button>+1</button>; }"


def _write(files):
    payload = {"files": [{"path": path, "content": content} for path, content in files.items()]}
    return tool_response(("createOrUpdateFiles", json.dumps(payload)))


def _provider(coder, title="Counter App", response="Here is your counter."):
    """Scripted provider answering the coder from ``coder`` and the post-processors directly.

    ``coder`` is a list of responses or a callable ``(messages) -> LLMResponse``.
    """
    queue = coder if isinstance(coder, list) else None

    def script(messages, system_prompt):
        if system_prompt == FRAGMENT_TITLE_PROMPT:
            return text_response(title)
        if system_prompt == RESPONSE_PROMPT:
            return text_response(response)
        assert system_prompt == PROMPT
        return queue.pop(0) if queue is not None else coder(messages)

    return ScriptedProvider(script)


@pytest.fixture
async def project(database):
    return await ProjectRepository(database).create("build a counter", user_id="user-1")


@pytest.fixture
def run(database, sandbox_provider, step_store, project):
    """Run one attempt of the job for ``project`` with a scripted provider."""

    async def _run(provider, execution_id=None, settings=None, value="build a counter"):
        return await code_agent._execute(
            execution_id or str(uuid.uuid4()),
            {"value": value, "projectId": project.id},
            step_store,
            resources={
                "database": database,
                "sandbox_provider": sandbox_provider,
                "settings": settings or Settings(),
                "llm_provider": provider,
            },
        )

    return _run


async def _assistant_turns(database, project_id):
    records = await MessageRepository(database).list_for_project(project_id)
    return [r for r in records if r.role == MessageRole.ASSISTANT]


class TestCodeAgentJob:
    """End-to-end runs of the code-agent job against fakes."""

    @pytest.mark.asyncio
    async def test_successful_run_stores_result_with_fragment(
        self, run, database, project, sandbox_provider
    ):
        """Test that files plus a summary produce a RESULT turn with a fragment."""
        provider = _provider(
            [
                _write({"counter.tsx": COUNTER}),
                text_response("I created the counter component."),
                text_response(SUMMARY),
            ]
        )

        result = await run(provider)

        assert isinstance(result, JobResult)
        assert result.url == "https://3000-sbx-1.sandbox.test"
        assert result.title == "Counter App"
        assert result.summary == SUMMARY
        assert result.files == {"counter.tsx": COUNTER}
        assert sandbox_provider.files["sbx-1"] == {"counter.tsx": COUNTER}

        (turn,) = await _assistant_turns(database, project.id)
        assert turn.type == MessageType.RESULT
        assert turn.content == "Here is your counter."
        assert turn.fragment.title == "Counter App"
        assert turn.fragment.sandbox_url == result.url
        assert turn.fragment.files == result.files

    @pytest.mark.asyncio
    async def test_prompt_is_not_duplicated_in_history(self, run, project):
        """Test that the stored prompt is sent to the coder exactly once."""
        provider = _provider([_write({"counter.tsx": COUNTER}), text_response(SUMMARY)])

        await run(provider)

        first_call = provider.calls[0]
        assert first_call["messages"] == [{"role": "user", "content": "build a counter"}]
        assert {t["function"]["name"] for t in first_call["tools"]} == {
            "terminal",
            "createOrUpdateFiles",
            "readFiles",
        }

    @pytest.mark.asyncio
    async def test_new_prompt_leaves_recorded_history_untouched(self, run, step_store, project):
        """Test that appending the new prompt does not change the recorded history step."""
        execution_id = str(uuid.uuid4())
        provider = _provider([_write({"counter.tsx": COUNTER}), text_response(SUMMARY)])

        await run(provider, execution_id=execution_id, value="add a reset button")

        assert provider.calls[0]["messages"] == [
            {"role": "user", "content": "build a counter"},
            {"role": "user", "content": "add a reset button"},
        ]
        record = await step_store.get(execution_id, "get-previous-messages")
        assert record["outputs"] == [{"role": "user", "content": "build a counter"}]

    @pytest.mark.asyncio
    async def test_post_processing_fallbacks(self, run, database, project):
        """Test that empty title and response answers fall back to the defaults."""
        provider = _provider(
            [_write({"counter.tsx": COUNTER}), text_response(SUMMARY)], title="", response=None
        )

        result = await run(provider)

        assert result.title == "Fragment"
        (turn,) = await _assistant_turns(database, project.id)
        assert turn.content == "Here you go"
        assert turn.fragment.title == "Fragment"

    @pytest.mark.asyncio
    async def test_no_summary_is_an_error(self, run, database, project):
        """Test that a run exhausting its iterations stores an ERROR turn."""
        calls = []

        def coder(messages):
            calls.append(messages)
            if len(calls) == 1:
                return _write({"counter.tsx": COUNTER})
            return text_response("Still working on it")

        provider = _provider(coder)

        result = await run(provider)

        assert result.summary == ""
        assert result.title == ""
        assert result.files == {"counter.tsx": COUNTER}
        # Ten turns; the first one needed a second model call after its tool call
        assert len(calls) == 11
        (turn,) = await _assistant_turns(database, project.id)
        assert turn.type == MessageType.ERROR
        assert turn.content == ERROR_MESSAGE
        assert turn.fragment is None
        # Post-processing agents never ran
        assert all(call["system_prompt"] == PROMPT for call in provider.calls)

    @pytest.mark.asyncio
    async def test_summary_without_files_is_an_error(self, run, database, project):
        """Test that converging without writing any file stores an ERROR turn."""
        provider = _provider([text_response(SUMMARY)])

        result = await run(provider)

        assert result.summary == SUMMARY
        assert result.files == {}
        (turn,) = await _assistant_turns(database, project.id)
        assert turn.type == MessageType.ERROR
        assert turn.fragment is None

    @pytest.mark.asyncio
    async def test_terminal_transport_error_reaches_the_model(
        self, run, sandbox_provider, database, project
    ):
        """Test that a broken command stream is reported to the coder and the job goes on."""

        def disconnect(on_stdout, on_stderr):
            on_stdout("added 312 packages")
            on_stderr("npm WARN deprecated")
            raise ConnectionError("stream closed")

        sandbox_provider.command_results["npm install"] = disconnect
        seen = []

        def coder(messages):
            seen.append(messages[-1])
            step = len(seen)
            if step == 1:
                return tool_response(("terminal", '{"command": "npm install"}'))
            if step == 2:
                return _write({"counter.tsx": COUNTER})
            return text_response(SUMMARY)

        result = await run(_provider(coder))

        tool_message = seen[1]
        assert tool_message["role"] == "tool"
        assert tool_message["name"] == "terminal"
        assert "stream closed" in tool_message["content"]
        assert "added 312 packages" in tool_message["content"]
        assert "npm WARN deprecated" in tool_message["content"]
        assert result.summary == SUMMARY
        (turn,) = await _assistant_turns(database, project.id)
        assert turn.type == MessageType.RESULT

    @pytest.mark.asyncio
    async def test_replay_repeats_no_side_effects(self, run, sandbox_provider, database, project):
        """Test that re-executing the same execution reuses every recorded step."""
        provider = _provider([_write({"counter.tsx": COUNTER}), text_response(SUMMARY)])
        execution_id = str(uuid.uuid4())

        first = await run(provider, execution_id=execution_id)
        model_calls = len(provider.calls)
        second = await run(provider, execution_id=execution_id)

        assert second == first
        assert len(provider.calls) == model_calls
        assert sandbox_provider.created == ["sbx-1"]
        assert len(await _assistant_turns(database, project.id)) == 1

    @pytest.mark.asyncio
    async def test_iteration_ceiling_comes_from_settings(self, run, database, project):
        """Test that max_iterations bounds the number of coder turns."""
        provider = _provider(lambda messages: text_response("Thinking"))

        await run(provider, settings=Settings(max_iterations=3))

        assert len(provider.calls) == 3
        (turn,) = await _assistant_turns(database, project.id)
        assert turn.type == MessageType.ERROR
