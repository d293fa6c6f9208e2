"""Unit tests for the project and message repositories."""

import pytest

from appforge.storage.messages import MessageRepository
from appforge.storage.models import MessageRole, MessageType
from appforge.storage.projects import ProjectNotFoundError, ProjectRepository
from appforge.storage.schemas import NewFragment


class TestProjectRepository:
    """Tests for ProjectRepository."""

    @pytest.mark.asyncio
    async def test_create_stores_first_message(self, database):
        """Test that a new project gets a slug name and the prompt as its first turn."""
        project = await ProjectRepository(database).create("build a counter", user_id="u1")

        assert len(project.name.split("-")) == 2
        messages = await MessageRepository(database).list_for_project(project.id)
        assert [(m.role, m.type, m.content) for m in messages] == [
            (MessageRole.USER, MessageType.RESULT, "build a counter")
        ]

    @pytest.mark.asyncio
    async def test_get_is_scoped_to_the_user(self, database):
        """Test that another user's project is not found."""
        repository = ProjectRepository(database)
        project = await repository.create("hello", user_id="u1")

        assert (await repository.get(project.id, user_id="u1")).id == project.id
        with pytest.raises(ProjectNotFoundError):
            await repository.get(project.id, user_id="u2")
        with pytest.raises(ProjectNotFoundError, match="missing-id"):
            await repository.get("missing-id")

    @pytest.mark.asyncio
    async def test_list_for_user(self, database):
        """Test that only the user's projects are listed."""
        repository = ProjectRepository(database)
        mine = await repository.create("one", user_id="u1")
        await repository.create("two", user_id="u2")

        assert [p.id for p in await repository.list_for_user("u1")] == [mine.id]


class TestMessageRepository:
    """Tests for MessageRepository."""

    @pytest.mark.asyncio
    async def test_find_recent_returns_oldest_first(self, database):
        """Test that the most recent turns are returned in chronological order."""
        project = await ProjectRepository(database).create("turn 0", user_id="u1")
        repository = MessageRepository(database)
        for i in range(1, 7):
            await repository.create(project.id, MessageRole.USER, MessageType.RESULT, f"turn {i}")

        recent = await repository.find_recent(project.id, limit=5)

        assert [m.content for m in recent] == [f"turn {i}" for i in range(2, 7)]

    @pytest.mark.asyncio
    async def test_create_with_fragment(self, database):
        """Test that a fragment is stored together with its message."""
        project = await ProjectRepository(database).create("hello", user_id="u1")
        fragment = NewFragment(
            sandbox_url="https://3000-sbx.test", title="Hello", files={"a.tsx": "a"}
        )

        message = await MessageRepository(database).create(
            project.id, MessageRole.ASSISTANT, MessageType.RESULT, "Done", fragment=fragment
        )

        assert message.fragment.title == "Hello"
        assert message.fragment.files == {"a.tsx": "a"}
        assert message.fragment.message_id == message.id
        stored = await MessageRepository(database).list_for_project(project.id)
        assert stored[-1].fragment.sandbox_url == "https://3000-sbx.test"

    @pytest.mark.asyncio
    async def test_error_turn_has_no_fragment(self, database):
        """Test that a message created without a fragment has none."""
        project = await ProjectRepository(database).create("hello", user_id="u1")

        message = await MessageRepository(database).create(
            project.id, MessageRole.ASSISTANT, MessageType.ERROR, "Something went wrong."
        )

        assert message.fragment is None
