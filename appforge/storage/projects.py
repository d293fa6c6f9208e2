"""Reads and writes of projects."""

import logging

from sqlalchemy import select

from ..utils.slugs import generate_slug
from .database import Database
from .models import Message, MessageRole, MessageType, Project
from .schemas import ProjectRecord

logger = logging.getLogger(__name__)


class ProjectNotFoundError(Exception):
    """Raised when a project id does not exist (or is not visible to the caller)."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class ProjectRepository:
    def __init__(self, database: Database):
        self.database = database

    async def create(self, prompt: str, user_id: str | None = None) -> ProjectRecord:
        """Create a project named by a random slug, together with its first user turn."""
        async with self.database.session() as session:
            async with session.begin():
                project = Project(name=generate_slug(2), user_id=user_id)
                project.messages.append(
                    Message(role=MessageRole.USER, type=MessageType.RESULT, content=prompt)
                )
                session.add(project)
            record = ProjectRecord.model_validate(project)
        logger.info("Created project %s (%s)", record.id, record.name)
        return record

    async def get(self, project_id: str, user_id: str | None = None) -> ProjectRecord:
        """Fetch a project.

        Raises:
            ProjectNotFoundError: If the project does not exist or belongs to another user
        """
        async with self.database.session() as session:
            query = select(Project).where(Project.id == project_id)
            if user_id is not None:
                query = query.where(Project.user_id == user_id)
            project = (await session.execute(query)).scalar_one_or_none()
            if project is None:
                raise ProjectNotFoundError(project_id)
            return ProjectRecord.model_validate(project)

    async def list_for_user(self, user_id: str | None = None) -> list[ProjectRecord]:
        async with self.database.session() as session:
            query = select(Project).order_by(Project.updated_at.asc())
            if user_id is not None:
                query = query.where(Project.user_id == user_id)
            result = await session.execute(query)
            return [ProjectRecord.model_validate(p) for p in result.scalars().all()]
