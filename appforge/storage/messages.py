"""Reads and writes of conversation turns."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .database import Database
from .models import Fragment, Message, MessageRole, MessageType
from .schemas import MessageRecord, NewFragment

logger = logging.getLogger(__name__)


class MessageRepository:
    """Append-only access to a project's conversation."""

    def __init__(self, database: Database):
        self.database = database

    async def find_recent(self, project_id: str, limit: int = 5) -> list[MessageRecord]:
        """Return the ``limit`` most recent turns of a project, oldest first."""
        async with self.database.session() as session:
            result = await session.execute(
                select(Message)
                .options(selectinload(Message.fragment))
                .where(Message.project_id == project_id)
                .order_by(Message.created_at.desc())
                .limit(limit)
            )
            rows = list(result.scalars().all())
        rows.reverse()
        return [MessageRecord.model_validate(row) for row in rows]

    async def list_for_project(self, project_id: str) -> list[MessageRecord]:
        """Return every turn of a project with its fragment, in update order."""
        async with self.database.session() as session:
            result = await session.execute(
                select(Message)
                .options(selectinload(Message.fragment))
                .where(Message.project_id == project_id)
                .order_by(Message.updated_at.asc())
            )
            return [MessageRecord.model_validate(row) for row in result.scalars().all()]

    async def create(
        self,
        project_id: str,
        role: MessageRole,
        type: MessageType,
        content: str,
        fragment: NewFragment | None = None,
    ) -> MessageRecord:
        """Append a turn, and its fragment when given, in a single transaction."""
        async with self.database.session() as session:
            async with session.begin():
                message = Message(project_id=project_id, role=role, type=type, content=content)
                if fragment is not None:
                    message.fragment = Fragment(
                        sandbox_url=fragment.sandbox_url,
                        title=fragment.title,
                        files=dict(fragment.files),
                    )
                session.add(message)
            await session.refresh(message, attribute_names=["fragment"])
            record = MessageRecord.model_validate(message)

        logger.info(
            "Stored %s/%s message %s for project %s",
            role.value,
            type.value,
            record.id,
            project_id,
        )
        return record
