"""SQLAlchemy ORM models for projects, conversation turns, fragments, steps and usage."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, enum.Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"


class MessageType(str, enum.Enum):
    RESULT = "RESULT"
    ERROR = "ERROR"


class Project(Base):
    """A named workspace holding one conversation."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    user_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    messages = relationship(
        "Message", back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )


class Message(Base):
    """One conversation turn. Append-only."""

    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(Enum(MessageRole, name="message_role"), nullable=False)
    type = Column(Enum(MessageType, name="message_type"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    project = relationship("Project", back_populates="messages")
    fragment = relationship(
        "Fragment", back_populates="message", uselist=False, cascade="all, delete-orphan"
    )


class Fragment(Base):
    """Generated artefact bundle tied 1:1 to a successful assistant turn."""

    __tablename__ = "fragments"

    id = Column(String(36), primary_key=True, default=_uuid)
    message_id = Column(
        String(36),
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    sandbox_url = Column(Text, nullable=False)
    title = Column(String(255), nullable=False)
    files = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    message = relationship("Message", back_populates="fragment")


class StepOutput(Base):
    """Memoized output of one durable step."""

    __tablename__ = "step_outputs"
    __table_args__ = (UniqueConstraint("execution_id", "step_key", name="uq_step_outputs_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    execution_id = Column(String(64), nullable=False, index=True)
    step_key = Column(String(512), nullable=False)
    outputs = Column(JSON, nullable=True)
    output_schema_name = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class UsageRecord(Base):
    """Points consumed by one user in the current quota window."""

    __tablename__ = "usage"

    key = Column(String(255), primary_key=True)
    points = Column(Integer, nullable=False, default=0)
    expire_at = Column(DateTime(timezone=True), nullable=True)
