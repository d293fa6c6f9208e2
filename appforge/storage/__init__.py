"""Relational storage for projects, conversation turns and fragments."""

from .database import Base, Database
from .files import files_to_tree
from .messages import MessageRepository
from .models import Fragment, Message, MessageRole, MessageType, Project, StepOutput, UsageRecord
from .projects import ProjectNotFoundError, ProjectRepository
from .schemas import FragmentRecord, MessageRecord, NewFragment, ProjectRecord

__all__ = [
    "Base",
    "Database",
    "Fragment",
    "FragmentRecord",
    "Message",
    "MessageRecord",
    "MessageRepository",
    "MessageRole",
    "MessageType",
    "NewFragment",
    "Project",
    "ProjectNotFoundError",
    "ProjectRecord",
    "ProjectRepository",
    "StepOutput",
    "UsageRecord",
    "files_to_tree",
]
