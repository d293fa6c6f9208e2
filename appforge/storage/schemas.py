"""Pydantic views of stored records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .files import TreeItem, files_to_tree
from .models import MessageRole, MessageType


class FragmentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    message_id: str
    sandbox_url: str
    title: str
    files: dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def file_tree(self) -> list[TreeItem]:
        return files_to_tree(self.files)


class MessageRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    role: MessageRole
    type: MessageType
    content: str
    created_at: datetime
    updated_at: datetime
    fragment: FragmentRecord | None = None


class ProjectRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    user_id: str | None = None
    created_at: datetime
    updated_at: datetime


class NewFragment(BaseModel):
    """Fragment data written together with an assistant turn."""

    sandbox_url: str
    title: str
    files: dict[str, str] = Field(default_factory=dict)
