"""Events that trigger background jobs."""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Event sent whenever a user submits a prompt for a project
CODE_AGENT_RUN = "code-agent/run"


class Event(BaseModel):
    """An event delivered to event-triggered jobs.

    Attributes:
        id: Event ID (UUID string)
        name: Event name, e.g. ``"code-agent/run"``
        data: Event payload
        created_at: Timestamp when the event was accepted
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CodeAgentRunData(BaseModel):
    """Payload of a ``code-agent/run`` event."""

    value: str
    project_id: str = Field(alias="projectId")

    model_config = ConfigDict(populate_by_name=True)
