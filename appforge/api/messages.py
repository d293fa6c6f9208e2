"""Message routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from ..features.events import CODE_AGENT_RUN
from ..runtime.worker import Worker
from ..storage.database import Database
from ..storage.messages import MessageRepository
from ..storage.models import MessageRole, MessageType
from ..storage.projects import ProjectNotFoundError, ProjectRepository
from ..storage.schemas import MessageRecord
from ..utils.config import Settings
from .deps import consume_credit, get_database, get_plan, get_settings, get_worker, require_user

router = APIRouter(prefix="/messages", tags=["Messages"])


class CreateMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(min_length=1, max_length=10000, description="The user's prompt")
    project_id: str = Field(alias="projectId", min_length=1)


async def _ensure_project(database: Database, project_id: str, user_id: str) -> None:
    try:
        await ProjectRepository(database).get(project_id, user_id=user_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("", response_model=list[MessageRecord])
async def list_messages(
    project_id: str = Query(alias="projectId", min_length=1),
    user_id: str = Depends(require_user),
    database: Database = Depends(get_database),
):
    """Return the project's conversation with fragments, oldest first."""
    await _ensure_project(database, project_id, user_id)
    return await MessageRepository(database).list_for_project(project_id)


@router.post("", response_model=MessageRecord, status_code=status.HTTP_201_CREATED)
async def create_message(
    data: CreateMessageRequest,
    user_id: str = Depends(require_user),
    plan: str = Depends(get_plan),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
    worker: Worker = Depends(get_worker),
):
    """Store a follow-up prompt and start generating."""
    await _ensure_project(database, data.project_id, user_id)
    # Credits are only spent once the project is known to exist
    await consume_credit(user_id=user_id, plan=plan, database=database, settings=settings)
    message = await MessageRepository(database).create(
        data.project_id, MessageRole.USER, MessageType.RESULT, data.value
    )
    await worker.send_event(CODE_AGENT_RUN, {"value": data.value, "projectId": data.project_id})
    return message
