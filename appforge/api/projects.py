"""Project routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..features.events import CODE_AGENT_RUN
from ..runtime.worker import Worker
from ..storage.database import Database
from ..storage.projects import ProjectNotFoundError, ProjectRepository
from ..storage.schemas import ProjectRecord
from ..utils.config import Settings
from .deps import consume_credit, get_database, get_plan, get_settings, get_worker, require_user

router = APIRouter(prefix="/projects", tags=["Projects"])


class CreateProjectRequest(BaseModel):
    value: str = Field(min_length=1, max_length=10000, description="The user's prompt")


@router.post("", response_model=ProjectRecord, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: CreateProjectRequest,
    user_id: str = Depends(require_user),
    plan: str = Depends(get_plan),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
    worker: Worker = Depends(get_worker),
):
    """Create a project with the prompt as its first message and start generating."""
    await consume_credit(user_id=user_id, plan=plan, database=database, settings=settings)
    project = await ProjectRepository(database).create(data.value, user_id=user_id)
    await worker.send_event(CODE_AGENT_RUN, {"value": data.value, "projectId": project.id})
    return project


@router.get("", response_model=list[ProjectRecord])
async def list_projects(
    user_id: str = Depends(require_user), database: Database = Depends(get_database)
):
    return await ProjectRepository(database).list_for_user(user_id)


@router.get("/{project_id}", response_model=ProjectRecord)
async def get_project(
    project_id: str,
    user_id: str = Depends(require_user),
    database: Database = Depends(get_database),
):
    try:
        return await ProjectRepository(database).get(project_id, user_id=user_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
