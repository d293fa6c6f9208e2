"""Usage routes."""

from fastapi import APIRouter, Depends

from ..storage.database import Database
from ..usage.tracker import UsageStatus, get_usage_tracker
from ..utils.config import Settings
from .deps import get_database, get_plan, get_settings, require_user

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get("/status", response_model=UsageStatus | None)
async def usage_status(
    user_id: str = Depends(require_user),
    plan: str = Depends(get_plan),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
):
    """Return the caller's remaining credits, or null before the first generation."""
    return await get_usage_tracker(database, settings, plan).get(user_id)
