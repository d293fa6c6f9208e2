"""Request-scoped dependencies shared by the API routers."""

import logging

from fastapi import Header, HTTPException, Request, status

from ..runtime.worker import Worker
from ..storage.database import Database
from ..usage.tracker import FREE_PLAN, PRO_PLAN, RateLimitExceeded, UsageStatus, get_usage_tracker
from ..utils.config import Settings

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "You must be logged in to access this resource"
OUT_OF_CREDITS_MESSAGE = "You have run out of credits"


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_worker(request: Request) -> Worker:
    return request.app.state.worker


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """Return the caller's user id; authentication happens upstream of this service."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED_MESSAGE)
    return x_user_id


def get_plan(x_user_plan: str | None = Header(default=None)) -> str:
    return PRO_PLAN if (x_user_plan or "").lower() == PRO_PLAN else FREE_PLAN


async def consume_credit(
    user_id: str, plan: str, database: Database, settings: Settings
) -> UsageStatus:
    """Spend one generation's worth of credits, or fail with 429.

    Handlers call this once the request body has validated.
    """
    tracker = get_usage_tracker(database, settings, plan)
    try:
        return await tracker.consume(user_id, settings.generation_cost)
    except RateLimitExceeded as e:
        logger.info("Rejected generation for %s: %s", user_id, e)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=OUT_OF_CREDITS_MESSAGE
        ) from e
