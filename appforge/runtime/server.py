"""FastAPI application serving the API routers and the event endpoint."""

import copy
import logging
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from ..api import messages, projects, usage
from ..storage.database import Database
from ..utils.config import Settings
from .worker import Worker

logger = logging.getLogger(__name__)


class SendEventRequest(BaseModel):
    name: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


def create_app(worker: Worker, database: Database, settings: Settings) -> FastAPI:
    """Build the application. The worker and the database live as long as the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.create_all()
        await worker.start()
        try:
            yield
        finally:
            await worker.shutdown()
            await database.dispose()

    app = FastAPI(title="AppForge", lifespan=lifespan)
    app.state.worker = worker
    app.state.database = database
    app.state.settings = settings

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "current_executions": len(worker.executions),
            "max_concurrent_jobs": worker.max_concurrent_jobs,
        }

    @app.post("/events", status_code=status.HTTP_202_ACCEPTED)
    async def send_event(data: SendEventRequest):
        """Start every job triggered by the event."""
        try:
            handles = await worker.send_event(data.name, data.data)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        return {"executions": [handle.to_dict() for handle in handles]}

    @app.get("/executions/{execution_id}")
    async def get_execution(execution_id: str):
        handle = worker.get_execution(execution_id)
        if handle is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Execution not found: {execution_id}",
            )
        return handle.to_dict()

    app.include_router(projects.router)
    app.include_router(messages.router)
    app.include_router(usage.router)
    return app


def build_logging_config(level: str = "INFO", log_file: str | None = None) -> dict[str, Any]:
    """Uvicorn's logging config with application loggers routed to its default handler.

    With ``log_file`` every logger, uvicorn's included, writes to that file instead of the
    console.
    """
    from uvicorn.config import LOGGING_CONFIG

    logging_config = copy.deepcopy(LOGGING_CONFIG)
    # Configure root logger to capture all application logs
    logging_config["loggers"].setdefault("", {})
    logging_config["loggers"][""].update(
        {
            "handlers": ["default"],
            "level": level,
            "propagate": False,
        }
    )
    # Disable httpx HTTP request logs
    logging_config["loggers"]["httpx"] = {
        "handlers": ["default"],
        "level": "WARNING",
        "propagate": False,
    }
    if log_file:
        logging_config["formatters"]["file"] = {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        }
        logging_config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "formatter": "file",
            "filename": log_file,
            "mode": "a",
            "encoding": "utf-8",
        }
        for logger_config in logging_config["loggers"].values():
            if "handlers" in logger_config:
                logger_config["handlers"] = ["file"]
    return logging_config


async def serve(app: FastAPI, settings: Settings) -> None:
    """Run the application until the server is stopped."""
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
        log_config=build_logging_config(log_file=settings.log_file),
    )
    server = uvicorn.Server(config)
    logger.info("Serving on %s:%d", settings.host, settings.port)
    await server.serve()
