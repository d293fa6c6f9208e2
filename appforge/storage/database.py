"""Async database engine and session factory."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the async engine and hands out sessions.

    In-memory SQLite URLs share a single connection so every session sees the same data.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs: dict = {"echo": echo}
        if url.startswith("sqlite") and ":memory:" in url:
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    def session(self) -> AsyncSession:
        """Open a new session; use it as an async context manager."""
        return self.session_factory()

    async def create_all(self) -> None:
        """Create every table that does not exist yet."""
        # Register the models on Base.metadata before creating tables
        from . import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database schema ready at %s", self.engine.url.render_as_string(hide_password=True)
        )

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
