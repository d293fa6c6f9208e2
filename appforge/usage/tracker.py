"""Per-user generation credits over a fixed time window."""

import logging
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel

from ..storage.database import Database
from ..storage.models import UsageRecord
from ..utils.config import Settings

logger = logging.getLogger(__name__)

FREE_PLAN = "free"
PRO_PLAN = "pro"


class UsageStatus(BaseModel):
    """Credits of one user in the current window."""

    remaining_points: int
    ms_before_next: int
    consumed_points: int


class RateLimitExceeded(Exception):
    """Raised when a consumption would go past the user's budget."""

    def __init__(self, status: UsageStatus):
        self.status = status
        super().__init__(
            f"Usage budget exhausted; resets in {status.ms_before_next // 1000} seconds"
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UsageTracker:
    """
    Fixed-window point budget persisted in the ``usage`` table.

    The window opens at a user's first consumption and lasts ``duration_seconds``. When it has
    elapsed the next consumption opens a new window with the full budget.
    """

    def __init__(self, database: Database, points: int, duration_seconds: int):
        if points < 0:
            raise ValueError("points must not be negative")
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")
        self.database = database
        self.points = points
        self.duration = timedelta(seconds=duration_seconds)

    def _status(self, consumed: int, expire_at: datetime, now: datetime) -> UsageStatus:
        return UsageStatus(
            remaining_points=max(self.points - consumed, 0),
            ms_before_next=max(int((expire_at - now).total_seconds() * 1000), 0),
            consumed_points=consumed,
        )

    async def consume(self, user_id: str, cost: int = 1) -> UsageStatus:
        """Spend ``cost`` points of the user's budget.

        Raises:
            RateLimitExceeded: If the budget cannot cover ``cost``; nothing is spent
        """
        if cost < 1:
            raise ValueError("cost must be at least 1")

        now = _utcnow()
        async with self.database.session() as session:
            async with session.begin():
                record = await session.get(UsageRecord, user_id, with_for_update=True)
                if record is None:
                    record = UsageRecord(key=user_id, points=0, expire_at=now + self.duration)
                    session.add(record)
                elif _as_utc(record.expire_at) is None or _as_utc(record.expire_at) <= now:
                    record.points = 0
                    record.expire_at = now + self.duration

                expire_at = _as_utc(record.expire_at)
                consumed = record.points + cost
                if consumed > self.points:
                    # Raising inside the transaction rolls it back
                    status = self._status(record.points, expire_at, now)
                    logger.info("User %s is out of credits (%d used)", user_id, record.points)
                    raise RateLimitExceeded(status)
                record.points = consumed

        return self._status(consumed, expire_at, now)

    async def get(self, user_id: str) -> UsageStatus | None:
        """Return the user's status in the current window, or None when no window is open."""
        now = _utcnow()
        async with self.database.session() as session:
            record = await session.get(UsageRecord, user_id)
            if record is None:
                return None
            expire_at = _as_utc(record.expire_at)
            if expire_at is None or expire_at <= now:
                return None
            return self._status(record.points, expire_at, now)


def get_usage_tracker(
    database: Database, settings: Settings | None = None, plan: str = FREE_PLAN
) -> UsageTracker:
    """Build the tracker for a plan (``"free"`` or ``"pro"``)."""
    settings = settings or Settings()
    points = settings.pro_points if plan == PRO_PLAN else settings.free_points
    return UsageTracker(database, points=points, duration_seconds=settings.usage_duration_seconds)
