"""Unit tests for appforge.usage.tracker module."""

from datetime import datetime, timedelta, timezone

import pytest

from appforge.storage.models import UsageRecord
from appforge.usage.tracker import (
    PRO_PLAN,
    RateLimitExceeded,
    UsageTracker,
    get_usage_tracker,
)
from appforge.utils.config import Settings


@pytest.fixture
def tracker(database):
    return UsageTracker(database, points=2, duration_seconds=3600)


class TestUsageTracker:
    """Tests for UsageTracker."""

    @pytest.mark.asyncio
    async def test_consume_until_exhausted(self, tracker):
        """Test that consumption stops once the budget is spent."""
        first = await tracker.consume("u1")
        second = await tracker.consume("u1")

        assert first.remaining_points == 1
        assert second.remaining_points == 0
        assert second.consumed_points == 2
        with pytest.raises(RateLimitExceeded) as exc_info:
            await tracker.consume("u1")
        assert exc_info.value.status.remaining_points == 0
        assert 0 < exc_info.value.status.ms_before_next <= 3600 * 1000

    @pytest.mark.asyncio
    async def test_rejection_spends_nothing(self, tracker):
        """Test that a rejected consumption leaves the stored points unchanged."""
        await tracker.consume("u1", cost=2)
        with pytest.raises(RateLimitExceeded):
            await tracker.consume("u1")

        status = await tracker.get("u1")
        assert status.consumed_points == 2

    @pytest.mark.asyncio
    async def test_users_are_independent(self, tracker):
        """Test that budgets are tracked per user."""
        await tracker.consume("u1", cost=2)
        status = await tracker.consume("u2")
        assert status.remaining_points == 1

    @pytest.mark.asyncio
    async def test_get_without_window(self, tracker):
        """Test that a user who never consumed has no status."""
        assert await tracker.get("nobody") is None

    @pytest.mark.asyncio
    async def test_expired_window_resets(self, tracker, database):
        """Test that a consumption after the window opens a new full window."""
        await tracker.consume("u1", cost=2)
        async with database.session() as session:
            async with session.begin():
                record = await session.get(UsageRecord, "u1")
                record.expire_at = datetime.now(timezone.utc) - timedelta(seconds=1)

        assert await tracker.get("u1") is None
        status = await tracker.consume("u1")
        assert status.consumed_points == 1
        assert status.remaining_points == 1

    @pytest.mark.asyncio
    async def test_invalid_cost(self, tracker):
        """Test that cost must be positive."""
        with pytest.raises(ValueError):
            await tracker.consume("u1", cost=0)


class TestGetUsageTracker:
    """Tests for get_usage_tracker."""

    def test_plan_budgets(self, database):
        """Test that the plan selects the budget."""
        settings = Settings(free_points=3, pro_points=100)
        assert get_usage_tracker(database, settings).points == 3
        assert get_usage_tracker(database, settings, plan=PRO_PLAN).points == 100
