import pytest
from unittest.mock import AsyncMock
from session.scheduler import TokenExpiryScheduler


@pytest.mark.asyncio
async def test_scheduler_initialization():
    scheduler = TokenExpiryScheduler(AsyncMock(), interval_seconds=60)
    assert scheduler.scheduler is not None
    assert scheduler.interval_seconds == 60
    assert not scheduler.active


@pytest.mark.asyncio
async def test_restart_keeps_single_job():
    scheduler = TokenExpiryScheduler(AsyncMock(), interval_seconds=60)

    scheduler.start()
    scheduler.start()

    jobs = scheduler.scheduler.get_jobs()
    assert len(jobs) == 1
    assert jobs[0].id == TokenExpiryScheduler.JOB_ID
    assert jobs[0].trigger.interval.total_seconds() == 60

    scheduler.shutdown()


@pytest.mark.asyncio
async def test_stop_removes_job():
    scheduler = TokenExpiryScheduler(AsyncMock(), interval_seconds=60)
    scheduler.start()

    scheduler.stop()
    scheduler.stop()

    assert not scheduler.active
    scheduler.shutdown()


@pytest.mark.asyncio
async def test_stop_before_start_is_noop():
    scheduler = TokenExpiryScheduler(AsyncMock())
    scheduler.stop()
    assert not scheduler.active
