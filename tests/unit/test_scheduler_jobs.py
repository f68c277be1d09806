"""
Unit tests for scheduler jobs.

Tests for the scheduled background jobs:
- Deadline reminder job registration
- Job error containment
- Job status
"""
import pytest
from unittest.mock import AsyncMock

from config import settings
from taskbot.scheduler.jobs import SchedulerManager


@pytest.fixture
def scheduler_manager():
    """Create scheduler manager with a mocked reminder service."""
    reminders = AsyncMock()
    manager = SchedulerManager(reminders=reminders)
    return manager


@pytest.mark.asyncio
async def test_start_registers_deadline_job(scheduler_manager):
    """Reminders run hourly at the configured minute."""
    scheduler_manager.start()

    jobs = scheduler_manager.get_job_status()
    assert list(jobs) == ["deadline_reminders"]
    assert jobs["deadline_reminders"]["name"] == "Deadline Reminders"
    assert jobs["deadline_reminders"]["next_run"] is not None
    assert f"minute='{settings.reminder_minute}'" in jobs["deadline_reminders"]["trigger"]

    scheduler_manager.stop()


@pytest.mark.asyncio
async def test_deadline_reminder_success(scheduler_manager):
    scheduler_manager.reminders.sweep.return_value = 2

    await scheduler_manager._deadline_reminder_job()

    scheduler_manager.reminders.sweep.assert_awaited_once()


@pytest.mark.asyncio
async def test_deadline_reminder_failure(scheduler_manager):
    """A failing sweep is logged, never raised into the scheduler."""
    scheduler_manager.reminders.sweep.side_effect = Exception("DB error")

    await scheduler_manager._deadline_reminder_job()


def test_status_before_start(scheduler_manager):
    assert scheduler_manager.get_job_status() == {}


def test_stop_without_start(scheduler_manager):
    scheduler_manager.stop()
