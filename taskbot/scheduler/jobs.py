"""
Scheduler manager for automated jobs.

Handles:
- Deadline reminders (hourly, at settings.reminder_minute)
"""

import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
import pytz

from config import settings
from .reminders import ReminderService, get_reminder_service

logger = logging.getLogger(__name__)


class SchedulerManager:
    """
    Manages the scheduled jobs of the bot.
    """

    def __init__(self, reminders: Optional[ReminderService] = None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.timezone = pytz.timezone(settings.timezone)
        self.reminders = reminders or get_reminder_service()

    def start(self) -> None:
        """Start the scheduler with all jobs."""
        self.scheduler = AsyncIOScheduler(timezone=self.timezone)

        # Deadline reminders every hour
        self.scheduler.add_job(
            self._deadline_reminder_job,
            CronTrigger(
                minute=settings.reminder_minute,
                timezone=self.timezone
            ),
            id="deadline_reminders",
            name="Deadline Reminders",
            replace_existing=True
        )

        self.scheduler.start()
        logger.info("Scheduler started with all jobs")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self.scheduler:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    async def _deadline_reminder_job(self) -> None:
        """Check and send deadline reminders."""
        try:
            count = await self.reminders.sweep()
            if count > 0:
                logger.info(f"Deadline reminder job sent {count} messages")

        except Exception as e:
            logger.error(f"Error in deadline reminder job: {e}", exc_info=True)

    def get_job_status(self) -> dict:
        """Get status of all scheduled jobs."""
        if not self.scheduler:
            return {}

        jobs = {}
        for job in self.scheduler.get_jobs():
            jobs[job.id] = {
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            }

        return jobs


_scheduler_manager: Optional[SchedulerManager] = None


def get_scheduler_manager() -> SchedulerManager:
    """Get the scheduler manager instance."""
    global _scheduler_manager
    if _scheduler_manager is None:
        _scheduler_manager = SchedulerManager()
    return _scheduler_manager
