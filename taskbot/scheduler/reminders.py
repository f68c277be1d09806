"""
Reminder service for deadline notifications.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from ..database.repositories import get_task_repository
from ..utils.datetime_utils import get_local_now
from ..utils.formatters import ReminderBucket, format_deadline_reminder, reminder_bucket

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Sends deadline reminders to assignees.

    Each sweep puts every active task with a deadline into a bucket
    (overdue, within an hour, within 3 hours, within a day) and messages
    the assignee. A task is reminded once per bucket.
    """

    def __init__(self, transport=None):
        self.transport = transport
        self.task_repo = get_task_repository()
        # {task_id: last bucket reminded}
        self._reminded: Dict[str, ReminderBucket] = {}

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """Send due reminders. Returns the number of messages sent."""
        if self.transport is None:
            logger.warning("Reminder sweep skipped: no chat transport")
            return 0

        now = now or get_local_now()
        tasks = await self.task_repo.list_active_with_deadline()
        sent = 0

        for task in tasks:
            bucket = reminder_bucket(task.deadline, now)
            if bucket is None or not task.assignee_telegram_id:
                continue
            if self._reminded.get(task.id) == bucket:
                continue

            try:
                await self.transport.send_message(
                    task.assignee_telegram_id,
                    format_deadline_reminder(task, bucket, now),
                )
                self._reminded[task.id] = bucket
                sent += 1
            except Exception as e:
                logger.error(f"Reminder for task {task.id} failed: {e}")

        # Forget tasks that left the active set
        active_ids = {task.id for task in tasks}
        for task_id in list(self._reminded):
            if task_id not in active_ids:
                del self._reminded[task_id]

        if sent:
            logger.info(f"Sent {sent} deadline reminders")
        return sent


_reminder_service: Optional[ReminderService] = None


def get_reminder_service(transport=None) -> ReminderService:
    """Get the reminder service; the first call with a transport binds it."""
    global _reminder_service
    if _reminder_service is None:
        _reminder_service = ReminderService(transport)
    elif transport is not None:
        _reminder_service.transport = transport
    return _reminder_service
