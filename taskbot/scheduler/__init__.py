from .jobs import SchedulerManager, get_scheduler_manager
from .reminders import ReminderService, get_reminder_service

__all__ = [
    "SchedulerManager",
    "get_scheduler_manager",
    "ReminderService",
    "get_reminder_service",
]
