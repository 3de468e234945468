"""Task scheduler for workshop reminders."""

from .reminders import WorkshopReminderService, setup_scheduler, shutdown_scheduler

__all__ = ["WorkshopReminderService", "setup_scheduler", "shutdown_scheduler"]
