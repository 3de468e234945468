"""Outbound notifications (email reminders)."""

from .email import EmailSender, compose_workshop_reminder

__all__ = ["EmailSender", "compose_workshop_reminder"]
