"""
Custom exception classes for the reminder worker.
Provides specific error types instead of generic exceptions.
"""


class ReminderError(Exception):
    """Base exception for the reminder worker."""

    pass


class ConfigurationError(ReminderError):
    """Raised when required configuration is missing or invalid."""

    pass


class DatabaseError(ReminderError):
    """Base exception for database operations."""

    pass


class NotificationError(ReminderError):
    """Raised when a notification cannot be delivered."""

    pass
