"""Pydantic models for data validation and serialization."""

from .attendance import Attendance
from .reminder import ReminderMessage, TickReport
from .user import UserProfile
from .workshop import Workshop

__all__ = [
    "Attendance",
    "ReminderMessage",
    "TickReport",
    "UserProfile",
    "Workshop",
]
