"""Attendance models for workshop registrations."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Attendance(BaseModel):
    """A user's registration for a workshop.

    `notified` flips from False to True once, after the reminder was sent.
    """

    id: str
    workshop_id: str = Field(..., description="Workshop ID (Supabase UUID)")
    user_id: str = Field(..., description="User ID (Supabase UUID)")
    notified: bool = Field(default=False)
    notified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
