"""Workshop models for scheduled live sessions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Workshop(BaseModel):
    """Workshop session model."""

    id: str
    title: str
    scheduled_at: datetime = Field(..., description="Start time (timezone-aware)")
    duration: int = Field(..., ge=0, description="Duration in minutes")
    instructor_id: Optional[str] = Field(
        default=None, description="Instructor ID (organizer reference)"
    )
    meet_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "uuid-here",
                "title": "Intro to APIs",
                "scheduled_at": "2026-01-15T10:00:00+00:00",
                "duration": 60,
                "instructor_id": "uuid-here",
                "meet_url": "https://meet.google.com/abc-defg-hij",
            }
        }
