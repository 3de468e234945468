"""Models describing composed reminders and tick outcomes."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReminderMessage(BaseModel):
    """A rendered reminder email."""

    to: str
    subject: str
    html: str
    text: str


class TickReport(BaseModel):
    """Outcome of a single reminder tick.

    `sent` counts reminders that were delivered and recorded. `unmarked`
    counts reminders that were delivered but whose attendance could not be
    marked notified; those attendees get the reminder again next tick.
    """

    started_at: datetime
    finished_at: Optional[datetime] = None
    workshops: int = Field(default=0, description="Workshops found in the window")
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    unmarked: int = 0
    skipped_busy: bool = Field(
        default=False, description="True when a previous tick was still running"
    )
