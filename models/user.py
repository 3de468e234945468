"""User profile models."""

from typing import Optional

from pydantic import BaseModel


class UserProfile(BaseModel):
    """Subset of the users table needed to address a reminder."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    # Kept as a raw string; rows with malformed addresses must still load
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts)
