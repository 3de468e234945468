"""
Supabase database client for the reminder worker.
Reads workshops, attendances and user profiles, and flips the `notified`
flag on attendances.

Tables used:
- workshops (id, title, scheduled_at, duration, instructor_id, meet_url)
- instructors (id, user_id)
- users (id, first_name, last_name, email)
- attendances (id, workshop_id, user_id, notified, notified_at)

This client uses the service key which bypasses RLS; it only ever updates
attendances.notified and attendances.notified_at.

The supabase-py client is synchronous, so every request runs in a worker
thread. Rows that fail validation are logged and skipped one by one.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from models.attendance import Attendance
from models.user import UserProfile
from models.workshop import Workshop
from utils.datetime_utils import parse_iso_datetime, to_iso_string, utc_now
from utils.exceptions import DatabaseError
from utils.logging_config import setup_logging

logger = setup_logging(name=__name__, log_file="db.log", log_dir="logs")

USER_COLUMNS = "id, first_name, last_name, email"

T = TypeVar("T")


class SupabaseClient:
    """Supabase database client wrapper."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self.client: SupabaseClientType = create_client(
            url or settings.supabase_url, key or settings.supabase_key
        )

    async def _execute(self, query) -> Any:
        """Run a built PostgREST query without blocking the event loop."""
        return await asyncio.to_thread(query.execute)

    # ========== Workshop Operations ==========

    async def list_workshops_starting_between(
        self, start: datetime, end: datetime
    ) -> List[Workshop]:
        """
        Get workshops with start <= scheduled_at < end.

        Args:
            start: Inclusive lower bound
            end: Exclusive upper bound

        Returns:
            Valid workshops ordered by start time; malformed rows are skipped
        """
        try:
            response = await self._execute(
                self.client.table("workshops")
                .select("*")
                .gte("scheduled_at", to_iso_string(start))
                .lt("scheduled_at", to_iso_string(end))
                .order("scheduled_at", desc=False)
            )
        except Exception as e:
            raise DatabaseError(f"Failed to list upcoming workshops: {e}") from e

        return self._parse_rows(response.data, self._parse_workshop, "workshop")

    # ========== Attendance Operations ==========

    async def list_unnotified_attendances(self, workshop_id: str) -> List[Attendance]:
        """Get attendances of a workshop that have not been reminded yet."""
        try:
            response = await self._execute(
                self.client.table("attendances")
                .select("*")
                .eq("workshop_id", workshop_id)
                .eq("notified", False)
            )
        except Exception as e:
            raise DatabaseError(
                f"Failed to list attendances for workshop {workshop_id}: {e}"
            ) from e

        return self._parse_rows(response.data, self._parse_attendance, "attendance")

    async def mark_notified(self, attendance_id: str) -> bool:
        """
        Set notified = true for an attendance that is still unnotified.

        The update is filtered on notified = false, so when several workers
        race only one of them flips the row.

        Returns:
            True if this call flipped the flag, False if it was already set
            or the row no longer exists
        """
        try:
            response = await self._execute(
                self.client.table("attendances")
                .update({"notified": True, "notified_at": to_iso_string(utc_now())})
                .eq("id", attendance_id)
                .eq("notified", False)
            )
        except Exception as e:
            raise DatabaseError(
                f"Failed to mark attendance {attendance_id} as notified: {e}"
            ) from e

        return bool(response.data)

    # ========== User Operations ==========

    async def get_instructor_profile(self, instructor_id: str) -> Optional[UserProfile]:
        """Resolve an instructor ID to the user profile behind it."""
        try:
            response = await self._execute(
                self.client.table("instructors")
                .select("id, user_id")
                .eq("id", instructor_id)
            )
            if not response.data or not response.data[0].get("user_id"):
                return None

            user_id = response.data[0]["user_id"]
            response = await self._execute(
                self.client.table("users")
                .select(USER_COLUMNS)
                .eq("id", user_id)
            )
        except Exception as e:
            raise DatabaseError(
                f"Failed to get instructor {instructor_id}: {e}"
            ) from e

        users = self._parse_rows(response.data, UserProfile.model_validate, "user")
        return users[0] if users else None

    async def get_users_by_ids(self, user_ids: List[str]) -> Dict[str, UserProfile]:
        """
        Batch fetch user profiles.

        Returns:
            Dictionary mapping user_id -> UserProfile
        """
        if not user_ids:
            return {}

        try:
            response = await self._execute(
                self.client.table("users")
                .select(USER_COLUMNS)
                .in_("id", list(user_ids))
            )
        except Exception as e:
            raise DatabaseError(f"Failed to get users by IDs: {e}") from e

        users = self._parse_rows(response.data, UserProfile.model_validate, "user")
        return {user.id: user for user in users}

    # ========== Helper Methods ==========

    def _parse_rows(
        self, rows: List[dict], parse: Callable[[dict], T], kind: str
    ) -> List[T]:
        parsed = []
        for item in rows:
            try:
                parsed.append(parse(item))
            except ValueError as e:
                # pydantic.ValidationError is a ValueError
                logger.warning(f"Skipping malformed {kind} row {item.get('id')!r}: {e}")
        return parsed

    def _parse_workshop(self, item: dict) -> Workshop:
        item = item.copy()
        for field in ["scheduled_at", "created_at", "updated_at"]:
            if isinstance(item.get(field), str):
                item[field] = parse_iso_datetime(item[field])
        return Workshop(**item)

    def _parse_attendance(self, item: dict) -> Attendance:
        item = item.copy()
        for field in ["notified_at", "created_at"]:
            if isinstance(item.get(field), str):
                item[field] = parse_iso_datetime(item[field])
        return Attendance(**item)


# Global database client instance
_db_client: Optional[SupabaseClient] = None


def get_db_client() -> SupabaseClient:
    """Get or create database client instance."""
    global _db_client
    if _db_client is None:
        _db_client = SupabaseClient()
    return _db_client
