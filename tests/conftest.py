"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from config import Settings
from models.attendance import Attendance
from models.user import UserProfile
from models.workshop import Workshop
from utils.exceptions import NotificationError


class FakeStore:
    """In-memory stand-in for the Supabase session store."""

    def __init__(self):
        self.workshops = {}
        self.attendances = {}
        self.users = {}
        self.instructors = {}  # instructor_id -> user_id
        self.window_queries = []
        self.attendance_queries = []
        self.mark_calls = []

    def add_workshop(self, workshop: Workshop) -> Workshop:
        self.workshops[workshop.id] = workshop
        return workshop

    def add_user(self, user_id: str, first_name: str, last_name: str, email):
        self.users[user_id] = UserProfile(
            id=user_id, first_name=first_name, last_name=last_name, email=email
        )

    def add_instructor(self, instructor_id: str, user_id: str):
        self.instructors[instructor_id] = user_id

    def register(self, attendance_id: str, workshop_id: str, user_id: str, notified=False):
        attendance = Attendance(
            id=attendance_id, workshop_id=workshop_id, user_id=user_id, notified=notified
        )
        self.attendances[attendance_id] = attendance
        return attendance

    async def list_workshops_starting_between(self, start, end):
        self.window_queries.append((start, end))
        return sorted(
            (w for w in self.workshops.values() if start <= w.scheduled_at < end),
            key=lambda w: w.scheduled_at,
        )

    async def list_unnotified_attendances(self, workshop_id):
        self.attendance_queries.append(workshop_id)
        return [
            a.model_copy()
            for a in self.attendances.values()
            if a.workshop_id == workshop_id and not a.notified
        ]

    async def get_instructor_profile(self, instructor_id):
        user_id = self.instructors.get(instructor_id)
        return self.users.get(user_id) if user_id else None

    async def get_users_by_ids(self, user_ids):
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}

    async def mark_notified(self, attendance_id):
        self.mark_calls.append(attendance_id)
        attendance = self.attendances.get(attendance_id)
        if attendance is None or attendance.notified:
            return False
        attendance.notified = True
        return True


class FakeSender:
    """Records reminders; raises NotificationError for addresses in fail_for."""

    def __init__(self):
        self.calls = []
        self.fail_for = set()

    async def send_reminder(
        self, address, workshop_title, instructor_name, start_time, duration, meet_url=None
    ):
        self.calls.append(
            {
                "address": address,
                "workshop_title": workshop_title,
                "instructor_name": instructor_name,
                "start_time": start_time,
                "duration": duration,
                "meet_url": meet_url,
            }
        )
        if address in self.fail_for:
            raise NotificationError(f"SMTP rejected {address}")

    def addresses(self):
        return [call["address"] for call in self.calls]


@pytest.fixture
def now():
    """Fixed tick time."""
    return datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now):
    """Mutable clock: set clock.current to move time."""
    fake = MagicMock()
    fake.current = now
    fake.side_effect = lambda: fake.current
    return fake


@pytest.fixture
def store(now):
    """Store with one instructor and a workshop starting in five minutes."""
    fake = FakeStore()
    fake.add_user("user_instructor", "Ada", "Lovelace", "ada@gradestack.dev")
    fake.add_instructor("instructor_1", "user_instructor")
    fake.add_workshop(
        Workshop(
            id="workshop_1",
            title="Intro to APIs",
            scheduled_at=now + timedelta(minutes=5),
            duration=60,
            instructor_id="instructor_1",
            meet_url="https://meet.google.com/abc-defg-hij",
        )
    )
    return fake


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def test_settings():
    """Fully configured settings, independent of the environment."""
    return Settings(
        _env_file=None,
        supabase_url="https://test.supabase.co",
        supabase_key="test_key",
        smtp_host="smtp.test.dev",
        smtp_port=587,
        smtp_secure=False,
        smtp_user="reminders@gradestack.dev",
        smtp_password="secret",
        reminder_lookahead_minutes=10,
        reminder_interval_minutes=1,
        timezone="UTC",
    )


@pytest.fixture
def mock_settings(test_settings):
    """Patch the settings object the scheduler module reads."""
    with patch("scheduler.reminders.settings", test_settings):
        yield test_settings


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table
