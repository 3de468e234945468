"""
Scheduler for workshop reminders using APScheduler.

Every tick looks for workshops starting within the lookahead window and
emails each attendee that has not been reminded yet. The attendance is marked
notified right after its email goes out, so a crash between the two steps can
at worst repeat a single email (at-least-once delivery).
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from models.attendance import Attendance
from models.reminder import TickReport
from models.user import UserProfile
from models.workshop import Workshop
from utils.datetime_utils import utc_now
from utils.exceptions import DatabaseError, NotificationError
from utils.logging_config import setup_logging
from utils.validation import validate_email

logger = setup_logging(
    name=__name__, log_file="reminders.log", log_dir="logs"
)

JOB_ID = "check_workshop_reminders"


class WorkshopReminderService:
    """
    Periodic reminder dispatch for upcoming workshops.

    Args:
        db: Session store (see db.SupabaseClient)
        sender: Notification sender (see notifications.EmailSender)
        lookahead_minutes: Size of the [now, now + lookahead) window
        interval_minutes: Period between ticks
        clock: Returns the current timezone-aware time
    """

    def __init__(
        self,
        db,
        sender,
        lookahead_minutes: int = 10,
        interval_minutes: int = 1,
        clock: Callable[[], datetime] = utc_now,
    ):
        if lookahead_minutes <= 0:
            raise ValueError("lookahead_minutes must be positive")
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        self.db = db
        self.sender = sender
        self.lookahead = timedelta(minutes=lookahead_minutes)
        self.interval_minutes = interval_minutes
        self.clock = clock

        self._lock = asyncio.Lock()
        self._scheduler: Optional[AsyncIOScheduler] = None

    # ========== Lifecycle ==========

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self, scheduler: Optional[AsyncIOScheduler] = None) -> None:
        """Register the tick job and start the scheduler. Must run inside an event loop."""
        if self.is_running:
            return

        self._scheduler = scheduler or AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_tick,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name="Check and send workshop reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            f"Workshop reminder scheduler started "
            f"(every {self.interval_minutes} min, lookahead {self.lookahead})"
        )

    def shutdown(self) -> None:
        """Stop the scheduler. Safe to call more than once."""
        if self._scheduler is None:
            return

        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Workshop reminder scheduler stopped")

    # ========== Tick ==========

    async def run_tick(self) -> TickReport:
        """
        Run one reminder pass.

        Ticks never overlap: if the previous tick still holds the lock this one
        is dropped. Errors are logged and never escape.
        """
        now = self.clock()
        report = TickReport(started_at=now)

        if self._lock.locked():
            logger.warning("Previous reminder tick still running, skipping this one")
            report.skipped_busy = True
            report.finished_at = now
            return report

        async with self._lock:
            try:
                await self._process_window(now, report)
            except Exception as e:
                logger.error(f"Unexpected error checking workshop reminders: {e}", exc_info=True)

        report.finished_at = self.clock()
        if report.workshops:
            logger.info(
                f"Reminder tick complete: {report.workshops} workshops, "
                f"{report.sent} sent, {report.failed} failed, {report.skipped} skipped, "
                f"{report.unmarked} sent but unmarked"
            )
        return report

    async def _process_window(self, now: datetime, report: TickReport) -> None:
        window_end = now + self.lookahead

        try:
            workshops = await self.db.list_workshops_starting_between(now, window_end)
        except DatabaseError as e:
            logger.error(f"Database error fetching upcoming workshops: {e}", exc_info=True)
            return

        if not workshops:
            logger.debug("No workshops starting in the reminder window")
            return

        report.workshops = len(workshops)
        for workshop in workshops:
            try:
                await self._process_workshop(workshop, report)
            except DatabaseError as e:
                logger.error(
                    f"Database error processing workshop {workshop.id}: {e}", exc_info=True
                )
            except Exception as e:
                logger.error(
                    f"Unexpected error processing workshop {workshop.id}: {e}", exc_info=True
                )

    async def _process_workshop(self, workshop: Workshop, report: TickReport) -> None:
        instructor = None
        if workshop.instructor_id:
            instructor = await self.db.get_instructor_profile(workshop.instructor_id)
        if instructor is None or not instructor.display_name:
            logger.warning(f"Workshop {workshop.id} has no valid instructor, skipping")
            return

        attendances = await self.db.list_unnotified_attendances(workshop.id)
        if not attendances:
            logger.debug(f"Workshop {workshop.id} has no attendees left to notify")
            return

        users = await self.db.get_users_by_ids(list({a.user_id for a in attendances}))

        if not workshop.meet_url:
            logger.info(f'Workshop "{workshop.title}" has no meeting link; sending reminders without it')

        for attendance in attendances:
            await self._notify_attendee(workshop, instructor, attendance, users, report)

    async def _notify_attendee(
        self,
        workshop: Workshop,
        instructor: UserProfile,
        attendance: Attendance,
        users: Dict[str, UserProfile],
        report: TickReport,
    ) -> None:
        user = users.get(attendance.user_id)
        address = user.email.strip() if user and user.email else None
        if not validate_email(address):
            logger.warning(f"Attendance {attendance.id} has no valid email address, skipping")
            report.skipped += 1
            return

        try:
            await self.sender.send_reminder(
                address,
                workshop.title,
                instructor.display_name,
                workshop.scheduled_at,
                workshop.duration,
                workshop.meet_url or None,
            )
        except NotificationError as e:
            logger.error(f"Failed to send reminder for attendance {attendance.id}: {e}")
            report.failed += 1
            return
        except Exception as e:
            logger.error(
                f"Unexpected error sending reminder for attendance {attendance.id}: {e}",
                exc_info=True,
            )
            report.failed += 1
            return

        try:
            flipped = await self.db.mark_notified(attendance.id)
        except DatabaseError as e:
            # The email went out; the next tick will send it again
            logger.error(
                f"Reminder sent but attendance {attendance.id} not marked notified: {e}",
                exc_info=True,
            )
            report.unmarked += 1
            return

        report.sent += 1

        if not flipped:
            logger.warning(f"Attendance {attendance.id} was already marked notified")
        else:
            logger.info(f'Reminder sent to {address} for workshop "{workshop.title}"')


# Service instance - created via setup_scheduler
_service: Optional[WorkshopReminderService] = None


def setup_scheduler(db=None, sender=None) -> WorkshopReminderService:
    """
    Build the reminder service from settings and start it.

    Args:
        db: Optional session store; defaults to the shared Supabase client
        sender: Optional notification sender; defaults to an EmailSender

    Returns:
        The running service
    """
    global _service

    if db is None:
        from db import get_db_client

        db = get_db_client()
    if sender is None:
        from notifications import EmailSender

        sender = EmailSender(settings)

    if _service is not None:
        _service.shutdown()

    _service = WorkshopReminderService(
        db,
        sender,
        lookahead_minutes=settings.reminder_lookahead_minutes,
        interval_minutes=settings.reminder_interval_minutes,
    )
    _service.start()
    return _service


def shutdown_scheduler() -> None:
    """Shutdown the scheduler."""
    global _service

    if _service is not None:
        _service.shutdown()
        _service = None
