"""
Email delivery for workshop reminders.
Messages are sent over SMTP; the blocking smtplib calls run in a worker
thread so the scheduler's event loop stays free.
"""

import asyncio
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Optional

from config import Settings, settings as default_settings
from models.reminder import ReminderMessage
from utils.datetime_utils import format_local
from utils.exceptions import ConfigurationError, NotificationError
from utils.logging_config import setup_logging

logger = setup_logging(name=__name__, log_file="email.log", log_dir="logs")

SMTP_TIMEOUT_SECONDS = 30


def compose_workshop_reminder(
    to: str,
    workshop_title: str,
    instructor_name: str,
    start_time: datetime,
    duration: int,
    meet_url: Optional[str] = None,
    lookahead_minutes: int = 10,
    tz_name: str = "UTC",
) -> ReminderMessage:
    """
    Render the reminder email for one attendee.

    Args:
        to: Recipient address
        workshop_title: Workshop title
        instructor_name: Instructor display name
        start_time: Workshop start time
        duration: Duration in minutes
        meet_url: Google Meet link, if the workshop has one
        lookahead_minutes: Lead time quoted in the message
        tz_name: Timezone the start time is shown in

    Returns:
        ReminderMessage with subject, HTML and plain-text bodies
    """
    date_str, time_str = format_local(start_time, tz_name)
    subject = f'Reminder: Workshop "{workshop_title}" is starting soon'

    title_html = escape(workshop_title)
    instructor_html = escape(instructor_name)

    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #3b82f6;">Your workshop is about to start!</h2>
        <p>Hello,</p>
        <p>The workshop <strong>{title_html}</strong> starts within the next {lookahead_minutes} minutes.</p>
        <div style="background-color: #f8fafc; padding: 15px; border-radius: 5px; margin: 20px 0;">
          <p><strong>Workshop details:</strong></p>
          <ul>
            <li>Title: {title_html}</li>
            <li>Instructor: {instructor_html}</li>
            <li>Time: {date_str}, {time_str}</li>
            <li>Duration: {duration} minutes</li>
          </ul>
        </div>
    """

    text_lines = [
        "Your workshop is about to start!",
        "",
        f'The workshop "{workshop_title}" starts within the next {lookahead_minutes} minutes.',
        "",
        f"Title: {workshop_title}",
        f"Instructor: {instructor_name}",
        f"Time: {date_str}, {time_str}",
        f"Duration: {duration} minutes",
        "",
    ]

    if meet_url:
        url_html = escape(meet_url, quote=True)
        html += f"""
        <p>You can join the workshop on Google Meet using the link below:</p>
        <p style="text-align: center;">
          <a href="{url_html}"
             style="display: inline-block; background-color: #3b82f6; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px; font-weight: bold;">
            Join Google Meet
          </a>
        </p>
        """
        text_lines.append(f"Join on Google Meet: {meet_url}")
    else:
        html += """
        <p style="color: #64748b; font-style: italic;">This workshop has no Google Meet link. Please contact the instructor for details on how to join.</p>
        """
        text_lines.append(
            "This workshop has no Google Meet link. "
            "Please contact the instructor for details on how to join."
        )

    html += """
        <p>Get ready to join!</p>
        <p>Best regards,<br>The GradeStack Team</p>
      </div>
    """
    text_lines.extend(["", "Best regards,", "The GradeStack Team"])

    return ReminderMessage(to=to, subject=subject, html=html, text="\n".join(text_lines))


class EmailSender:
    """SMTP sender for reminder emails."""

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings

        if not config.smtp_host:
            raise ConfigurationError("SMTP host is required but not configured")
        if not config.smtp_user or not config.smtp_password:
            raise ConfigurationError("SMTP credentials are required but not configured")

        self.host = config.smtp_host
        self.port = int(config.smtp_port)
        self.secure = config.smtp_secure or self.port == 465
        self.username = config.smtp_user
        self.password = config.smtp_password
        self.from_header = formataddr((config.email_from_name, config.sender_address))
        self.lookahead_minutes = config.reminder_lookahead_minutes
        self.tz_name = config.timezone

    def _build_message(self, message: ReminderMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self.from_header
        msg["To"] = message.to
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        context = ssl.create_default_context()
        if self.secure:
            with smtplib.SMTP_SSL(
                self.host, self.port, context=context, timeout=SMTP_TIMEOUT_SECONDS
            ) as server:
                server.login(self.username, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                server.starttls(context=context)
                server.login(self.username, self.password)
                server.send_message(msg)

    async def send_email(self, message: ReminderMessage) -> None:
        """
        Deliver a composed message.

        Raises:
            NotificationError: If the SMTP exchange fails
        """
        msg = self._build_message(message)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send email to {message.to}: {e}") from e

        logger.debug(f"Email sent to {message.to}: {message.subject}")

    async def send_reminder(
        self,
        address: str,
        workshop_title: str,
        instructor_name: str,
        start_time: datetime,
        duration: int,
        meet_url: Optional[str] = None,
    ) -> None:
        """Compose and send a workshop reminder."""
        message = compose_workshop_reminder(
            to=address,
            workshop_title=workshop_title,
            instructor_name=instructor_name,
            start_time=start_time,
            duration=duration,
            meet_url=meet_url,
            lookahead_minutes=self.lookahead_minutes,
            tz_name=self.tz_name,
        )
        await self.send_email(message)
