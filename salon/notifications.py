# salon/notifications.py

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi import BackgroundTasks
from sqlmodel import Session

from .config import Settings
from .models import Service, Staff, User

logger = logging.getLogger(__name__)

SUBJECTS = {
    "created": "Booking Confirmation",
    "rescheduled": "Booking Rescheduled",
    "cancelled": "Booking Cancelled",
    "status_changed": "Booking Update",
}

STATUS_MESSAGES = {
    "confirmed": "Your booking has been confirmed!",
    "completed": "Your booking has been marked as completed.",
    "cancelled": "Your booking has been cancelled.",
    "no-show": "You were marked as a no-show for your booking.",
}


def render_booking_email(event: str, details: dict) -> str:
    if event == "status_changed":
        intro = STATUS_MESSAGES.get(
            details["status"], f"Your booking status has been updated to: {details['status']}"
        )
    elif event == "created":
        intro = "Thank you for your booking. Here are your appointment details:"
    elif event == "rescheduled":
        intro = "Your booking has been rescheduled. Here are your updated appointment details:"
    else:
        intro = "Your booking has been cancelled."

    rows = [
        ("Service", details["service"]),
        ("Staff", details.get("staff") or "Any available"),
        ("Date", details["date"]),
        ("Time", f"{details['start_time']} - {details['end_time']}"),
        ("Status", details["status"]),
    ]
    if details.get("cancellation_reason") and details["status"] == "cancelled":
        rows.append(("Cancellation Reason", details["cancellation_reason"]))

    items = "\n".join(f"<li><strong>{label}:</strong> {value}</li>" for label, value in rows)
    return f"<h2>{SUBJECTS.get(event, 'Booking Update')}</h2>\n<p>{intro}</p>\n<ul>\n{items}\n</ul>"


def send_email(settings: Settings, to: str, subject: str, html_content: str) -> bool:
    if not settings.smtp_host:
        logger.info(f"Email not sent (SMTP not configured): '{subject}' to {to}")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.email_from_address
        msg["To"] = to
        msg.attach(MIMEText(html_content, "html"))

        if settings.smtp_use_ssl or settings.smtp_port == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30)
            server.starttls(context=ssl.create_default_context())

        if settings.smtp_user:
            server.login(settings.smtp_user, settings.smtp_password or "")
        server.sendmail(settings.email_from_address.split("<")[-1].rstrip(">"), [to], msg.as_string())
        server.quit()

        logger.info(f"Email '{subject}' sent to {to}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {to}: {e}")
        return False


class BackgroundNotifier:
    """Resolves recipients now, sends after the response."""

    def __init__(self, session: Session, background_tasks: BackgroundTasks, settings: Settings):
        self.session = session
        self.background_tasks = background_tasks
        self.settings = settings

    def booking_event(self, event: str, booking, actor_id: Optional[int] = None) -> None:
        user = self.session.get(User, booking.user_id)
        service = self.session.get(Service, booking.service_id)
        staff = self.session.get(Staff, booking.staff_id) if booking.staff_id is not None else None

        details = {
            "service": service.name if service else "",
            "staff": staff.name if staff else None,
            "date": booking.date.strftime("%A, %B %d, %Y"),
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "status": booking.status,
            "cancellation_reason": booking.cancellation_reason,
        }
        subject = f"Salon - {SUBJECTS.get(event, 'Booking Update')}"
        html = render_booking_email(event, details)

        if user is not None:
            self.background_tasks.add_task(send_email, self.settings, user.email, subject, html)

        # also tell the staff member unless they made the change
        if staff is not None:
            actor = self.session.get(User, actor_id) if actor_id is not None else None
            if actor is None or actor.staff_id != staff.id:
                self.background_tasks.add_task(send_email, self.settings, staff.email, subject, html)
