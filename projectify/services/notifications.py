"""
Notification Dispatcher - templated emails sent off the request path.

Flow:
1. A state transition builds a NotificationEvent and calls ``enqueue``.
2. ``enqueue`` puts it on a bounded queue and returns immediately
   (a full queue drops the event with a warning).
3. One worker thread renders the template and calls the mailer once.
   Failures are logged; nothing is retried or reported back.
"""

import html
import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, to: str, subject: str, html: str) -> bool: ...


class EventType(str, Enum):
    welcome = "welcome"
    project_approved = "project-approved"
    application_approved = "application-approved"
    application_rejected = "application-rejected"


@dataclass
class NotificationEvent:
    event_type: EventType
    recipient: str
    context: Dict[str, Any] = field(default_factory=dict)


# ============================================================
# TEMPLATES
# (subject, html body) with str.format placeholders
# ============================================================

_FOOTER = """
  <div style="margin-top: 30px; padding: 20px; background-color: #f3f4f6; border-radius: 8px;">
    <p style="margin: 0;"><strong>{sign_off}</strong></p>
    <p style="margin: 5px 0 0 0; color: #6b7280;">The Projectify Team</p>
  </div>
</div>
"""

TEMPLATES: Dict[EventType, Tuple[str, str]] = {
    EventType.welcome: (
        "Welcome to Projectify!",
        """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #f97316;">Welcome to Projectify, {user_name}!</h2>
  <p>Thank you for joining our platform! We're excited to have you on board.</p>
  <h3>What's Next?</h3>
  <ul>
    <li>Browse available projects in your dashboard</li>
    <li>Apply to projects that match your skills</li>
    <li>Track your application status</li>
    <li>Get notified when projects are approved</li>
  </ul>
""" + _FOOTER.replace("{sign_off}", "Happy project hunting!"),
    ),
    EventType.project_approved: (
        'Great News! Project "{project_name}" has been approved',
        """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #10b981;">Project Approved!</h2>
  <p>We're excited to inform you that the project you applied to has been approved!</p>
  <div style="background-color: #f0fdf4; border: 1px solid #10b981; border-radius: 8px; padding: 20px; margin: 20px 0;">
    <h3 style="color: #10b981; margin-top: 0;">{project_name}</h3>
    <p><strong>Description:</strong> {project_description}</p>
    <p><strong>Start Date:</strong> {start_date}</p>
    <p><strong>End Date:</strong> {end_date}</p>
  </div>
  <p>You can now proceed with your application. Check your dashboard for more details and next steps.</p>
""" + _FOOTER.replace("{sign_off}", "Good luck with your application!"),
    ),
    EventType.application_approved: (
        'Your application for "{project_name}" has been approved!',
        """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #10b981;">Congratulations {user_name}!</h2>
  <p>We're thrilled to inform you that your application has been <strong>approved</strong>!</p>
  <div style="background-color: #f0fdf4; border: 1px solid #10b981; border-radius: 8px; padding: 20px; margin: 20px 0;">
    <h3 style="color: #10b981; margin-top: 0;">Project: {project_name}</h3>
    <p>Your application has been reviewed and accepted. You're now part of this exciting project!</p>
  </div>
  <h3>Next Steps:</h3>
  <ul>
    <li>Check your dashboard for project details</li>
    <li>You may be contacted by the project team soon</li>
    <li>Prepare for the project kickoff</li>
  </ul>
""" + _FOOTER.replace("{sign_off}", "Welcome to the team!"),
    ),
    EventType.application_rejected: (
        'Update on your application for "{project_name}"',
        """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #f97316;">Application Update</h2>
  <p>Hi {user_name},</p>
  <p>Thank you for your interest in the "{project_name}" project. After careful consideration, we've decided to move forward with other candidates for this particular opportunity.</p>
  <div style="background-color: #fef3c7; border: 1px solid #f59e0b; border-radius: 8px; padding: 20px; margin: 20px 0;">
    <p style="margin: 0;"><strong>Don't let this discourage you!</strong> There are many other exciting projects available on our platform.</p>
  </div>
  <p>We encourage you to continue exploring opportunities on Projectify. Your perfect project match is out there!</p>
""" + _FOOTER.replace("{sign_off}", "Keep applying and stay positive!"),
    ),
}


def _format_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%b %d, %Y")
    return str(value)


def render(event: NotificationEvent) -> Tuple[str, str]:
    """Render (subject, html) for an event. Context values are HTML-escaped in the body."""
    subject_tpl, body_tpl = TEMPLATES[event.event_type]
    plain = {key: _format_value(value) for key, value in event.context.items()}
    escaped = {key: html.escape(value) for key, value in plain.items()}
    return subject_tpl.format(**plain), body_tpl.format(**escaped)


# ============================================================
# EVENT BUILDERS
# ============================================================

def project_approved_event(application: dict, project: dict) -> NotificationEvent:
    return NotificationEvent(
        EventType.project_approved,
        application["userEmail"],
        {
            "project_name": project["name"],
            "project_description": project["description"],
            "start_date": project["startDate"],
            "end_date": project["endDate"],
        },
    )


def application_decision_event(application: dict, approved: bool) -> NotificationEvent:
    event_type = EventType.application_approved if approved else EventType.application_rejected
    return NotificationEvent(
        event_type,
        application["userEmail"],
        {"user_name": application["userName"], "project_name": application["projectName"]},
    )


# ============================================================
# DISPATCHER
# ============================================================

class NotificationDispatcher:
    """
    Bounded queue + single worker thread.

    Usage:
        dispatcher = NotificationDispatcher(mailer, maxsize=100)
        dispatcher.start()
        dispatcher.enqueue(event)   # never blocks, never raises
        dispatcher.stop()
    """

    _STOP = object()

    def __init__(self, mailer: Mailer, maxsize: int = 100):
        self.mailer = mailer
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self._worker: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._worker = threading.Thread(
            target=self._run, name="notification-worker", daemon=True
        )
        self._worker.start()
        logger.info("Notification worker started")

    def stop(self, timeout: float = 5.0) -> None:
        """Let the worker finish what is queued, then exit."""
        if not self.running:
            return
        self._queue.put(self._STOP)
        self._worker.join(timeout)
        self._worker = None
        logger.info("Notification worker stopped")

    def enqueue(self, event: NotificationEvent) -> bool:
        """Queue an event for delivery. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning(
                "Notification queue full, dropping %s for %s", event.event_type.value, event.recipient,
                extra={"event": "notification_dropped", "notification": event.event_type.value},
            )
            return False
        return True

    def drain(self) -> None:
        """Block until every queued event has been attempted."""
        self._queue.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._STOP:
                    return
                self._deliver(item)
            finally:
                self._queue.task_done()

    def _deliver(self, event: NotificationEvent) -> None:
        try:
            subject, body = render(event)
            self.mailer.send(event.recipient, subject, body)
        except Exception:
            logger.exception(
                "Failed to send %s notification to %s", event.event_type.value, event.recipient,
                extra={"event": "notification_failed", "notification": event.event_type.value},
            )
