"""Email rendering and SMTP delivery, used by the worker's email handler.

Templates are plain-text format strings keyed by name.  ``send_email``
is blocking (smtplib); the worker runs it via ``asyncio.to_thread``.
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from qualityedu.core.config import SETTINGS, Settings

logger = logging.getLogger(__name__)

_SIGNATURE = "\n\nBest regards,\nThe QualityEdu Team"

TEMPLATES: dict[str, tuple[str, str]] = {
    "password_reset": (
        "Password Reset Request",
        "Hello {name},\n\n"
        "We received a request to reset your password. Use the link below "
        "within the next hour:\n\n{reset_link}\n\n"
        "If you did not request this, you can ignore this email.",
    ),
    "registration_received": (
        "Registration Received",
        "Hello {name},\n\n"
        "Thank you for registering as a {kind}. Your application is now under "
        "review and we will email you once a supervisor has made a decision.",
    ),
    "welcome": (
        "Welcome to QualityEdu",
        "Hello {name},\n\nYour account is ready. Sign in and start learning!",
    ),
    "account_approved": (
        "Your Application Has Been Approved",
        "Hello {name},\n\n"
        "Congratulations! Your {kind} account has been approved. You can now "
        "sign in at {login_url}.",
    ),
    "account_rejected": (
        "Update on Your Application",
        "Hello {name},\n\n"
        "Unfortunately your {kind} application was not approved.\n\n"
        "Reason: {reason}",
    ),
    "account_suspended": (
        "Your Account Has Been Suspended",
        "Hello {name},\n\n"
        "Your account has been suspended. Please contact support for details.",
    ),
    "lesson_reviewed": (
        "Lesson Review: {lesson_title}",
        "Hello {name},\n\n"
        "Your lesson \"{lesson_title}\" was {decision}.{reason_line}",
    ),
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return ""


def render(template: str, params: dict[str, str]) -> tuple[str, str]:
    """Return ``(subject, body)``.  Unknown template names raise KeyError;
    missing params render as empty strings."""
    subject_fmt, body_fmt = TEMPLATES[template]
    values = _Defaults(params)
    return subject_fmt.format_map(values), body_fmt.format_map(values) + _SIGNATURE


def send_email(to: str, subject: str, body: str, settings: Settings = SETTINGS) -> bool:
    """Deliver one message.  Returns False (and logs) when SMTP is unset."""
    if not settings.smtp_configured:
        logger.info("SMTP not configured; email to=%s subject=%r not sent", to, subject)
        return False

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg.attach(MIMEText(body, "plain"))

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
        server.starttls()
        if settings.smtp_user and settings.smtp_password:
            server.login(settings.smtp_user, settings.smtp_password)
        server.send_message(msg)

    logger.info("Email sent to=%s subject=%r", to, subject)
    return True
