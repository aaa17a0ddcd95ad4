"""Utilities for sending transactional emails."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable

from fastapi import BackgroundTasks

from app.core.config import settings

logger = logging.getLogger(__name__)

EmailSender = Callable[[str, str], None]


class EmailDeliveryError(Exception):
    """Raised when an email could not be delivered."""


def build_verification_email(recipient: str, verification_link: str) -> EmailMessage:
    """Construct the email address verification message."""

    message = EmailMessage()
    message["Subject"] = f"Verify your {settings.app_name} email address"
    message["From"] = settings.email_sender
    message["To"] = recipient
    message.set_content(
        (
            f"Thanks for signing up for {settings.app_name}!\n\n"
            "Please verify your email address by opening the link below:\n"
            f"{verification_link}\n\n"
            "The link expires in "
            f"{settings.email_verification_token_expiry_minutes} minutes. "
            "If you did not create this account, you can ignore this email."
        )
    )
    message.add_alternative(
        (
            f"<p>Thanks for signing up for {settings.app_name}!</p>"
            "<p>Please verify your email address by clicking the button below.</p>"
            f"<p><a href=\"{verification_link}\">Verify my email</a></p>"
            "<p>If you did not create this account, you can ignore this email.</p>"
        ),
        subtype="html",
    )
    return message


def build_password_reset_email(recipient: str, reset_link: str) -> EmailMessage:
    """Construct the password reset message."""

    message = EmailMessage()
    message["Subject"] = "Reset your password"
    message["From"] = settings.email_sender
    message["To"] = recipient
    message.set_content(
        (
            "We received a request to reset your password.\n\n"
            f"{reset_link}\n\n"
            "If you did not ask for a reset, no action is needed."
        )
    )
    message.add_alternative(
        (
            "<p>We received a request to reset your password.</p>"
            f"<p><a href=\"{reset_link}\">Choose a new password</a></p>"
            "<p>If you did not ask for a reset, no action is needed.</p>"
        ),
        subtype="html",
    )
    return message


def send_email(message: EmailMessage) -> None:
    """Send an email using the configured SMTP server."""

    host = settings.smtp_host
    port = settings.smtp_port
    username = settings.smtp_username or None
    password = settings.smtp_password or None

    try:
        with smtplib.SMTP(host=host, port=port) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:  # pragma: no cover - network failure path
        raise EmailDeliveryError("Failed to send email") from exc


def send_verification_email(recipient: str, verification_link: str) -> None:
    send_email(build_verification_email(recipient, verification_link))


def send_password_reset_email(recipient: str, reset_link: str) -> None:
    send_email(build_password_reset_email(recipient, reset_link))


def _deliver(sender: EmailSender, recipient: str, link: str) -> None:
    try:
        sender(recipient, link)
    except EmailDeliveryError:
        logger.warning("Email delivery to %s failed", recipient, exc_info=True)


def queue_email(
    sender: EmailSender,
    recipient: str,
    link: str,
    *,
    background_tasks: BackgroundTasks | None = None,
) -> bool:
    """Hand an email to the background queue without blocking the caller.

    Returns ``False`` when the message could not be queued. Queueing and
    delivery failures are logged and never propagate to the caller.
    """

    try:
        if background_tasks is not None:
            background_tasks.add_task(_deliver, sender, recipient, link)
        else:
            _deliver(sender, recipient, link)
    except Exception:
        logger.warning("Unable to queue email for %s", recipient, exc_info=True)
        return False
    return True


__all__ = [
    "EmailDeliveryError",
    "build_password_reset_email",
    "build_verification_email",
    "queue_email",
    "send_email",
    "send_password_reset_email",
    "send_verification_email",
]
