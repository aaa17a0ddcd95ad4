"""Tests for email service."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from unittest.mock import MagicMock, patch

import pytest
from fastapi import BackgroundTasks

from app.services import email as email_service
from app.services.email import (
    EmailDeliveryError,
    build_password_reset_email,
    build_verification_email,
    queue_email,
    send_email,
)


def _message() -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = "Test"
    message["From"] = "sender@example.com"
    message["To"] = "recipient@example.com"
    message.set_content("Test content")
    return message


def test_build_verification_email() -> None:
    link = "https://example.com/verify-email?token=abc123"

    message = build_verification_email("test@example.com", link)

    assert message["To"] == "test@example.com"
    assert message["Subject"] == "Verify your Marketplace email address"
    assert link in message.get_body(("plain",)).get_content()
    assert f"href=\"{link}\"" in message.get_body(("html",)).get_content()


def test_build_password_reset_email() -> None:
    link = "https://example.com/reset-password?token=abc&email=a%40b.c"

    message = build_password_reset_email("a@b.c", link)

    assert message["Subject"] == "Reset your password"
    assert link in message.get_body(("plain",)).get_content()
    assert f"href=\"{link}\"" in message.get_body(("html",)).get_content()


def test_send_email_success() -> None:
    message = _message()

    with patch("smtplib.SMTP") as mock_smtp_class:
        mock_smtp = MagicMock()
        mock_smtp_class.return_value.__enter__.return_value = mock_smtp

        send_email(message)

        mock_smtp.starttls.assert_not_called()
        mock_smtp.login.assert_not_called()
        mock_smtp.send_message.assert_called_once_with(message)


def test_send_email_with_tls_and_login() -> None:
    message = _message()

    with patch("smtplib.SMTP") as mock_smtp_class, patch("app.services.email.settings") as mock_settings:
        mock_settings.smtp_host = "smtp.example.com"
        mock_settings.smtp_port = 587
        mock_settings.smtp_username = "user"
        mock_settings.smtp_password = "pass"
        mock_settings.smtp_use_tls = True
        mock_smtp = MagicMock()
        mock_smtp_class.return_value.__enter__.return_value = mock_smtp

        send_email(message)

        mock_smtp_class.assert_called_once_with(host="smtp.example.com", port=587)
        mock_smtp.starttls.assert_called_once()
        mock_smtp.login.assert_called_once_with("user", "pass")


def test_send_email_wraps_smtp_errors() -> None:
    with patch("smtplib.SMTP", side_effect=smtplib.SMTPException("boom")):
        with pytest.raises(EmailDeliveryError):
            send_email(_message())


def test_queue_email_defers_to_background_tasks() -> None:
    calls: list[tuple[str, str]] = []
    tasks = BackgroundTasks()

    queued = queue_email(lambda to, link: calls.append((to, link)), "a@b.c", "link", background_tasks=tasks)

    assert queued is True
    assert calls == []
    assert len(tasks.tasks) == 1


def test_queue_email_logs_delivery_failure(caplog) -> None:
    def failing_sender(_recipient: str, _link: str) -> None:
        raise EmailDeliveryError("down")

    assert queue_email(failing_sender, "a@b.c", "link") is True
    assert "Email delivery to a@b.c failed" in caplog.text


def test_queue_email_returns_false_when_queueing_fails(caplog) -> None:
    tasks = MagicMock()
    tasks.add_task.side_effect = RuntimeError("queue closed")

    assert queue_email(email_service.send_verification_email, "a@b.c", "link", background_tasks=tasks) is False
    assert "Unable to queue email for a@b.c" in caplog.text
