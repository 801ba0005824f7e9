"""Notification services for sending emails."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils import timezone  # type: ignore

logger = logging.getLogger(__name__)


def send_email_notification(recipient_email: str, subject: str, message: str) -> bool:
    """
    Send a plain text e-mail.

    Returns:
        bool: True when the mail backend accepted the message
    """
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def format_local(value) -> str:
    return timezone.localtime(value).strftime("%d.%m.%Y %H:%M")


# ============================================================================
# MESSAGE TEMPLATES
# ============================================================================

def reservation_confirmed_message(event) -> tuple[str, str]:
    return (
        f"Reservation #{event.reservation_id} confirmed",
        f"Your reservation #{event.reservation_id} is confirmed for "
        f"{format_local(event.start_time)} - {format_local(event.end_time)}.",
    )


def reservation_overdue_message(event) -> tuple[str, str]:
    return (
        f"Reservation #{event.reservation_id} is overdue",
        f"Your reservation #{event.reservation_id} ended at {format_local(event.end_time)}. "
        "Please check out and return any key you picked up.",
    )


def reservation_no_show_message(event) -> tuple[str, str]:
    return (
        f"Missed reservation #{event.reservation_id}",
        f"You have not checked in for reservation #{event.reservation_id} "
        f"that started at {format_local(event.start_time)}. "
        "Cancel it if you no longer need the slot.",
    )


def key_overdue_message(event) -> tuple[str, str]:
    return (
        "Key return overdue",
        f"The key you hold was due back at {format_local(event.expected_return)}. "
        "Please return it to reception.",
    )


def key_lost_message(event) -> tuple[str, str]:
    return (
        "Key reported lost",
        "A key issued to you was reported lost. Please contact reception to arrange a replacement.",
    )
