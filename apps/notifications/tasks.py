"""Celery tasks for notification delivery."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore

from .services import send_email_notification

logger = logging.getLogger(__name__)


@shared_task(name="notifications.send_user_notification")
def send_user_notification(user_id: int, subject: str, message: str) -> bool:
    """Look the user up and e-mail them. Failures are logged, never raised."""
    User = get_user_model()
    try:
        user = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        logger.error(f"User {user_id} not found for notification '{subject}'")
        return False

    if not user.email:
        logger.warning(f"User {user_id} has no e-mail address, notification '{subject}' skipped")
        return False

    return send_email_notification(user.email, subject, message)
