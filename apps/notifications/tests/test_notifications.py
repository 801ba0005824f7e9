import pytest
from datetime import timedelta
from unittest import mock

from django.core import mail

from shared.application.message_bus import message_bus
from apps.keys.application.command_handlers import IssueKeyCommand, ReportKeyLostCommand
from apps.keys.domain.events import KeyReturned
from apps.notifications import handlers
from apps.notifications.tasks import send_user_notification
from apps.reservations.application.command_handlers import ConfirmReservationCommand
from apps.reservations.models import Reservation
from apps.sweeper.sweeper import OverdueSweeper


def test_handlers_cover_the_user_facing_events():
    assert {event.name for event in handlers.EVENT_HANDLERS} == {
        "reservation.confirmed",
        "reservation.overdue",
        "reservation.no_show",
        "key.overdue",
        "key.lost",
    }
    assert handlers.on_key_lost in message_bus._event_handlers[handlers.KeyReportedLost]


@pytest.mark.django_db
def test_confirmation_mails_the_resident(study_room, user, staff_user, tomorrow_noon,
                                         django_capture_on_commit_callbacks):
    reservation = Reservation.objects.create(
        resource=study_room, user=user, start_time=tomorrow_noon, end_time=tomorrow_noon + timedelta(hours=1)
    )

    with django_capture_on_commit_callbacks(execute=True):
        message_bus.handle_command(ConfirmReservationCommand(reservation_id=reservation.pk))

    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["resident@example.com"]
    assert f"#{reservation.pk}" in mail.outbox[0].subject


@pytest.mark.django_db
def test_lost_key_mails_the_holder(room_key, user, django_capture_on_commit_callbacks):
    assignment = message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=room_key.pk))

    with django_capture_on_commit_callbacks(execute=True):
        message_bus.handle_command(ReportKeyLostCommand(assignment_id=assignment.pk))

    assert [m.subject for m in mail.outbox] == ["Key reported lost"]


@pytest.mark.django_db
def test_sweeper_events_reach_the_mailbox(study_room, user, now, django_capture_on_commit_callbacks):
    Reservation.objects.create(
        resource=study_room,
        user=user,
        start_time=now - timedelta(hours=2),
        end_time=now - timedelta(hours=1),
        status=Reservation.Status.CHECKED_IN,
    )

    with django_capture_on_commit_callbacks(execute=True):
        OverdueSweeper().run(now=now)

    assert len(mail.outbox) == 1
    assert "overdue" in mail.outbox[0].subject


@pytest.mark.django_db
def test_other_events_send_nothing(room_key, user):
    message_bus.publish_events([KeyReturned(key_id=room_key.pk, assignment_id=1, user_id=user.pk)])

    assert mail.outbox == []


@pytest.mark.django_db
def test_unknown_user_or_missing_email_is_skipped(other_user):
    other_user.email = ""
    other_user.save()

    assert send_user_notification(987654, "Subject", "Body") is False
    assert send_user_notification(other_user.pk, "Subject", "Body") is False
    assert mail.outbox == []


@pytest.mark.django_db
def test_delivery_failure_is_logged_not_raised(user):
    with mock.patch("apps.notifications.services.send_mail", side_effect=OSError("smtp down")), \
            mock.patch("apps.notifications.services.logger") as logger:
        delivered = send_user_notification(user.pk, "Subject", "Body")

    assert delivered is False
    logger.error.assert_called_once()
