import pytest
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from django.db import IntegrityError, transaction
from django.utils import timezone

from shared.domain.exceptions import ConflictError, ValidationError
from shared.domain.value_objects import TimeWindow
from apps.reservations import availability
from apps.reservations.models import Reservation


def book(resource, user, start, end, status=Reservation.Status.CONFIRMED):
    return Reservation.objects.create(resource=resource, user=user, start_time=start, end_time=end, status=status)


def test_time_window_is_half_open():
    nine = datetime(2026, 3, 2, 9, tzinfo=ZoneInfo("UTC"))
    first = TimeWindow(nine, nine + timedelta(hours=1))

    assert first.overlaps_with(TimeWindow(nine + timedelta(minutes=30), nine + timedelta(minutes=90)))
    assert not first.overlaps_with(TimeWindow(nine + timedelta(hours=1), nine + timedelta(hours=2)))
    assert first.contains(nine)
    assert not first.contains(nine + timedelta(hours=1))
    assert first.minutes == 60


def test_time_window_rejects_empty_or_inverted_range():
    nine = datetime(2026, 3, 2, 9, tzinfo=ZoneInfo("UTC"))
    with pytest.raises(ValidationError):
        TimeWindow(nine, nine)
    with pytest.raises(ValidationError):
        TimeWindow(nine, nine - timedelta(minutes=1))


@pytest.mark.django_db
def test_touching_reservations_do_not_conflict(study_room, user, tomorrow_noon):
    book(study_room, user, tomorrow_noon, tomorrow_noon + timedelta(hours=1))

    assert availability.is_available(study_room.pk, tomorrow_noon + timedelta(hours=1), tomorrow_noon + timedelta(hours=2))
    assert availability.is_available(study_room.pk, tomorrow_noon - timedelta(hours=1), tomorrow_noon)
    assert not availability.is_available(
        study_room.pk, tomorrow_noon + timedelta(minutes=59), tomorrow_noon + timedelta(hours=2)
    )


@pytest.mark.django_db
@pytest.mark.parametrize("status,blocks", [
    (Reservation.Status.PENDING, True),
    (Reservation.Status.CONFIRMED, True),
    (Reservation.Status.CHECKED_IN, True),
    (Reservation.Status.COMPLETED, False),
    (Reservation.Status.CANCELLED, False),
    (Reservation.Status.NO_SHOW, False),
])
def test_only_active_statuses_block(study_room, user, tomorrow_noon, status, blocks):
    book(study_room, user, tomorrow_noon, tomorrow_noon + timedelta(hours=1), status=status)

    found = availability.conflicts(study_room.pk, tomorrow_noon, tomorrow_noon + timedelta(minutes=30))

    assert bool(found) is blocks


@pytest.mark.django_db
def test_conflicts_exclude_given_reservation_and_other_resources(study_room, keyed_room, user, tomorrow_noon):
    window = (tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    mine = book(study_room, user, *window)
    book(keyed_room, user, *window)

    assert availability.conflicts(study_room.pk, *window) == [mine]
    assert availability.conflicts(study_room.pk, *window, exclude_reservation_id=mine.pk) == []


@pytest.mark.django_db
def test_ensure_available_reports_conflicting_ids(study_room, user, tomorrow_noon):
    first = book(study_room, user, tomorrow_noon, tomorrow_noon + timedelta(hours=1))

    with pytest.raises(ConflictError) as excinfo:
        availability.ensure_available(study_room.pk, tomorrow_noon, tomorrow_noon + timedelta(hours=2))

    assert excinfo.value.context["conflicting_reservation_ids"] == [first.pk]
    assert excinfo.value.to_dict()["context"]["start"] == tomorrow_noon.isoformat()


@pytest.mark.django_db
def test_daily_count_uses_local_calendar_date(settings, study_room, user):
    settings.TIME_ZONE = "Asia/Almaty"
    almaty = ZoneInfo("Asia/Almaty")
    late_evening = datetime(2026, 5, 4, 23, 0, tzinfo=almaty)
    after_midnight = datetime(2026, 5, 5, 0, 30, tzinfo=almaty)
    book(study_room, user, late_evening, late_evening + timedelta(minutes=30))
    book(study_room, user, after_midnight, after_midnight + timedelta(minutes=30))
    book(study_room, user, after_midnight + timedelta(hours=2), after_midnight + timedelta(hours=3),
         status=Reservation.Status.CANCELLED)

    assert availability.daily_count(user.pk, study_room.pk, late_evening) == 1
    # Same instant expressed in UTC still lands on the local 5th of May.
    assert availability.daily_count(user.pk, study_room.pk, after_midnight.astimezone(ZoneInfo("UTC"))) == 1


@pytest.mark.django_db
def test_daily_limit_prefers_resource_setting(settings, study_room):
    settings.ALLOCATION = {**settings.ALLOCATION, "DAILY_RESERVATION_LIMIT": 5}
    assert availability.daily_limit(study_room) == 5

    study_room.max_reservations_per_user_per_day = 1
    assert availability.daily_limit(study_room) == 1


@pytest.mark.django_db
def test_check_constraint_rejects_inverted_window(study_room, user):
    start = timezone.now()
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            book(study_room, user, start, start - timedelta(hours=1))
