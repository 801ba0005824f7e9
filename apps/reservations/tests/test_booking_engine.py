import pytest
from datetime import timedelta
from unittest import mock

from django.db import OperationalError

from shared.application.message_bus import message_bus
from shared.domain.exceptions import (
    ConflictError,
    InvalidTransitionError,
    KeyOutstandingError,
    KeyUnavailableError,
    LimitExceededError,
    NotFoundError,
    ResourceUnavailableError,
    StorageError,
    ValidationError,
)
from apps.keys.application.command_handlers import IssueKeyCommand, ReturnKeyCommand
from apps.keys.models import DormitoryKey, KeyAssignment
from apps.reservations.application.command_handlers import (
    CancelReservationCommand,
    CheckInReservationCommand,
    CheckOutReservationCommand,
    CompleteReservationCommand,
    ConfirmReservationCommand,
    CreateReservationCommand,
    MarkNoShowCommand,
    PickUpKeyCommand,
    ReturnReservationKeyCommand,
)
from apps.reservations.models import Reservation
from apps.resources.models import ReservableResource


def reserve(user, resource, start, end, **kwargs):
    return message_bus.handle_command(CreateReservationCommand(
        user_id=user.pk,
        resource_id=resource.pk,
        start_time=start,
        end_time=end,
        **kwargs,
    ))


def booked(user, resource, start, end, status=Reservation.Status.PENDING):
    """Store a reservation directly; bookings through the engine cannot start in the past."""
    return Reservation.objects.create(resource=resource, user=user, start_time=start, end_time=end, status=status)


def run(command_type, reservation, **kwargs):
    return message_bus.handle_command(command_type(reservation_id=reservation.pk, **kwargs))


def checked_in(user, resource, now):
    reservation = booked(user, resource, now - timedelta(minutes=30), now + timedelta(minutes=30))
    run(ConfirmReservationCommand, reservation)
    return run(CheckInReservationCommand, reservation)


# ----- createReservation -----

@pytest.mark.django_db
def test_overlap_is_rejected_and_touching_window_succeeds(keyed_room, user, other_user, tomorrow_noon):
    nine = tomorrow_noon.replace(hour=9)
    first = reserve(user, keyed_room, nine, nine + timedelta(hours=1))
    run(ConfirmReservationCommand, first)

    with pytest.raises(ConflictError) as excinfo:
        reserve(other_user, keyed_room, nine + timedelta(minutes=30), nine + timedelta(minutes=90))
    assert excinfo.value.context["conflicting_reservation_ids"] == [first.pk]

    third = reserve(other_user, keyed_room, nine + timedelta(hours=1), nine + timedelta(hours=2))
    assert third.status == Reservation.Status.PENDING
    assert Reservation.objects.count() == 2


@pytest.mark.django_db
def test_daily_limit_per_resource(study_room, user, tomorrow_noon):
    lounge = ReservableResource.objects.create(name="Lounge", capacity=10)
    for hour in (8, 10, 12):
        start = tomorrow_noon.replace(hour=hour)
        reserve(user, study_room, start, start + timedelta(hours=1))

    with pytest.raises(LimitExceededError) as excinfo:
        start = tomorrow_noon.replace(hour=15)
        reserve(user, study_room, start, start + timedelta(hours=1))
    assert excinfo.value.context["limit"] == 3

    other = reserve(user, lounge, tomorrow_noon.replace(hour=15), tomorrow_noon.replace(hour=16))
    assert other.pk is not None


@pytest.mark.django_db
def test_cancelled_reservations_free_a_daily_slot(study_room, user, tomorrow_noon):
    study_room.max_reservations_per_user_per_day = 1
    study_room.save()
    first = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    run(CancelReservationCommand, first, reason="changed plans")

    second = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))

    assert second.status == Reservation.Status.PENDING


@pytest.mark.django_db
def test_create_validates_request(study_room, user, tomorrow_noon):
    with pytest.raises(ValidationError):
        reserve(user, study_room, tomorrow_noon, tomorrow_noon)
    with pytest.raises(ValidationError):
        reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1), number_of_people=5)
    with pytest.raises(NotFoundError):
        message_bus.handle_command(CreateReservationCommand(
            user_id=user.pk,
            resource_id=999_999,
            start_time=tomorrow_noon,
            end_time=tomorrow_noon + timedelta(hours=1),
        ))

    study_room.min_duration_minutes = 30
    study_room.max_duration_minutes = 120
    study_room.save()
    with pytest.raises(ValidationError):
        reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(minutes=15))
    with pytest.raises(ValidationError):
        reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=3))

    assert not Reservation.objects.exists()


@pytest.mark.django_db
def test_booking_that_already_started_is_rejected(study_room, user, now):
    with pytest.raises(ValidationError) as excinfo:
        reserve(user, study_room, now - timedelta(minutes=5), now + timedelta(hours=1))

    assert excinfo.value.message == "Cannot book in the past"
    assert not Reservation.objects.exists()


@pytest.mark.django_db
def test_storage_failure_is_retryable_and_creates_nothing(study_room, user, tomorrow_noon, published_events):
    with mock.patch(
        "apps.reservations.availability.daily_count",
        side_effect=OperationalError("database is locked"),
    ):
        with pytest.raises(StorageError) as excinfo:
            reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))

    assert excinfo.value.retryable
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert not Reservation.objects.exists()
    assert published_events == []

    assert reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1)).pk is not None


@pytest.mark.django_db
def test_inactive_resource_is_unavailable(study_room, user, tomorrow_noon):
    study_room.deactivate()

    with pytest.raises(ResourceUnavailableError):
        reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))


@pytest.mark.django_db
def test_auto_confirm_respects_requires_approval(settings, study_room, user, tomorrow_noon, published_events,
                                                 django_capture_on_commit_callbacks):
    settings.ALLOCATION = {**settings.ALLOCATION, "AUTO_CONFIRM_RESERVATIONS": True}

    with django_capture_on_commit_callbacks(execute=True):
        auto = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    assert auto.status == Reservation.Status.CONFIRMED
    assert auto.confirmed_at is not None
    assert [event.name for event in published_events] == ["reservation.created", "reservation.confirmed"]

    study_room.requires_approval = True
    study_room.save()
    manual = reserve(user, study_room, tomorrow_noon + timedelta(hours=1), tomorrow_noon + timedelta(hours=2))
    assert manual.status == Reservation.Status.PENDING


@pytest.mark.django_db
def test_repeated_request_key_returns_first_reservation(study_room, user, other_user, tomorrow_noon):
    first = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1), request_key="abc-1")

    again = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1), request_key="abc-1")

    assert again.pk == first.pk
    assert Reservation.objects.count() == 1
    # Keys are scoped per user.
    with pytest.raises(ConflictError):
        reserve(other_user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1), request_key="abc-1")


# ----- lifecycle -----

@pytest.mark.django_db
def test_full_lifecycle(study_room, user, now):
    reservation = booked(user, study_room, now - timedelta(minutes=5), now + timedelta(hours=1))

    run(ConfirmReservationCommand, reservation)
    run(CheckInReservationCommand, reservation)
    done = run(CheckOutReservationCommand, reservation)

    assert done.status == Reservation.Status.COMPLETED
    assert done.confirmed_at and done.checked_in_at and done.completed_at


@pytest.mark.django_db
def test_check_in_not_before_start(study_room, user, tomorrow_noon):
    reservation = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    run(ConfirmReservationCommand, reservation)

    with pytest.raises(InvalidTransitionError):
        run(CheckInReservationCommand, reservation)

    with mock.patch("django.utils.timezone.now", return_value=tomorrow_noon + timedelta(minutes=1)):
        assert run(CheckInReservationCommand, reservation).status == Reservation.Status.CHECKED_IN


@pytest.mark.django_db
def test_check_in_requires_confirmation(study_room, user, now):
    reservation = booked(user, study_room, now - timedelta(minutes=5), now + timedelta(hours=1))

    with pytest.raises(InvalidTransitionError) as excinfo:
        run(CheckInReservationCommand, reservation)

    assert excinfo.value.context["from_status"] == "pending"
    assert excinfo.value.context["to_status"] == "checked_in"


@pytest.mark.django_db
def test_checked_in_reservation_cannot_be_cancelled(study_room, user, now):
    reservation = checked_in(user, study_room, now)

    with pytest.raises(InvalidTransitionError):
        run(CancelReservationCommand, reservation)


@pytest.mark.django_db
def test_terminal_states_are_final(study_room, user, tomorrow_noon):
    reservation = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    run(CancelReservationCommand, reservation)

    for command_type in (ConfirmReservationCommand, CancelReservationCommand, CompleteReservationCommand):
        with pytest.raises(InvalidTransitionError):
            run(command_type, reservation)


@pytest.mark.django_db
def test_no_show_only_after_grace_period(study_room, user, now):
    early = booked(user, study_room, now - timedelta(minutes=10), now + timedelta(hours=1))
    run(ConfirmReservationCommand, early)
    with pytest.raises(InvalidTransitionError):
        run(MarkNoShowCommand, early)

    late = booked(user, study_room, now - timedelta(hours=3), now - timedelta(hours=2))
    run(ConfirmReservationCommand, late)
    assert run(MarkNoShowCommand, late).status == Reservation.Status.NO_SHOW


# ----- key coupling -----

@pytest.mark.django_db
def test_key_pickup_and_return_cycle(keyed_room, room_key, user, staff_user, now):
    reservation = checked_in(user, keyed_room, now)

    with pytest.raises(KeyUnavailableError):
        run(PickUpKeyCommand, reservation)

    assignment = message_bus.handle_command(
        IssueKeyCommand(user_id=user.pk, key_id=room_key.pk, issued_by_id=staff_user.pk)
    )
    picked = run(PickUpKeyCommand, reservation)
    assert picked.key_picked_up
    assert picked.key_assignment_id == assignment.pk

    with pytest.raises(InvalidTransitionError):
        run(PickUpKeyCommand, reservation)
    with pytest.raises(KeyOutstandingError):
        run(CheckOutReservationCommand, reservation)

    returned = run(ReturnReservationKeyCommand, reservation)
    assert returned.key_returned
    assignment.refresh_from_db()
    room_key.refresh_from_db()
    assert assignment.status == KeyAssignment.Status.RETURNED
    assert room_key.status == DormitoryKey.Status.AVAILABLE

    assert run(CheckOutReservationCommand, reservation).status == Reservation.Status.COMPLETED


@pytest.mark.django_db
def test_cancel_with_key_out_is_rejected(keyed_room, room_key, user, tomorrow_noon):
    reservation = reserve(user, keyed_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    run(ConfirmReservationCommand, reservation)
    message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=room_key.pk))
    run(PickUpKeyCommand, reservation)

    with pytest.raises(KeyOutstandingError):
        run(CancelReservationCommand, reservation)

    run(ReturnReservationKeyCommand, reservation)
    assert run(CancelReservationCommand, reservation).status == Reservation.Status.CANCELLED


@pytest.mark.django_db
def test_keyless_resource_has_no_pickup(study_room, user, tomorrow_noon):
    reservation = reserve(user, study_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    run(ConfirmReservationCommand, reservation)

    with pytest.raises(ResourceUnavailableError):
        run(PickUpKeyCommand, reservation)
    with pytest.raises(InvalidTransitionError):
        run(ReturnReservationKeyCommand, reservation)


@pytest.mark.django_db
def test_pickup_needs_key_of_matching_type(keyed_room, user, tomorrow_noon):
    reservation = reserve(user, keyed_room, tomorrow_noon, tomorrow_noon + timedelta(hours=1))
    run(ConfirmReservationCommand, reservation)
    projector_key = DormitoryKey.objects.create(key_code="E-7", key_type=DormitoryKey.Type.EQUIPMENT)
    message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=projector_key.pk))

    with pytest.raises(KeyUnavailableError):
        run(PickUpKeyCommand, reservation)


@pytest.mark.django_db
def test_pickup_links_the_key_bound_to_the_resource(keyed_room, room_key, spare_key, user, now):
    # The resident keeps their own room key while borrowing the one for the booked room.
    own = message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=room_key.pk))
    borrowed = message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=spare_key.pk))
    keyed_room.key = spare_key
    keyed_room.save()
    reservation = checked_in(user, keyed_room, now)

    assert run(PickUpKeyCommand, reservation).key_assignment_id == borrowed.pk
    run(ReturnReservationKeyCommand, reservation)

    own.refresh_from_db()
    borrowed.refresh_from_db()
    assert borrowed.status == KeyAssignment.Status.RETURNED
    assert own.status == KeyAssignment.Status.ACTIVE
    assert DormitoryKey.objects.get(pk=room_key.pk).status == DormitoryKey.Status.ASSIGNED


@pytest.mark.django_db
def test_pickup_with_several_fitting_keys_needs_the_assignment(keyed_room, room_key, spare_key, user, now):
    first = message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=room_key.pk))
    second = message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=spare_key.pk))
    reservation = checked_in(user, keyed_room, now)

    with pytest.raises(KeyUnavailableError) as excinfo:
        run(PickUpKeyCommand, reservation)
    assert set(excinfo.value.context["candidate_assignment_ids"]) == {first.pk, second.pk}

    picked = run(PickUpKeyCommand, reservation, assignment_id=second.pk)
    assert picked.key_assignment_id == second.pk


@pytest.mark.django_db
def test_named_assignment_must_open_the_resource(keyed_room, room_key, spare_key, user, other_user, now):
    keyed_room.key = room_key
    keyed_room.save()
    wrong_key = message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=spare_key.pk))
    someone_elses = message_bus.handle_command(IssueKeyCommand(user_id=other_user.pk, key_id=room_key.pk))
    reservation = checked_in(user, keyed_room, now)

    for assignment in (wrong_key, someone_elses):
        with pytest.raises(KeyUnavailableError):
            run(PickUpKeyCommand, reservation, assignment_id=assignment.pk)
    with pytest.raises(NotFoundError):
        run(PickUpKeyCommand, reservation, assignment_id=999_999)

    assert not Reservation.objects.get(pk=reservation.pk).key_picked_up


@pytest.mark.django_db
def test_return_key_when_assignment_already_closed(keyed_room, room_key, user, now):
    reservation = checked_in(user, keyed_room, now)
    assignment = message_bus.handle_command(IssueKeyCommand(user_id=user.pk, key_id=room_key.pk))
    run(PickUpKeyCommand, reservation)
    message_bus.handle_command(ReturnKeyCommand(assignment_id=assignment.pk))

    returned = run(ReturnReservationKeyCommand, reservation)

    assert returned.key_returned
    assert KeyAssignment.objects.get(pk=assignment.pk).status == KeyAssignment.Status.RETURNED
