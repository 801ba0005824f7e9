"""
Reservation Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateReservationCommand: Create a new reservation
- ConfirmReservationCommand: Approve a pending reservation
- CancelReservationCommand: Cancel a pending or confirmed reservation
- CheckInReservationCommand: Check the user in
- CheckOutReservationCommand / CompleteReservationCommand: Check the user out
- MarkNoShowCommand: Close a confirmed reservation nobody showed up for
- PickUpKeyCommand / ReturnReservationKeyCommand: Key coupling for keyed resources
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from django.db import IntegrityError  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.locks import allocation_locks
from shared.application.message_bus import message_bus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    KeyUnavailableError,
    LimitExceededError,
    NotFoundError,
    ResourceUnavailableError,
    ValidationError,
)
from shared.domain.value_objects import TimeWindow
from shared.infrastructure.config import allocation_setting
from shared.infrastructure.users import get_user
from apps.keys.application.command_handlers import ReturnKeyCommand, load_assignment
from apps.keys.queries import find_active_for_user_and_resource
from apps.reservations import availability
from apps.reservations.domain.status import ReservationStatus
from apps.reservations.models import Reservation
from apps.resources.services import get_resource

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateReservationCommand:
    """
    Command to create a new reservation

    This is the primary entry point for booking a resource.
    A repeated ``request_key`` from the same user returns the
    reservation created by the first request.
    """
    user_id: int
    resource_id: int
    start_time: datetime
    end_time: datetime
    number_of_people: int = 1
    notes: str = ''
    request_key: str | None = None


@dataclass
class ConfirmReservationCommand:
    reservation_id: int


@dataclass
class CancelReservationCommand:
    """Command to cancel a reservation"""
    reservation_id: int
    reason: str = ''


@dataclass
class CheckInReservationCommand:
    """Command to check the user in"""
    reservation_id: int


@dataclass
class CheckOutReservationCommand:
    """Command to check the user out (completes the reservation)"""
    reservation_id: int


@dataclass
class CompleteReservationCommand:
    reservation_id: int


@dataclass
class MarkNoShowCommand:
    reservation_id: int


@dataclass
class PickUpKeyCommand:
    """Link a key assignment to a reservation.

    Without ``assignment_id`` the user's single active assignment whose
    key opens the resource is used.
    """
    reservation_id: int
    assignment_id: int | None = None


@dataclass
class ReturnReservationKeyCommand:
    reservation_id: int


def load_reservation(reservation_id, *, lock: bool = False) -> Reservation:
    queryset = Reservation.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=reservation_id)
    except Reservation.DoesNotExist:
        raise NotFoundError(f"Reservation {reservation_id} not found", reservation_id=reservation_id)


# ===== Command Handlers =====

class CreateReservationHandler:
    """
    Handler for CreateReservation command

    Steps:
    1. Validate the window and the requester
    2. Lock the resource (in-process mutex + row lock)
    3. Check duration, capacity, conflicts and the daily limit
    4. Create the reservation and record its events
    5. Commit (events are published after commit)
    """

    def __call__(self, command: CreateReservationCommand) -> Reservation:
        return self.handle(command)

    def handle(self, command: CreateReservationCommand) -> Reservation:
        logger.info(
            f"Creating reservation: resource={command.resource_id}, user={command.user_id}, "
            f"window={command.start_time} - {command.end_time}"
        )

        window = TimeWindow(command.start_time, command.end_time)
        if command.number_of_people < 1:
            raise ValidationError(
                "A reservation needs at least one person",
                number_of_people=command.number_of_people,
            )
        user = get_user(command.user_id)

        existing = self._find_by_request_key(user.pk, command.request_key)
        if existing is not None:
            logger.info(f"Request key {command.request_key} already used, returning reservation {existing.pk}")
            return existing

        if window.start < timezone.now():
            raise ValidationError("Cannot book in the past", start_time=window.start)

        with allocation_locks.hold("resource", command.resource_id):
            try:
                reservation = self._create(command, user, window)
            except IntegrityError:
                existing = self._find_by_request_key(user.pk, command.request_key)
                if existing is None:
                    raise
                return existing

        logger.info(f"Reservation {reservation.pk} created with status {reservation.status}")
        return reservation

    def _create(self, command: CreateReservationCommand, user, window: TimeWindow) -> Reservation:
        with DjangoUnitOfWork() as uow:
            resource = get_resource(command.resource_id, lock=True)
            if not resource.is_active:
                raise ResourceUnavailableError(
                    f"Resource {resource.name} is not active",
                    resource_id=resource.pk,
                )

            self._check_duration(resource, window)
            if not resource.has_capacity_for(command.number_of_people):
                raise ValidationError(
                    f"Resource {resource.name} holds at most {resource.capacity} people",
                    resource_id=resource.pk,
                    capacity=resource.capacity,
                    number_of_people=command.number_of_people,
                )

            availability.ensure_available(resource.pk, window.start, window.end)

            limit = availability.daily_limit(resource)
            count = availability.daily_count(user.pk, resource.pk, window.start)
            if count >= limit:
                raise LimitExceededError(
                    f"Daily limit of {limit} reservations reached for {resource.name}",
                    resource_id=resource.pk,
                    user_id=user.pk,
                    day=window.local_date,
                    limit=limit,
                )

            auto_confirm = allocation_setting('AUTO_CONFIRM_RESERVATIONS') and not resource.requires_approval
            now = timezone.now()
            reservation = Reservation.objects.create(
                resource=resource,
                user=user,
                start_time=window.start,
                end_time=window.end,
                number_of_people=command.number_of_people,
                notes=command.notes,
                request_key=command.request_key,
                status=ReservationStatus.CONFIRMED if auto_confirm else ReservationStatus.PENDING,
                confirmed_at=now if auto_confirm else None,
            )
            reservation.record_created()
            uow.collect_events(reservation)
        return reservation

    def _check_duration(self, resource, window: TimeWindow) -> None:
        minutes = window.minutes
        if resource.min_duration_minutes and minutes < resource.min_duration_minutes:
            raise ValidationError(
                f"Reservations of {resource.name} last at least {resource.min_duration_minutes} minutes",
                resource_id=resource.pk,
                duration_minutes=minutes,
                min_duration_minutes=resource.min_duration_minutes,
            )
        if resource.max_duration_minutes and minutes > resource.max_duration_minutes:
            raise ValidationError(
                f"Reservations of {resource.name} last at most {resource.max_duration_minutes} minutes",
                resource_id=resource.pk,
                duration_minutes=minutes,
                max_duration_minutes=resource.max_duration_minutes,
            )

    def _find_by_request_key(self, user_id, request_key):
        if not request_key:
            return None
        return Reservation.objects.filter(user_id=user_id, request_key=request_key).first()


class _TransitionHandler:
    """Loads the reservation under a row lock, applies one domain method, saves."""

    verb = 'updated'

    def __call__(self, command) -> Reservation:
        return self.handle(command)

    def handle(self, command) -> Reservation:
        with DjangoUnitOfWork() as uow:
            reservation = load_reservation(command.reservation_id, lock=True)
            self.apply(reservation, command)
            reservation.save()
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.pk} {self.verb} (status {reservation.status})")
        return reservation

    def apply(self, reservation: Reservation, command) -> None:
        raise NotImplementedError


class ConfirmReservationHandler(_TransitionHandler):
    verb = 'confirmed'

    def apply(self, reservation, command):
        reservation.confirm()


class CancelReservationHandler(_TransitionHandler):
    verb = 'cancelled'

    def apply(self, reservation, command):
        reservation.cancel(command.reason)


class CheckInReservationHandler(_TransitionHandler):
    verb = 'checked in'

    def apply(self, reservation, command):
        reservation.check_in()


class CompleteReservationHandler(_TransitionHandler):
    """Handles both checkout and completion; they are the same transition."""

    verb = 'completed'

    def apply(self, reservation, command):
        reservation.complete()


class MarkNoShowHandler(_TransitionHandler):
    verb = 'marked as no-show'

    def apply(self, reservation, command):
        grace = timedelta(minutes=int(allocation_setting('NO_SHOW_GRACE_MINUTES')))
        reservation.mark_no_show(grace)


class PickUpKeyHandler(_TransitionHandler):
    """
    Link one of the user's active key assignments to the reservation

    The key itself is issued through the custody engine; pickup only
    records which assignment covers this reservation. When several held
    keys open the resource the caller has to name the assignment.
    """

    verb = 'key picked up'

    def apply(self, reservation, command):
        reservation.ensure_key_pickup_allowed()
        if command.assignment_id is not None:
            assignment = self._named_assignment(reservation, command.assignment_id)
        else:
            assignment = self._only_fitting_assignment(reservation)
        reservation.pick_up_key(assignment)

    def _named_assignment(self, reservation, assignment_id):
        assignment = load_assignment(assignment_id)
        resource = reservation.resource
        if (
            not assignment.is_active
            or assignment.user_id != reservation.user_id
            or not resource.accepts_key(assignment.key)
        ):
            raise KeyUnavailableError(
                f"Assignment {assignment_id} is not an active key for {resource.name} held by the user",
                reservation_id=reservation.pk,
                assignment_id=assignment_id,
                user_id=reservation.user_id,
            )
        return assignment

    def _only_fitting_assignment(self, reservation):
        resource = reservation.resource
        candidates = list(find_active_for_user_and_resource(reservation.user_id, resource))
        if not candidates:
            raise KeyUnavailableError(
                f"User {reservation.user_id} holds no active key for {resource.name}",
                reservation_id=reservation.pk,
                user_id=reservation.user_id,
                key_type=resource.key_type,
                key_id=resource.key_id,
            )
        if len(candidates) > 1:
            raise KeyUnavailableError(
                f"User {reservation.user_id} holds several keys for {resource.name}; name the assignment",
                reservation_id=reservation.pk,
                user_id=reservation.user_id,
                candidate_assignment_ids=[assignment.pk for assignment in candidates],
            )
        return candidates[0]


class ReturnReservationKeyHandler(_TransitionHandler):
    """Mark the key as returned and close the linked assignment in the same transaction"""

    verb = 'key returned'

    def apply(self, reservation, command):
        reservation.return_key()
        assignment = reservation.key_assignment
        if assignment is not None and assignment.is_active:
            message_bus.handle_command(ReturnKeyCommand(
                assignment_id=assignment.pk,
                notes=f"Returned with reservation {reservation.pk}",
            ))


def register_handlers(bus) -> None:
    """Wire the booking commands into ``bus`` (called from AppConfig.ready)."""
    complete = CompleteReservationHandler()
    handlers = {
        CreateReservationCommand: CreateReservationHandler(),
        ConfirmReservationCommand: ConfirmReservationHandler(),
        CancelReservationCommand: CancelReservationHandler(),
        CheckInReservationCommand: CheckInReservationHandler(),
        CheckOutReservationCommand: complete,
        CompleteReservationCommand: complete,
        MarkNoShowCommand: MarkNoShowHandler(),
        PickUpKeyCommand: PickUpKeyHandler(),
        ReturnReservationKeyCommand: ReturnReservationKeyHandler(),
    }
    for command_type, handler in handlers.items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler)
