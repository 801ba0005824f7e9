"""
Reservation Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from shared.domain.base import DomainEvent


@dataclass
class ReservationCreated(DomainEvent):
    """
    Event: Reservation was created

    Triggers:
    - Notify staff when approval is required
    """
    name: ClassVar[str] = 'reservation.created'

    reservation_id: int
    resource_id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    status: str


@dataclass
class ReservationConfirmed(DomainEvent):
    """
    Event: Reservation was confirmed (PENDING -> CONFIRMED, or auto-confirmed)

    Triggers:
    - Send confirmation to the user
    """
    name: ClassVar[str] = 'reservation.confirmed'

    reservation_id: int
    resource_id: int
    user_id: int
    start_time: datetime
    end_time: datetime


@dataclass
class ReservationCancelled(DomainEvent):
    name: ClassVar[str] = 'reservation.cancelled'

    reservation_id: int
    resource_id: int
    user_id: int
    reason: str = ''


@dataclass
class ReservationCheckedIn(DomainEvent):
    name: ClassVar[str] = 'reservation.checked_in'

    reservation_id: int
    resource_id: int
    user_id: int


@dataclass
class ReservationCompleted(DomainEvent):
    name: ClassVar[str] = 'reservation.completed'

    reservation_id: int
    resource_id: int
    user_id: int


@dataclass
class ReservationMarkedNoShow(DomainEvent):
    name: ClassVar[str] = 'reservation.no_show_marked'

    reservation_id: int
    resource_id: int
    user_id: int


@dataclass
class ReservationKeyPickedUp(DomainEvent):
    name: ClassVar[str] = 'reservation.key_picked_up'

    reservation_id: int
    user_id: int
    key_assignment_id: int


@dataclass
class ReservationKeyReturned(DomainEvent):
    name: ClassVar[str] = 'reservation.key_returned'

    reservation_id: int
    user_id: int
    key_assignment_id: int | None


@dataclass
class ReservationOverdue(DomainEvent):
    """
    Event: A checked-in reservation passed its end time

    Emitted once per reservation by the overdue sweeper. The reservation
    is not transitioned.
    """
    name: ClassVar[str] = 'reservation.overdue'

    reservation_id: int
    resource_id: int
    user_id: int
    end_time: datetime


@dataclass
class ReservationNoShowDetected(DomainEvent):
    """
    Event: A confirmed reservation was not checked in within the grace period

    Emitted once per reservation by the overdue sweeper; staff decides
    whether to mark it as no-show.
    """
    name: ClassVar[str] = 'reservation.no_show'

    reservation_id: int
    resource_id: int
    user_id: int
    start_time: datetime
