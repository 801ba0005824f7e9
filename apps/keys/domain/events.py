"""
Key Custody Domain Events

Events that represent things that have happened in the custody domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from shared.domain.base import DomainEvent


@dataclass
class KeyIssued(DomainEvent):
    """A key was handed to a user (AVAILABLE -> ASSIGNED)"""
    name: ClassVar[str] = 'key.issued'

    key_id: int
    assignment_id: int
    user_id: int
    expected_return: datetime | None


@dataclass
class KeyReturned(DomainEvent):
    """Key came back in usable condition"""
    name: ClassVar[str] = 'key.returned'

    key_id: int
    assignment_id: int
    user_id: int


@dataclass
class KeyReportedLost(DomainEvent):
    """
    Key was reported lost

    Triggers:
    - Notify the holder about replacement
    - Key stays out of circulation until reinstated
    """
    name: ClassVar[str] = 'key.lost'

    key_id: int
    assignment_id: int
    user_id: int


@dataclass
class KeyReportedDamaged(DomainEvent):
    name: ClassVar[str] = 'key.damaged'

    key_id: int
    assignment_id: int
    user_id: int
    description: str = ''


@dataclass
class KeyReinstated(DomainEvent):
    name: ClassVar[str] = 'key.reinstated'

    key_id: int
    previous_status: str


@dataclass
class KeyPutOutOfService(DomainEvent):
    name: ClassVar[str] = 'key.out_of_service'

    key_id: int
    reason: str = ''


@dataclass
class KeyAssignmentExtended(DomainEvent):
    name: ClassVar[str] = 'key.extended'

    key_id: int
    assignment_id: int
    expected_return: datetime


@dataclass
class KeyOverdue(DomainEvent):
    """
    Event: An active assignment passed its expected return time

    Emitted once per assignment by the overdue sweeper.
    """
    name: ClassVar[str] = 'key.overdue'

    key_id: int
    assignment_id: int
    user_id: int
    expected_return: datetime
