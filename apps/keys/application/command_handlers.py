"""
Key Custody Command Handlers

These are the use cases for the custody domain.
They orchestrate key and assignment state changes within transactions.

Commands:
- IssueKeyCommand: Hand a key to a user
- ReturnKeyCommand: Close an assignment (optionally flagging loss/damage)
- ReportKeyLostCommand / ReportKeyDamagedCommand: Close an assignment abnormally
- ReinstateKeyCommand: Administrative exit from lost/damaged/out-of-service
- PutKeyOutOfServiceCommand: Take an available key out of circulation
- ExtendKeyAssignmentCommand: Move the expected return of an active assignment
"""

from dataclasses import dataclass
from datetime import datetime
import logging

from django.db import IntegrityError  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.locks import allocation_locks
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    KeyUnavailableError,
    NotFoundError,
    ValidationError,
)
from shared.infrastructure.users import get_user
from apps.keys.domain.status import AssignmentStatus, KeyStatus
from apps.keys.models import DormitoryKey, KeyAssignment

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class IssueKeyCommand:
    """
    Command to issue a key

    ``expected_return`` of None means open-ended custody.
    """
    user_id: int
    key_id: int
    expected_return: datetime | None = None
    issued_by_id: int | None = None
    notes: str = ''


@dataclass
class ReturnKeyCommand:
    """Command to close an assignment when the key comes back"""
    assignment_id: int
    condition: str = ''
    notes: str = ''
    damaged: bool = False
    lost: bool = False


@dataclass
class ReportKeyLostCommand:
    assignment_id: int


@dataclass
class ReportKeyDamagedCommand:
    assignment_id: int
    description: str = ''


@dataclass
class ReinstateKeyCommand:
    key_id: int


@dataclass
class PutKeyOutOfServiceCommand:
    key_id: int
    reason: str = ''


@dataclass
class ExtendKeyAssignmentCommand:
    assignment_id: int
    expected_return: datetime


# ===== Loaders =====

def load_key(key_id, *, lock: bool = False) -> DormitoryKey:
    queryset = DormitoryKey.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=key_id)
    except DormitoryKey.DoesNotExist:
        raise NotFoundError(f"Key {key_id} not found", key_id=key_id)


def load_assignment(assignment_id, *, lock: bool = False) -> KeyAssignment:
    queryset = KeyAssignment.objects.select_related("key")
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=assignment_id)
    except KeyAssignment.DoesNotExist:
        raise NotFoundError(f"Key assignment {assignment_id} not found", assignment_id=assignment_id)


# ===== Command Handlers =====

class IssueKeyHandler:
    """
    Handler for IssueKey command

    The availability check and the write happen while holding the key's
    in-process lock and its row lock; the partial unique index on active
    assignments is the final safety net.
    """

    def __call__(self, command: IssueKeyCommand) -> KeyAssignment:
        return self.handle(command)

    def handle(self, command: IssueKeyCommand) -> KeyAssignment:
        logger.info(f"Issuing key {command.key_id} to user {command.user_id}")

        user = get_user(command.user_id)
        now = timezone.now()
        if command.expected_return is not None and command.expected_return <= now:
            raise ValidationError(
                "Expected return must be in the future",
                key_id=command.key_id,
                expected_return=command.expected_return,
            )

        with allocation_locks.hold("key", command.key_id):
            try:
                with DjangoUnitOfWork() as uow:
                    key = load_key(command.key_id, lock=True)

                    if key.status != KeyStatus.AVAILABLE:
                        raise KeyUnavailableError(
                            f"Key {key.key_code} is {key.status} and cannot be issued",
                            key_id=key.pk,
                            status=key.status,
                        )

                    holder = KeyAssignment.objects.active().filter(key=key).first()
                    if holder is not None:
                        raise KeyUnavailableError(
                            f"Key {key.key_code} is already held (assignment {holder.pk})",
                            key_id=key.pk,
                            assignment_id=holder.pk,
                        )

                    assignment = KeyAssignment.objects.create(
                        key=key,
                        user=user,
                        issued_by_id=command.issued_by_id,
                        issued_at=now,
                        expected_return=command.expected_return,
                        issue_notes=command.notes,
                    )

                    key.mark_assigned(assignment)
                    key.save(update_fields=["status", "total_assignments", "updated_at"])
                    uow.collect_events(key)
            except IntegrityError as exc:
                raise KeyUnavailableError(
                    f"Key {command.key_id} already has an active assignment",
                    key_id=command.key_id,
                ) from exc

        logger.info(f"Key {key.key_code} issued to user {user.pk} (assignment {assignment.pk})")
        return assignment


class ReturnKeyHandler:
    """Handler for returning a key; may flag it lost/damaged in the same call"""

    def __call__(self, command: ReturnKeyCommand) -> KeyAssignment:
        return self.handle(command)

    def handle(self, command: ReturnKeyCommand) -> KeyAssignment:
        logger.info(f"Returning key assignment {command.assignment_id}")

        with DjangoUnitOfWork() as uow:
            assignment = load_assignment(command.assignment_id, lock=True)
            key = load_key(assignment.key_id, lock=True)

            if command.lost:
                assignment.close(AssignmentStatus.LOST, condition=command.condition, notes=command.notes)
                key.mark_lost(assignment)
            elif command.damaged:
                assignment.close(AssignmentStatus.DAMAGED, condition=command.condition, notes=command.notes)
                key.mark_damaged(assignment, command.notes)
            else:
                assignment.close(AssignmentStatus.RETURNED, condition=command.condition, notes=command.notes)
                key.mark_returned(assignment)

            assignment.save()
            key.save()
            uow.collect_events(key)

        logger.info(f"Key {key.key_code} returned, assignment {assignment.pk} is {assignment.status}")
        return assignment


class ReportKeyLostHandler:

    def __call__(self, command: ReportKeyLostCommand) -> KeyAssignment:
        return ReturnKeyHandler().handle(ReturnKeyCommand(assignment_id=command.assignment_id, lost=True))


class ReportKeyDamagedHandler:

    def __call__(self, command: ReportKeyDamagedCommand) -> KeyAssignment:
        return ReturnKeyHandler().handle(ReturnKeyCommand(
            assignment_id=command.assignment_id,
            notes=command.description,
            condition='damaged',
            damaged=True,
        ))


class ReinstateKeyHandler:
    """Administrative action returning a lost/damaged/out-of-service key to circulation"""

    def __call__(self, command: ReinstateKeyCommand) -> DormitoryKey:
        with allocation_locks.hold("key", command.key_id):
            with DjangoUnitOfWork() as uow:
                key = load_key(command.key_id, lock=True)
                key.reinstate()
                key.save()
                uow.collect_events(key)

        logger.info(f"Key {key.key_code} reinstated")
        return key


class PutKeyOutOfServiceHandler:

    def __call__(self, command: PutKeyOutOfServiceCommand) -> DormitoryKey:
        with allocation_locks.hold("key", command.key_id):
            with DjangoUnitOfWork() as uow:
                key = load_key(command.key_id, lock=True)
                key.put_out_of_service(command.reason)
                key.save()
                uow.collect_events(key)

        logger.info(f"Key {key.key_code} put out of service: {command.reason}")
        return key


class ExtendKeyAssignmentHandler:

    def __call__(self, command: ExtendKeyAssignmentCommand) -> KeyAssignment:
        if command.expected_return <= timezone.now():
            raise ValidationError(
                "Expected return must be in the future",
                assignment_id=command.assignment_id,
                expected_return=command.expected_return,
            )

        with DjangoUnitOfWork() as uow:
            assignment = load_assignment(command.assignment_id, lock=True)
            assignment.extend(command.expected_return)
            assignment.save()
            uow.collect_events(assignment)

        logger.info(f"Key assignment {assignment.pk} extended until {command.expected_return.isoformat()}")
        return assignment


def register_handlers(bus) -> None:
    """Wire the custody commands into ``bus`` (called from AppConfig.ready)."""
    handlers = {
        IssueKeyCommand: IssueKeyHandler(),
        ReturnKeyCommand: ReturnKeyHandler(),
        ReportKeyLostCommand: ReportKeyLostHandler(),
        ReportKeyDamagedCommand: ReportKeyDamagedHandler(),
        ReinstateKeyCommand: ReinstateKeyHandler(),
        PutKeyOutOfServiceCommand: PutKeyOutOfServiceHandler(),
        ExtendKeyAssignmentCommand: ExtendKeyAssignmentHandler(),
    }
    for command_type, handler in handlers.items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler)
