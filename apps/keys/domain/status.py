"""
Key Custody State Machines

Closed enumerations for keys and key assignments together with their
transition tables. Every status change in the custody engine goes
through ``ensure_key_transition``/``ensure_assignment_transition``.

Key lifecycle:
- AVAILABLE -> ASSIGNED (issued)
- ASSIGNED -> AVAILABLE (returned)
- ASSIGNED -> LOST | DAMAGED (reported; dead end until reinstated)
- AVAILABLE -> OUT_OF_SERVICE (administrative)
- LOST | DAMAGED | OUT_OF_SERVICE -> AVAILABLE (reinstate only)
"""

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import InvalidTransitionError


class KeyType(models.TextChoices):
    ROOM = "room", _("Room key")
    MASTER = "master", _("Master key")
    EQUIPMENT = "equipment", _("Equipment key")
    OTHER = "other", _("Other key")


class KeyStatus(models.TextChoices):
    AVAILABLE = "available", _("Available")
    ASSIGNED = "assigned", _("Assigned")
    LOST = "lost", _("Lost")
    DAMAGED = "damaged", _("Damaged")
    OUT_OF_SERVICE = "out_of_service", _("Out of service")


class AssignmentStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    RETURNED = "returned", _("Returned")
    LOST = "lost", _("Lost")
    DAMAGED = "damaged", _("Damaged")


KEY_TRANSITIONS: dict[str, frozenset[str]] = {
    KeyStatus.AVAILABLE: frozenset({KeyStatus.ASSIGNED, KeyStatus.OUT_OF_SERVICE}),
    KeyStatus.ASSIGNED: frozenset({KeyStatus.AVAILABLE, KeyStatus.LOST, KeyStatus.DAMAGED}),
    KeyStatus.LOST: frozenset({KeyStatus.AVAILABLE}),
    KeyStatus.DAMAGED: frozenset({KeyStatus.AVAILABLE}),
    KeyStatus.OUT_OF_SERVICE: frozenset({KeyStatus.AVAILABLE}),
}

# Reached from ASSIGNED only through an explicit reinstate, never by a return.
ADMINISTRATIVE_STATES = frozenset({KeyStatus.LOST, KeyStatus.DAMAGED, KeyStatus.OUT_OF_SERVICE})

ASSIGNMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    AssignmentStatus.ACTIVE: frozenset(
        {AssignmentStatus.RETURNED, AssignmentStatus.LOST, AssignmentStatus.DAMAGED}
    ),
    AssignmentStatus.RETURNED: frozenset(),
    AssignmentStatus.LOST: frozenset(),
    AssignmentStatus.DAMAGED: frozenset(),
}


def can_transition_key(current: str, target: str) -> bool:
    return target in KEY_TRANSITIONS.get(current, frozenset())


def ensure_key_transition(key_id, current: str, target: str) -> None:
    if not can_transition_key(current, target):
        raise InvalidTransitionError(
            f"Key {key_id} cannot move from {current} to {target}",
            key_id=key_id,
            from_status=str(current),
            to_status=str(target),
        )


def ensure_assignment_transition(assignment_id, current: str, target: str) -> None:
    if target not in ASSIGNMENT_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(
            f"Key assignment {assignment_id} is {current} and cannot become {target}",
            assignment_id=assignment_id,
            from_status=str(current),
            to_status=str(target),
        )
