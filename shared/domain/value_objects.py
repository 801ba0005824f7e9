"""
Common Value Objects

Value objects used by both allocation domains:
- TimeWindow: Half-open ``[start, end)`` interval a hold covers
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from django.utils import timezone

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError


@dataclass(frozen=True)
class TimeWindow(ValueObject):
    """
    Time window value object

    Represents a range from start (inclusive) to end (exclusive).
    Used for reservation periods and availability checks.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise ValidationError("Both start and end are required")
        if self.start >= self.end:
            raise ValidationError(
                f"Start ({self.start.isoformat()}) must be before end ({self.end.isoformat()})",
                start=self.start.isoformat(),
                end=self.end.isoformat(),
            )

    def overlaps_with(self, other: 'TimeWindow') -> bool:
        """
        Check if this window overlaps with another

        End is exclusive, so adjacent windows don't overlap.

        Examples:
            - 09:00-10:00 overlaps with 09:30-10:30 -> True
            - 09:00-10:00 overlaps with 10:00-11:00 -> False (adjacent)
        """
        if not isinstance(other, TimeWindow):
            raise TypeError("Can only check overlap with another TimeWindow")

        return self.start < other.end and other.start < self.end

    def contains(self, moment: datetime) -> bool:
        """Start is inclusive, end is exclusive"""
        return self.start <= moment < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    @property
    def local_date(self) -> date:
        """Calendar date of the start in the configured time zone"""
        if timezone.is_aware(self.start):
            return timezone.localtime(self.start).date()
        return self.start.date()

    def to_dict(self) -> dict:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def __repr__(self):
        return f"TimeWindow({self.start!r}, {self.end!r})"


def local_day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Return ``[midnight, next midnight)`` of the local calendar day of ``moment``."""
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    local = timezone.localtime(moment)
    day_start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return day_start, day_start + timedelta(days=1)
