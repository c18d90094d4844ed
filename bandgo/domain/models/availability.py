"""Member availability and derived scheduling suggestions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from bandgo.domain.errors.validation import ValidationError

_CLOCK_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class AvailabilityStatus(Enum):
    AVAILABLE = "available"
    MAYBE = "maybe"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, eq=True)
class TimeSlot:
    """A window within a day, as "HH:MM" wall-clock strings."""

    start: str
    end: str
    status: AvailabilityStatus = field(default=AvailabilityStatus.AVAILABLE)

    def __post_init__(self) -> None:
        for name, value in (("start", self.start), ("end", self.end)):
            if not _CLOCK_TIME.match(value):
                raise ValidationError(f"{name} must be HH:MM, got {value!r}", field=name)
        if self.end <= self.start:
            raise ValidationError("time slot must end after it starts", field="end")


@dataclass(frozen=True, eq=True)
class AvailabilitySlot:
    """One member's availability for one band on one date."""

    id: str
    band_id: str
    user_id: str
    date: date
    updated_at: datetime
    time_slots: tuple[TimeSlot, ...] = field(default=())
    notes: str | None = field(default=None)

    @property
    def is_available(self) -> bool:
        return any(ts.status is AvailabilityStatus.AVAILABLE for ts in self.time_slots)


@dataclass(frozen=True, eq=True)
class SchedulingSuggestion:
    """A proposed rehearsal time ranked by member overlap (0-100)."""

    band_id: str
    date_time: datetime
    duration_minutes: int
    match_score: int
    available_members: tuple[str, ...]
    unavailable_members: tuple[str, ...]
