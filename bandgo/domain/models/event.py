"""Event and registration domain models.

Capacity 0 means unlimited. For capacity C > 0, at most C registrations are
in REGISTERED status at any time; later registrants are waitlisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from bandgo.domain.errors.validation import ValidationError
from bandgo.domain.models._state_machine import check_transition
from bandgo.domain.models.patching import require_text


class EventType(Enum):
    JAM = "jam"
    BAND_PERFORMANCE = "band_performance"
    SHARED_PERFORMANCE = "shared_performance"
    OPEN_SESSION = "open_session"
    WORKSHOP = "workshop"
    OTHER = "other"


class RegistrationStatus(Enum):
    """Registration lifecycle.

    WAITLIST -> REGISTERED happens only through explicit waitlist promotion.
    CANCELLED is terminal.
    """

    REGISTERED = "registered"
    WAITLIST = "waitlist"
    CANCELLED = "cancelled"

    def is_active(self) -> bool:
        return self is not RegistrationStatus.CANCELLED


REGISTRATION_TRANSITIONS: dict[RegistrationStatus, frozenset[RegistrationStatus]] = {
    RegistrationStatus.REGISTERED: frozenset({RegistrationStatus.CANCELLED}),
    RegistrationStatus.WAITLIST: frozenset(
        {RegistrationStatus.REGISTERED, RegistrationStatus.CANCELLED}
    ),
    RegistrationStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class Event:
    """A scheduled event users can register for.

    Attributes:
        id: Stable event id.
        title: Event title.
        type: Kind of event.
        date_time: Start time (UTC).
        duration_minutes: Length of the event.
        location: Venue text.
        organizer_id: User running the event.
        created_by: User who created the record (staff or the approver of a
            submission).
        capacity: Registration cap, 0 for unlimited.
        price: Entry price, 0 for free.
        submission_id: Submission this event was approved from, if any.
    """

    id: str
    title: str
    type: EventType
    date_time: datetime
    duration_minutes: int
    location: str
    organizer_id: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    description: str = field(default="")
    cover_image_url: str | None = field(default=None)
    capacity: int = field(default=0)
    price: float = field(default=0.0)
    registration_deadline: datetime | None = field(default=None)
    related_band_ids: tuple[str, ...] = field(default=())
    requirements: str | None = field(default=None)
    backline_provided: str | None = field(default=None)
    whatsapp_group_id: str | None = field(default=None)
    age_restriction: str | None = field(default=None)
    is_accessible: bool | None = field(default=None)
    ticket_link: str | None = field(default=None)
    ticket_price: float | None = field(default=None)
    submission_id: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate required event fields."""
        require_text(self.title, "title")
        require_text(self.location, "location")
        require_text(self.organizer_id, "organizer_id")
        if self.duration_minutes <= 0:
            raise ValidationError(
                f"duration_minutes must be positive, got {self.duration_minutes}",
                field="duration_minutes",
            )
        if self.capacity < 0:
            raise ValidationError(
                f"capacity must be non-negative, got {self.capacity}", field="capacity"
            )
        if self.price < 0:
            raise ValidationError(
                f"price must be non-negative, got {self.price}", field="price"
            )

    @property
    def is_unlimited(self) -> bool:
        return self.capacity == 0

    def has_room(self, registered_count: int) -> bool:
        return self.is_unlimited or registered_count < self.capacity


EVENT_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "type",
        "date_time",
        "duration_minutes",
        "location",
        "organizer_id",
        "description",
        "cover_image_url",
        "capacity",
        "price",
        "registration_deadline",
        "related_band_ids",
        "requirements",
        "backline_provided",
        "whatsapp_group_id",
        "age_restriction",
        "is_accessible",
        "ticket_link",
        "ticket_price",
    }
)


@dataclass(frozen=True, eq=True)
class EventRegistration:
    """A user's registration for an event."""

    id: str
    event_id: str
    user_id: str
    status: RegistrationStatus
    created_at: datetime
    notes: str | None = field(default=None)

    def with_status(self, new_status: RegistrationStatus) -> EventRegistration:
        check_transition(
            "event_registration",
            self.id,
            self.status,
            new_status,
            REGISTRATION_TRANSITIONS,
        )
        return replace(self, status=new_status)
