"""User-proposed events awaiting staff review.

State Machine:
    PENDING -> APPROVED (a real Event is created)
    PENDING -> REJECTED (reason stored)
    PENDING -> NEEDS_CHANGES (note stored)
    NEEDS_CHANGES -> PENDING (resubmitted)
    REJECTED -> PENDING (resubmitted)

APPROVED is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from bandgo.domain.errors.validation import ValidationError
from bandgo.domain.models._state_machine import check_transition
from bandgo.domain.models.event import EventType
from bandgo.domain.models.patching import require_text


class EventSubmissionStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_CHANGES = "needs_changes"


SUBMISSION_TRANSITIONS: dict[EventSubmissionStatus, frozenset[EventSubmissionStatus]] = {
    EventSubmissionStatus.PENDING: frozenset(
        {
            EventSubmissionStatus.APPROVED,
            EventSubmissionStatus.REJECTED,
            EventSubmissionStatus.NEEDS_CHANGES,
        }
    ),
    EventSubmissionStatus.NEEDS_CHANGES: frozenset({EventSubmissionStatus.PENDING}),
    EventSubmissionStatus.REJECTED: frozenset({EventSubmissionStatus.PENDING}),
    EventSubmissionStatus.APPROVED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class EventSubmission:
    """A pending proposal for an Event submitted by a non-staff user.

    Attributes:
        id: Stable submission id.
        submitted_by_user_id: Proposing user; becomes the event organizer.
        start_at: Proposed start (UTC).
        end_at: Proposed end (UTC); the event duration is derived from it.
        status: Review status.
        admin_note: Change request note.
        rejection_reason: Why the proposal was rejected.
        approved_event_id: Event created on approval.
    """

    id: str
    submitted_by_user_id: str
    title: str
    type: EventType
    start_at: datetime
    end_at: datetime
    location_text: str
    created_at: datetime
    updated_at: datetime
    description: str = field(default="")
    cover_url: str | None = field(default=None)
    registration_enabled: bool = field(default=True)
    capacity: int | None = field(default=None)
    price: float = field(default=0.0)
    related_band_id: str | None = field(default=None)
    status: EventSubmissionStatus = field(default=EventSubmissionStatus.PENDING)
    admin_note: str | None = field(default=None)
    rejection_reason: str | None = field(default=None)
    approved_event_id: str | None = field(default=None)
    host_user_id: str | None = field(default=None)
    payment_details: str | None = field(default=None)

    def __post_init__(self) -> None:
        require_text(self.title, "title")
        require_text(self.location_text, "location_text")
        if self.end_at <= self.start_at:
            raise ValidationError("end_at must be after start_at", field="end_at")

    @property
    def duration_minutes(self) -> int:
        return int((self.end_at - self.start_at).total_seconds() // 60)

    def with_status(
        self, new_status: EventSubmissionStatus, **changes: Any
    ) -> EventSubmission:
        """Create new submission in ``new_status`` with ``changes`` applied.

        Raises:
            InvalidStateTransitionError: If the move is not allowed.
        """
        check_transition(
            "event_submission", self.id, self.status, new_status, SUBMISSION_TRANSITIONS
        )
        return replace(self, status=new_status, **changes)


SUBMISSION_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "type",
        "description",
        "start_at",
        "end_at",
        "location_text",
        "cover_url",
        "registration_enabled",
        "capacity",
        "price",
        "related_band_id",
        "host_user_id",
        "payment_details",
    }
)
