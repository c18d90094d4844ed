"""Rehearsal domain model and its approval state machine.

State Machine:
    POLLING -> SCHEDULED (time agreed)
    POLLING -> CANCELLED
    SCHEDULED -> COMPLETION_SUBMITTED (a member reports it happened)
    SCHEDULED -> CANCELLED
    COMPLETION_SUBMITTED -> APPROVED (staff confirms; counts toward the goal)
    COMPLETION_SUBMITTED -> REJECTED (staff declines, with a note)

APPROVED, REJECTED and CANCELLED are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from bandgo.domain.models._state_machine import check_transition


class RehearsalStatus(Enum):
    """State in the rehearsal lifecycle."""

    POLLING = "polling"
    SCHEDULED = "scheduled"
    COMPLETION_SUBMITTED = "completion_submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        """Check if no further transitions are permitted from this state."""
        return self in REHEARSAL_TERMINAL_STATES

    def valid_transitions(self) -> frozenset[RehearsalStatus]:
        """Get valid transitions from this state.

        Returns:
            Frozenset of states this state can transition to.
            Empty set for terminal states.
        """
        return REHEARSAL_TRANSITIONS.get(self, frozenset())


REHEARSAL_TERMINAL_STATES: frozenset[RehearsalStatus] = frozenset(
    {
        RehearsalStatus.APPROVED,
        RehearsalStatus.REJECTED,
        RehearsalStatus.CANCELLED,
    }
)

REHEARSAL_TRANSITIONS: dict[RehearsalStatus, frozenset[RehearsalStatus]] = {
    RehearsalStatus.POLLING: frozenset(
        {RehearsalStatus.SCHEDULED, RehearsalStatus.CANCELLED}
    ),
    RehearsalStatus.SCHEDULED: frozenset(
        {RehearsalStatus.COMPLETION_SUBMITTED, RehearsalStatus.CANCELLED}
    ),
    RehearsalStatus.COMPLETION_SUBMITTED: frozenset(
        {RehearsalStatus.APPROVED, RehearsalStatus.REJECTED}
    ),
    RehearsalStatus.APPROVED: frozenset(),
    RehearsalStatus.REJECTED: frozenset(),
    RehearsalStatus.CANCELLED: frozenset(),
}

# States a rehearsal may be created in directly.
INITIAL_REHEARSAL_STATES: frozenset[RehearsalStatus] = frozenset(
    {RehearsalStatus.POLLING, RehearsalStatus.SCHEDULED}
)


@dataclass(frozen=True, eq=True)
class Rehearsal:
    """A band rehearsal, from scheduling through staff approval.

    Attributes:
        id: Stable rehearsal id.
        band_id: Owning band.
        date_time: Start time (UTC).
        duration_minutes: Planned length.
        location: Where the band meets.
        created_at: Creation timestamp (UTC).
        status: Lifecycle state.
        poll_id: Poll this rehearsal was finalized from, if any.
        completion_submitted_by: Member who reported the rehearsal done.
        admin_reviewed_by: Staff member who approved or rejected it.
        admin_note: Reviewer note (required on rejection).
    """

    id: str
    band_id: str
    date_time: datetime
    duration_minutes: int
    location: str
    created_at: datetime
    status: RehearsalStatus = field(default=RehearsalStatus.SCHEDULED)
    poll_id: str | None = field(default=None)
    completion_submitted_by: str | None = field(default=None)
    completion_submitted_at: datetime | None = field(default=None)
    admin_reviewed_by: str | None = field(default=None)
    admin_reviewed_at: datetime | None = field(default=None)
    admin_note: str | None = field(default=None)

    def with_status(self, new_status: RehearsalStatus, **changes: Any) -> Rehearsal:
        """Create new rehearsal in ``new_status`` with ``changes`` applied.

        Raises:
            InvalidStateTransitionError: If the transition is not valid from
                the current status.
        """
        check_transition(
            "rehearsal", self.id, self.status, new_status, REHEARSAL_TRANSITIONS
        )
        return replace(self, status=new_status, **changes)
