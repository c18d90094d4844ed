"""Band progression: performance and live session requests.

A band unlocks a performance request once its approved rehearsal count
reaches its rehearsal goal, and a live session request once a performance
request has been approved.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from bandgo.domain.errors.validation import ValidationError
from bandgo.domain.models._state_machine import check_transition


class PerformanceRequestStatus(Enum):
    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_CHANGES = "needs_changes"

    def is_open(self) -> bool:
        return self not in PERFORMANCE_TERMINAL_STATES


PERFORMANCE_TERMINAL_STATES: frozenset[PerformanceRequestStatus] = frozenset(
    {PerformanceRequestStatus.APPROVED, PerformanceRequestStatus.REJECTED}
)

_PERFORMANCE_DECISIONS = frozenset(
    {
        PerformanceRequestStatus.IN_REVIEW,
        PerformanceRequestStatus.APPROVED,
        PerformanceRequestStatus.REJECTED,
        PerformanceRequestStatus.NEEDS_CHANGES,
    }
)

PERFORMANCE_TRANSITIONS: dict[
    PerformanceRequestStatus, frozenset[PerformanceRequestStatus]
] = {
    PerformanceRequestStatus.SUBMITTED: _PERFORMANCE_DECISIONS,
    PerformanceRequestStatus.IN_REVIEW: _PERFORMANCE_DECISIONS
    - {PerformanceRequestStatus.IN_REVIEW},
    PerformanceRequestStatus.NEEDS_CHANGES: _PERFORMANCE_DECISIONS
    - {PerformanceRequestStatus.NEEDS_CHANGES},
    PerformanceRequestStatus.APPROVED: frozenset(),
    PerformanceRequestStatus.REJECTED: frozenset(),
}


class LiveSessionRequestStatus(Enum):
    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    SCHEDULED = "scheduled"

    def is_open(self) -> bool:
        return self not in LIVE_SESSION_TERMINAL_STATES


LIVE_SESSION_TERMINAL_STATES: frozenset[LiveSessionRequestStatus] = frozenset(
    {LiveSessionRequestStatus.REJECTED, LiveSessionRequestStatus.SCHEDULED}
)

LIVE_SESSION_TRANSITIONS: dict[
    LiveSessionRequestStatus, frozenset[LiveSessionRequestStatus]
] = {
    LiveSessionRequestStatus.SUBMITTED: frozenset(
        {
            LiveSessionRequestStatus.IN_REVIEW,
            LiveSessionRequestStatus.APPROVED,
            LiveSessionRequestStatus.REJECTED,
            LiveSessionRequestStatus.SCHEDULED,
        }
    ),
    LiveSessionRequestStatus.IN_REVIEW: frozenset(
        {
            LiveSessionRequestStatus.APPROVED,
            LiveSessionRequestStatus.REJECTED,
            LiveSessionRequestStatus.SCHEDULED,
        }
    ),
    LiveSessionRequestStatus.APPROVED: frozenset({LiveSessionRequestStatus.SCHEDULED}),
    LiveSessionRequestStatus.REJECTED: frozenset(),
    LiveSessionRequestStatus.SCHEDULED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class DateRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValidationError("date range ends before it starts", field="end")


@dataclass(frozen=True, eq=True)
class PerformanceRequest:
    """A band's request for a slot at a performance event."""

    id: str
    band_id: str
    preferred_date_range: DateRange
    set_duration_minutes: int
    created_at: datetime
    updated_at: datetime
    status: PerformanceRequestStatus = field(default=PerformanceRequestStatus.SUBMITTED)
    notes: str | None = field(default=None)
    admin_reviewed_by: str | None = field(default=None)
    admin_note: str | None = field(default=None)
    scheduled_date: datetime | None = field(default=None)

    def with_review(
        self, status: PerformanceRequestStatus, **changes: Any
    ) -> PerformanceRequest:
        check_transition(
            "performance_request", self.id, self.status, status, PERFORMANCE_TRANSITIONS
        )
        return replace(self, status=status, **changes)


@dataclass(frozen=True, eq=True)
class LiveSessionRequest:
    """A band's request for a recorded live session."""

    id: str
    band_id: str
    preferred_date_range: DateRange
    created_at: datetime
    updated_at: datetime
    status: LiveSessionRequestStatus = field(default=LiveSessionRequestStatus.SUBMITTED)
    notes: str | None = field(default=None)
    admin_reviewed_by: str | None = field(default=None)
    admin_note: str | None = field(default=None)
    scheduled_date: datetime | None = field(default=None)

    def with_review(
        self, status: LiveSessionRequestStatus, **changes: Any
    ) -> LiveSessionRequest:
        check_transition(
            "live_session_request", self.id, self.status, status, LIVE_SESSION_TRANSITIONS
        )
        return replace(self, status=status, **changes)


@dataclass(frozen=True, eq=True)
class BandProgress:
    """Derived view of a band's progress toward performing.

    Attributes:
        band_id: The band.
        is_formed: Always True for an existing band.
        approved_rehearsals: Approved rehearsal count.
        pending_rehearsals: Rehearsals waiting for staff review.
        rehearsal_goal: Approved rehearsals needed to request a performance.
        can_request_performance: approved_rehearsals >= rehearsal_goal.
        performance_status: Status of the latest performance request.
        can_request_live_session: True once a performance was approved.
        live_session_status: Status of the latest live session request.
    """

    band_id: str
    is_formed: bool
    approved_rehearsals: int
    pending_rehearsals: int
    rehearsal_goal: int
    can_request_performance: bool
    performance_status: PerformanceRequestStatus | None = None
    can_request_live_session: bool = False
    live_session_status: LiveSessionRequestStatus | None = None
