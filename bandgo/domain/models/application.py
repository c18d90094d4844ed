"""Band application domain model."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from bandgo.domain.models._state_machine import check_transition


class ApplicationStatus(Enum):
    """Review status of an application.

    PENDING -> APPROVED | REJECTED. Both decisions are terminal.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    def is_terminal(self) -> bool:
        return self is not ApplicationStatus.PENDING


APPLICATION_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class BandApplication:
    """A musician's application to join a band request.

    Attributes:
        id: Stable application id.
        band_request_id: Request being applied to.
        applicant_id: Applying user.
        instrument_id: Instrument the applicant would play.
        created_at: Submission timestamp (UTC).
        message: Pitch to the request creator.
        sample_url: Optional audio or video sample.
        status: Review status.
        reviewed_at: When the decision was recorded.
        review_note: Optional note from the reviewer.
    """

    id: str
    band_request_id: str
    applicant_id: str
    instrument_id: str
    created_at: datetime
    message: str = field(default="")
    sample_url: str | None = field(default=None)
    status: ApplicationStatus = field(default=ApplicationStatus.PENDING)
    reviewed_at: datetime | None = field(default=None)
    review_note: str | None = field(default=None)

    def with_decision(
        self,
        status: ApplicationStatus,
        reviewed_at: datetime,
        note: str | None = None,
    ) -> BandApplication:
        """Record the review decision.

        Raises:
            InvalidStateTransitionError: If the application is not pending.
        """
        check_transition(
            "application", self.id, self.status, status, APPLICATION_TRANSITIONS
        )
        return replace(self, status=status, reviewed_at=reviewed_at, review_note=note)
