"""Moderation queue entries."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from bandgo.domain.models._state_machine import check_transition


class ReportTargetType(Enum):
    BAND = "band"
    USER = "user"
    EVENT = "event"
    POST = "post"


class ReportStatus(Enum):
    """PENDING -> REVIEWED | DISMISSED. Both outcomes are terminal."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


REPORT_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.REVIEWED, ReportStatus.DISMISSED}),
    ReportStatus.REVIEWED: frozenset(),
    ReportStatus.DISMISSED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class Report:
    id: str
    target_type: ReportTargetType
    target_id: str
    reported_by_user_id: str
    reason: str
    created_at: datetime
    description: str | None = field(default=None)
    status: ReportStatus = field(default=ReportStatus.PENDING)
    review_note: str | None = field(default=None)
    reviewed_by: str | None = field(default=None)
    reviewed_at: datetime | None = field(default=None)
    resolved_at: datetime | None = field(default=None)

    def resolved(
        self,
        status: ReportStatus,
        reviewer_id: str,
        at: datetime,
        note: str | None = None,
    ) -> Report:
        check_transition("report", self.id, self.status, status, REPORT_TRANSITIONS)
        return replace(
            self,
            status=status,
            review_note=note,
            reviewed_by=reviewer_id,
            reviewed_at=at,
            resolved_at=at,
        )
