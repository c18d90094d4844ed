"""Band domain model and membership rules.

Invariants held by every Band instance the core persists:
- members is never empty (removing the last member deletes the band)
- exactly one member has is_leader = True
- a user appears at most once in members
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable

from bandgo.domain.errors.not_found import MembershipNotFoundError
from bandgo.domain.errors.validation import ValidationError
from bandgo.domain.models.band_request import BandCommitmentLevel

UNKNOWN_INSTRUMENT = "unknown"


@dataclass(frozen=True, eq=True)
class BandMember:
    """A user's seat in a band."""

    user_id: str
    instrument_id: str
    joined_at: datetime
    is_leader: bool = field(default=False)


def validate_members(members: Iterable[BandMember]) -> tuple[BandMember, ...]:
    """Check the membership invariants and return the members as a tuple.

    Raises:
        ValidationError: If the list is empty, repeats a user, or does not
            have exactly one leader.
    """
    members = tuple(members)
    if not members:
        raise ValidationError("a band must have at least one member", field="members")
    user_ids = [m.user_id for m in members]
    if len(set(user_ids)) != len(user_ids):
        raise ValidationError("a user may appear only once in a band", field="members")
    leaders = sum(1 for m in members if m.is_leader)
    if leaders != 1:
        raise ValidationError(
            f"a band must have exactly one leader, got {leaders}", field="members"
        )
    return members


@dataclass(frozen=True, eq=True)
class Band:
    """A live band formed from a band request.

    Attributes:
        id: Stable band id.
        original_band_request_id: The request the band was formed from.
        members: Seats in join order; exactly one is the leader.
        created_at: Formation timestamp (UTC).
        updated_at: Last change timestamp (UTC).
        approved_rehearsals_count: Rehearsals approved by staff so far.
        rehearsal_goal: Approved rehearsals needed before a performance
            request may be filed.
        performance_request_id: Latest performance request, if any.
        live_session_request_id: Latest live session request, if any.
    """

    id: str
    original_band_request_id: str
    members: tuple[BandMember, ...]
    created_at: datetime
    updated_at: datetime
    name: str | None = field(default=None)
    description: str | None = field(default=None)
    cover_image_url: str | None = field(default=None)
    genres: tuple[str, ...] = field(default=())
    city: str | None = field(default=None)
    region: str | None = field(default=None)
    commitment_level: BandCommitmentLevel | None = field(default=None)
    rehearsal_frequency: str | None = field(default=None)
    influences: tuple[str, ...] = field(default=())
    approved_rehearsals_count: int = field(default=0)
    rehearsal_goal: int = field(default=3)
    performance_request_id: str | None = field(default=None)
    live_session_request_id: str | None = field(default=None)

    @property
    def leader(self) -> BandMember | None:
        return next((m for m in self.members if m.is_leader), None)

    @property
    def member_ids(self) -> tuple[str, ...]:
        return tuple(m.user_id for m in self.members)

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_ids

    def is_leader(self, user_id: str) -> bool:
        leader = self.leader
        return leader is not None and leader.user_id == user_id

    @property
    def can_request_performance(self) -> bool:
        return self.approved_rehearsals_count >= self.rehearsal_goal

    def with_rehearsal_goal(self, goal: int, updated_at: datetime) -> Band:
        """Return a copy with its own rehearsal goal.

        Raises:
            ValidationError: If the goal is below 1.
        """
        if goal < 1:
            raise ValidationError(
                f"rehearsal_goal must be at least 1, got {goal}", field="rehearsal_goal"
            )
        return replace(self, rehearsal_goal=goal, updated_at=updated_at)

    def with_member(self, member: BandMember, updated_at: datetime) -> Band:
        """Return a copy with ``member`` appended as a regular member.

        Raises:
            ValidationError: If the user is already in the band.
        """
        if self.is_member(member.user_id):
            raise ValidationError(
                f"user {member.user_id} is already a member of band {self.id}",
                field="members",
            )
        seat = replace(member, is_leader=False)
        return replace(self, members=self.members + (seat,), updated_at=updated_at)

    def with_members(self, members: Iterable[BandMember], updated_at: datetime) -> Band:
        """Return a copy with the member list replaced after validation."""
        return replace(self, members=validate_members(members), updated_at=updated_at)

    def without_member(self, user_id: str, updated_at: datetime) -> Band | None:
        """Remove ``user_id`` and restore the single-leader invariant.

        When the leader leaves, the earliest-joined remaining member (first
        in the list) is promoted.

        Returns:
            The updated band, or None when nobody is left and the band must
            be deleted.

        Raises:
            MembershipNotFoundError: If the user is not a member.
        """
        if not self.is_member(user_id):
            raise MembershipNotFoundError(self.id, user_id)

        remaining = [m for m in self.members if m.user_id != user_id]
        if not remaining:
            return None
        if not any(m.is_leader for m in remaining):
            remaining[0] = replace(remaining[0], is_leader=True)
        return replace(self, members=tuple(remaining), updated_at=updated_at)

    def with_approved_rehearsal(self, updated_at: datetime) -> Band:
        return replace(
            self,
            approved_rehearsals_count=self.approved_rehearsals_count + 1,
            updated_at=updated_at,
        )


# Leader-editable fields. Counters and progression links are owned by the
# rehearsal and progression managers.
BAND_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "description",
        "cover_image_url",
        "genres",
        "city",
        "region",
        "commitment_level",
        "rehearsal_frequency",
        "influences",
        "members",
    }
)
