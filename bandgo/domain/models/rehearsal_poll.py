"""Rehearsal scheduling poll.

Votes are a mapping keyed by user id inside each option, so a poll's votes
are keyed by (option id, user id): re-voting overwrites, never appends.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from bandgo.domain.errors.not_found import NotFoundError

MIN_POLL_OPTIONS = 2


@dataclass(frozen=True, eq=True)
class PollOption:
    """A proposed rehearsal time.

    Attributes:
        id: Option id, unique within the poll.
        date_time: Proposed start (UTC).
        duration_minutes: Proposed length.
        votes: user id -> can attend.
    """

    id: str
    date_time: datetime
    duration_minutes: int
    votes: dict[str, bool] = field(default_factory=dict)

    def with_vote(self, user_id: str, can_attend: bool) -> PollOption:
        return replace(self, votes={**self.votes, user_id: can_attend})

    def without_vote(self, user_id: str) -> PollOption:
        return replace(
            self, votes={uid: v for uid, v in self.votes.items() if uid != user_id}
        )

    @property
    def attending(self) -> tuple[str, ...]:
        return tuple(uid for uid, can_attend in self.votes.items() if can_attend)


@dataclass(frozen=True, eq=True)
class RehearsalPoll:
    """A multi-option scheduling proposal voted on by band members."""

    id: str
    band_id: str
    creator_id: str
    location: str
    deadline: datetime
    options: tuple[PollOption, ...]
    created_at: datetime
    notes: str | None = field(default=None)

    def option(self, option_id: str) -> PollOption:
        """Look up an option by id.

        Raises:
            NotFoundError: If the poll has no such option.
        """
        for option in self.options:
            if option.id == option_id:
                return option
        raise NotFoundError("poll_option", option_id)

    def with_option(self, updated: PollOption) -> RehearsalPoll:
        return replace(
            self,
            options=tuple(updated if o.id == updated.id else o for o in self.options),
        )

    def is_open(self, at: datetime) -> bool:
        return self.deadline > at


@dataclass(frozen=True, eq=True)
class ProposedTime:
    """A time offered when creating a poll, before it becomes an option."""

    date_time: datetime
    duration_minutes: int = field(default=120)
