"""Process-wide system settings record."""

from __future__ import annotations

from dataclasses import dataclass, field

from bandgo.domain.errors.validation import ValidationError

SYSTEM_SETTINGS_ID = "system"


@dataclass(frozen=True, eq=True)
class SystemSettings:
    """Admin-managed settings shared by every manager.

    Attributes:
        rehearsal_goal: Default approved rehearsals a new band needs before
            requesting a performance.
        poll_duration_hours: Default lifetime of a rehearsal poll.
        auto_finalize_poll: Whether clients may finalize polls at deadline.
        google_calendar_connected: Calendar sync flag (sync itself is an
            external collaborator).
    """

    id: str = field(default=SYSTEM_SETTINGS_ID)
    rehearsal_goal: int = field(default=3)
    poll_duration_hours: int = field(default=24)
    auto_finalize_poll: bool = field(default=True)
    google_calendar_connected: bool = field(default=False)
    google_calendar_id: str | None = field(default=None)

    def __post_init__(self) -> None:
        if self.rehearsal_goal < 1:
            raise ValidationError(
                f"rehearsal_goal must be at least 1, got {self.rehearsal_goal}",
                field="rehearsal_goal",
            )
        if self.poll_duration_hours < 1:
            raise ValidationError(
                f"poll_duration_hours must be at least 1, got {self.poll_duration_hours}",
                field="poll_duration_hours",
            )


SETTINGS_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "rehearsal_goal",
        "poll_duration_hours",
        "auto_finalize_poll",
        "google_calendar_connected",
        "google_calendar_id",
    }
)
