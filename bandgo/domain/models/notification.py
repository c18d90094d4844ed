"""Per-user notifications created as side effects of other operations."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class NotificationType(Enum):
    APPLICATION_RECEIVED = "application_received"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    BAND_FORMED = "band_formed"
    NEW_POLL = "new_poll"
    REHEARSAL_SCHEDULED = "rehearsal_scheduled"
    REHEARSAL_APPROVED = "rehearsal_approved"
    REHEARSAL_REJECTED = "rehearsal_rejected"
    NEW_SONG = "new_song"
    POST_LIKE = "post_like"
    POST_COMMENT = "post_comment"
    CHAT_MESSAGE = "chat_message"
    DIRECT_MESSAGE = "direct_message"
    EVENT_SUBMISSION = "event_submission"
    SUBMISSION_APPROVED = "submission_approved"
    SUBMISSION_REJECTED = "submission_rejected"
    SUBMISSION_NEEDS_CHANGES = "submission_needs_changes"
    PERFORMANCE_REVIEWED = "performance_reviewed"
    LIVE_SESSION_REVIEWED = "live_session_reviewed"
    SYSTEM_MESSAGE = "system_message"


@dataclass(frozen=True, eq=True)
class Notification:
    id: str
    user_id: str
    type: NotificationType
    title: str
    body: str
    created_at: datetime
    related_entity_type: str | None = field(default=None)
    related_entity_id: str | None = field(default=None)
    read: bool = field(default=False)

    def as_read(self) -> Notification:
        return self if self.read else replace(self, read=True)
