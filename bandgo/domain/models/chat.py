"""Band chat and direct message models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

PREVIEW_LENGTH = 50


@dataclass(frozen=True, eq=True)
class ChatMessage:
    """A message in a band's group chat.

    ``read_by`` holds the users who have read the message; the sender is
    always in it.
    """

    id: str
    band_id: str
    sender_id: str
    content: str
    created_at: datetime
    media_url: str | None = field(default=None)
    read_by: tuple[str, ...] = field(default=())

    def read_by_user(self, user_id: str) -> ChatMessage:
        if user_id in self.read_by:
            return self
        return replace(self, read_by=self.read_by + (user_id,))


@dataclass(frozen=True, eq=True)
class Conversation:
    """A private conversation between exactly two users."""

    id: str
    participant_ids: tuple[str, str]
    created_at: datetime
    last_message_at: datetime
    last_message_preview: str = field(default="")

    def includes(self, user_id: str) -> bool:
        return user_id in self.participant_ids

    def other_participant(self, user_id: str) -> str:
        first, second = self.participant_ids
        return second if first == user_id else first

    def with_last_message(self, content: str, at: datetime) -> Conversation:
        return replace(
            self, last_message_at=at, last_message_preview=content[:PREVIEW_LENGTH]
        )


@dataclass(frozen=True, eq=True)
class DirectMessage:
    id: str
    conversation_id: str
    sender_id: str
    content: str
    created_at: datetime
    media_url: str | None = field(default=None)
    read: bool = field(default=False)

    def as_read(self) -> DirectMessage:
        return replace(self, read=True)
