"""Chat bus channel names and event payloads.

Channels:
    band:<band_id>              band group chat
    conversation:<conv_id>      direct messages
    global                      "something changed somewhere"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

GLOBAL_CHANNEL = "global"

NEW_MESSAGE_EVENT = "new_message"


def band_channel(band_id: str) -> str:
    return f"band:{band_id}"


def conversation_channel(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


@dataclass(frozen=True, eq=True)
class ChatEventMessage:
    """The slice of a message that listeners receive."""

    id: str
    sender_id: str
    content: str
    created_at: datetime


@dataclass(frozen=True, eq=True)
class BandChatEvent:
    band_id: str
    message: ChatEventMessage
    type: Literal["new_message"] = field(default=NEW_MESSAGE_EVENT)

    @property
    def channel(self) -> str:
        return band_channel(self.band_id)


@dataclass(frozen=True, eq=True)
class DirectChatEvent:
    conversation_id: str
    message: ChatEventMessage
    type: Literal["new_message"] = field(default=NEW_MESSAGE_EVENT)

    @property
    def channel(self) -> str:
        return conversation_channel(self.conversation_id)


@dataclass(frozen=True, eq=True)
class GlobalUpdateEvent:
    """Published on the global channel after any channel-specific event."""

    source_channel: str
    type: Literal["update"] = field(default="update")
