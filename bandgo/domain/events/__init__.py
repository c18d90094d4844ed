"""Payloads published on the in-process chat event bus."""

from bandgo.domain.events.chat import (
    GLOBAL_CHANNEL,
    BandChatEvent,
    ChatEventMessage,
    DirectChatEvent,
    GlobalUpdateEvent,
    band_channel,
    conversation_channel,
)

__all__: list[str] = [
    "BandChatEvent",
    "ChatEventMessage",
    "DirectChatEvent",
    "GLOBAL_CHANNEL",
    "GlobalUpdateEvent",
    "band_channel",
    "conversation_channel",
]
