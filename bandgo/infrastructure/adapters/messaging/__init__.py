"""In-process messaging adapters."""

from bandgo.infrastructure.adapters.messaging.in_process_chat_event_bus import (
    InProcessChatEventBus,
)

__all__: list[str] = ["InProcessChatEventBus"]
