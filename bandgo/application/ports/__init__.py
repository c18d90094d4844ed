"""Application ports - contracts implemented by infrastructure adapters."""

from bandgo.application.ports.auth_provider import AuthProviderProtocol
from bandgo.application.ports.chat_event_bus import (
    DEFAULT_POLL_INTERVAL_MS,
    ChatEventBusProtocol,
    Listener,
    StopPolling,
    Unsubscribe,
)
from bandgo.application.ports.entity_store import (
    ENTITY_MODELS,
    EntityKind,
    EntityStoreProtocol,
    UnitOfWork,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "AuthProviderProtocol",
    "ChatEventBusProtocol",
    "DEFAULT_POLL_INTERVAL_MS",
    "ENTITY_MODELS",
    "EntityKind",
    "EntityStoreProtocol",
    "Listener",
    "StopPolling",
    "TimeAuthorityProtocol",
    "UnitOfWork",
    "Unsubscribe",
    "lock_key",
]
