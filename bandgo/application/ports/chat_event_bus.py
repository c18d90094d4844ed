"""Chat Event Bus Protocol - in-process publish/subscribe for UI updates.

Decouples mutation-producing managers from UI subscribers. A distributed
deployment replaces the in-process registry with a broker subscription
without changing this contract.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from bandgo.domain.events import ChatEventMessage

Listener = Callable[[Any], Any]
Unsubscribe = Callable[[], None]
StopPolling = Callable[[], None]

DEFAULT_POLL_INTERVAL_MS = 2000


class ChatEventBusProtocol(Protocol):
    """Channel-keyed listener registry plus a cancellable timer registry."""

    def subscribe(self, channel: str, listener: Listener) -> Unsubscribe:
        """Register ``listener`` on ``channel``.

        Returns:
            A function removing exactly this listener. Removing the last
            listener of a channel releases the channel.
        """
        ...

    def publish(self, channel: str, event: Any) -> None:
        """Invoke every listener currently registered on ``channel``.

        A failing listener never prevents the others from running and never
        propagates to the publisher.
        """
        ...

    def emit_band_chat_message(self, band_id: str, message: ChatEventMessage) -> None:
        """Publish to ``band:<band_id>`` and then to the global channel."""
        ...

    def emit_direct_message(
        self, conversation_id: str, message: ChatEventMessage
    ) -> None:
        """Publish to ``conversation:<id>`` and then to the global channel."""
        ...

    def start_polling(
        self,
        key: str,
        callback: Callable[[], Any],
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> StopPolling:
        """Run ``callback`` every ``interval_ms``.

        Any poll already running under ``key`` is cancelled first.
        """
        ...

    def stop_polling(self, key: str) -> None:
        ...

    def destroy(self) -> None:
        """Cancel every poll and clear every listener set."""
        ...
