"""In-process chat event bus with an asyncio polling fallback.

Listeners are kept per channel in registration order. Publishing calls each
listener synchronously; a listener that returns an awaitable has it
scheduled on the running loop instead of awaited, so the publisher never
blocks on a subscriber. Listener failures are logged and isolated.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from bandgo.application.ports.chat_event_bus import (
    DEFAULT_POLL_INTERVAL_MS,
    ChatEventBusProtocol,
    Listener,
    StopPolling,
    Unsubscribe,
)
from bandgo.domain.events import (
    GLOBAL_CHANNEL,
    BandChatEvent,
    ChatEventMessage,
    DirectChatEvent,
    GlobalUpdateEvent,
)
from bandgo.infrastructure.observability import get_logger_for_service


class InProcessChatEventBus(ChatEventBusProtocol):
    """Channel-keyed subscriber registry plus a cancellable timer registry.

    Attributes:
        _listeners: channel -> list of (registration token, listener).
        _polls: poll key -> running asyncio task.
        _pending: listener coroutines scheduled but not yet finished.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[object, Listener]]] = {}
        self._polls: dict[str, asyncio.Task[None]] = {}
        self._pending: set[asyncio.Task[None]] = set()
        self._log = get_logger_for_service(self.__class__.__name__, component="chat")

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, channel: str, listener: Listener) -> Unsubscribe:
        token = object()
        self._listeners.setdefault(channel, []).append((token, listener))

        def unsubscribe() -> None:
            entries = self._listeners.get(channel)
            if entries is None:
                return
            entries[:] = [entry for entry in entries if entry[0] is not token]
            if not entries:
                del self._listeners[channel]

        return unsubscribe

    def listener_count(self, channel: str) -> int:
        return len(self._listeners.get(channel, ()))

    @property
    def channels(self) -> frozenset[str]:
        """Channels that currently hold at least one listener."""
        return frozenset(self._listeners)

    def publish(self, channel: str, event: Any) -> None:
        for _, listener in list(self._listeners.get(channel, ())):
            try:
                result = listener(event)
            except Exception:
                self._log.exception("chat_listener_failed", channel=channel)
                continue
            if inspect.isawaitable(result):
                self._schedule(result, channel)

    def emit_band_chat_message(self, band_id: str, message: ChatEventMessage) -> None:
        event = BandChatEvent(band_id=band_id, message=message)
        self.publish(event.channel, event)
        self.publish(GLOBAL_CHANNEL, GlobalUpdateEvent(source_channel=event.channel))

    def emit_direct_message(
        self, conversation_id: str, message: ChatEventMessage
    ) -> None:
        event = DirectChatEvent(conversation_id=conversation_id, message=message)
        self.publish(event.channel, event)
        self.publish(GLOBAL_CHANNEL, GlobalUpdateEvent(source_channel=event.channel))

    def _schedule(self, awaitable: Awaitable[Any], channel: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._log.warning("chat_listener_coroutine_dropped", channel=channel)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = loop.create_task(self._guard(awaitable, channel))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _guard(self, awaitable: Awaitable[Any], channel: str) -> None:
        try:
            await awaitable
        except Exception:
            self._log.exception("chat_listener_failed", channel=channel)

    # =========================================================================
    # Polling fallback
    # =========================================================================

    def start_polling(
        self,
        key: str,
        callback: Callable[[], Any],
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> StopPolling:
        """Run ``callback`` every ``interval_ms`` on the running loop.

        Raises:
            ValueError: If interval_ms is not positive.
            RuntimeError: If called without a running event loop.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.stop_polling(key)
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._poll(key, callback, interval_ms / 1000))
        self._polls[key] = task

        def stop() -> None:
            if self._polls.get(key) is task:
                self.stop_polling(key)

        return stop

    def stop_polling(self, key: str) -> None:
        task = self._polls.pop(key, None)
        if task is not None:
            task.cancel()

    def is_polling(self, key: str) -> bool:
        return key in self._polls

    async def _poll(
        self, key: str, callback: Callable[[], Any], interval_seconds: float
    ) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self._log.exception("chat_poll_callback_failed", key=key)

    def destroy(self) -> None:
        for key in list(self._polls):
            self.stop_polling(key)
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self._listeners.clear()
        self._log.debug("chat_bus_destroyed")
