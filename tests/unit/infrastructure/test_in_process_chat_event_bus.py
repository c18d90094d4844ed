"""Unit tests for InProcessChatEventBus."""

from __future__ import annotations

import asyncio

import pytest

from bandgo.domain.events import (
    GLOBAL_CHANNEL,
    ChatEventMessage,
    DirectChatEvent,
)
from tests.helpers import NOW

MESSAGE = ChatEventMessage(id="m-1", sender_id="u-1", content="hi", created_at=NOW)


class TestSubscriptions:
    def test_listeners_called_in_registration_order(self, bus) -> None:
        calls = []
        bus.subscribe("band:b-1", lambda e: calls.append(("first", e)))
        bus.subscribe("band:b-1", lambda e: calls.append(("second", e)))

        bus.publish("band:b-1", "payload")

        assert calls == [("first", "payload"), ("second", "payload")]

    def test_unsubscribe_removes_only_that_listener(self, bus) -> None:
        calls = []
        listener = calls.append
        first = bus.subscribe("band:b-1", listener)
        bus.subscribe("band:b-1", listener)

        first()
        first()
        bus.publish("band:b-1", "x")

        assert calls == ["x"]
        assert bus.listener_count("band:b-1") == 1

    def test_last_unsubscribe_releases_channel(self, bus) -> None:
        unsubscribe = bus.subscribe("band:b-1", lambda e: None)

        unsubscribe()

        assert "band:b-1" not in bus.channels

    def test_failing_listener_isolated(self, bus) -> None:
        calls = []

        def broken(event):
            raise RuntimeError("listener bug")

        bus.subscribe("band:b-1", broken)
        bus.subscribe("band:b-1", calls.append)

        bus.publish("band:b-1", "x")

        assert calls == ["x"]

    @pytest.mark.asyncio
    async def test_async_listener_scheduled(self, bus) -> None:
        received = asyncio.Event()

        async def listener(event):
            received.set()

        bus.subscribe("band:b-1", listener)
        bus.publish("band:b-1", "x")

        await asyncio.wait_for(received.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_failing_async_listener_isolated(self, bus) -> None:
        async def broken(event):
            raise RuntimeError("listener bug")

        calls = []
        bus.subscribe("band:b-1", broken)
        bus.subscribe("band:b-1", calls.append)

        bus.publish("band:b-1", "x")
        await asyncio.sleep(0.01)
        bus.publish("band:b-1", "y")

        assert calls == ["x", "y"]

    def test_async_listener_without_loop_dropped(self, bus) -> None:
        calls = []

        async def listener(event):
            calls.append(event)

        bus.subscribe("band:b-1", listener)

        bus.publish("band:b-1", "x")

        assert calls == []

    def test_emit_direct_message_fans_out_to_global(self, bus) -> None:
        direct, global_updates = [], []
        bus.subscribe("conversation:u-1:u-2", direct.append)
        bus.subscribe(GLOBAL_CHANNEL, global_updates.append)

        bus.emit_direct_message("u-1:u-2", MESSAGE)

        assert direct == [DirectChatEvent(conversation_id="u-1:u-2", message=MESSAGE)]
        assert direct[0].type == "new_message"
        assert [u.source_channel for u in global_updates] == ["conversation:u-1:u-2"]


class TestPolling:
    @pytest.mark.asyncio
    async def test_polls_until_stopped(self, bus) -> None:
        calls = []

        stop = bus.start_polling("band:b-1", lambda: calls.append(1), interval_ms=10)
        await asyncio.sleep(0.1)
        stop()
        count = len(calls)
        await asyncio.sleep(0.05)

        assert count >= 2
        assert len(calls) == count
        assert not bus.is_polling("band:b-1")

    @pytest.mark.asyncio
    async def test_async_callback_and_errors(self, bus) -> None:
        calls = []

        async def callback():
            calls.append(1)
            raise RuntimeError("poll failed")

        bus.start_polling("global", callback, interval_ms=10)
        await asyncio.sleep(0.1)

        assert len(calls) >= 2
        assert bus.is_polling("global")

    @pytest.mark.asyncio
    async def test_restart_replaces_previous_poll(self, bus) -> None:
        first_stop = bus.start_polling("k", lambda: None, interval_ms=10)
        bus.start_polling("k", lambda: None, interval_ms=10)

        first_stop()

        assert bus.is_polling("k")

    @pytest.mark.asyncio
    async def test_interval_must_be_positive(self, bus) -> None:
        with pytest.raises(ValueError):
            bus.start_polling("k", lambda: None, interval_ms=0)

    def test_requires_running_loop(self, bus) -> None:
        with pytest.raises(RuntimeError):
            bus.start_polling("k", lambda: None, interval_ms=10)

    @pytest.mark.asyncio
    async def test_destroy(self, bus) -> None:
        bus.subscribe("band:b-1", lambda e: None)
        bus.start_polling("k", lambda: None, interval_ms=10)

        bus.destroy()

        assert bus.channels == frozenset()
        assert not bus.is_polling("k")
