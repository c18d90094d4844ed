"""Unit tests for MessagingService: band chat, direct messages and bus emits."""

from __future__ import annotations

import pytest

from bandgo.application.ports.entity_store import EntityKind
from bandgo.application.services.messaging_service import (
    MessagingService,
    conversation_id_for,
)
from bandgo.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from bandgo.domain.events import (
    GLOBAL_CHANNEL,
    BandChatEvent,
    DirectChatEvent,
    band_channel,
    conversation_channel,
)
from bandgo.domain.models import NotificationType
from tests.helpers import make_band, seed_users


@pytest.fixture
def service(store, fake_time_authority, notifications, bus) -> MessagingService:
    seed_users(store, "u-1", "u-2", "u-3")
    store.seed(EntityKind.BAND, make_band(member_ids=("u-1", "u-2")))
    return MessagingService(store, fake_time_authority, notifications, bus, history_limit=3)


class TestBandChat:
    @pytest.mark.asyncio
    async def test_send_emits_after_commit(self, service, bus, store) -> None:
        received = []

        def listener(event):
            # The message is already committed when listeners run.
            received.append((event, store.count(EntityKind.CHAT_MESSAGE)))

        bus.subscribe(band_channel("b-1"), listener)

        message = await service.send_chat_message("b-1", "u-1", "Practice at 8?")

        [(event, committed)] = received
        assert isinstance(event, BandChatEvent)
        assert event.message.id == message.id
        assert event.message.content == "Practice at 8?"
        assert committed == 1

    @pytest.mark.asyncio
    async def test_global_channel_notified(self, service, bus) -> None:
        updates = []
        bus.subscribe(GLOBAL_CHANNEL, updates.append)

        await service.send_chat_message("b-1", "u-1", "hi")

        assert [u.source_channel for u in updates] == [band_channel("b-1")]

    @pytest.mark.asyncio
    async def test_non_member_rejected_without_emit(self, service, bus, store) -> None:
        received = []
        bus.subscribe(band_channel("b-1"), received.append)

        with pytest.raises(PermissionDeniedError):
            await service.send_chat_message("b-1", "u-3", "let me in")

        assert received == []
        assert store.count(EntityKind.CHAT_MESSAGE) == 0

    @pytest.mark.asyncio
    async def test_empty_content(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.send_chat_message("b-1", "u-1", "")

    @pytest.mark.asyncio
    async def test_other_members_notified(self, service, store) -> None:
        await service.send_chat_message("b-1", "u-1", "hi")

        notified = [
            n.user_id
            for n in await store.list_all(EntityKind.NOTIFICATION)
            if n.type is NotificationType.CHAT_MESSAGE
        ]
        assert notified == ["u-2"]

    @pytest.mark.asyncio
    async def test_history_keeps_latest_oldest_first(self, service, fake_time_authority) -> None:
        for text in ("one", "two", "three", "four"):
            await service.send_chat_message("b-1", "u-1", text)
            fake_time_authority.advance(seconds=1)

        history = await service.get_chat_messages("b-1")

        assert [m.content for m in history] == ["two", "three", "four"]
        assert await service.get_chat_messages("b-1", limit=0) == []

    @pytest.mark.asyncio
    async def test_unread_counts(self, service) -> None:
        await service.send_chat_message("b-1", "u-1", "one")
        await service.send_chat_message("b-1", "u-1", "two")

        assert await service.get_unread_chat_count("b-1", "u-1") == 0
        assert await service.get_unread_chat_count("b-1", "u-2") == 2
        assert await service.mark_chat_as_read("b-1", "u-2") == 2
        assert await service.get_unread_chat_count("b-1", "u-2") == 0


class TestDirectMessages:
    @pytest.mark.asyncio
    async def test_conversation_created_once(self, service) -> None:
        first = await service.get_or_create_conversation("u-2", "u-1")
        second = await service.get_or_create_conversation("u-1", "u-2")

        assert first == second
        assert first.id == conversation_id_for("u-1", "u-2") == "u-1:u-2"

    @pytest.mark.asyncio
    async def test_conversation_with_self(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.get_or_create_conversation("u-1", "u-1")

    @pytest.mark.asyncio
    async def test_conversation_with_unknown_user(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.get_or_create_conversation("u-1", "ghost")

    @pytest.mark.asyncio
    async def test_send_updates_preview_and_emits(self, service, bus, store) -> None:
        conversation = await service.get_or_create_conversation("u-1", "u-3")
        received = []
        bus.subscribe(conversation_channel(conversation.id), received.append)

        message = await service.send_direct_message(conversation.id, "u-1", "Wanna jam?")

        stored = await store.get(EntityKind.CONVERSATION, conversation.id)
        assert stored.last_message_preview == "Wanna jam?"
        assert [type(e) for e in received] == [DirectChatEvent]
        assert received[0].message.id == message.id
        notified = [
            n.user_id
            for n in await store.list_all(EntityKind.NOTIFICATION)
            if n.type is NotificationType.DIRECT_MESSAGE
        ]
        assert notified == ["u-3"]

    @pytest.mark.asyncio
    async def test_outsider_cannot_send_or_read(self, service) -> None:
        conversation = await service.get_or_create_conversation("u-1", "u-2")

        with pytest.raises(PermissionDeniedError):
            await service.send_direct_message(conversation.id, "u-3", "hey")
        with pytest.raises(PermissionDeniedError):
            await service.get_direct_messages(conversation.id, "u-3")

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.send_direct_message("u-1:u-9", "u-1", "hey")

    @pytest.mark.asyncio
    async def test_read_tracking(self, service) -> None:
        conversation = await service.get_or_create_conversation("u-1", "u-2")
        await service.send_direct_message(conversation.id, "u-1", "one")
        await service.send_direct_message(conversation.id, "u-1", "two")
        await service.send_direct_message(conversation.id, "u-2", "reply")

        assert await service.get_unread_direct_message_count("u-2") == 2
        assert await service.get_unread_direct_message_count("u-1") == 1
        assert await service.mark_direct_messages_as_read(conversation.id, "u-2") == 2
        assert await service.get_unread_direct_message_count("u-2") == 0
        assert await service.get_unread_direct_message_count("u-1") == 1

    @pytest.mark.asyncio
    async def test_conversations_latest_first(self, service, fake_time_authority) -> None:
        older = await service.get_or_create_conversation("u-1", "u-2")
        newer = await service.get_or_create_conversation("u-1", "u-3")
        fake_time_authority.advance(seconds=30)
        await service.send_direct_message(older.id, "u-2", "bump")

        conversations = await service.get_conversations("u-1")

        assert [c.id for c in conversations] == [older.id, newer.id]
        assert [c.id for c in await service.get_conversations("u-3")] == [newer.id]
