"""Band chat and direct messages.

Messages are committed first and only then emitted on the chat event bus,
so a listener never sees a message that was rolled back.
"""

from __future__ import annotations

from bandgo.application.ports.chat_event_bus import ChatEventBusProtocol
from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.base import LoggingMixin, require
from bandgo.application.services.notification_service import NotificationService
from bandgo.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from bandgo.domain.events import ChatEventMessage
from bandgo.domain.models import (
    ChatMessage,
    Conversation,
    DirectMessage,
    NotificationType,
)
from bandgo.domain.models.patching import new_entity_id, require_text

DEFAULT_HISTORY_LIMIT = 50


def conversation_id_for(user_a: str, user_b: str) -> str:
    """One conversation per unordered pair of users."""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"


class MessagingService(LoggingMixin):
    """Sends, lists and marks chat and direct messages."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        notifications: NotificationService,
        bus: ChatEventBusProtocol,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._notifications = notifications
        self._bus = bus
        self._history_limit = history_limit
        self._init_logger(component="messaging")

    # Band chat

    async def send_chat_message(
        self,
        band_id: str,
        sender_id: str,
        content: str,
        media_url: str | None = None,
    ) -> ChatMessage:
        """Post to the band chat.

        Raises:
            ValidationError: If the content is empty.
            NotFoundError: If the band does not exist.
            PermissionDeniedError: If the sender is not a member.
        """
        require_text(content, "content")
        async with self._store.transaction() as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            if not band.is_member(sender_id):
                raise PermissionDeniedError(sender_id, "send chat message", "not a band member")
            message = ChatMessage(
                id=new_entity_id(),
                band_id=band_id,
                sender_id=sender_id,
                content=content,
                media_url=media_url,
                read_by=(sender_id,),
                created_at=self._time.now(),
            )
            await uow.put(EntityKind.CHAT_MESSAGE, message)
            await self._notifications.stage_for_users(
                uow,
                [uid for uid in band.member_ids if uid != sender_id],
                NotificationType.CHAT_MESSAGE,
                band.name or "Band chat",
                content[:100],
                related_entity_type="band",
                related_entity_id=band_id,
            )

        self._bus.emit_band_chat_message(
            band_id,
            ChatEventMessage(
                id=message.id,
                sender_id=sender_id,
                content=content,
                created_at=message.created_at,
            ),
        )
        self._log.debug("chat_message_sent", band_id=band_id, message_id=message.id)
        return message

    async def get_chat_messages(
        self, band_id: str, limit: int | None = None
    ) -> list[ChatMessage]:
        """The latest ``limit`` messages, oldest first."""
        limit = self._history_limit if limit is None else limit
        messages = sorted(
            (
                m
                for m in await self._store.list_all(EntityKind.CHAT_MESSAGE)
                if m.band_id == band_id
            ),
            key=lambda m: m.created_at,
        )
        return messages[-limit:] if limit > 0 else []

    async def mark_chat_as_read(self, band_id: str, user_id: str) -> int:
        """Mark every band message read by the user. Returns how many changed."""
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            changed = 0
            for message in await uow.list_all(EntityKind.CHAT_MESSAGE):
                if message.band_id == band_id and user_id not in message.read_by:
                    await uow.put(EntityKind.CHAT_MESSAGE, message.read_by_user(user_id))
                    changed += 1
        return changed

    async def get_unread_chat_count(self, band_id: str, user_id: str) -> int:
        return sum(
            1
            for m in await self._store.list_all(EntityKind.CHAT_MESSAGE)
            if m.band_id == band_id and user_id not in m.read_by
        )

    # Direct messages

    async def get_or_create_conversation(self, user_id: str, other_user_id: str) -> Conversation:
        """Return the conversation between two users, creating it once.

        Raises:
            ValidationError: If both ids are the same user.
            NotFoundError: If either user does not exist.
        """
        if user_id == other_user_id:
            raise ValidationError(
                "cannot start a conversation with yourself", field="other_user_id"
            )
        conversation_id = conversation_id_for(user_id, other_user_id)
        async with self._store.transaction(
            lock_key(EntityKind.CONVERSATION, conversation_id)
        ) as uow:
            existing = await uow.get(EntityKind.CONVERSATION, conversation_id)
            if existing is not None:
                return existing
            await require(uow, EntityKind.USER, user_id, "user")
            await require(uow, EntityKind.USER, other_user_id, "user")
            now = self._time.now()
            conversation = Conversation(
                id=conversation_id,
                participant_ids=(user_id, other_user_id),
                created_at=now,
                last_message_at=now,
            )
            await uow.put(EntityKind.CONVERSATION, conversation)
        self._log.info("conversation_created", conversation_id=conversation_id)
        return conversation

    async def get_conversations(self, user_id: str) -> list[Conversation]:
        """The user's conversations, latest activity first."""
        conversations = [
            c for c in await self._store.list_all(EntityKind.CONVERSATION) if c.includes(user_id)
        ]
        return sorted(conversations, key=lambda c: c.last_message_at, reverse=True)

    async def send_direct_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        media_url: str | None = None,
    ) -> DirectMessage:
        """Send a message in a conversation the sender takes part in.

        Raises:
            ValidationError: If the content is empty.
            NotFoundError: If the conversation does not exist.
            PermissionDeniedError: If the sender is not a participant.
        """
        require_text(content, "content")
        now = self._time.now()
        async with self._store.transaction(
            lock_key(EntityKind.CONVERSATION, conversation_id)
        ) as uow:
            conversation = await require(
                uow, EntityKind.CONVERSATION, conversation_id, "conversation"
            )
            if not conversation.includes(sender_id):
                raise PermissionDeniedError(
                    sender_id, "send direct message", "not a participant"
                )
            message = DirectMessage(
                id=new_entity_id(),
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=content,
                media_url=media_url,
                created_at=now,
            )
            await uow.put(EntityKind.DIRECT_MESSAGE, message)
            await uow.put(EntityKind.CONVERSATION, conversation.with_last_message(content, now))
            await self._notifications.stage(
                uow,
                conversation.other_participant(sender_id),
                NotificationType.DIRECT_MESSAGE,
                "New message",
                content[:100],
                related_entity_type="conversation",
                related_entity_id=conversation_id,
            )

        self._bus.emit_direct_message(
            conversation_id,
            ChatEventMessage(
                id=message.id, sender_id=sender_id, content=content, created_at=now
            ),
        )
        self._log.debug("direct_message_sent", conversation_id=conversation_id)
        return message

    async def get_direct_messages(
        self, conversation_id: str, user_id: str, limit: int | None = None
    ) -> list[DirectMessage]:
        """The latest ``limit`` messages of a conversation, oldest first.

        Raises:
            NotFoundError: If the conversation does not exist.
            PermissionDeniedError: If the user is not a participant.
        """
        conversation = await self._store.get(EntityKind.CONVERSATION, conversation_id)
        if conversation is None:
            raise NotFoundError("conversation", conversation_id)
        if not conversation.includes(user_id):
            raise PermissionDeniedError(user_id, "read direct messages", "not a participant")
        limit = self._history_limit if limit is None else limit
        messages = sorted(
            (
                m
                for m in await self._store.list_all(EntityKind.DIRECT_MESSAGE)
                if m.conversation_id == conversation_id
            ),
            key=lambda m: m.created_at,
        )
        return messages[-limit:] if limit > 0 else []

    async def mark_direct_messages_as_read(self, conversation_id: str, user_id: str) -> int:
        """Mark messages sent to the user in this conversation read."""
        async with self._store.transaction(
            lock_key(EntityKind.CONVERSATION, conversation_id)
        ) as uow:
            changed = 0
            for message in await uow.list_all(EntityKind.DIRECT_MESSAGE):
                if (
                    message.conversation_id == conversation_id
                    and message.sender_id != user_id
                    and not message.read
                ):
                    await uow.put(EntityKind.DIRECT_MESSAGE, message.as_read())
                    changed += 1
        return changed

    async def get_unread_direct_message_count(self, user_id: str) -> int:
        """Unread messages addressed to the user across all conversations."""
        conversation_ids = {c.id for c in await self.get_conversations(user_id)}
        return sum(
            1
            for m in await self._store.list_all(EntityKind.DIRECT_MESSAGE)
            if m.conversation_id in conversation_ids and m.sender_id != user_id and not m.read
        )
