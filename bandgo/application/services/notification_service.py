"""Notification manager.

Other managers stage notifications inside their own transactions through
stage()/stage_for_users(), so a notification exists only if the mutation
that caused it committed.
"""

from __future__ import annotations

from typing import Iterable

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    UnitOfWork,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.base import LoggingMixin, require
from bandgo.domain.models import Notification, NotificationType
from bandgo.domain.models.patching import new_entity_id


class NotificationService(LoggingMixin):
    """Creates, lists and marks per-user notifications."""

    def __init__(
        self, store: EntityStoreProtocol, time_authority: TimeAuthorityProtocol
    ) -> None:
        self._store = store
        self._time = time_authority
        self._init_logger(component="notifications")

    async def stage(
        self,
        uow: UnitOfWork,
        user_id: str,
        type: NotificationType,
        title: str,
        body: str,
        *,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
    ) -> Notification:
        """Stage one notification in an open transaction."""
        notification = Notification(
            id=new_entity_id(),
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            created_at=self._time.now(),
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
        )
        await uow.put(EntityKind.NOTIFICATION, notification)
        return notification

    async def stage_for_users(
        self,
        uow: UnitOfWork,
        user_ids: Iterable[str],
        type: NotificationType,
        title: str,
        body: str,
        *,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
    ) -> list[Notification]:
        """Stage the same notification for several users (duplicates dropped)."""
        staged = []
        for user_id in dict.fromkeys(user_ids):
            staged.append(
                await self.stage(
                    uow,
                    user_id,
                    type,
                    title,
                    body,
                    related_entity_type=related_entity_type,
                    related_entity_id=related_entity_id,
                )
            )
        return staged

    async def create_notification(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        body: str,
        *,
        related_entity_type: str | None = None,
        related_entity_id: str | None = None,
    ) -> Notification:
        """Create a notification in its own transaction."""
        async with self._store.transaction() as uow:
            await require(uow, EntityKind.USER, user_id, "user")
            notification = await self.stage(
                uow,
                user_id,
                type,
                title,
                body,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
            )
        self._log.debug("notification_created", user_id=user_id, type=type.value)
        return notification

    async def get_notifications(self, user_id: str) -> list[Notification]:
        """Return the user's notifications, newest first."""
        notifications = [
            n
            for n in await self._store.list_all(EntityKind.NOTIFICATION)
            if n.user_id == user_id
        ]
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    async def get_unread_count(self, user_id: str) -> int:
        return sum(1 for n in await self.get_notifications(user_id) if not n.read)

    async def mark_read(self, notification_id: str) -> Notification:
        """Mark one notification read.

        Raises:
            NotFoundError: If the notification does not exist.
        """
        async with self._store.transaction(
            lock_key(EntityKind.NOTIFICATION, notification_id)
        ) as uow:
            notification = await require(
                uow, EntityKind.NOTIFICATION, notification_id, "notification"
            )
            updated = notification.as_read()
            await uow.put(EntityKind.NOTIFICATION, updated)
        return updated

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of the user read.

        Returns:
            Number of notifications that changed.
        """
        async with self._store.transaction(lock_key(EntityKind.USER, user_id)) as uow:
            unread = [
                n
                for n in await uow.list_all(EntityKind.NOTIFICATION)
                if n.user_id == user_id and not n.read
            ]
            for notification in unread:
                await uow.put(EntityKind.NOTIFICATION, notification.as_read())
        self._log.debug("notifications_marked_read", user_id=user_id, count=len(unread))
        return len(unread)
