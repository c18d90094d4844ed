"""Band workspace content: repertoire songs and tasks."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.base import LoggingMixin, require
from bandgo.application.services.notification_service import NotificationService
from bandgo.domain.errors import NotFoundError, PermissionDeniedError
from bandgo.domain.models import NotificationType, Song, Task, TaskStatus, TaskType
from bandgo.domain.models.patching import apply_patch, new_entity_id, require_text
from bandgo.domain.models.song import SONG_EDITABLE_FIELDS
from bandgo.domain.models.task import TASK_EDITABLE_FIELDS


class BandContentService(LoggingMixin):
    """CRUD for songs and tasks scoped to one band."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        notifications: NotificationService,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._notifications = notifications
        self._init_logger(component="band_content")

    # Songs

    async def create_song(
        self, band_id: str, created_by: str, title: str, **details: Any
    ) -> Song:
        """Add a song to the band's repertoire and tell the other members.

        Raises:
            NotFoundError: If the band does not exist.
            PermissionDeniedError: If the author is not a member.
            ValidationError: If the title is empty or a field is not editable.
        """
        require_text(title, "title")
        now = self._time.now()
        song = Song(
            id=new_entity_id(),
            band_id=band_id,
            title=title,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        if details:
            song = apply_patch(song, details, SONG_EDITABLE_FIELDS)

        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            if not band.is_member(created_by):
                raise PermissionDeniedError(created_by, "add song", "not a band member")
            await uow.put(EntityKind.SONG, song)
            await self._notifications.stage_for_users(
                uow,
                [uid for uid in band.member_ids if uid != created_by],
                NotificationType.NEW_SONG,
                "New song",
                f"{title} was added to the repertoire",
                related_entity_type="song",
                related_entity_id=song.id,
            )
        self._log.info("song_created", band_id=band_id, song_id=song.id)
        return song

    async def update_song(self, song_id: str, patch: Mapping[str, Any]) -> Song:
        if "title" in patch:
            require_text(patch["title"], "title")
        async with self._store.transaction(lock_key(EntityKind.SONG, song_id)) as uow:
            song = await require(uow, EntityKind.SONG, song_id, "song")
            updated = apply_patch(song, patch, SONG_EDITABLE_FIELDS, updated_at=self._time.now())
            await uow.put(EntityKind.SONG, updated)
        self._log.info("song_updated", song_id=song_id, fields=sorted(patch))
        return updated

    async def delete_song(self, song_id: str) -> None:
        async with self._store.transaction(lock_key(EntityKind.SONG, song_id)) as uow:
            if not await uow.delete(EntityKind.SONG, song_id):
                raise NotFoundError("song", song_id)
        self._log.info("song_deleted", song_id=song_id)

    async def get_song(self, song_id: str) -> Song:
        song = await self._store.get(EntityKind.SONG, song_id)
        if song is None:
            raise NotFoundError("song", song_id)
        return song

    async def get_songs(self, band_id: str) -> list[Song]:
        songs = [s for s in await self._store.list_all(EntityKind.SONG) if s.band_id == band_id]
        return sorted(songs, key=lambda s: s.created_at)

    # Tasks

    async def create_task(
        self,
        band_id: str,
        title: str,
        type: TaskType = TaskType.OTHER,
        description: str | None = None,
        assigned_to: str | None = None,
    ) -> Task:
        require_text(title, "title")
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            if assigned_to is not None and not band.is_member(assigned_to):
                raise PermissionDeniedError(
                    assigned_to, "be assigned a task", "not a band member"
                )
            task = Task(
                id=new_entity_id(),
                band_id=band_id,
                title=title,
                type=type,
                description=description,
                assigned_to=assigned_to,
                created_at=self._time.now(),
            )
            await uow.put(EntityKind.TASK, task)
        self._log.info("task_created", band_id=band_id, task_id=task.id, type=type.value)
        return task

    async def update_task(self, task_id: str, patch: Mapping[str, Any]) -> Task:
        """Apply a partial update; completing a task stamps ``completed_at``."""
        async with self._store.transaction(lock_key(EntityKind.TASK, task_id)) as uow:
            task = await require(uow, EntityKind.TASK, task_id, "task")
            updated = apply_patch(task, patch, TASK_EDITABLE_FIELDS)
            if updated.status is not task.status:
                completed_at = (
                    self._time.now() if updated.status is TaskStatus.COMPLETED else None
                )
                updated = replace(updated, completed_at=completed_at)
            await uow.put(EntityKind.TASK, updated)
        self._log.info("task_updated", task_id=task_id, status=updated.status.value)
        return updated

    async def delete_task(self, task_id: str) -> None:
        async with self._store.transaction(lock_key(EntityKind.TASK, task_id)) as uow:
            if not await uow.delete(EntityKind.TASK, task_id):
                raise NotFoundError("task", task_id)
        self._log.info("task_deleted", task_id=task_id)

    async def get_band_tasks(self, band_id: str) -> list[Task]:
        """Pending tasks first, newest first within each group."""
        tasks = [t for t in await self._store.list_all(EntityKind.TASK) if t.band_id == band_id]
        by_recency = sorted(tasks, key=lambda t: t.created_at, reverse=True)
        return sorted(by_recency, key=lambda t: t.status is TaskStatus.COMPLETED)
