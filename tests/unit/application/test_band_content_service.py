"""Unit tests for BandContentService (songs and tasks)."""

from __future__ import annotations

from datetime import timedelta

import pytest

from bandgo.application.ports.entity_store import EntityKind
from bandgo.application.services.band_content_service import BandContentService
from bandgo.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from bandgo.domain.models import NotificationType, SongLink, SongLinkType, TaskStatus, TaskType
from tests.helpers import NOW, make_band, seed_users


@pytest.fixture
def service(store, fake_time_authority, notifications) -> BandContentService:
    seed_users(store, "u-1", "u-2", "u-3")
    store.seed(EntityKind.BAND, make_band())
    return BandContentService(store, fake_time_authority, notifications)


class TestSongs:
    @pytest.mark.asyncio
    async def test_create_song_notifies_other_members(self, service, store) -> None:
        song = await service.create_song(
            "b-1",
            "u-1",
            "Blue Train",
            bpm=140,
            key="Eb",
            links=[SongLink("https://youtu.be/x", SongLinkType.YOUTUBE)],
        )

        assert song.bpm == 140
        assert song.links[0].type is SongLinkType.YOUTUBE
        notified = [
            n.user_id
            for n in await store.list_all(EntityKind.NOTIFICATION)
            if n.type is NotificationType.NEW_SONG
        ]
        assert notified == ["u-2"]

    @pytest.mark.asyncio
    async def test_non_member_cannot_add(self, service) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.create_song("b-1", "u-3", "Intruder")

    @pytest.mark.asyncio
    async def test_update_and_delete(self, service) -> None:
        song = await service.create_song("b-1", "u-1", "Draft")

        updated = await service.update_song(song.id, {"title": "Final", "chords": "Am F C G"})
        await service.delete_song(song.id)

        assert updated.title == "Final"
        assert updated.chords == "Am F C G"
        with pytest.raises(NotFoundError):
            await service.get_song(song.id)
        with pytest.raises(NotFoundError):
            await service.delete_song(song.id)

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, service) -> None:
        song = await service.create_song("b-1", "u-1", "Draft")

        with pytest.raises(ValidationError):
            await service.update_song(song.id, {"title": " "})

    @pytest.mark.asyncio
    async def test_songs_in_creation_order(self, service, fake_time_authority) -> None:
        first = await service.create_song("b-1", "u-1", "One")
        fake_time_authority.advance(seconds=1)
        second = await service.create_song("b-1", "u-2", "Two")

        assert [s.id for s in await service.get_songs("b-1")] == [first.id, second.id]


class TestTasks:
    @pytest.mark.asyncio
    async def test_create_task_defaults(self, service) -> None:
        task = await service.create_task("b-1", "Book studio")

        assert task.type is TaskType.OTHER
        assert task.status is TaskStatus.PENDING
        assert task.created_at == NOW

    @pytest.mark.asyncio
    async def test_assignee_must_be_member(self, service) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.create_task("b-1", "Book studio", assigned_to="u-3")

    @pytest.mark.asyncio
    async def test_completion_stamps_and_clears(self, service, fake_time_authority) -> None:
        task = await service.create_task("b-1", "Upload demos", TaskType.UPLOAD_DEMOS)
        fake_time_authority.advance(delta=timedelta(hours=2))

        done = await service.update_task(task.id, {"status": TaskStatus.COMPLETED})
        reopened = await service.update_task(task.id, {"status": TaskStatus.PENDING})

        assert done.completed_at == NOW + timedelta(hours=2)
        assert reopened.completed_at is None

    @pytest.mark.asyncio
    async def test_task_ordering(self, service, fake_time_authority) -> None:
        old = await service.create_task("b-1", "Old")
        fake_time_authority.advance(seconds=1)
        finished = await service.create_task("b-1", "Finished")
        fake_time_authority.advance(seconds=1)
        new = await service.create_task("b-1", "New")
        await service.update_task(finished.id, {"status": TaskStatus.COMPLETED})

        tasks = await service.get_band_tasks("b-1")

        assert [t.id for t in tasks] == [new.id, old.id, finished.id]

    @pytest.mark.asyncio
    async def test_delete_task(self, service) -> None:
        task = await service.create_task("b-1", "Temp")

        await service.delete_task(task.id)

        assert await service.get_band_tasks("b-1") == []
        with pytest.raises(NotFoundError):
            await service.delete_task(task.id)

    @pytest.mark.asyncio
    async def test_update_rejects_band_change(self, service) -> None:
        task = await service.create_task("b-1", "Temp")

        with pytest.raises(ValidationError):
            await service.update_task(task.id, {"band_id": "b-2"})
