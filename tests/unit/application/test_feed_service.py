"""Unit tests for FeedService: posts, likes, comments and system messages."""

from __future__ import annotations

import asyncio

import pytest

from bandgo.application.ports.entity_store import EntityKind
from bandgo.application.services.feed_service import FeedService
from bandgo.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from bandgo.domain.models import NotificationType, PostType, TargetAudience, UserRole
from tests.helpers import seed_users


@pytest.fixture
def service(store, fake_time_authority, notifications) -> FeedService:
    seed_users(store, "u-1", "u-2", "u-3")
    seed_users(store, "admin", role=UserRole.ADMIN)
    seed_users(store, "spammer", role=UserRole.BANNED)
    return FeedService(store, fake_time_authority, notifications, page_size=2)


class TestPosts:
    @pytest.mark.asyncio
    async def test_create_post(self, service) -> None:
        post = await service.create_post("u-1", "New single out!", ["https://img/1.png"])

        assert post.type is PostType.USER_POST
        assert post.media_urls == ("https://img/1.png",)
        assert post.likes_count == 0
        assert await service.get_post(post.id) == post

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.create_post("u-1", "   ")

    @pytest.mark.asyncio
    async def test_banned_author_denied(self, service) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.create_post("spammer", "Buy now")

    @pytest.mark.asyncio
    async def test_feed_pins_first_then_newest(self, service, fake_time_authority) -> None:
        oldest = await service.create_post("u-1", "one")
        fake_time_authority.advance(seconds=10)
        middle = await service.create_post("u-2", "two")
        fake_time_authority.advance(seconds=10)
        newest = await service.create_post("u-3", "three")
        await service.pin_post(oldest.id)

        page_one = await service.get_posts()
        page_two = await service.get_posts(offset=2)
        everything = await service.get_posts(limit=10)

        assert [p.id for p in page_one] == [oldest.id, newest.id]
        assert [p.id for p in page_two] == [middle.id]
        assert [p.id for p in everything] == [oldest.id, newest.id, middle.id]

    @pytest.mark.asyncio
    async def test_unpin(self, service) -> None:
        post = await service.create_post("u-1", "one")
        await service.pin_post(post.id)

        unpinned = await service.unpin_post(post.id)

        assert not unpinned.is_pinned

    @pytest.mark.asyncio
    async def test_delete_removes_comments_and_likes(self, service, store) -> None:
        post = await service.create_post("u-1", "one")
        await service.like_post(post.id, "u-2")
        await service.create_comment(post.id, "u-2", "nice")

        await service.delete_post(post.id)

        with pytest.raises(NotFoundError):
            await service.get_post(post.id)
        assert store.count(EntityKind.COMMENT) == 0
        assert store.count(EntityKind.POST_LIKE) == 0


class TestLikes:
    @pytest.mark.asyncio
    async def test_like_is_idempotent(self, service) -> None:
        post = await service.create_post("u-1", "one")

        await service.like_post(post.id, "u-2")
        liked = await service.like_post(post.id, "u-2")

        assert liked.likes_count == 1
        assert [like.user_id for like in await service.get_post_likes(post.id)] == ["u-2"]

    @pytest.mark.asyncio
    async def test_concurrent_likes_counted_exactly(self, service) -> None:
        post = await service.create_post("u-1", "one")

        await asyncio.gather(*(service.like_post(post.id, uid) for uid in ("u-1", "u-2", "u-3")))

        assert (await service.get_post(post.id)).likes_count == 3

    @pytest.mark.asyncio
    async def test_unlike(self, service) -> None:
        post = await service.create_post("u-1", "one")
        await service.like_post(post.id, "u-2")

        unliked = await service.unlike_post(post.id, "u-2")
        again = await service.unlike_post(post.id, "u-2")

        assert unliked.likes_count == 0
        assert again.likes_count == 0

    @pytest.mark.asyncio
    async def test_author_notified_except_self(self, service, store) -> None:
        post = await service.create_post("u-1", "one")

        await service.like_post(post.id, "u-1")
        await service.like_post(post.id, "u-2")

        likes = [
            n.user_id
            for n in await store.list_all(EntityKind.NOTIFICATION)
            if n.type is NotificationType.POST_LIKE
        ]
        assert likes == ["u-1"]


class TestComments:
    @pytest.mark.asyncio
    async def test_comments_oldest_first_and_counted(
        self, service, fake_time_authority
    ) -> None:
        post = await service.create_post("u-1", "one")
        first = await service.create_comment(post.id, "u-2", "first!")
        fake_time_authority.advance(seconds=5)
        second = await service.create_comment(post.id, "u-3", "second")

        comments = await service.get_comments(post.id)

        assert [c.id for c in comments] == [first.id, second.id]
        assert (await service.get_post(post.id)).comments_count == 2

    @pytest.mark.asyncio
    async def test_delete_comment_recounts(self, service) -> None:
        post = await service.create_post("u-1", "one")
        comment = await service.create_comment(post.id, "u-2", "hm")

        await service.delete_comment(comment.id)

        assert (await service.get_post(post.id)).comments_count == 0
        with pytest.raises(NotFoundError):
            await service.delete_comment(comment.id)

    @pytest.mark.asyncio
    async def test_comment_on_missing_post(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.create_comment("missing", "u-2", "hello?")


class TestSystemMessages:
    @pytest.mark.asyncio
    async def test_pinned_and_broadcast_to_non_admins(self, service, store) -> None:
        post = await service.create_system_message(
            "admin", "Studio closed Monday", TargetAudience.BANDS
        )

        assert post.type is PostType.ADMIN_MESSAGE
        assert post.is_pinned
        assert post.target_audience is TargetAudience.BANDS
        recipients = sorted(
            n.user_id
            for n in await store.list_all(EntityKind.NOTIFICATION)
            if n.type is NotificationType.SYSTEM_MESSAGE
        )
        assert recipients == ["spammer", "u-1", "u-2", "u-3"]

    @pytest.mark.asyncio
    async def test_requires_privilege(self, service) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.create_system_message("u-1", "Hello everyone")
