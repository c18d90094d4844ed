"""Feed manager: posts, comments, likes and pinning.

Like and comment counters on a Post are recomputed from the underlying
like and comment sets inside the same transaction that changes those sets,
under the post's lock, so they cannot drift.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    UnitOfWork,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.authorization import require_privileged
from bandgo.application.services.base import LoggingMixin, require
from bandgo.application.services.notification_service import NotificationService
from bandgo.domain.errors import NotFoundError, PermissionDeniedError
from bandgo.domain.models import (
    Comment,
    NotificationType,
    Post,
    PostLike,
    PostType,
    SystemEventType,
    TargetAudience,
    UserRole,
)
from bandgo.domain.models.feed import post_like_id
from bandgo.domain.models.patching import new_entity_id, require_text

DEFAULT_PAGE_SIZE = 20


def system_post(
    event_type: SystemEventType, related_entity_id: str, content: str, at: datetime
) -> Post:
    """Build the automatic post announcing a platform event."""
    return Post(
        id=new_entity_id(),
        type=PostType.SYSTEM_AUTO,
        content=content,
        created_at=at,
        updated_at=at,
        system_event_type=event_type,
        related_entity_id=related_entity_id,
    )


def feed_order(posts: Sequence[Post]) -> list[Post]:
    """Pinned posts first, then newest first within each group."""
    by_recency = sorted(posts, key=lambda p: p.created_at, reverse=True)
    return sorted(by_recency, key=lambda p: not p.is_pinned)


class FeedService(LoggingMixin):
    """Owns posts, comments and likes."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        notifications: NotificationService,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._notifications = notifications
        self._page_size = page_size
        self._init_logger(component="feed")

    # Posts

    async def get_posts(self, limit: int | None = None, offset: int = 0) -> list[Post]:
        """Return one page of the feed, pinned posts first."""
        limit = self._page_size if limit is None else limit
        posts = feed_order(await self._store.list_all(EntityKind.POST))
        return posts[offset : offset + limit]

    async def get_post(self, post_id: str) -> Post:
        post = await self._store.get(EntityKind.POST, post_id)
        if post is None:
            raise NotFoundError("post", post_id)
        return post

    async def create_post(
        self, author_id: str, content: str, media_urls: Sequence[str] = ()
    ) -> Post:
        """Publish a user post.

        Raises:
            NotFoundError: If the author does not exist.
            PermissionDeniedError: If the author is banned.
            ValidationError: If the content is empty.
        """
        require_text(content, "content")
        now = self._time.now()
        async with self._store.transaction() as uow:
            author = await require(uow, EntityKind.USER, author_id, "user")
            if author.is_banned:
                raise PermissionDeniedError(author_id, "create post", "account is banned")
            post = Post(
                id=new_entity_id(),
                type=PostType.USER_POST,
                content=content,
                author_id=author_id,
                media_urls=tuple(media_urls),
                created_at=now,
                updated_at=now,
            )
            await uow.put(EntityKind.POST, post)
        self._log.info("post_created", post_id=post.id, author_id=author_id)
        return post

    async def create_system_message(
        self,
        actor_id: str,
        content: str,
        target_audience: TargetAudience = TargetAudience.ALL,
        target_event_id: str | None = None,
    ) -> Post:
        """Publish a pinned admin message and notify every non-admin user."""
        require_text(content, "content")
        log = self._log_operation("create_system_message", actor_id=actor_id)
        now = self._time.now()
        async with self._store.transaction() as uow:
            await require_privileged(uow, actor_id, "create system message")
            post = Post(
                id=new_entity_id(),
                type=PostType.ADMIN_MESSAGE,
                content=content,
                author_id=actor_id,
                is_pinned=True,
                target_audience=target_audience,
                target_event_id=target_event_id,
                created_at=now,
                updated_at=now,
            )
            await uow.put(EntityKind.POST, post)
            recipients = [
                u.id
                for u in await uow.list_all(EntityKind.USER)
                if u.role is not UserRole.ADMIN
            ]
            await self._notifications.stage_for_users(
                uow,
                recipients,
                NotificationType.SYSTEM_MESSAGE,
                "Message from the team",
                content,
                related_entity_type="post",
                related_entity_id=post.id,
            )
        log.info("system_message_published", post_id=post.id, recipients=len(recipients))
        return post

    async def delete_post(self, post_id: str) -> None:
        """Delete a post with its comments and likes."""
        async with self._store.transaction(lock_key(EntityKind.POST, post_id)) as uow:
            await require(uow, EntityKind.POST, post_id, "post")
            await uow.delete(EntityKind.POST, post_id)
            for comment in await self._comments_of(uow, post_id):
                await uow.delete(EntityKind.COMMENT, comment.id)
            for like in await self._likes_of(uow, post_id):
                await uow.delete(EntityKind.POST_LIKE, like.id)
        self._log.info("post_deleted", post_id=post_id)

    async def pin_post(self, post_id: str) -> Post:
        return await self._set_pinned(post_id, True)

    async def unpin_post(self, post_id: str) -> Post:
        return await self._set_pinned(post_id, False)

    async def _set_pinned(self, post_id: str, pinned: bool) -> Post:
        async with self._store.transaction(lock_key(EntityKind.POST, post_id)) as uow:
            post = await require(uow, EntityKind.POST, post_id, "post")
            updated = post.with_pin(pinned, self._time.now())
            await uow.put(EntityKind.POST, updated)
        self._log.info("post_pin_changed", post_id=post_id, pinned=pinned)
        return updated

    # Likes

    async def like_post(self, post_id: str, user_id: str) -> Post:
        """Add the user to the post's liker set. Idempotent."""
        async with self._store.transaction(lock_key(EntityKind.POST, post_id)) as uow:
            post = await require(uow, EntityKind.POST, post_id, "post")
            like_id = post_like_id(post_id, user_id)
            if await uow.get(EntityKind.POST_LIKE, like_id) is not None:
                return post
            await uow.put(
                EntityKind.POST_LIKE,
                PostLike(id=like_id, post_id=post_id, user_id=user_id, created_at=self._time.now()),
            )
            post = await self._recount(uow, post)
            if post.author_id is not None and post.author_id != user_id:
                await self._notifications.stage(
                    uow,
                    post.author_id,
                    NotificationType.POST_LIKE,
                    "New like",
                    "Someone liked your post",
                    related_entity_type="post",
                    related_entity_id=post_id,
                )
        self._log.debug("post_liked", post_id=post_id, user_id=user_id)
        return post

    async def unlike_post(self, post_id: str, user_id: str) -> Post:
        """Remove the user from the post's liker set. Idempotent."""
        async with self._store.transaction(lock_key(EntityKind.POST, post_id)) as uow:
            post = await require(uow, EntityKind.POST, post_id, "post")
            if not await uow.delete(EntityKind.POST_LIKE, post_like_id(post_id, user_id)):
                return post
            post = await self._recount(uow, post)
        self._log.debug("post_unliked", post_id=post_id, user_id=user_id)
        return post

    async def get_post_likes(self, post_id: str) -> list[PostLike]:
        return [
            like
            for like in await self._store.list_all(EntityKind.POST_LIKE)
            if like.post_id == post_id
        ]

    # Comments

    async def get_comments(self, post_id: str) -> list[Comment]:
        """Return the post's comments, oldest first."""
        comments = [
            c for c in await self._store.list_all(EntityKind.COMMENT) if c.post_id == post_id
        ]
        return sorted(comments, key=lambda c: c.created_at)

    async def create_comment(self, post_id: str, author_id: str, content: str) -> Comment:
        require_text(content, "content")
        now = self._time.now()
        async with self._store.transaction(lock_key(EntityKind.POST, post_id)) as uow:
            post = await require(uow, EntityKind.POST, post_id, "post")
            await require(uow, EntityKind.USER, author_id, "user")
            comment = Comment(
                id=new_entity_id(),
                post_id=post_id,
                author_id=author_id,
                content=content,
                created_at=now,
                updated_at=now,
            )
            await uow.put(EntityKind.COMMENT, comment)
            post = await self._recount(uow, post)
            if post.author_id is not None and post.author_id != author_id:
                await self._notifications.stage(
                    uow,
                    post.author_id,
                    NotificationType.POST_COMMENT,
                    "New comment",
                    content[:100],
                    related_entity_type="post",
                    related_entity_id=post_id,
                )
        self._log.info("comment_created", post_id=post_id, comment_id=comment.id)
        return comment

    async def delete_comment(self, comment_id: str) -> None:
        comment = await self._store.get(EntityKind.COMMENT, comment_id)
        if comment is None:
            raise NotFoundError("comment", comment_id)
        async with self._store.transaction(lock_key(EntityKind.POST, comment.post_id)) as uow:
            if not await uow.delete(EntityKind.COMMENT, comment_id):
                raise NotFoundError("comment", comment_id)
            post = await uow.get(EntityKind.POST, comment.post_id)
            if post is not None:
                await self._recount(uow, post)
        self._log.info("comment_deleted", post_id=comment.post_id, comment_id=comment_id)

    async def _recount(self, uow: UnitOfWork, post: Post) -> Post:
        updated = post.with_counts(
            self._time.now(),
            likes=len(await self._likes_of(uow, post.id)),
            comments=len(await self._comments_of(uow, post.id)),
        )
        await uow.put(EntityKind.POST, updated)
        return updated

    @staticmethod
    async def _likes_of(uow: UnitOfWork, post_id: str) -> list[PostLike]:
        return [
            like
            for like in await uow.list_all(EntityKind.POST_LIKE)
            if like.post_id == post_id
        ]

    @staticmethod
    async def _comments_of(uow: UnitOfWork, post_id: str) -> list[Comment]:
        return [c for c in await uow.list_all(EntityKind.COMMENT) if c.post_id == post_id]
