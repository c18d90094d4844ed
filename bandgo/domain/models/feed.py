"""Feed content: posts, comments and likes.

``likes_count`` and ``comments_count`` on a Post are denormalized counters;
the feed manager recomputes them from the like and comment sets in the same
transaction as the mutation that changes those sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class PostType(Enum):
    USER_POST = "user_post"
    SYSTEM_AUTO = "system_auto"
    ADMIN_MESSAGE = "admin_message"


class SystemEventType(Enum):
    """Platform events that publish an automatic post."""

    BAND_REQUEST_CREATED = "band_request_created"
    BAND_FORMED = "band_formed"
    EVENT_APPROVED = "event_approved"


class TargetAudience(Enum):
    ALL = "all"
    BANDS = "bands"
    EVENT_PARTICIPANTS = "event_participants"


@dataclass(frozen=True, eq=True)
class Post:
    """A feed post.

    Attributes:
        id: Stable post id.
        type: Authored, automatic, or admin message.
        content: Post text.
        author_id: Author for user and admin posts; None for automatic posts.
        is_pinned: Pinned posts list before all others.
        system_event_type: What triggered an automatic post.
        related_entity_id: Entity an automatic post refers to.
        likes_count: Size of the post's liker set.
        comments_count: Number of comments on the post.
    """

    id: str
    type: PostType
    content: str
    created_at: datetime
    updated_at: datetime
    author_id: str | None = field(default=None)
    media_urls: tuple[str, ...] = field(default=())
    is_pinned: bool = field(default=False)
    system_event_type: SystemEventType | None = field(default=None)
    related_entity_id: str | None = field(default=None)
    target_audience: TargetAudience | None = field(default=None)
    target_event_id: str | None = field(default=None)
    likes_count: int = field(default=0)
    comments_count: int = field(default=0)

    def with_pin(self, pinned: bool, updated_at: datetime) -> Post:
        return replace(self, is_pinned=pinned, updated_at=updated_at)

    def with_counts(
        self,
        updated_at: datetime,
        *,
        likes: int | None = None,
        comments: int | None = None,
    ) -> Post:
        return replace(
            self,
            likes_count=self.likes_count if likes is None else likes,
            comments_count=self.comments_count if comments is None else comments,
            updated_at=updated_at,
        )


def post_like_id(post_id: str, user_id: str) -> str:
    """Deterministic like id: one like per (post, user)."""
    return f"{post_id}:{user_id}"


@dataclass(frozen=True, eq=True)
class PostLike:
    id: str
    post_id: str
    user_id: str
    created_at: datetime


@dataclass(frozen=True, eq=True)
class Comment:
    id: str
    post_id: str
    author_id: str
    content: str
    created_at: datetime
    updated_at: datetime
