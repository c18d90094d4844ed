"""Entity Store Protocol - storage-agnostic persistence contract.

Managers read and write entities only through this port. A concrete
adapter (in-memory, snapshot file, remote database) must honor:

- Atomicity: every write staged in one transaction is applied together
  when the transaction block exits normally, and none is applied when it
  raises.
- Serialization: transactions sharing a lock key never interleave. Managers
  lock ``event:<id>`` around registration capacity checks and
  ``band:<id>`` around membership changes, so check-then-write runs as one
  compare-and-set step.
- Read-your-writes: reads inside a transaction see its own staged writes.
- Round-trip: every collection survives a save/reload cycle with types
  intact (datetimes come back as datetimes).
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any, Protocol

from bandgo.domain.models import (
    AvailabilitySlot,
    Band,
    BandApplication,
    BandRequest,
    ChatMessage,
    Comment,
    Conversation,
    DirectMessage,
    Event,
    EventRegistration,
    EventSubmission,
    LiveSessionRequest,
    Notification,
    PerformanceRequest,
    Post,
    PostLike,
    Rehearsal,
    RehearsalPoll,
    Report,
    Song,
    SystemSettings,
    Task,
    User,
)


class EntityKind(Enum):
    """Entity collections, valued by their persisted collection name."""

    USER = "users"
    BAND_REQUEST = "band_requests"
    APPLICATION = "applications"
    BAND = "bands"
    REHEARSAL = "rehearsals"
    REHEARSAL_POLL = "rehearsal_polls"
    SONG = "songs"
    TASK = "tasks"
    PERFORMANCE_REQUEST = "performance_requests"
    LIVE_SESSION_REQUEST = "live_session_requests"
    EVENT = "events"
    EVENT_REGISTRATION = "event_registrations"
    EVENT_SUBMISSION = "event_submissions"
    POST = "posts"
    POST_LIKE = "post_likes"
    COMMENT = "comments"
    NOTIFICATION = "notifications"
    REPORT = "reports"
    CHAT_MESSAGE = "chat_messages"
    CONVERSATION = "conversations"
    DIRECT_MESSAGE = "direct_messages"
    AVAILABILITY = "availability"
    SYSTEM_SETTINGS = "system_settings"


# Model class stored in each collection.
ENTITY_MODELS: dict[EntityKind, type] = {
    EntityKind.USER: User,
    EntityKind.BAND_REQUEST: BandRequest,
    EntityKind.APPLICATION: BandApplication,
    EntityKind.BAND: Band,
    EntityKind.REHEARSAL: Rehearsal,
    EntityKind.REHEARSAL_POLL: RehearsalPoll,
    EntityKind.SONG: Song,
    EntityKind.TASK: Task,
    EntityKind.PERFORMANCE_REQUEST: PerformanceRequest,
    EntityKind.LIVE_SESSION_REQUEST: LiveSessionRequest,
    EntityKind.EVENT: Event,
    EntityKind.EVENT_REGISTRATION: EventRegistration,
    EntityKind.EVENT_SUBMISSION: EventSubmission,
    EntityKind.POST: Post,
    EntityKind.POST_LIKE: PostLike,
    EntityKind.COMMENT: Comment,
    EntityKind.NOTIFICATION: Notification,
    EntityKind.REPORT: Report,
    EntityKind.CHAT_MESSAGE: ChatMessage,
    EntityKind.CONVERSATION: Conversation,
    EntityKind.DIRECT_MESSAGE: DirectMessage,
    EntityKind.AVAILABILITY: AvailabilitySlot,
    EntityKind.SYSTEM_SETTINGS: SystemSettings,
}


def lock_key(kind: EntityKind, entity_id: str) -> str:
    """Lock key for serializing writes to one entity (e.g. ``bands:b-1``)."""
    return f"{kind.value}:{entity_id}"


class UnitOfWork(Protocol):
    """A transaction's view of the store.

    Reads see committed state overlaid with this transaction's staged
    writes. Writes are staged until the owning transaction commits.
    """

    async def get(self, kind: EntityKind, entity_id: str) -> Any | None:
        """Return the entity with ``entity_id`` or None."""
        ...

    async def list_all(self, kind: EntityKind) -> list[Any]:
        """Return every entity in the collection, in insertion order."""
        ...

    async def put(self, kind: EntityKind, entity: Any) -> None:
        """Insert or replace ``entity`` (keyed by its ``id``)."""
        ...

    async def delete(self, kind: EntityKind, entity_id: str) -> bool:
        """Remove the entity; return False if it did not exist."""
        ...


class EntityStoreProtocol(Protocol):
    """Protocol for entity persistence.

    Implementations:
        - InMemoryEntityStore: process-local dictionaries
        - JsonSnapshotEntityStore: in-memory plus a JSON document on disk
    """

    async def get(self, kind: EntityKind, entity_id: str) -> Any | None:
        """Read one committed entity."""
        ...

    async def list_all(self, kind: EntityKind) -> list[Any]:
        """Read every committed entity of a kind."""
        ...

    def transaction(self, *lock_keys: str) -> AbstractAsyncContextManager[UnitOfWork]:
        """Open an atomic transaction holding ``lock_keys``.

        Args:
            lock_keys: Keys serialized for the duration of the transaction.

        Returns:
            Async context manager yielding the transaction's UnitOfWork.
            Staged writes commit on normal exit and are discarded on error.
        """
        ...
