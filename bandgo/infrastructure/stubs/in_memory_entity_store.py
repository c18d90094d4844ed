"""In-memory implementation of EntityStoreProtocol.

Committed state is a dictionary per entity kind. A transaction stages its
writes in a private overlay and applies them in one synchronous step on
exit, so a failing operation leaves committed state untouched. Lock keys
map to asyncio.Lock instances acquired in sorted order, which serializes
competing transactions on the same band or event without deadlocking
transactions that share several keys.
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping

import structlog

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    UnitOfWork,
)

logger = structlog.get_logger()

_DELETED: Any = object()


def _write(collection: dict[str, Any], entity_id: str, value: Any) -> None:
    if value is _DELETED:
        collection.pop(entity_id, None)
    else:
        collection[entity_id] = value


class _InMemoryUnitOfWork(UnitOfWork):
    """Staged overlay on top of the store's committed collections."""

    def __init__(self, committed: Mapping[EntityKind, dict[str, Any]]) -> None:
        self._committed = committed
        self._staged: dict[EntityKind, dict[str, Any]] = {}

    async def get(self, kind: EntityKind, entity_id: str) -> Any | None:
        staged = self._staged.get(kind, {})
        if entity_id in staged:
            value = staged[entity_id]
            return None if value is _DELETED else value
        return self._committed[kind].get(entity_id)

    async def list_all(self, kind: EntityKind) -> list[Any]:
        merged = dict(self._committed[kind])
        for entity_id, value in self._staged.get(kind, {}).items():
            if value is _DELETED:
                merged.pop(entity_id, None)
            else:
                merged[entity_id] = value
        return list(merged.values())

    async def put(self, kind: EntityKind, entity: Any) -> None:
        self._staged.setdefault(kind, {})[entity.id] = entity

    async def delete(self, kind: EntityKind, entity_id: str) -> bool:
        if await self.get(kind, entity_id) is None:
            return False
        self._staged.setdefault(kind, {})[entity_id] = _DELETED
        return True

    @property
    def staged_writes(self) -> dict[EntityKind, dict[str, Any]]:
        return self._staged


class InMemoryEntityStore(EntityStoreProtocol):
    """In-memory stub implementation of EntityStoreProtocol.

    Suitable for development, tests, and the local single-process
    deployment. Subclasses persist state by overriding _after_commit().

    Attributes:
        _collections: Committed entities per kind, keyed by entity id.
        _locks: One asyncio.Lock per lock key, created on first use.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._collections: dict[EntityKind, dict[str, Any]] = {
            kind: {} for kind in EntityKind
        }
        self._locks: dict[str, asyncio.Lock] = {}
        self._commits = 0

    async def get(self, kind: EntityKind, entity_id: str) -> Any | None:
        return self._collections[kind].get(entity_id)

    async def list_all(self, kind: EntityKind) -> list[Any]:
        return list(self._collections[kind].values())

    @asynccontextmanager
    async def transaction(self, *lock_keys: str) -> AsyncIterator[UnitOfWork]:
        """Open a transaction holding ``lock_keys``.

        Staged writes are applied when the block exits normally. If the
        block raises, nothing is applied and the error propagates.
        """
        async with AsyncExitStack() as stack:
            for key in sorted(set(lock_keys)):
                await stack.enter_async_context(self._lock_for(key))
            uow = _InMemoryUnitOfWork(self._collections)
            yield uow
            self._apply(uow.staged_writes)

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def _apply(self, writes: Mapping[EntityKind, Mapping[str, Any]]) -> None:
        if not writes:
            return
        undo: list[tuple[dict[str, Any], str, Any]] = []
        for kind, staged in writes.items():
            collection = self._collections[kind]
            for entity_id, value in staged.items():
                undo.append((collection, entity_id, collection.get(entity_id, _DELETED)))
                _write(collection, entity_id, value)
        try:
            self._after_commit()
        except Exception:
            for collection, entity_id, previous in reversed(undo):
                _write(collection, entity_id, previous)
            logger.warning(
                "entity_store_commit_rolled_back",
                kinds=[kind.value for kind in writes],
            )
            raise
        self._commits += 1

    def _after_commit(self) -> None:
        """Hook run after a transaction's writes are applied.

        Raising here undoes those writes and fails the transaction.
        """

    # =========================================================================
    # Seeding and inspection (bootstrap and tests)
    # =========================================================================

    def seed(self, kind: EntityKind, *entities: Any) -> None:
        """Insert entities directly, bypassing transactions."""
        collection = self._collections[kind]
        for entity in entities:
            collection[entity.id] = entity

    def collections(self) -> dict[EntityKind, list[Any]]:
        """Return a copy of every committed collection."""
        return {kind: list(items.values()) for kind, items in self._collections.items()}

    def replace_all(self, collections: Mapping[EntityKind, Iterable[Any]]) -> None:
        """Replace committed state wholesale (used when restoring snapshots)."""
        for kind in EntityKind:
            self._collections[kind] = {e.id: e for e in collections.get(kind, ())}
        logger.debug(
            "entity_store_restored",
            counts={k.value: len(v) for k, v in self._collections.items() if v},
        )

    def count(self, kind: EntityKind) -> int:
        return len(self._collections[kind])

    @property
    def commit_count(self) -> int:
        return self._commits

    def clear(self) -> None:
        """Clear all stored data (for testing)."""
        for collection in self._collections.values():
            collection.clear()
