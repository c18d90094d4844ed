"""Lost-update detection for compare-and-set writes."""

from __future__ import annotations

from bandgo.domain.exceptions import BandgoError


class ConcurrentModificationError(BandgoError):
    """Raised when a storage adapter detects a competing write.

    This is a recoverable error - the caller should re-read the entity and
    decide whether to retry or abort. The core itself never retries.

    Attributes:
        entity_type: Kind of entity being written.
        entity_id: Id of the entity being written.
        operation: Name of the operation that lost the race.
    """

    def __init__(self, entity_type: str, entity_id: str, operation: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(
            f"Concurrent modification detected for {entity_type} {entity_id} "
            f"during {operation}"
        )
