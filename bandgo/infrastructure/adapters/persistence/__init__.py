"""File-backed persistence adapters."""

from bandgo.infrastructure.adapters.persistence.json_snapshot_store import (
    SNAPSHOT_FORMAT_VERSION,
    JsonSnapshotEntityStore,
    SnapshotCodec,
    SnapshotFormatError,
)

__all__: list[str] = [
    "JsonSnapshotEntityStore",
    "SNAPSHOT_FORMAT_VERSION",
    "SnapshotCodec",
    "SnapshotFormatError",
]
