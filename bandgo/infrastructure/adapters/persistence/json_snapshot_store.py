"""JSON snapshot persistence for the in-memory entity store.

All entity collections are serialized into one keyed document:

    {
        "version": 1,
        "collections": {
            "users": [...],
            "bands": [...],
            ...
        }
    }

Serialization goes through pydantic TypeAdapters built from the domain
dataclasses, so enums, tuples, nested records and datetimes come back as
their real types rather than strings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Iterable, Mapping

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bandgo.application.ports.entity_store import ENTITY_MODELS, EntityKind
from bandgo.domain.exceptions import BandgoError
from bandgo.infrastructure.stubs.in_memory_entity_store import InMemoryEntityStore

logger = structlog.get_logger()

SNAPSHOT_FORMAT_VERSION = 1


class SnapshotFormatError(BandgoError):
    """Raised when a snapshot document cannot be decoded."""

    pass


class SnapshotCodec:
    """Encode and decode entity collections as a JSON document."""

    def __init__(self) -> None:
        self._adapters: dict[EntityKind, TypeAdapter[list[Any]]] = {
            kind: TypeAdapter(list[model])  # type: ignore[valid-type]
            for kind, model in ENTITY_MODELS.items()
        }

    def encode(self, collections: Mapping[EntityKind, Iterable[Any]]) -> bytes:
        """Serialize every collection into one JSON document."""
        document = {
            "version": SNAPSHOT_FORMAT_VERSION,
            "collections": {
                kind.value: self._adapters[kind].dump_python(list(entities), mode="json")
                for kind, entities in collections.items()
            },
        }
        return json.dumps(document, ensure_ascii=False, sort_keys=True).encode("utf-8")

    def decode(self, payload: bytes) -> dict[EntityKind, list[Any]]:
        """Parse a JSON document back into domain entities.

        Raises:
            SnapshotFormatError: If the document is malformed, has an
                unsupported version, or an entity fails validation.
        """
        try:
            document = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SnapshotFormatError(f"snapshot is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise SnapshotFormatError("snapshot root must be an object")
        version = document.get("version")
        if version != SNAPSHOT_FORMAT_VERSION:
            raise SnapshotFormatError(f"unsupported snapshot version: {version!r}")

        raw_collections = document.get("collections", {})
        known = {kind.value: kind for kind in EntityKind}
        unknown = sorted(set(raw_collections) - set(known))
        if unknown:
            logger.warning("snapshot_unknown_collections_ignored", collections=unknown)

        result: dict[EntityKind, list[Any]] = {}
        for name, kind in known.items():
            try:
                result[kind] = self._adapters[kind].validate_python(
                    raw_collections.get(name, [])
                )
            except PydanticValidationError as e:
                raise SnapshotFormatError(f"invalid {name} collection: {e}") from e
        return result


class JsonSnapshotEntityStore(InMemoryEntityStore):
    """In-memory store that mirrors committed state to a JSON file.

    The file is loaded on construction (when it exists) and rewritten after
    every committed transaction. Writes go to a temporary sibling first and
    are moved into place, so a crash never leaves a half-written snapshot.
    A failed write fails the transaction and leaves memory unchanged.

    Attributes:
        path: Snapshot file location.
    """

    def __init__(self, path: str | Path, codec: SnapshotCodec | None = None) -> None:
        super().__init__()
        self.path = Path(path)
        self._codec = codec or SnapshotCodec()
        if self.path.exists():
            self.replace_all(self._codec.decode(self.path.read_bytes()))
            logger.info("snapshot_loaded", path=str(self.path))

    def _after_commit(self) -> None:
        self.save()

    def save(self) -> None:
        """Write the current committed state to disk."""
        payload = self._codec.encode(self.collections())
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_bytes(payload)
        os.replace(tmp_path, self.path)
        logger.debug("snapshot_saved", path=str(self.path), size=len(payload))
