"""Partial-update helpers shared by the entity models.

Entities are immutable-by-replacement: an update produces a new record with
a refreshed ``updated_at``. Each model declares the set of fields a caller
may patch; anything outside that set is rejected rather than ignored.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, TypeVar
from uuid import uuid4

from bandgo.domain.errors.validation import ValidationError

T = TypeVar("T")


def new_entity_id() -> str:
    """Return a fresh, stable string id for a new entity."""
    return str(uuid4())


def apply_patch(
    entity: T,
    patch: Mapping[str, Any],
    editable: frozenset[str],
    *,
    updated_at: datetime | None = None,
) -> T:
    """Return a copy of ``entity`` with ``patch`` applied.

    Lists in the patch are stored as tuples so the result stays immutable.

    Args:
        entity: A frozen dataclass instance.
        patch: Field name to new value.
        editable: Field names the caller is allowed to change.
        updated_at: New ``updated_at`` value, for models that carry one.

    Returns:
        The patched copy.

    Raises:
        ValidationError: If the patch names a field outside ``editable``.
    """
    rejected = sorted(set(patch) - editable)
    if rejected:
        raise ValidationError(
            f"{type(entity).__name__} fields are not editable: {', '.join(rejected)}",
            field=rejected[0],
        )
    changes = {
        key: tuple(value) if isinstance(value, list) else value
        for key, value in patch.items()
    }
    if updated_at is not None:
        changes["updated_at"] = updated_at
    return replace(entity, **changes)  # type: ignore[type-var]


def require_text(value: str | None, field_name: str) -> None:
    """Raise ValidationError if ``value`` is empty or only whitespace."""
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} must not be empty", field=field_name)
