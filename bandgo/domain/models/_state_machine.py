"""Shared transition check for the status enums of the domain models."""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from bandgo.domain.errors.state_transition import InvalidStateTransitionError


def check_transition(
    entity_type: str,
    entity_id: str,
    current: Enum,
    target: Enum,
    matrix: Mapping[Enum, frozenset],
) -> None:
    """Verify that ``current -> target`` is in the transition matrix.

    Raises:
        InvalidStateTransitionError: If the matrix does not allow the move.
    """
    allowed = matrix.get(current, frozenset())
    if target not in allowed:
        raise InvalidStateTransitionError(
            entity_type=entity_type,
            entity_id=entity_id,
            from_state=current,
            to_state=target,
            allowed_transitions=list(allowed),
        )
