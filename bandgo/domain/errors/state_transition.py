"""State machine errors for rehearsals, applications and submissions.

Every status change in the core is a compare-and-set against the entity's
current status. When the current status is not a permitted source for the
requested target, one of these errors names both.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from bandgo.domain.exceptions import BandgoError


class InvalidStateError(BandgoError):
    """Base error for operations not permitted in the entity's current state."""

    pass


class InvalidStateTransitionError(InvalidStateError):
    """Raised when a transition is not in the entity's transition matrix.

    Attributes:
        entity_type: Kind of entity (e.g. "rehearsal").
        entity_id: Id of the entity.
        from_state: Current state of the entity.
        to_state: Attempted target state.
        allowed_transitions: Valid target states from the current state.
    """

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        from_state: Enum,
        to_state: Enum,
        allowed_transitions: Sequence[Enum] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Kind of entity being transitioned.
            entity_id: Id of the entity being transitioned.
            from_state: Current state.
            to_state: Attempted invalid target state.
            allowed_transitions: Valid states from current state (optional).
        """
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.from_state = from_state
        self.to_state = to_state
        self.allowed_transitions = list(allowed_transitions or [])

        allowed_str = (
            f" Valid transitions: {sorted(s.value for s in self.allowed_transitions)}"
            if self.allowed_transitions
            else ""
        )
        super().__init__(
            f"Invalid {entity_type} state transition for {entity_id}: "
            f"{from_state.value} -> {to_state.value}.{allowed_str}"
        )


class NotEligibleError(InvalidStateError):
    """Raised when a band has not yet unlocked a progression step.

    Attributes:
        band_id: The band that asked for the step.
        requirement: Human-readable description of what is missing.
    """

    def __init__(self, band_id: str, requirement: str) -> None:
        self.band_id = band_id
        self.requirement = requirement
        super().__init__(f"Band {band_id} is not eligible: {requirement}")
