"""Lookup errors raised when an id does not resolve to an entity."""

from __future__ import annotations

from bandgo.domain.exceptions import BandgoError


class NotFoundError(BandgoError):
    """Raised when a referenced id does not resolve to an entity.

    Attributes:
        entity_type: Kind of entity that was looked up (e.g. "band").
        entity_id: The id that failed to resolve.
    """

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize the error.

        Args:
            entity_type: Kind of entity that was looked up.
            entity_id: The id that failed to resolve.
        """
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class MembershipNotFoundError(NotFoundError):
    """Raised when a user is not a member of the band being mutated."""

    def __init__(self, band_id: str, user_id: str) -> None:
        self.band_id = band_id
        self.user_id = user_id
        super().__init__("band_member", f"{band_id}/{user_id}")
