"""Structural input validation errors."""

from __future__ import annotations

from bandgo.domain.exceptions import BandgoError


class ValidationError(BandgoError):
    """Raised when caller-supplied input violates a structural precondition.

    Examples:
        - A rehearsal poll with fewer than two options
        - An event with an empty title
        - A patch touching a field that is not editable

    Attributes:
        field: Name of the offending field, when one can be singled out.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)
