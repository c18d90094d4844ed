"""Base exception for the bandgo domain.

Every failure raised by the core derives from BandgoError so callers can
catch the whole family in one place and decide user-facing messaging.
"""


class BandgoError(Exception):
    """Base exception for all bandgo domain errors."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)
