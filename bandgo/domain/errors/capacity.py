"""Hard capacity errors.

Event registration never raises these; it degrades to the waitlist.
Instrument slots on a band request are a hard limit.
"""

from __future__ import annotations

from bandgo.domain.exceptions import BandgoError


class CapacityExceededError(BandgoError):
    """Raised when a write would push a bounded collection past its limit.

    Attributes:
        resource: What is full (e.g. "instrument_slot:guitar").
        capacity: The configured limit.
    """

    def __init__(self, resource: str, capacity: int) -> None:
        self.resource = resource
        self.capacity = capacity
        super().__init__(f"{resource} is full (capacity {capacity})")
