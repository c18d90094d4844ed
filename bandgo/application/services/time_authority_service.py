"""Wall-clock time authority.

This is the only module allowed to read the system clock directly; every
manager receives it through TimeAuthorityProtocol.
"""

import time
from datetime import datetime, timezone

from bandgo.application.ports.time_authority import TimeAuthorityProtocol


class TimeAuthorityService(TimeAuthorityProtocol):
    """TimeAuthorityProtocol backed by the system clock (always UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()
