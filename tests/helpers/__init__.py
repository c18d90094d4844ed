"""Test helpers for bandgo tests.

Reusable fakes and factories for dependency injection in unit tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    make_user, make_band, make_band_request, make_event, make_rehearsal:
        Valid entities for seeding an InMemoryEntityStore

Usage:
    from tests.helpers import FakeTimeAuthority, make_band
"""

from tests.helpers.factories import (
    NOW,
    make_band,
    make_band_request,
    make_event,
    make_rehearsal,
    make_user,
    seed_users,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority

__all__ = [
    "NOW",
    "FakeTimeAuthority",
    "make_band",
    "make_band_request",
    "make_event",
    "make_rehearsal",
    "make_user",
    "seed_users",
]
