"""User profile domain model.

A user is created at registration, edited through profile updates and
admin role changes, and only hard-deleted by explicit admin action.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class UserRole(Enum):
    """Platform role of a user."""

    USER = "user"
    ADMIN = "admin"
    STAFF = "staff"
    MODERATOR = "moderator"
    BANNED = "banned"

    def is_privileged(self) -> bool:
        """True for roles allowed to run moderation operations."""
        return self in PRIVILEGED_ROLES


PRIVILEGED_ROLES: frozenset[UserRole] = frozenset(
    {UserRole.ADMIN, UserRole.STAFF, UserRole.MODERATOR}
)


class InstrumentLevel(Enum):
    """Self-declared proficiency on an instrument."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    PROFESSIONAL = "professional"


class SearchStatus(Enum):
    """Whether the musician is looking for a band."""

    LOOKING = "looking"
    AVAILABLE_FOR_JAMS = "available_for_jams"
    NOT_LOOKING = "not_looking"


@dataclass(frozen=True, eq=True)
class UserInstrument:
    """An instrument a user plays."""

    instrument_id: str
    level: InstrumentLevel | None = None


@dataclass(frozen=True, eq=True)
class ContactInfo:
    """Optional public contact handles."""

    phone: str | None = None
    whatsapp: str | None = None
    instagram: str | None = None
    tiktok: str | None = None
    website: str | None = None


@dataclass(frozen=True, eq=True)
class User:
    """A registered musician or staff member.

    Attributes:
        id: Stable user id.
        display_name: Name shown across the platform.
        created_at: Registration timestamp (UTC).
        updated_at: Last profile change (UTC).
        role: Platform role, see UserRole.
        email: Sign-in email address.
        instruments: Instruments played, with optional level.
        genres: Genre ids the user is into.
        search_status: Whether the user is looking for a band.
    """

    id: str
    display_name: str
    created_at: datetime
    updated_at: datetime
    role: UserRole = field(default=UserRole.USER)
    email: str | None = field(default=None)
    phone: str | None = field(default=None)
    avatar_url: str | None = field(default=None)
    city: str | None = field(default=None)
    region: str | None = field(default=None)
    radius_km: int = field(default=25)
    genres: tuple[str, ...] = field(default=())
    instruments: tuple[UserInstrument, ...] = field(default=())
    is_vocalist: bool = field(default=False)
    is_songwriter: bool = field(default=False)
    bio: str | None = field(default=None)
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    search_status: SearchStatus | None = field(default=None)
    gear: str | None = field(default=None)
    influences: tuple[str, ...] = field(default=())

    @property
    def instrument_ids(self) -> frozenset[str]:
        """Ids of every instrument this user plays."""
        return frozenset(i.instrument_id for i in self.instruments)

    @property
    def is_banned(self) -> bool:
        return self.role is UserRole.BANNED

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on display name or email."""
        needle = query.lower()
        if needle in self.display_name.lower():
            return True
        return self.email is not None and needle in self.email.lower()


# Fields a user may change on their own profile. Role changes go through
# moderation; email is owned by the auth provider.
PROFILE_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "display_name",
        "phone",
        "avatar_url",
        "city",
        "region",
        "radius_km",
        "genres",
        "instruments",
        "is_vocalist",
        "is_songwriter",
        "bio",
        "contact_info",
        "search_status",
        "gear",
        "influences",
    }
)
