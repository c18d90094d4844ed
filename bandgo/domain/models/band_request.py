"""Band request domain model - a public recruiting post.

A band request gathers musicians until its creator forms it into a Band.
Once formed, the request is terminal and accepts no further applications.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from bandgo.domain.errors.capacity import CapacityExceededError
from bandgo.domain.models._state_machine import check_transition


class BandRequestType(Enum):
    """How a request recruits.

    TARGETED requests list instrument slots; OPEN requests take anyone up to
    an optional member cap.
    """

    TARGETED = "targeted"
    OPEN = "open"


class BandRequestStatus(Enum):
    """Lifecycle of a band request.

    State Machine:
        OPEN -> CLOSED (creator stops recruiting)
        OPEN -> FORMED (band formed)
        CLOSED -> OPEN (recruiting resumed)
        CLOSED -> FORMED (band formed from the gathered roster)

    FORMED is terminal.
    """

    OPEN = "open"
    CLOSED = "closed"
    FORMED = "formed"

    def is_terminal(self) -> bool:
        return self in BAND_REQUEST_TERMINAL_STATES

    def valid_transitions(self) -> frozenset[BandRequestStatus]:
        return BAND_REQUEST_TRANSITIONS.get(self, frozenset())


BAND_REQUEST_TERMINAL_STATES: frozenset[BandRequestStatus] = frozenset(
    {BandRequestStatus.FORMED}
)

BAND_REQUEST_TRANSITIONS: dict[BandRequestStatus, frozenset[BandRequestStatus]] = {
    BandRequestStatus.OPEN: frozenset(
        {BandRequestStatus.CLOSED, BandRequestStatus.FORMED}
    ),
    BandRequestStatus.CLOSED: frozenset(
        {BandRequestStatus.OPEN, BandRequestStatus.FORMED}
    ),
    BandRequestStatus.FORMED: frozenset(),
}


class BandCommitmentLevel(Enum):
    HOBBY = "hobby"
    INTERMEDIATE = "intermediate"
    PROFESSIONAL = "professional"


@dataclass(frozen=True, eq=True)
class InstrumentSlot:
    """A wanted instrument on a targeted request.

    ``quantity`` is the slot capacity; ``filled_by`` never grows past it.
    """

    instrument_id: str
    quantity: int = field(default=1)
    filled_by: tuple[str, ...] = field(default=())

    @property
    def is_full(self) -> bool:
        return len(self.filled_by) >= self.quantity

    def with_filler(self, user_id: str) -> InstrumentSlot:
        """Return the slot with ``user_id`` added to ``filled_by``.

        Raises:
            CapacityExceededError: If the slot is already full.
        """
        if user_id in self.filled_by:
            return self
        if self.is_full:
            raise CapacityExceededError(
                resource=f"instrument_slot:{self.instrument_id}",
                capacity=self.quantity,
            )
        return replace(self, filled_by=self.filled_by + (user_id,))

    def without_filler(self, user_id: str) -> InstrumentSlot:
        return replace(
            self, filled_by=tuple(uid for uid in self.filled_by if uid != user_id)
        )


@dataclass(frozen=True, eq=True)
class BandRequest:
    """A recruiting post seeking musicians for a not-yet-formed band.

    Attributes:
        id: Stable request id.
        creator_id: User who posted the request; becomes the band leader.
        description: Free text pitch.
        type: TARGETED (instrument slots) or OPEN (member cap).
        created_at: Creation timestamp (UTC).
        updated_at: Last change timestamp (UTC).
        status: Lifecycle status, see BandRequestStatus.
        instrument_slots: Wanted instruments for TARGETED requests.
        max_members: Member cap for OPEN requests (None = no cap).
        current_members: User ids gathered so far, creator included.
        sketches: URLs of demo sketches attached to the request.
        sketch_pending: True when the creator skipped sketches for later.
    """

    id: str
    creator_id: str
    description: str
    type: BandRequestType
    created_at: datetime
    updated_at: datetime
    status: BandRequestStatus = field(default=BandRequestStatus.OPEN)
    title: str | None = field(default=None)
    cover_image_url: str | None = field(default=None)
    genres: tuple[str, ...] = field(default=())
    city: str | None = field(default=None)
    region: str | None = field(default=None)
    radius_km: int = field(default=25)
    original_vs_cover_ratio: int = field(default=50)
    instrument_slots: tuple[InstrumentSlot, ...] = field(default=())
    max_members: int | None = field(default=None)
    current_members: tuple[str, ...] = field(default=())
    sketches: tuple[str, ...] = field(default=())
    sketch_pending: bool = field(default=False)
    commitment_level: BandCommitmentLevel | None = field(default=None)
    rehearsal_frequency: str | None = field(default=None)
    influences: tuple[str, ...] = field(default=())

    @property
    def accepts_applications(self) -> bool:
        return self.status is BandRequestStatus.OPEN

    def has_open_slot_for(self, instrument_ids: frozenset[str]) -> bool:
        """True if a non-full slot wants one of ``instrument_ids``.

        OPEN requests match every instrument.
        """
        if self.type is BandRequestType.OPEN:
            return True
        return any(
            slot.instrument_id in instrument_ids and not slot.is_full
            for slot in self.instrument_slots
        )

    def wants_any(self, instrument_ids: frozenset[str]) -> bool:
        if self.type is BandRequestType.OPEN:
            return True
        return any(slot.instrument_id in instrument_ids for slot in self.instrument_slots)

    def with_status(
        self, new_status: BandRequestStatus, updated_at: datetime
    ) -> BandRequest:
        """Return a copy in ``new_status``.

        Raises:
            InvalidStateTransitionError: If the move is not allowed.
        """
        check_transition(
            "band_request", self.id, self.status, new_status, BAND_REQUEST_TRANSITIONS
        )
        return replace(self, status=new_status, updated_at=updated_at)

    def with_member(
        self, user_id: str, instrument_id: str, updated_at: datetime
    ) -> BandRequest:
        """Return a copy with ``user_id`` on the roster.

        On targeted requests the member also takes a place in the first slot
        for ``instrument_id``.

        Raises:
            CapacityExceededError: If the matching slot or the member cap is full.
        """
        slots = list(self.instrument_slots)
        for index, slot in enumerate(slots):
            if slot.instrument_id == instrument_id:
                slots[index] = slot.with_filler(user_id)
                break

        members = self.current_members
        if user_id not in members:
            if self.max_members is not None and len(members) >= self.max_members:
                raise CapacityExceededError(
                    resource=f"band_request:{self.id}", capacity=self.max_members
                )
            members = members + (user_id,)

        return replace(
            self,
            instrument_slots=tuple(slots),
            current_members=members,
            updated_at=updated_at,
        )

    def references(self, user_id: str) -> bool:
        """True if the user is on the roster or fills a slot."""
        return user_id in self.current_members or any(
            user_id in slot.filled_by for slot in self.instrument_slots
        )

    def without_member(self, user_id: str, updated_at: datetime) -> BandRequest:
        return replace(
            self,
            instrument_slots=tuple(s.without_filler(user_id) for s in self.instrument_slots),
            current_members=tuple(uid for uid in self.current_members if uid != user_id),
            updated_at=updated_at,
        )


BAND_REQUEST_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "description",
        "cover_image_url",
        "genres",
        "city",
        "region",
        "radius_km",
        "original_vs_cover_ratio",
        "instrument_slots",
        "max_members",
        "sketches",
        "sketch_pending",
        "commitment_level",
        "rehearsal_frequency",
        "influences",
    }
)
