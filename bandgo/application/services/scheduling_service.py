"""Member availability and rehearsal time suggestions."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Sequence

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.base import LoggingMixin, require
from bandgo.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from bandgo.domain.models import (
    AvailabilitySlot,
    AvailabilityStatus,
    SchedulingSuggestion,
    TimeSlot,
)

DEFAULT_START_TIME = "18:00"
MIN_AVAILABLE_MEMBERS = 2


def availability_id(band_id: str, user_id: str, day: date) -> str:
    """Availability is one record per (band, user, date)."""
    return f"{band_id}:{user_id}:{day.isoformat()}"


class SchedulingService(LoggingMixin):
    """Stores availability and ranks candidate rehearsal dates."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        horizon_days: int = 14,
    ) -> None:
        """Initialize the scheduling service.

        Args:
            store: Entity store.
            time_authority: Clock; "today" starts the suggestion window.
            horizon_days: How many days ahead suggestions look.
        """
        self._store = store
        self._time = time_authority
        self._horizon_days = horizon_days
        self._init_logger(component="scheduling")

    async def update_availability(
        self,
        band_id: str,
        user_id: str,
        day: date,
        time_slots: Sequence[TimeSlot],
        notes: str | None = None,
    ) -> AvailabilitySlot:
        """Replace the member's availability for one date.

        Raises:
            NotFoundError: If the band does not exist.
            PermissionDeniedError: If the user is not a member.
        """
        slot_id = availability_id(band_id, user_id, day)
        async with self._store.transaction(lock_key(EntityKind.AVAILABILITY, slot_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            if not band.is_member(user_id):
                raise PermissionDeniedError(
                    user_id, "update availability", f"not a member of band {band_id}"
                )
            slot = AvailabilitySlot(
                id=slot_id,
                band_id=band_id,
                user_id=user_id,
                date=day,
                time_slots=tuple(time_slots),
                notes=notes,
                updated_at=self._time.now(),
            )
            await uow.put(EntityKind.AVAILABILITY, slot)
        self._log.debug(
            "availability_updated", band_id=band_id, user_id=user_id, date=day.isoformat()
        )
        return slot

    async def get_availability(
        self, band_id: str, start: date, end: date
    ) -> list[AvailabilitySlot]:
        """Availability records of the band between two dates, inclusive."""
        if end < start:
            raise ValidationError("date range ends before it starts", field="end")
        slots = [
            s
            for s in await self._store.list_all(EntityKind.AVAILABILITY)
            if s.band_id == band_id and start <= s.date <= end
        ]
        return sorted(slots, key=lambda s: (s.date, s.user_id))

    async def get_scheduling_suggestions(
        self, band_id: str, duration_minutes: int = 120
    ) -> list[SchedulingSuggestion]:
        """Rank upcoming dates by how many members are available.

        Only dates within the horizon where at least two current members
        are available qualify. The start time is the most common available
        start among those members.

        Raises:
            NotFoundError: If the band does not exist.
        """
        band = await self._store.get(EntityKind.BAND, band_id)
        if band is None:
            raise NotFoundError("band", band_id)

        today = self._time.now().date()
        slots = await self.get_availability(
            band_id, today, today + timedelta(days=self._horizon_days)
        )
        by_date: dict[date, list[AvailabilitySlot]] = {}
        for slot in slots:
            if band.is_member(slot.user_id):
                by_date.setdefault(slot.date, []).append(slot)

        suggestions = []
        for day, day_slots in by_date.items():
            available = [s for s in day_slots if s.is_available]
            if len(available) < MIN_AVAILABLE_MEMBERS:
                continue
            available_ids = tuple(s.user_id for s in available)
            starts = Counter(
                ts.start
                for s in available
                for ts in s.time_slots
                if ts.status is AvailabilityStatus.AVAILABLE
            )
            start = (
                min(starts, key=lambda t: (-starts[t], t)) if starts else DEFAULT_START_TIME
            )
            hour, minute = (int(part) for part in start.split(":"))
            suggestions.append(
                SchedulingSuggestion(
                    band_id=band_id,
                    date_time=datetime.combine(day, time(hour, minute), tzinfo=timezone.utc),
                    duration_minutes=duration_minutes,
                    match_score=round(len(available_ids) / len(band.members) * 100),
                    available_members=available_ids,
                    unavailable_members=tuple(
                        uid for uid in band.member_ids if uid not in available_ids
                    ),
                )
            )
        return sorted(suggestions, key=lambda s: (-s.match_score, s.date_time))
