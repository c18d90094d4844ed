"""Event and registration manager.

Registration capacity check and insert run in one transaction under the
event's lock, so concurrent registrants cannot both observe "room left".
For capacity C > 0 the (C+1)-th active registrant is waitlisted.
Cancelling never promotes from the waitlist implicitly; staff promote
through promote_from_waitlist().
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    UnitOfWork,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.authorization import require_privileged
from bandgo.application.services.base import LoggingMixin, require
from bandgo.domain.errors import InvalidStateError, NotFoundError
from bandgo.domain.models import (
    Event,
    EventRegistration,
    EventType,
    RegistrationStatus,
)
from bandgo.domain.models.event import EVENT_EDITABLE_FIELDS
from bandgo.domain.models.patching import apply_patch, new_entity_id


@dataclass(frozen=True)
class EventFilters:
    """Listing filters for events (date bounds inclusive)."""

    type: EventType | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None


class EventService(LoggingMixin):
    """Event CRUD and capacity-aware registration."""

    def __init__(
        self, store: EntityStoreProtocol, time_authority: TimeAuthorityProtocol
    ) -> None:
        self._store = store
        self._time = time_authority
        self._init_logger(component="events")

    async def create_event(
        self,
        created_by: str,
        title: str,
        type: EventType,
        date_time: datetime,
        duration_minutes: int,
        location: str,
        organizer_id: str | None = None,
        **details: Any,
    ) -> Event:
        """Create an event. Staff only.

        Args:
            created_by: Staff member creating the event.
            title: Event title.
            type: Kind of event.
            date_time: Start time.
            duration_minutes: Length of the event.
            location: Venue.
            organizer_id: Organizer; defaults to ``created_by``.
            **details: Any other editable event field.

        Raises:
            PermissionDeniedError: If the creator is not privileged.
            ValidationError: If a required field is missing or invalid.
        """
        log = self._log_operation("create_event", created_by=created_by)
        log.debug("create_event_started", type=type.value)

        now = self._time.now()
        event = Event(
            id=new_entity_id(),
            title=title,
            type=type,
            date_time=date_time,
            duration_minutes=duration_minutes,
            location=location,
            organizer_id=organizer_id or created_by,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        if details:
            event = apply_patch(event, details, EVENT_EDITABLE_FIELDS)

        async with self._store.transaction() as uow:
            await require_privileged(uow, created_by, "create event")
            await uow.put(EntityKind.EVENT, event)

        log.info("event_created", event_id=event.id, capacity=event.capacity)
        return event

    async def update_event(self, event_id: str, patch: Mapping[str, Any]) -> Event:
        """Apply a partial update.

        Lowering the capacity below the registered count does not demote
        anyone; it only stops new registrations from being admitted.
        """
        async with self._store.transaction(lock_key(EntityKind.EVENT, event_id)) as uow:
            event = await require(uow, EntityKind.EVENT, event_id, "event")
            updated = apply_patch(event, patch, EVENT_EDITABLE_FIELDS, updated_at=self._time.now())
            await uow.put(EntityKind.EVENT, updated)
        self._log.info("event_updated", event_id=event_id, fields=sorted(patch))
        return updated

    async def delete_event(self, event_id: str) -> None:
        """Delete an event together with its registrations."""
        async with self._store.transaction(lock_key(EntityKind.EVENT, event_id)) as uow:
            await require(uow, EntityKind.EVENT, event_id, "event")
            await uow.delete(EntityKind.EVENT, event_id)
            for registration in await self._registrations_of(uow, event_id):
                await uow.delete(EntityKind.EVENT_REGISTRATION, registration.id)
        self._log.info("event_deleted", event_id=event_id)

    async def get_event(self, event_id: str) -> Event:
        event = await self._store.get(EntityKind.EVENT, event_id)
        if event is None:
            raise NotFoundError("event", event_id)
        return event

    async def get_events(self, filters: EventFilters | None = None) -> list[Event]:
        """Events in chronological order."""
        filters = filters or EventFilters()
        events = [
            e
            for e in await self._store.list_all(EntityKind.EVENT)
            if (filters.type is None or e.type is filters.type)
            and (filters.from_date is None or e.date_time >= filters.from_date)
            and (filters.to_date is None or e.date_time <= filters.to_date)
        ]
        return sorted(events, key=lambda e: e.date_time)

    # Registration

    async def register_for_event(
        self, event_id: str, user_id: str, notes: str | None = None
    ) -> EventRegistration:
        """Register the user, or waitlist them when the event is full.

        A user who already holds an active registration gets it back
        unchanged.

        Raises:
            NotFoundError: If the event or user does not exist.
            InvalidStateError: If the registration deadline has passed.
        """
        log = self._log_operation("register_for_event", event_id=event_id, user_id=user_id)
        log.debug("register_for_event_started")

        now = self._time.now()
        async with self._store.transaction(lock_key(EntityKind.EVENT, event_id)) as uow:
            event = await require(uow, EntityKind.EVENT, event_id, "event")
            await require(uow, EntityKind.USER, user_id, "user")
            registrations = await self._registrations_of(uow, event_id)
            for existing in registrations:
                if existing.user_id == user_id and existing.status.is_active():
                    log.debug("already_registered", status=existing.status.value)
                    return existing
            if event.registration_deadline is not None and now > event.registration_deadline:
                log.warning("register_for_event_rejected", reason="deadline_passed")
                raise InvalidStateError(f"registration for event {event_id} is closed")

            registered = sum(
                1 for r in registrations if r.status is RegistrationStatus.REGISTERED
            )
            status = (
                RegistrationStatus.REGISTERED
                if event.has_room(registered)
                else RegistrationStatus.WAITLIST
            )
            registration = EventRegistration(
                id=new_entity_id(),
                event_id=event_id,
                user_id=user_id,
                status=status,
                created_at=now,
                notes=notes,
            )
            await uow.put(EntityKind.EVENT_REGISTRATION, registration)

        log.info("event_registration_created", registration_id=registration.id, status=status.value)
        return registration

    async def cancel_registration(self, event_id: str, user_id: str) -> EventRegistration:
        """Cancel the user's active registration.

        Raises:
            NotFoundError: If the user has no active registration.
        """
        async with self._store.transaction(lock_key(EntityKind.EVENT, event_id)) as uow:
            registration = next(
                (
                    r
                    for r in await self._registrations_of(uow, event_id)
                    if r.user_id == user_id and r.status.is_active()
                ),
                None,
            )
            if registration is None:
                raise NotFoundError("event_registration", f"{event_id}/{user_id}")
            cancelled = registration.with_status(RegistrationStatus.CANCELLED)
            await uow.put(EntityKind.EVENT_REGISTRATION, cancelled)
        self._log.info(
            "event_registration_cancelled",
            event_id=event_id,
            user_id=user_id,
            previous_status=registration.status.value,
        )
        return cancelled

    async def promote_from_waitlist(
        self, event_id: str, actor_id: str
    ) -> list[EventRegistration]:
        """Promote the earliest waitlisted registrants while there is room.

        Raises:
            PermissionDeniedError: If the actor is not privileged.
            NotFoundError: If the event does not exist.
        """
        async with self._store.transaction(lock_key(EntityKind.EVENT, event_id)) as uow:
            await require_privileged(uow, actor_id, "promote from waitlist")
            event = await require(uow, EntityKind.EVENT, event_id, "event")
            registrations = await self._registrations_of(uow, event_id)
            registered = sum(
                1 for r in registrations if r.status is RegistrationStatus.REGISTERED
            )
            waitlist = sorted(
                (r for r in registrations if r.status is RegistrationStatus.WAITLIST),
                key=lambda r: r.created_at,
            )
            promoted = []
            for registration in waitlist:
                if not event.has_room(registered):
                    break
                updated = registration.with_status(RegistrationStatus.REGISTERED)
                await uow.put(EntityKind.EVENT_REGISTRATION, updated)
                promoted.append(updated)
                registered += 1
        self._log.info("waitlist_promoted", event_id=event_id, promoted=len(promoted))
        return promoted

    async def get_event_registrations(self, event_id: str) -> list[EventRegistration]:
        return [
            r
            for r in await self._store.list_all(EntityKind.EVENT_REGISTRATION)
            if r.event_id == event_id
        ]

    async def get_my_event_registrations(self, user_id: str) -> list[EventRegistration]:
        return [
            r
            for r in await self._store.list_all(EntityKind.EVENT_REGISTRATION)
            if r.user_id == user_id and r.status.is_active()
        ]

    async def event_ids_for_user(self, user_id: str) -> list[str]:
        """Ids of events the user holds an active registration for."""
        return sorted(
            {
                r.event_id
                for r in await self._store.list_all(EntityKind.EVENT_REGISTRATION)
                if r.user_id == user_id and r.status.is_active()
            }
        )

    async def cancel_user_registrations(
        self, uow: UnitOfWork, user_id: str
    ) -> int:
        """Cancel every active registration of a user inside an open transaction.

        The caller must hold the lock of every event returned by
        event_ids_for_user().
        """
        cancelled = 0
        for registration in await uow.list_all(EntityKind.EVENT_REGISTRATION):
            if registration.user_id == user_id and registration.status.is_active():
                await uow.put(
                    EntityKind.EVENT_REGISTRATION,
                    registration.with_status(RegistrationStatus.CANCELLED),
                )
                cancelled += 1
        return cancelled

    @staticmethod
    async def _registrations_of(uow: UnitOfWork, event_id: str) -> list[EventRegistration]:
        return [
            r
            for r in await uow.list_all(EntityKind.EVENT_REGISTRATION)
            if r.event_id == event_id
        ]
