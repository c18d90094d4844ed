"""Band lifecycle manager.

Owns the path from a recruiting BandRequest, through applications and
formation, to a live Band and its membership churn.

Membership mutations run under the band's lock so that two members leaving
at the same time cannot double-delete the band or leave it leaderless.
Application reviews run under the request's lock, which makes the
pending -> approved/rejected move a compare-and-set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    UnitOfWork,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.base import LoggingMixin, require
from bandgo.application.services.feed_service import system_post
from bandgo.application.services.notification_service import NotificationService
from bandgo.application.services.settings_service import SettingsService
from bandgo.domain.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bandgo.domain.models import (
    UNKNOWN_INSTRUMENT,
    ApplicationStatus,
    Band,
    BandApplication,
    BandMember,
    BandRequest,
    BandRequestStatus,
    BandRequestType,
    NotificationType,
    SystemEventType,
    Task,
    TaskType,
)
from bandgo.domain.models.band import BAND_EDITABLE_FIELDS, validate_members
from bandgo.domain.models.band_request import BAND_REQUEST_EDITABLE_FIELDS
from bandgo.domain.models.patching import apply_patch, new_entity_id, require_text

DEFAULT_BAND_NAME = "New Band"

# Collections whose records belong to exactly one band and go with it.
BAND_SCOPED_KINDS: tuple[EntityKind, ...] = (
    EntityKind.SONG,
    EntityKind.TASK,
    EntityKind.REHEARSAL,
    EntityKind.REHEARSAL_POLL,
    EntityKind.AVAILABILITY,
    EntityKind.CHAT_MESSAGE,
    EntityKind.PERFORMANCE_REQUEST,
    EntityKind.LIVE_SESSION_REQUEST,
)


@dataclass(frozen=True)
class BandRequestFilters:
    """Browse filters for open band requests.

    Attributes:
        instruments: Keep requests wanting any of these instruments.
        genres: Keep requests sharing any of these genres.
        region: Keep requests in this region (case-insensitive).
        type: Keep only targeted or only open requests.
        match_my_instruments: Keep requests with a non-full slot for one
            of the browsing user's instruments.
    """

    instruments: frozenset[str] = field(default_factory=frozenset)
    genres: frozenset[str] = field(default_factory=frozenset)
    region: str | None = None
    type: BandRequestType | None = None
    match_my_instruments: bool = False


@dataclass(frozen=True)
class LeaveBandResult:
    """Outcome of a member leaving.

    Attributes:
        deleted: True when the last member left and the band was deleted.
        band: The updated band, or None when it was deleted.
    """

    deleted: bool
    band: Band | None = None


class BandLifecycleService(LoggingMixin):
    """Band requests, applications, formation and membership."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        settings: SettingsService,
        notifications: NotificationService,
    ) -> None:
        """Initialize the band lifecycle manager.

        Args:
            store: Entity store.
            time_authority: Clock for every timestamp written.
            settings: Source of the rehearsal goal given to new bands.
            notifications: Stages notifications inside our transactions.
        """
        self._store = store
        self._time = time_authority
        self._settings = settings
        self._notifications = notifications
        self._init_logger(component="bands")

    # Band requests

    async def create_band_request(
        self,
        creator_id: str,
        description: str,
        type: BandRequestType,
        **details: Any,
    ) -> BandRequest:
        """Publish a recruiting post.

        The creator is the first entry of ``current_members``.

        Args:
            creator_id: Posting user; becomes the band leader on formation.
            description: The pitch.
            type: TARGETED (instrument slots) or OPEN (member cap).
            **details: Any other editable request field.

        Raises:
            NotFoundError: If the creator does not exist.
            PermissionDeniedError: If the creator is banned.
            ValidationError: If a field is missing, invalid or not editable.
        """
        log = self._log_operation("create_band_request", creator_id=creator_id)
        log.debug("create_band_request_started", type=type.value)

        now = self._time.now()
        request = BandRequest(
            id=new_entity_id(),
            creator_id=creator_id,
            description=description,
            type=type,
            created_at=now,
            updated_at=now,
            current_members=(creator_id,),
        )
        if details:
            request = apply_patch(request, details, BAND_REQUEST_EDITABLE_FIELDS)
        self._validate_request(request)

        async with self._store.transaction() as uow:
            creator = await require(uow, EntityKind.USER, creator_id, "user")
            if creator.is_banned:
                raise PermissionDeniedError(
                    creator_id, "create band request", "account is banned"
                )
            await uow.put(EntityKind.BAND_REQUEST, request)
            await uow.put(
                EntityKind.POST,
                system_post(
                    SystemEventType.BAND_REQUEST_CREATED,
                    request.id,
                    f"New band request: {request.title or request.description[:50]}",
                    now,
                ),
            )

        log.info("band_request_created", request_id=request.id)
        return request

    async def update_band_request(
        self, request_id: str, patch: Mapping[str, Any]
    ) -> BandRequest:
        """Apply a partial update to a request that has not been formed.

        Raises:
            NotFoundError: If the request does not exist.
            InvalidStateError: If the request is already formed.
            ValidationError: If the patch is invalid.
        """
        async with self._store.transaction(
            lock_key(EntityKind.BAND_REQUEST, request_id)
        ) as uow:
            request = await require(uow, EntityKind.BAND_REQUEST, request_id, "band_request")
            if request.status is BandRequestStatus.FORMED:
                raise InvalidStateError(
                    f"band request {request_id} is formed and can no longer be edited"
                )
            updated = apply_patch(
                request, patch, BAND_REQUEST_EDITABLE_FIELDS, updated_at=self._time.now()
            )
            self._validate_request(updated)
            await uow.put(EntityKind.BAND_REQUEST, updated)

        self._log.info("band_request_updated", request_id=request_id, fields=sorted(patch))
        return updated

    async def close_band_request(self, request_id: str) -> BandRequest:
        """Stop recruiting (open -> closed)."""
        return await self._transition_request(request_id, BandRequestStatus.CLOSED)

    async def reopen_band_request(self, request_id: str) -> BandRequest:
        """Resume recruiting (closed -> open)."""
        return await self._transition_request(request_id, BandRequestStatus.OPEN)

    async def _transition_request(
        self, request_id: str, status: BandRequestStatus
    ) -> BandRequest:
        async with self._store.transaction(
            lock_key(EntityKind.BAND_REQUEST, request_id)
        ) as uow:
            request = await require(uow, EntityKind.BAND_REQUEST, request_id, "band_request")
            updated = request.with_status(status, self._time.now())
            await uow.put(EntityKind.BAND_REQUEST, updated)
        self._log.info(
            "band_request_status_changed",
            request_id=request_id,
            from_status=request.status.value,
            to_status=status.value,
        )
        return updated

    async def get_band_request(self, request_id: str) -> BandRequest:
        request = await self._store.get(EntityKind.BAND_REQUEST, request_id)
        if request is None:
            raise NotFoundError("band_request", request_id)
        return request

    async def get_band_requests(
        self,
        filters: BandRequestFilters | None = None,
        user_id: str | None = None,
    ) -> list[BandRequest]:
        """Browse open requests, newest first.

        Args:
            filters: Optional browse filters.
            user_id: Browsing user, needed for ``match_my_instruments``.
        """
        filters = filters or BandRequestFilters()
        my_instruments: frozenset[str] | None = None
        if filters.match_my_instruments and user_id is not None:
            user = await self._store.get(EntityKind.USER, user_id)
            my_instruments = user.instrument_ids if user is not None else frozenset()

        matches = []
        for request in await self._store.list_all(EntityKind.BAND_REQUEST):
            if request.status is not BandRequestStatus.OPEN:
                continue
            if filters.type is not None and request.type is not filters.type:
                continue
            if filters.region and (request.region or "").lower() != filters.region.lower():
                continue
            if filters.genres and not filters.genres.intersection(request.genres):
                continue
            if filters.instruments and not request.wants_any(filters.instruments):
                continue
            if my_instruments is not None and not request.has_open_slot_for(my_instruments):
                continue
            matches.append(request)
        return sorted(matches, key=lambda r: r.created_at, reverse=True)

    async def get_my_band_requests(self, user_id: str) -> list[BandRequest]:
        requests = [
            r
            for r in await self._store.list_all(EntityKind.BAND_REQUEST)
            if r.creator_id == user_id
        ]
        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    @staticmethod
    def _validate_request(request: BandRequest) -> None:
        require_text(request.description, "description")
        if request.type is BandRequestType.TARGETED and not request.instrument_slots:
            raise ValidationError(
                "a targeted band request needs at least one instrument slot",
                field="instrument_slots",
            )
        for slot in request.instrument_slots:
            if slot.quantity < 1:
                raise ValidationError(
                    f"slot {slot.instrument_id} must have quantity >= 1",
                    field="instrument_slots",
                )
            if len(slot.filled_by) > slot.quantity:
                raise ValidationError(
                    f"slot {slot.instrument_id} is filled beyond its quantity",
                    field="instrument_slots",
                )
        if request.max_members is not None and request.max_members < 1:
            raise ValidationError("max_members must be >= 1", field="max_members")

    # Applications

    async def create_application(
        self,
        request_id: str,
        applicant_id: str,
        instrument_id: str,
        message: str = "",
        sample_url: str | None = None,
    ) -> BandApplication:
        """Apply to join a band request.

        Raises:
            NotFoundError: If the request or applicant does not exist.
            InvalidStateError: If the request is closed or formed.
            ValidationError: If the applicant is the creator, already on the
                roster, already has a live application, or offers an
                instrument a targeted request does not want.
        """
        log = self._log_operation(
            "create_application", request_id=request_id, applicant_id=applicant_id
        )
        log.debug("create_application_started")

        async with self._store.transaction(
            lock_key(EntityKind.BAND_REQUEST, request_id)
        ) as uow:
            request = await require(uow, EntityKind.BAND_REQUEST, request_id, "band_request")
            if not request.accepts_applications:
                log.warning("create_application_rejected", status=request.status.value)
                raise InvalidStateError(
                    f"band request {request_id} is {request.status.value} "
                    "and not accepting applications"
                )
            await require(uow, EntityKind.USER, applicant_id, "user")
            if applicant_id in request.current_members:
                raise ValidationError(
                    f"user {applicant_id} is already on band request {request_id}",
                    field="applicant_id",
                )
            if request.type is BandRequestType.TARGETED and not request.wants_any(
                frozenset({instrument_id})
            ):
                raise ValidationError(
                    f"band request {request_id} does not want {instrument_id}",
                    field="instrument_id",
                )
            for existing in await uow.list_all(EntityKind.APPLICATION):
                if (
                    existing.band_request_id == request_id
                    and existing.applicant_id == applicant_id
                    and existing.status is not ApplicationStatus.REJECTED
                ):
                    log.warning("create_application_rejected", reason="duplicate")
                    raise ValidationError(
                        f"user {applicant_id} already applied to {request_id}",
                        field="applicant_id",
                    )

            application = BandApplication(
                id=new_entity_id(),
                band_request_id=request_id,
                applicant_id=applicant_id,
                instrument_id=instrument_id,
                message=message,
                sample_url=sample_url,
                created_at=self._time.now(),
            )
            await uow.put(EntityKind.APPLICATION, application)
            await self._notifications.stage(
                uow,
                request.creator_id,
                NotificationType.APPLICATION_RECEIVED,
                "New application",
                f"Someone applied to play {instrument_id}",
                related_entity_type="application",
                related_entity_id=application.id,
            )

        log.info("application_created", application_id=application.id)
        return application

    async def review_application(
        self,
        application_id: str,
        status: ApplicationStatus,
        note: str | None = None,
    ) -> BandApplication:
        """Approve or reject a pending application.

        Approval puts the applicant on the request roster and in the
        matching instrument slot. Adding them to a formed band is the
        separate add_band_member step.

        Raises:
            NotFoundError: If the application or its request is missing.
            InvalidStateTransitionError: If the application is not pending.
            CapacityExceededError: If approval would overfill the slot or
                the member cap.
        """
        log = self._log_operation(
            "review_application", application_id=application_id, status=status.value
        )
        log.debug("review_application_started")

        application = await self._store.get(EntityKind.APPLICATION, application_id)
        if application is None:
            raise NotFoundError("application", application_id)

        now = self._time.now()
        async with self._store.transaction(
            lock_key(EntityKind.BAND_REQUEST, application.band_request_id)
        ) as uow:
            application = await require(
                uow, EntityKind.APPLICATION, application_id, "application"
            )
            decided = application.with_decision(status, now, note)
            if status is ApplicationStatus.APPROVED:
                request = await require(
                    uow, EntityKind.BAND_REQUEST, application.band_request_id, "band_request"
                )
                await uow.put(
                    EntityKind.BAND_REQUEST,
                    request.with_member(application.applicant_id, application.instrument_id, now),
                )
            await uow.put(EntityKind.APPLICATION, decided)

            approved = status is ApplicationStatus.APPROVED
            await self._notifications.stage(
                uow,
                application.applicant_id,
                NotificationType.APPLICATION_APPROVED
                if approved
                else NotificationType.APPLICATION_REJECTED,
                "Application approved" if approved else "Application declined",
                note or ("You're in!" if approved else "Your application was declined"),
                related_entity_type="band_request",
                related_entity_id=application.band_request_id,
            )

        log.info("application_reviewed")
        return decided

    async def get_applications(self, request_id: str) -> list[BandApplication]:
        return [
            a
            for a in await self._store.list_all(EntityKind.APPLICATION)
            if a.band_request_id == request_id
        ]

    async def get_my_applications(self, user_id: str) -> list[BandApplication]:
        return [
            a
            for a in await self._store.list_all(EntityKind.APPLICATION)
            if a.applicant_id == user_id
        ]

    async def get_all_applications(self) -> list[BandApplication]:
        return await self._store.list_all(EntityKind.APPLICATION)

    # Formation

    async def form_band(self, request_id: str, name: str | None = None) -> Band:
        """Turn a band request into a live Band.

        Every user on the request roster becomes a member, keeping the
        instrument of their approved application. The creator is the
        leader and is placed first if missing from the roster.

        Raises:
            NotFoundError: If the request or its creator does not exist.
            InvalidStateTransitionError: If the request is already formed.
        """
        log = self._log_operation("form_band", request_id=request_id)
        log.debug("form_band_started")

        settings = await self._settings.get_settings()
        now = self._time.now()
        async with self._store.transaction(
            lock_key(EntityKind.BAND_REQUEST, request_id)
        ) as uow:
            request = await require(uow, EntityKind.BAND_REQUEST, request_id, "band_request")
            formed_request = request.with_status(BandRequestStatus.FORMED, now)
            await require(uow, EntityKind.USER, request.creator_id, "user")

            instruments = {
                a.applicant_id: a.instrument_id
                for a in await uow.list_all(EntityKind.APPLICATION)
                if a.band_request_id == request_id and a.status is ApplicationStatus.APPROVED
            }
            roster = list(dict.fromkeys(request.current_members))
            if request.creator_id not in roster:
                roster.insert(0, request.creator_id)
            members = validate_members(
                BandMember(
                    user_id=user_id,
                    instrument_id=instruments.get(user_id, UNKNOWN_INSTRUMENT),
                    joined_at=now,
                    is_leader=user_id == request.creator_id,
                )
                for user_id in roster
            )

            band = Band(
                id=new_entity_id(),
                original_band_request_id=request_id,
                members=members,
                created_at=now,
                updated_at=now,
                name=name or request.title or DEFAULT_BAND_NAME,
                description=request.description,
                cover_image_url=request.cover_image_url,
                genres=request.genres,
                city=request.city,
                region=request.region,
                commitment_level=request.commitment_level,
                rehearsal_frequency=request.rehearsal_frequency,
                influences=request.influences,
                rehearsal_goal=settings.rehearsal_goal,
            )
            await uow.put(EntityKind.BAND, band)
            await uow.put(EntityKind.BAND_REQUEST, formed_request)

            if request.sketch_pending or not request.sketches:
                await uow.put(
                    EntityKind.TASK,
                    Task(
                        id=new_entity_id(),
                        band_id=band.id,
                        title="Upload demos",
                        description="Share the first sketches with the band",
                        type=TaskType.UPLOAD_DEMOS,
                        assigned_to=request.creator_id,
                        created_at=now,
                    ),
                )
            await uow.put(
                EntityKind.POST,
                system_post(
                    SystemEventType.BAND_FORMED, band.id, f"{band.name} just formed!", now
                ),
            )
            await self._notifications.stage_for_users(
                uow,
                [uid for uid in band.member_ids if uid != request.creator_id],
                NotificationType.BAND_FORMED,
                "Band formed",
                f"{band.name} is now a band",
                related_entity_type="band",
                related_entity_id=band.id,
            )

        log.info("band_formed", band_id=band.id, member_count=len(band.members))
        return band

    # Membership

    async def add_band_member(
        self, band_id: str, user_id: str, instrument_id: str = UNKNOWN_INSTRUMENT
    ) -> Band:
        """Seat a user in the band as a regular member.

        Raises:
            NotFoundError: If the band or user does not exist.
            ValidationError: If the user is already a member.
        """
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            await require(uow, EntityKind.USER, user_id, "user")
            now = self._time.now()
            updated = band.with_member(
                BandMember(user_id=user_id, instrument_id=instrument_id, joined_at=now),
                now,
            )
            await uow.put(EntityKind.BAND, updated)
        self._log.info("band_member_added", band_id=band_id, user_id=user_id)
        return updated

    async def replace_band_members(
        self, band_id: str, members: Iterable[BandMember]
    ) -> Band:
        """Replace the member list wholesale (single-leader rule enforced).

        Raises:
            NotFoundError: If the band does not exist.
            ValidationError: If the new list breaks a membership invariant.
        """
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            updated = band.with_members(members, self._time.now())
            await uow.put(EntityKind.BAND, updated)
        self._log.info("band_members_replaced", band_id=band_id, member_count=len(updated.members))
        return updated

    async def update_band(self, band_id: str, patch: Mapping[str, Any]) -> Band:
        """Apply a partial update to leader-editable band fields.

        Raises:
            NotFoundError: If the band does not exist.
            ValidationError: If a field is not editable or the new member
                list breaks a membership invariant.
        """
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            updated = apply_patch(band, patch, BAND_EDITABLE_FIELDS, updated_at=self._time.now())
            if "members" in patch:
                validate_members(updated.members)
            await uow.put(EntityKind.BAND, updated)
        self._log.info("band_updated", band_id=band_id, fields=sorted(patch))
        return updated

    async def leave_band(self, band_id: str, user_id: str) -> LeaveBandResult:
        """Remove a member, promoting a new leader or deleting the band.

        Raises:
            NotFoundError: If the band does not exist.
            MembershipNotFoundError: If the user is not a member.
        """
        log = self._log_operation("leave_band", band_id=band_id, user_id=user_id)
        log.debug("leave_band_started")

        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            updated = await self.detach_member(uow, band, user_id, self._time.now())

        if updated is None:
            log.info("band_left", deleted=True)
            return LeaveBandResult(deleted=True)
        log.info("band_left", deleted=False, leader_id=updated.leader.user_id)
        return LeaveBandResult(deleted=False, band=updated)

    async def detach_member(
        self, uow: UnitOfWork, band: Band, user_id: str, now: datetime
    ) -> Band | None:
        """Remove a member inside an open transaction holding the band lock.

        Returns:
            The updated band, or None if it was emptied and deleted.
        """
        updated = band.without_member(user_id, now)
        if updated is None:
            await self.purge_band(uow, band.id)
            return None
        await uow.put(EntityKind.BAND, updated)
        return updated

    async def delete_band(self, band_id: str, requester_id: str) -> None:
        """Delete the band and its content. Leader only.

        Raises:
            NotFoundError: If the band does not exist.
            PermissionDeniedError: If the requester is not the leader.
        """
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            if not band.is_leader(requester_id):
                self._log.warning(
                    "delete_band_rejected", band_id=band_id, requester_id=requester_id
                )
                raise PermissionDeniedError(
                    requester_id, "delete band", "only the band leader can delete it"
                )
            await self.purge_band(uow, band_id)
        self._log.info("band_deleted", band_id=band_id, requester_id=requester_id)

    async def force_delete_band(self, band_id: str) -> None:
        """Delete the band without the leader check.

        Callers are responsible for the privilege check.
        """
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            await require(uow, EntityKind.BAND, band_id, "band")
            await self.purge_band(uow, band_id)
        self._log.info("band_force_deleted", band_id=band_id)

    async def purge_band(self, uow: UnitOfWork, band_id: str) -> None:
        """Delete the band and every band-scoped record."""
        await uow.delete(EntityKind.BAND, band_id)
        removed = 0
        for kind in BAND_SCOPED_KINDS:
            for entity in await uow.list_all(kind):
                if entity.band_id == band_id:
                    await uow.delete(kind, entity.id)
                    removed += 1
        self._log.debug("band_purged", band_id=band_id, removed=removed)

    # Reads

    async def get_band(self, band_id: str) -> Band:
        band = await self._store.get(EntityKind.BAND, band_id)
        if band is None:
            raise NotFoundError("band", band_id)
        return band

    async def get_bands(self) -> list[Band]:
        return await self._store.list_all(EntityKind.BAND)

    async def get_my_bands(self, user_id: str) -> list[Band]:
        return [b for b in await self._store.list_all(EntityKind.BAND) if b.is_member(user_id)]
