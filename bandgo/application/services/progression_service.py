"""Band progression: performance and live session requests.

A band unlocks a performance request once its approved rehearsal count
reaches its rehearsal goal, and a live session request once a performance
request was approved. Each band has at most one open request of each kind.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    UnitOfWork,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.authorization import require_privileged
from bandgo.application.services.base import LoggingMixin, require
from bandgo.application.services.notification_service import NotificationService
from bandgo.domain.errors import (
    InvalidStateError,
    NotEligibleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bandgo.domain.models import (
    Band,
    DateRange,
    LiveSessionRequest,
    LiveSessionRequestStatus,
    NotificationType,
    PerformanceRequest,
    PerformanceRequestStatus,
)
from bandgo.domain.models.patching import new_entity_id


class ProgressionService(LoggingMixin):
    """Files and reviews the requests a band unlocks by rehearsing."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        notifications: NotificationService,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._notifications = notifications
        self._init_logger(component="progression")

    async def create_performance_request(
        self,
        band_id: str,
        requester_id: str,
        preferred_date_range: DateRange,
        set_duration_minutes: int,
        notes: str | None = None,
    ) -> PerformanceRequest:
        """File a performance request for the band. Leader only.

        Raises:
            NotFoundError: If the band does not exist.
            PermissionDeniedError: If the requester is not the leader.
            NotEligibleError: If the rehearsal goal is not reached yet.
            InvalidStateError: If the band already has an open request.
            ValidationError: If the set duration is not positive.
        """
        log = self._log_operation("create_performance_request", band_id=band_id)
        log.debug("create_performance_request_started")
        if set_duration_minutes <= 0:
            raise ValidationError(
                "set duration must be positive", field="set_duration_minutes"
            )

        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await self._require_leader(uow, band_id, requester_id, "request performance")
            if not band.can_request_performance:
                log.warning(
                    "create_performance_request_rejected",
                    approved=band.approved_rehearsals_count,
                    goal=band.rehearsal_goal,
                )
                raise NotEligibleError(
                    band_id,
                    f"{band.approved_rehearsals_count}/{band.rehearsal_goal} "
                    "approved rehearsals",
                )
            current = await self._linked(
                uow, EntityKind.PERFORMANCE_REQUEST, band.performance_request_id
            )
            if current is not None and current.status.is_open():
                raise InvalidStateError(
                    f"band {band_id} already has an open performance request"
                )

            now = self._time.now()
            request = PerformanceRequest(
                id=new_entity_id(),
                band_id=band_id,
                preferred_date_range=preferred_date_range,
                set_duration_minutes=set_duration_minutes,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            await uow.put(EntityKind.PERFORMANCE_REQUEST, request)
            await uow.put(EntityKind.BAND, _linked_band(band, now, performance=request.id))

        log.info("performance_request_created", request_id=request.id)
        return request

    async def review_performance_request(
        self,
        request_id: str,
        reviewer_id: str,
        status: PerformanceRequestStatus,
        note: str | None = None,
        scheduled_date: datetime | None = None,
    ) -> PerformanceRequest:
        """Record a staff decision on a performance request.

        Raises:
            PermissionDeniedError: If the reviewer is not privileged.
            NotFoundError: If the request does not exist.
            InvalidStateTransitionError: If the request was already decided.
        """
        async with self._store.transaction(
            lock_key(EntityKind.PERFORMANCE_REQUEST, request_id)
        ) as uow:
            await require_privileged(uow, reviewer_id, "review performance request")
            request = await require(
                uow, EntityKind.PERFORMANCE_REQUEST, request_id, "performance_request"
            )
            updated = request.with_review(
                status,
                admin_reviewed_by=reviewer_id,
                admin_note=note,
                scheduled_date=scheduled_date or request.scheduled_date,
                updated_at=self._time.now(),
            )
            await uow.put(EntityKind.PERFORMANCE_REQUEST, updated)
            await self._notify_band(
                uow,
                request.band_id,
                NotificationType.PERFORMANCE_REVIEWED,
                "Performance request update",
                status.value,
            )
        self._log.info(
            "performance_request_reviewed", request_id=request_id, status=status.value
        )
        return updated

    async def create_live_session_request(
        self,
        band_id: str,
        requester_id: str,
        preferred_date_range: DateRange,
        notes: str | None = None,
    ) -> LiveSessionRequest:
        """File a live session request. Requires an approved performance.

        Raises:
            NotFoundError: If the band does not exist.
            PermissionDeniedError: If the requester is not the leader.
            NotEligibleError: If no performance request was approved.
            InvalidStateError: If the band already has an open request.
        """
        log = self._log_operation("create_live_session_request", band_id=band_id)
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await self._require_leader(
                uow, band_id, requester_id, "request live session"
            )
            performance = await self._linked(
                uow, EntityKind.PERFORMANCE_REQUEST, band.performance_request_id
            )
            if performance is None or performance.status is not PerformanceRequestStatus.APPROVED:
                log.warning(
                    "create_live_session_request_rejected",
                    reason="no_approved_performance",
                )
                raise NotEligibleError(band_id, "an approved performance request")
            current = await self._linked(
                uow, EntityKind.LIVE_SESSION_REQUEST, band.live_session_request_id
            )
            if current is not None and current.status.is_open():
                raise InvalidStateError(
                    f"band {band_id} already has an open live session request"
                )

            now = self._time.now()
            request = LiveSessionRequest(
                id=new_entity_id(),
                band_id=band_id,
                preferred_date_range=preferred_date_range,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            await uow.put(EntityKind.LIVE_SESSION_REQUEST, request)
            await uow.put(EntityKind.BAND, _linked_band(band, now, live_session=request.id))

        log.info("live_session_request_created", request_id=request.id)
        return request

    async def review_live_session_request(
        self,
        request_id: str,
        reviewer_id: str,
        status: LiveSessionRequestStatus,
        note: str | None = None,
        scheduled_date: datetime | None = None,
    ) -> LiveSessionRequest:
        async with self._store.transaction(
            lock_key(EntityKind.LIVE_SESSION_REQUEST, request_id)
        ) as uow:
            await require_privileged(uow, reviewer_id, "review live session request")
            request = await require(
                uow, EntityKind.LIVE_SESSION_REQUEST, request_id, "live_session_request"
            )
            updated = request.with_review(
                status,
                admin_reviewed_by=reviewer_id,
                admin_note=note,
                scheduled_date=scheduled_date or request.scheduled_date,
                updated_at=self._time.now(),
            )
            await uow.put(EntityKind.LIVE_SESSION_REQUEST, updated)
            await self._notify_band(
                uow,
                request.band_id,
                NotificationType.LIVE_SESSION_REVIEWED,
                "Live session request update",
                status.value,
            )
        self._log.info(
            "live_session_request_reviewed", request_id=request_id, status=status.value
        )
        return updated

    async def set_band_rehearsal_goal(self, band_id: str, goal: int, actor_id: str) -> Band:
        """Override the band's rehearsal goal. Privileged only.

        Eligibility follows the new goal at once; requests already filed
        are not revisited.

        Raises:
            PermissionDeniedError: If the actor is not privileged.
            NotFoundError: If the band does not exist.
            ValidationError: If the goal is below 1.
        """
        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            await require_privileged(uow, actor_id, "set band rehearsal goal")
            band = await require(uow, EntityKind.BAND, band_id, "band")
            updated = band.with_rehearsal_goal(goal, self._time.now())
            await uow.put(EntityKind.BAND, updated)
        self._log.info(
            "band_rehearsal_goal_set",
            band_id=band_id,
            from_goal=band.rehearsal_goal,
            to_goal=goal,
            actor_id=actor_id,
        )
        return updated

    async def get_performance_request(self, band_id: str) -> PerformanceRequest | None:
        """The band's latest performance request, if any."""
        band = await self._store.get(EntityKind.BAND, band_id)
        if band is None:
            raise NotFoundError("band", band_id)
        if band.performance_request_id is None:
            return None
        return await self._store.get(EntityKind.PERFORMANCE_REQUEST, band.performance_request_id)

    async def get_all_performance_requests(self) -> list[PerformanceRequest]:
        return await self._store.list_all(EntityKind.PERFORMANCE_REQUEST)

    async def get_live_session_request(self, band_id: str) -> LiveSessionRequest | None:
        """The band's latest live session request, if any."""
        band = await self._store.get(EntityKind.BAND, band_id)
        if band is None:
            raise NotFoundError("band", band_id)
        if band.live_session_request_id is None:
            return None
        return await self._store.get(
            EntityKind.LIVE_SESSION_REQUEST, band.live_session_request_id
        )

    async def get_all_live_session_requests(self) -> list[LiveSessionRequest]:
        return await self._store.list_all(EntityKind.LIVE_SESSION_REQUEST)

    @staticmethod
    async def _require_leader(
        uow: UnitOfWork, band_id: str, requester_id: str, action: str
    ) -> Band:
        band = await require(uow, EntityKind.BAND, band_id, "band")
        if not band.is_leader(requester_id):
            raise PermissionDeniedError(requester_id, action, "only the band leader can file it")
        return band

    @staticmethod
    async def _linked(uow: UnitOfWork, kind: EntityKind, entity_id: str | None):
        if entity_id is None:
            return None
        return await uow.get(kind, entity_id)

    async def _notify_band(
        self,
        uow: UnitOfWork,
        band_id: str,
        type: NotificationType,
        title: str,
        status: str,
    ) -> None:
        band = await uow.get(EntityKind.BAND, band_id)
        if band is None:
            return
        await self._notifications.stage_for_users(
            uow,
            band.member_ids,
            type,
            title,
            f"Status: {status}",
            related_entity_type="band",
            related_entity_id=band_id,
        )


def _linked_band(
    band: Band,
    updated_at: datetime,
    *,
    performance: str | None = None,
    live_session: str | None = None,
) -> Band:
    return replace(
        band,
        performance_request_id=performance or band.performance_request_id,
        live_session_request_id=live_session or band.live_session_request_id,
        updated_at=updated_at,
    )
