"""Moderation and admin operations.

Cross-cutting privileged mutations. Each one checks the actor's role and
then calls into the owning manager's transaction-level helpers, so a
moderation action and its cascade commit as one unit.
"""

from __future__ import annotations

from dataclasses import replace

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.authorization import require_admin, require_privileged
from bandgo.application.services.band_lifecycle_service import BandLifecycleService
from bandgo.application.services.base import LoggingMixin, require
from bandgo.application.services.event_service import EventService
from bandgo.domain.errors import ValidationError
from bandgo.domain.models import (
    BandRequestStatus,
    Report,
    ReportStatus,
    ReportTargetType,
    User,
    UserRole,
)
from bandgo.domain.models.patching import new_entity_id, require_text


class ModerationService(LoggingMixin):
    """Reports, role changes and forced deletions."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        bands: BandLifecycleService,
        events: EventService,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._bands = bands
        self._events = events
        self._init_logger(component="moderation")

    # Reports

    async def create_report(
        self,
        reporter_id: str,
        target_type: ReportTargetType,
        target_id: str,
        reason: str,
        description: str | None = None,
    ) -> Report:
        require_text(reason, "reason")
        async with self._store.transaction() as uow:
            await require(uow, EntityKind.USER, reporter_id, "user")
            report = Report(
                id=new_entity_id(),
                target_type=target_type,
                target_id=target_id,
                reported_by_user_id=reporter_id,
                reason=reason,
                description=description,
                created_at=self._time.now(),
            )
            await uow.put(EntityKind.REPORT, report)
        self._log.info(
            "report_created",
            report_id=report.id,
            target_type=target_type.value,
            target_id=target_id,
        )
        return report

    async def get_reports(self, status: ReportStatus | None = None) -> list[Report]:
        """Reports, newest first, optionally filtered by status."""
        reports = [
            r
            for r in await self._store.list_all(EntityKind.REPORT)
            if status is None or r.status is status
        ]
        return sorted(reports, key=lambda r: r.created_at, reverse=True)

    async def resolve_report(
        self,
        report_id: str,
        status: ReportStatus,
        reviewer_id: str,
        note: str | None = None,
    ) -> Report:
        """Close a pending report as reviewed or dismissed.

        Raises:
            PermissionDeniedError: If the reviewer is not privileged.
            NotFoundError: If the report does not exist.
            InvalidStateTransitionError: If the report was already resolved.
        """
        async with self._store.transaction(lock_key(EntityKind.REPORT, report_id)) as uow:
            await require_privileged(uow, reviewer_id, "resolve report")
            report = await require(uow, EntityKind.REPORT, report_id, "report")
            resolved = report.resolved(status, reviewer_id, self._time.now(), note)
            await uow.put(EntityKind.REPORT, resolved)
        self._log.info(
            "report_resolved", report_id=report_id, status=status.value, reviewer_id=reviewer_id
        )
        return resolved

    # Users

    async def update_user_role(self, user_id: str, role: UserRole, actor_id: str) -> User:
        """Change a user's role. Admin only.

        Raises:
            PermissionDeniedError: If the actor is not an admin.
            NotFoundError: If the user does not exist.
            ValidationError: If an admin tries to change their own role.
        """
        log = self._log_operation("update_user_role", user_id=user_id, actor_id=actor_id)
        if user_id == actor_id:
            raise ValidationError("admins cannot change their own role", field="role")
        async with self._store.transaction(lock_key(EntityKind.USER, user_id)) as uow:
            await require_admin(uow, actor_id, "update user role")
            user = await require(uow, EntityKind.USER, user_id, "user")
            updated = replace(user, role=role, updated_at=self._time.now())
            await uow.put(EntityKind.USER, updated)
        log.info("user_role_updated", from_role=user.role.value, to_role=role.value)
        return updated

    async def delete_user(self, user_id: str, actor_id: str) -> None:
        """Hard-delete a user and remove every membership reference. Admin only.

        The user leaves every band (with leader succession, and deletion of
        bands they were the last member of), is removed from request rosters
        and slots, and has their event registrations cancelled. Requests they
        created that never formed are deleted together with their
        applications, as are the user's own applications.

        Raises:
            PermissionDeniedError: If the actor is not an admin.
            NotFoundError: If the user does not exist.
        """
        log = self._log_operation("delete_user", user_id=user_id, actor_id=actor_id)
        log.debug("delete_user_started")

        band_ids = [b.id for b in await self._bands.get_my_bands(user_id)]
        request_ids = [
            r.id
            for r in await self._store.list_all(EntityKind.BAND_REQUEST)
            if r.creator_id == user_id or r.references(user_id)
        ]
        event_ids = await self._events.event_ids_for_user(user_id)
        lock_keys = [lock_key(EntityKind.USER, user_id)]
        lock_keys.extend(lock_key(EntityKind.BAND, band_id) for band_id in band_ids)
        lock_keys.extend(lock_key(EntityKind.BAND_REQUEST, rid) for rid in request_ids)
        lock_keys.extend(lock_key(EntityKind.EVENT, eid) for eid in event_ids)

        now = self._time.now()
        async with self._store.transaction(*lock_keys) as uow:
            await require_admin(uow, actor_id, "delete user")
            await require(uow, EntityKind.USER, user_id, "user")

            deleted_bands = 0
            for band_id in band_ids:
                band = await uow.get(EntityKind.BAND, band_id)
                if band is None or not band.is_member(user_id):
                    continue
                if await self._bands.detach_member(uow, band, user_id, now) is None:
                    deleted_bands += 1

            dropped_requests = set()
            for request in await uow.list_all(EntityKind.BAND_REQUEST):
                if (
                    request.creator_id == user_id
                    and request.status is not BandRequestStatus.FORMED
                ):
                    await uow.delete(EntityKind.BAND_REQUEST, request.id)
                    dropped_requests.add(request.id)
                elif request.references(user_id):
                    await uow.put(EntityKind.BAND_REQUEST, request.without_member(user_id, now))
            for application in await uow.list_all(EntityKind.APPLICATION):
                if (
                    application.applicant_id == user_id
                    or application.band_request_id in dropped_requests
                ):
                    await uow.delete(EntityKind.APPLICATION, application.id)

            cancelled = await self._events.cancel_user_registrations(uow, user_id)
            for notification in await uow.list_all(EntityKind.NOTIFICATION):
                if notification.user_id == user_id:
                    await uow.delete(EntityKind.NOTIFICATION, notification.id)
            await uow.delete(EntityKind.USER, user_id)

        log.info(
            "user_deleted",
            bands_left=len(band_ids),
            bands_deleted=deleted_bands,
            requests_deleted=len(dropped_requests),
            registrations_cancelled=cancelled,
        )

    async def force_delete_band(self, band_id: str, actor_id: str) -> None:
        """Delete any band regardless of leadership. Privileged only."""
        async with self._store.transaction() as uow:
            await require_privileged(uow, actor_id, "force delete band")
        await self._bands.force_delete_band(band_id)
        self._log.info("band_force_deleted_by_staff", band_id=band_id, actor_id=actor_id)
