"""Event submission workflow.

Non-staff users propose events; staff approve (materializing a real
Event), reject, or ask for changes. Every review is a compare-and-set from
PENDING under the submission's lock.
"""

from __future__ import annotations

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
from bandgo.application.services.feed_service import system_post
from bandgo.application.services.notification_service import NotificationService
from bandgo.domain.errors import NotFoundError, PermissionDeniedError
from bandgo.domain.models import (
    Event,
    EventSubmission,
    EventSubmissionStatus,
    EventType,
    NotificationType,
    SystemEventType,
)
from bandgo.domain.models.event_submission import SUBMISSION_EDITABLE_FIELDS
from bandgo.domain.models.patching import apply_patch, new_entity_id, require_text


class EventSubmissionService(LoggingMixin):
    """Creates and reviews event submissions."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        notifications: NotificationService,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._notifications = notifications
        self._init_logger(component="event_submissions")

    async def create_event_submission(
        self,
        submitted_by: str,
        title: str,
        type: EventType,
        start_at: datetime,
        end_at: datetime,
        location_text: str,
        **details: Any,
    ) -> EventSubmission:
        """Propose an event for staff review and notify the staff.

        Raises:
            NotFoundError: If the submitter does not exist.
            ValidationError: If a field is missing or the end is not after
                the start.
        """
        log = self._log_operation("create_event_submission", submitted_by=submitted_by)
        log.debug("create_event_submission_started")

        now = self._time.now()
        submission = EventSubmission(
            id=new_entity_id(),
            submitted_by_user_id=submitted_by,
            title=title,
            type=type,
            start_at=start_at,
            end_at=end_at,
            location_text=location_text,
            created_at=now,
            updated_at=now,
        )
        if details:
            submission = apply_patch(submission, details, SUBMISSION_EDITABLE_FIELDS)

        async with self._store.transaction() as uow:
            await require(uow, EntityKind.USER, submitted_by, "user")
            await uow.put(EntityKind.EVENT_SUBMISSION, submission)
            await self._notify_staff(uow, submission)

        log.info("event_submission_created", submission_id=submission.id)
        return submission

    async def approve_event_submission(
        self, submission_id: str, reviewer_id: str
    ) -> Event:
        """Approve a pending submission and create its Event.

        Returns:
            The created event.

        Raises:
            PermissionDeniedError: If the reviewer is not privileged.
            NotFoundError: If the submission does not exist.
            InvalidStateTransitionError: If the submission is not pending.
        """
        return await self._approve(submission_id, reviewer_id, patch=None)

    async def edit_and_approve_submission(
        self, submission_id: str, reviewer_id: str, patch: Mapping[str, Any]
    ) -> Event:
        """Apply staff edits to a pending submission, then approve it."""
        return await self._approve(submission_id, reviewer_id, patch=patch)

    async def _approve(
        self,
        submission_id: str,
        reviewer_id: str,
        patch: Mapping[str, Any] | None,
    ) -> Event:
        log = self._log_operation(
            "approve_event_submission", submission_id=submission_id, reviewer_id=reviewer_id
        )
        log.debug("approve_event_submission_started", edited=bool(patch))

        now = self._time.now()
        async with self._store.transaction(
            lock_key(EntityKind.EVENT_SUBMISSION, submission_id)
        ) as uow:
            await require_privileged(uow, reviewer_id, "approve event submission")
            submission = await require(
                uow, EntityKind.EVENT_SUBMISSION, submission_id, "event_submission"
            )
            if patch:
                submission = apply_patch(
                    submission, patch, SUBMISSION_EDITABLE_FIELDS, updated_at=now
                )

            event_id = new_entity_id()
            approved = submission.with_status(
                EventSubmissionStatus.APPROVED, approved_event_id=event_id, updated_at=now
            )
            event = Event(
                id=event_id,
                title=submission.title,
                type=submission.type,
                date_time=submission.start_at,
                duration_minutes=submission.duration_minutes,
                location=submission.location_text,
                organizer_id=submission.host_user_id or submission.submitted_by_user_id,
                created_by=reviewer_id,
                created_at=now,
                updated_at=now,
                description=submission.description,
                cover_image_url=submission.cover_url,
                capacity=submission.capacity or 0,
                price=submission.price,
                related_band_ids=(
                    (submission.related_band_id,) if submission.related_band_id else ()
                ),
                submission_id=submission.id,
            )
            await uow.put(EntityKind.EVENT, event)
            await uow.put(EntityKind.EVENT_SUBMISSION, approved)
            await uow.put(
                EntityKind.POST,
                system_post(
                    SystemEventType.EVENT_APPROVED, event.id, f"New event: {event.title}", now
                ),
            )
            await self._notifications.stage(
                uow,
                submission.submitted_by_user_id,
                NotificationType.SUBMISSION_APPROVED,
                "Event approved",
                f"{event.title} is now live",
                related_entity_type="event",
                related_entity_id=event.id,
            )

        log.info("event_submission_approved", event_id=event.id)
        return event

    async def reject_event_submission(
        self, submission_id: str, reason: str, reviewer_id: str
    ) -> EventSubmission:
        """Reject a pending submission with a reason.

        Raises:
            ValidationError: If the reason is empty.
            PermissionDeniedError: If the reviewer is not privileged.
            InvalidStateTransitionError: If the submission is not pending.
        """
        require_text(reason, "reason")
        return await self._review(
            submission_id,
            reviewer_id,
            EventSubmissionStatus.REJECTED,
            NotificationType.SUBMISSION_REJECTED,
            "Event submission declined",
            reason,
            rejection_reason=reason,
        )

    async def request_changes_on_submission(
        self, submission_id: str, note: str, reviewer_id: str
    ) -> EventSubmission:
        """Send a pending submission back to its author with a note."""
        require_text(note, "note")
        return await self._review(
            submission_id,
            reviewer_id,
            EventSubmissionStatus.NEEDS_CHANGES,
            NotificationType.SUBMISSION_NEEDS_CHANGES,
            "Changes requested",
            note,
            admin_note=note,
        )

    async def _review(
        self,
        submission_id: str,
        reviewer_id: str,
        status: EventSubmissionStatus,
        notification_type: NotificationType,
        title: str,
        body: str,
        **changes: Any,
    ) -> EventSubmission:
        async with self._store.transaction(
            lock_key(EntityKind.EVENT_SUBMISSION, submission_id)
        ) as uow:
            await require_privileged(uow, reviewer_id, f"mark submission {status.value}")
            submission = await require(
                uow, EntityKind.EVENT_SUBMISSION, submission_id, "event_submission"
            )
            updated = submission.with_status(status, updated_at=self._time.now(), **changes)
            await uow.put(EntityKind.EVENT_SUBMISSION, updated)
            await self._notifications.stage(
                uow,
                submission.submitted_by_user_id,
                notification_type,
                title,
                body,
                related_entity_type="event_submission",
                related_entity_id=submission_id,
            )
        self._log.info(
            "event_submission_reviewed",
            submission_id=submission_id,
            status=status.value,
            reviewer_id=reviewer_id,
        )
        return updated

    async def resubmit_event_submission(
        self,
        submission_id: str,
        submitter_id: str,
        patch: Mapping[str, Any] | None = None,
    ) -> EventSubmission:
        """Send a rejected or needs-changes submission back for review.

        Raises:
            PermissionDeniedError: If the caller did not submit it.
            InvalidStateTransitionError: If it is pending or approved.
        """
        now = self._time.now()
        async with self._store.transaction(
            lock_key(EntityKind.EVENT_SUBMISSION, submission_id)
        ) as uow:
            submission = await require(
                uow, EntityKind.EVENT_SUBMISSION, submission_id, "event_submission"
            )
            if submission.submitted_by_user_id != submitter_id:
                raise PermissionDeniedError(
                    submitter_id, "resubmit event submission", "not the submitter"
                )
            resubmitted = submission.with_status(
                EventSubmissionStatus.PENDING,
                admin_note=None,
                rejection_reason=None,
                updated_at=now,
            )
            if patch:
                resubmitted = apply_patch(resubmitted, patch, SUBMISSION_EDITABLE_FIELDS)
            await uow.put(EntityKind.EVENT_SUBMISSION, resubmitted)
            await self._notify_staff(uow, resubmitted)
        self._log.info("event_submission_resubmitted", submission_id=submission_id)
        return resubmitted

    async def get_event_submission(self, submission_id: str) -> EventSubmission:
        submission = await self._store.get(EntityKind.EVENT_SUBMISSION, submission_id)
        if submission is None:
            raise NotFoundError("event_submission", submission_id)
        return submission

    async def get_event_submissions(self) -> list[EventSubmission]:
        """All submissions, newest first."""
        submissions = await self._store.list_all(EntityKind.EVENT_SUBMISSION)
        return sorted(submissions, key=lambda s: s.created_at, reverse=True)

    async def get_my_event_submissions(self, user_id: str) -> list[EventSubmission]:
        return [s for s in await self.get_event_submissions() if s.submitted_by_user_id == user_id]

    async def get_pending_event_submissions(self) -> list[EventSubmission]:
        """The review queue, oldest first."""
        pending = [
            s
            for s in await self._store.list_all(EntityKind.EVENT_SUBMISSION)
            if s.status is EventSubmissionStatus.PENDING
        ]
        return sorted(pending, key=lambda s: s.created_at)

    async def _notify_staff(self, uow: UnitOfWork, submission: EventSubmission) -> None:
        staff = [u.id for u in await uow.list_all(EntityKind.USER) if u.role.is_privileged()]
        await self._notifications.stage_for_users(
            uow,
            staff,
            NotificationType.EVENT_SUBMISSION,
            "New event submission",
            submission.title,
            related_entity_type="event_submission",
            related_entity_id=submission.id,
        )
