"""Rehearsal and poll engine.

State machine for Rehearsal:
    POLLING -> SCHEDULED | CANCELLED
    SCHEDULED -> COMPLETION_SUBMITTED | CANCELLED
    COMPLETION_SUBMITTED -> APPROVED | REJECTED

Every status change reads the rehearsal under its lock and checks the move
against the transition matrix before writing, so two callers cannot both
succeed from the same source state. Approval increments the band's
approved rehearsal count in the same transaction.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

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
from bandgo.application.services.settings_service import SettingsService
from bandgo.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from bandgo.domain.models import (
    Band,
    BandProgress,
    NotificationType,
    PerformanceRequestStatus,
    PollOption,
    ProposedTime,
    Rehearsal,
    RehearsalPoll,
    RehearsalStatus,
)
from bandgo.domain.models.patching import new_entity_id, require_text
from bandgo.domain.models.rehearsal import INITIAL_REHEARSAL_STATES
from bandgo.domain.models.rehearsal_poll import MIN_POLL_OPTIONS


class RehearsalService(LoggingMixin):
    """Polls, votes, rehearsals and the approval workflow."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        settings: SettingsService,
        notifications: NotificationService,
    ) -> None:
        """Initialize the rehearsal engine.

        Args:
            store: Entity store.
            time_authority: Clock for deadlines and review timestamps.
            settings: Source of the default poll duration and the
                auto-finalize flag.
            notifications: Stages notifications inside our transactions.
        """
        self._store = store
        self._time = time_authority
        self._settings = settings
        self._notifications = notifications
        self._init_logger(component="rehearsals")

    # Polls

    async def create_rehearsal_poll(
        self,
        band_id: str,
        creator_id: str,
        location: str,
        options: Sequence[ProposedTime],
        deadline: datetime | None = None,
        notes: str | None = None,
    ) -> RehearsalPoll:
        """Propose rehearsal times for the band to vote on.

        Args:
            band_id: The band.
            creator_id: Member creating the poll.
            location: Where the rehearsal would happen.
            options: At least two proposed times.
            deadline: Voting deadline; defaults to now plus the configured
                poll duration.
            notes: Optional notes for the members.

        Raises:
            ValidationError: If fewer than two options are given or an
                option has a non-positive duration.
            NotFoundError: If the band does not exist.
            PermissionDeniedError: If the creator is not a member.
        """
        log = self._log_operation("create_rehearsal_poll", band_id=band_id, creator_id=creator_id)
        log.debug("create_rehearsal_poll_started", option_count=len(options))

        if len(options) < MIN_POLL_OPTIONS:
            log.warning("create_rehearsal_poll_rejected", reason="too_few_options")
            raise ValidationError(
                f"a poll needs at least {MIN_POLL_OPTIONS} options, got {len(options)}",
                field="options",
            )
        for proposed in options:
            if proposed.duration_minutes <= 0:
                raise ValidationError(
                    "option duration must be positive", field="duration_minutes"
                )

        now = self._time.now()
        if deadline is None:
            settings = await self._settings.get_settings()
            deadline = now + timedelta(hours=settings.poll_duration_hours)

        poll = RehearsalPoll(
            id=new_entity_id(),
            band_id=band_id,
            creator_id=creator_id,
            location=location,
            deadline=deadline,
            options=tuple(
                PollOption(
                    id=new_entity_id(),
                    date_time=proposed.date_time,
                    duration_minutes=proposed.duration_minutes,
                )
                for proposed in options
            ),
            created_at=now,
            notes=notes,
        )

        async with self._store.transaction(lock_key(EntityKind.BAND, band_id)) as uow:
            band = await require(uow, EntityKind.BAND, band_id, "band")
            self._require_member(band, creator_id, "create rehearsal poll")
            await uow.put(EntityKind.REHEARSAL_POLL, poll)
            await self._notifications.stage_for_users(
                uow,
                [uid for uid in band.member_ids if uid != creator_id],
                NotificationType.NEW_POLL,
                "New rehearsal poll",
                "Vote on the proposed rehearsal times",
                related_entity_type="rehearsal_poll",
                related_entity_id=poll.id,
            )

        log.info("rehearsal_poll_created", poll_id=poll.id)
        return poll

    async def vote_on_poll(
        self, poll_id: str, option_id: str, user_id: str, can_attend: bool
    ) -> RehearsalPoll:
        """Record (or replace) the user's vote on one option.

        Votes on different options of the same poll are independent.

        Raises:
            NotFoundError: If the poll or option does not exist.
            PermissionDeniedError: If the voter is not a band member.
        """
        async with self._store.transaction(
            lock_key(EntityKind.REHEARSAL_POLL, poll_id)
        ) as uow:
            poll = await require(uow, EntityKind.REHEARSAL_POLL, poll_id, "rehearsal_poll")
            band = await require(uow, EntityKind.BAND, poll.band_id, "band")
            self._require_member(band, user_id, "vote on poll")
            option = poll.option(option_id)
            updated = poll.with_option(option.with_vote(user_id, can_attend))
            await uow.put(EntityKind.REHEARSAL_POLL, updated)
        self._log.debug(
            "poll_vote_recorded",
            poll_id=poll_id,
            option_id=option_id,
            user_id=user_id,
            can_attend=can_attend,
        )
        return updated

    async def remove_vote_from_poll(
        self, poll_id: str, option_id: str, user_id: str
    ) -> RehearsalPoll:
        async with self._store.transaction(
            lock_key(EntityKind.REHEARSAL_POLL, poll_id)
        ) as uow:
            poll = await require(uow, EntityKind.REHEARSAL_POLL, poll_id, "rehearsal_poll")
            option = poll.option(option_id)
            updated = poll.with_option(option.without_vote(user_id))
            await uow.put(EntityKind.REHEARSAL_POLL, updated)
        self._log.debug("poll_vote_removed", poll_id=poll_id, option_id=option_id)
        return updated

    async def finalize_poll(
        self, poll_id: str, option_id: str, requester_id: str
    ) -> Rehearsal:
        """Turn the chosen option into a scheduled rehearsal. Leader only.

        The poll is removed.

        Raises:
            NotFoundError: If the poll, its band or the option is missing.
            PermissionDeniedError: If the requester is not the band leader.
        """
        log = self._log_operation("finalize_poll", poll_id=poll_id, option_id=option_id)
        log.debug("finalize_poll_started", requester_id=requester_id)

        poll = await self._store.get(EntityKind.REHEARSAL_POLL, poll_id)
        if poll is None:
            raise NotFoundError("rehearsal_poll", poll_id)

        async with self._store.transaction(
            lock_key(EntityKind.BAND, poll.band_id),
            lock_key(EntityKind.REHEARSAL_POLL, poll_id),
        ) as uow:
            poll = await require(uow, EntityKind.REHEARSAL_POLL, poll_id, "rehearsal_poll")
            band = await require(uow, EntityKind.BAND, poll.band_id, "band")
            if not band.is_leader(requester_id):
                log.warning("finalize_poll_rejected", reason="not_leader")
                raise PermissionDeniedError(
                    requester_id, "finalize poll", "only the band leader can finalize"
                )
            rehearsal = await self._finalize(uow, poll, poll.option(option_id), band)

        log.info("poll_finalized", rehearsal_id=rehearsal.id)
        return rehearsal

    async def auto_finalize_expired_polls(self) -> list[Rehearsal]:
        """Finalize every poll past its deadline on its best-attended option.

        Does nothing when auto-finalize is switched off in the settings.
        Ties go to the earliest proposed time.
        """
        settings = await self._settings.get_settings()
        if not settings.auto_finalize_poll:
            return []

        now = self._time.now()
        finalized = []
        for poll in await self._store.list_all(EntityKind.REHEARSAL_POLL):
            if poll.is_open(now):
                continue
            async with self._store.transaction(
                lock_key(EntityKind.BAND, poll.band_id),
                lock_key(EntityKind.REHEARSAL_POLL, poll.id),
            ) as uow:
                current = await uow.get(EntityKind.REHEARSAL_POLL, poll.id)
                band = await uow.get(EntityKind.BAND, poll.band_id)
                if current is None or band is None:
                    continue
                best = min(
                    current.options, key=lambda o: (-len(o.attending), o.date_time)
                )
                finalized.append(await self._finalize(uow, current, best, band))
        if finalized:
            self._log.info("polls_auto_finalized", count=len(finalized))
        return finalized

    async def _finalize(
        self, uow: UnitOfWork, poll: RehearsalPoll, option: PollOption, band: Band
    ) -> Rehearsal:
        rehearsal = Rehearsal(
            id=new_entity_id(),
            band_id=poll.band_id,
            date_time=option.date_time,
            duration_minutes=option.duration_minutes,
            location=poll.location,
            created_at=self._time.now(),
            status=RehearsalStatus.SCHEDULED,
            poll_id=poll.id,
        )
        await uow.put(EntityKind.REHEARSAL, rehearsal)
        await uow.delete(EntityKind.REHEARSAL_POLL, poll.id)
        await self._notifications.stage_for_users(
            uow,
            band.member_ids,
            NotificationType.REHEARSAL_SCHEDULED,
            "Rehearsal scheduled",
            f"Rehearsal on {option.date_time:%Y-%m-%d %H:%M} at {poll.location}",
            related_entity_type="rehearsal",
            related_entity_id=rehearsal.id,
        )
        return rehearsal

    async def get_rehearsal_poll(self, poll_id: str) -> RehearsalPoll:
        poll = await self._store.get(EntityKind.REHEARSAL_POLL, poll_id)
        if poll is None:
            raise NotFoundError("rehearsal_poll", poll_id)
        return poll

    async def get_rehearsal_polls(self, band_id: str) -> list[RehearsalPoll]:
        return [
            p
            for p in await self._store.list_all(EntityKind.REHEARSAL_POLL)
            if p.band_id == band_id
        ]

    async def get_active_polls(self, band_id: str) -> list[RehearsalPoll]:
        """Polls of the band whose deadline has not passed."""
        now = self._time.now()
        return [p for p in await self.get_rehearsal_polls(band_id) if p.is_open(now)]

    # Rehearsals

    async def create_rehearsal(
        self,
        band_id: str,
        date_time: datetime,
        duration_minutes: int,
        location: str,
        status: RehearsalStatus = RehearsalStatus.SCHEDULED,
    ) -> Rehearsal:
        """Schedule a rehearsal directly, without a poll.

        Raises:
            ValidationError: If the status is not an initial state, the
                duration is not positive, or the location is empty.
            NotFoundError: If the band does not exist.
        """
        if status not in INITIAL_REHEARSAL_STATES:
            raise ValidationError(
                f"a rehearsal cannot be created as {status.value}", field="status"
            )
        if duration_minutes <= 0:
            raise ValidationError("duration must be positive", field="duration_minutes")
        require_text(location, "location")

        async with self._store.transaction() as uow:
            await require(uow, EntityKind.BAND, band_id, "band")
            rehearsal = Rehearsal(
                id=new_entity_id(),
                band_id=band_id,
                date_time=date_time,
                duration_minutes=duration_minutes,
                location=location,
                created_at=self._time.now(),
                status=status,
            )
            await uow.put(EntityKind.REHEARSAL, rehearsal)
        self._log.info("rehearsal_created", band_id=band_id, rehearsal_id=rehearsal.id)
        return rehearsal

    async def confirm_rehearsal(self, rehearsal_id: str) -> Rehearsal:
        """Move a rehearsal out of polling into scheduled."""
        async with self._store.transaction(
            lock_key(EntityKind.REHEARSAL, rehearsal_id)
        ) as uow:
            rehearsal = await require(uow, EntityKind.REHEARSAL, rehearsal_id, "rehearsal")
            updated = rehearsal.with_status(RehearsalStatus.SCHEDULED)
            await uow.put(EntityKind.REHEARSAL, updated)
        self._log.info("rehearsal_confirmed", rehearsal_id=rehearsal_id)
        return updated

    async def submit_rehearsal_completion(
        self, rehearsal_id: str, user_id: str
    ) -> Rehearsal:
        """Report a scheduled rehearsal as done, for staff review.

        Raises:
            NotFoundError: If the rehearsal or its band is missing.
            PermissionDeniedError: If the user is not a band member.
            InvalidStateTransitionError: If the rehearsal is not scheduled.
        """
        async with self._store.transaction(
            lock_key(EntityKind.REHEARSAL, rehearsal_id)
        ) as uow:
            rehearsal = await require(uow, EntityKind.REHEARSAL, rehearsal_id, "rehearsal")
            band = await require(uow, EntityKind.BAND, rehearsal.band_id, "band")
            self._require_member(band, user_id, "submit rehearsal completion")
            updated = rehearsal.with_status(
                RehearsalStatus.COMPLETION_SUBMITTED,
                completion_submitted_by=user_id,
                completion_submitted_at=self._time.now(),
            )
            await uow.put(EntityKind.REHEARSAL, updated)
        self._log.info("rehearsal_completion_submitted", rehearsal_id=rehearsal_id, user_id=user_id)
        return updated

    async def approve_rehearsal(self, rehearsal_id: str, admin_id: str) -> Rehearsal:
        """Approve a submitted rehearsal and count it toward the band's goal.

        Raises:
            PermissionDeniedError: If the admin is not privileged.
            NotFoundError: If the rehearsal or its band is missing.
            InvalidStateTransitionError: If completion was not submitted.
        """
        log = self._log_operation("approve_rehearsal", rehearsal_id=rehearsal_id, admin_id=admin_id)
        log.debug("approve_rehearsal_started")

        rehearsal = await self._store.get(EntityKind.REHEARSAL, rehearsal_id)
        if rehearsal is None:
            raise NotFoundError("rehearsal", rehearsal_id)

        async with self._store.transaction(
            lock_key(EntityKind.BAND, rehearsal.band_id),
            lock_key(EntityKind.REHEARSAL, rehearsal_id),
        ) as uow:
            await require_privileged(uow, admin_id, "approve rehearsal")
            rehearsal = await require(uow, EntityKind.REHEARSAL, rehearsal_id, "rehearsal")
            now = self._time.now()
            updated = rehearsal.with_status(
                RehearsalStatus.APPROVED,
                admin_reviewed_by=admin_id,
                admin_reviewed_at=now,
            )
            band = await require(uow, EntityKind.BAND, rehearsal.band_id, "band")
            band = band.with_approved_rehearsal(now)
            await uow.put(EntityKind.REHEARSAL, updated)
            await uow.put(EntityKind.BAND, band)
            await self._notifications.stage_for_users(
                uow,
                band.member_ids,
                NotificationType.REHEARSAL_APPROVED,
                "Rehearsal approved",
                f"{band.approved_rehearsals_count}/{band.rehearsal_goal} rehearsals approved",
                related_entity_type="rehearsal",
                related_entity_id=rehearsal_id,
            )

        log.info(
            "rehearsal_approved",
            band_id=band.id,
            approved_rehearsals=band.approved_rehearsals_count,
        )
        return updated

    async def reject_rehearsal(
        self, rehearsal_id: str, admin_id: str, note: str
    ) -> Rehearsal:
        """Reject a submitted rehearsal. The band's count is untouched.

        Raises:
            ValidationError: If the note is empty.
            PermissionDeniedError: If the admin is not privileged.
            NotFoundError: If the rehearsal does not exist.
            InvalidStateTransitionError: If completion was not submitted.
        """
        require_text(note, "note")
        async with self._store.transaction(
            lock_key(EntityKind.REHEARSAL, rehearsal_id)
        ) as uow:
            await require_privileged(uow, admin_id, "reject rehearsal")
            rehearsal = await require(uow, EntityKind.REHEARSAL, rehearsal_id, "rehearsal")
            updated = rehearsal.with_status(
                RehearsalStatus.REJECTED,
                admin_reviewed_by=admin_id,
                admin_reviewed_at=self._time.now(),
                admin_note=note,
            )
            await uow.put(EntityKind.REHEARSAL, updated)
            band = await uow.get(EntityKind.BAND, rehearsal.band_id)
            if band is not None:
                await self._notifications.stage_for_users(
                    uow,
                    band.member_ids,
                    NotificationType.REHEARSAL_REJECTED,
                    "Rehearsal not approved",
                    note,
                    related_entity_type="rehearsal",
                    related_entity_id=rehearsal_id,
                )
        self._log.info("rehearsal_rejected", rehearsal_id=rehearsal_id, admin_id=admin_id)
        return updated

    async def cancel_rehearsal(self, rehearsal_id: str) -> Rehearsal:
        async with self._store.transaction(
            lock_key(EntityKind.REHEARSAL, rehearsal_id)
        ) as uow:
            rehearsal = await require(uow, EntityKind.REHEARSAL, rehearsal_id, "rehearsal")
            updated = rehearsal.with_status(RehearsalStatus.CANCELLED)
            await uow.put(EntityKind.REHEARSAL, updated)
        self._log.info("rehearsal_cancelled", rehearsal_id=rehearsal_id)
        return updated

    async def get_rehearsal(self, rehearsal_id: str) -> Rehearsal:
        rehearsal = await self._store.get(EntityKind.REHEARSAL, rehearsal_id)
        if rehearsal is None:
            raise NotFoundError("rehearsal", rehearsal_id)
        return rehearsal

    async def get_rehearsals(self, band_id: str) -> list[Rehearsal]:
        """The band's rehearsals in chronological order."""
        rehearsals = [
            r for r in await self._store.list_all(EntityKind.REHEARSAL) if r.band_id == band_id
        ]
        return sorted(rehearsals, key=lambda r: r.date_time)

    async def get_all_rehearsals(self) -> list[Rehearsal]:
        return await self._store.list_all(EntityKind.REHEARSAL)

    async def get_pending_approvals(self) -> list[Rehearsal]:
        """Rehearsals awaiting staff review, oldest submission first."""
        pending = [
            r
            for r in await self._store.list_all(EntityKind.REHEARSAL)
            if r.status is RehearsalStatus.COMPLETION_SUBMITTED
        ]
        return sorted(pending, key=lambda r: r.completion_submitted_at or r.created_at)

    # Progress

    async def get_band_progress(self, band_id: str) -> BandProgress:
        """Derived view of the band's progress toward performing.

        Raises:
            NotFoundError: If the band does not exist.
        """
        band = await self._store.get(EntityKind.BAND, band_id)
        if band is None:
            raise NotFoundError("band", band_id)

        rehearsals = await self.get_rehearsals(band_id)
        performance = (
            await self._store.get(EntityKind.PERFORMANCE_REQUEST, band.performance_request_id)
            if band.performance_request_id
            else None
        )
        live_session = (
            await self._store.get(EntityKind.LIVE_SESSION_REQUEST, band.live_session_request_id)
            if band.live_session_request_id
            else None
        )
        performance_status = performance.status if performance is not None else None
        return BandProgress(
            band_id=band.id,
            is_formed=True,
            approved_rehearsals=band.approved_rehearsals_count,
            pending_rehearsals=sum(
                1 for r in rehearsals if r.status is RehearsalStatus.COMPLETION_SUBMITTED
            ),
            rehearsal_goal=band.rehearsal_goal,
            can_request_performance=band.can_request_performance,
            performance_status=performance_status,
            can_request_live_session=(
                performance_status is PerformanceRequestStatus.APPROVED
            ),
            live_session_status=live_session.status if live_session is not None else None,
        )

    @staticmethod
    def _require_member(band: Band, user_id: str, action: str) -> None:
        if not band.is_member(user_id):
            raise PermissionDeniedError(user_id, action, f"not a member of band {band.id}")
