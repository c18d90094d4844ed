"""Unit tests for ProgressionService (performance and live session requests)."""

from __future__ import annotations

from datetime import timedelta

import pytest

from bandgo.application.ports.entity_store import EntityKind
from bandgo.application.services.progression_service import ProgressionService
from bandgo.domain.errors import (
    InvalidStateError,
    InvalidStateTransitionError,
    NotEligibleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bandgo.domain.models import (
    DateRange,
    LiveSessionRequestStatus,
    NotificationType,
    PerformanceRequestStatus,
    UserRole,
)
from tests.helpers import NOW, make_band, seed_users

WINDOW = DateRange(start=NOW + timedelta(days=14), end=NOW + timedelta(days=28))


@pytest.fixture
def service(store, fake_time_authority, notifications) -> ProgressionService:
    seed_users(store, "u-1", "u-2")
    seed_users(store, "staff", role=UserRole.STAFF)
    store.seed(EntityKind.BAND, make_band(approved_rehearsals_count=3))
    return ProgressionService(store, fake_time_authority, notifications)


class TestPerformanceRequests:
    @pytest.mark.asyncio
    async def test_leader_files_request_and_band_links_it(self, service, store) -> None:
        request = await service.create_performance_request("b-1", "u-1", WINDOW, 30, "Covers")

        assert request.status is PerformanceRequestStatus.SUBMITTED
        band = await store.get(EntityKind.BAND, "b-1")
        assert band.performance_request_id == request.id
        assert await service.get_performance_request("b-1") == request

    @pytest.mark.asyncio
    async def test_goal_not_reached(self, service, store) -> None:
        store.seed(EntityKind.BAND, make_band(approved_rehearsals_count=2))

        with pytest.raises(NotEligibleError) as exc_info:
            await service.create_performance_request("b-1", "u-1", WINDOW, 30)

        assert "2/3" in exc_info.value.requirement

    @pytest.mark.asyncio
    async def test_member_is_not_leader(self, service) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.create_performance_request("b-1", "u-2", WINDOW, 30)

    @pytest.mark.asyncio
    async def test_duration_must_be_positive(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.create_performance_request("b-1", "u-1", WINDOW, 0)

    @pytest.mark.asyncio
    async def test_one_open_request_at_a_time(self, service) -> None:
        await service.create_performance_request("b-1", "u-1", WINDOW, 30)

        with pytest.raises(InvalidStateError):
            await service.create_performance_request("b-1", "u-1", WINDOW, 45)

    @pytest.mark.asyncio
    async def test_new_request_after_rejection(self, service) -> None:
        first = await service.create_performance_request("b-1", "u-1", WINDOW, 30)
        await service.review_performance_request(
            first.id, "staff", PerformanceRequestStatus.REJECTED, "Full lineup"
        )

        second = await service.create_performance_request("b-1", "u-1", WINDOW, 30)

        assert (await service.get_performance_request("b-1")).id == second.id

    @pytest.mark.asyncio
    async def test_review_records_reviewer_and_notifies(self, service, store) -> None:
        request = await service.create_performance_request("b-1", "u-1", WINDOW, 30)
        gig = NOW + timedelta(days=20)

        reviewed = await service.review_performance_request(
            request.id, "staff", PerformanceRequestStatus.APPROVED, "See you", gig
        )

        assert reviewed.admin_reviewed_by == "staff"
        assert reviewed.admin_note == "See you"
        assert reviewed.scheduled_date == gig
        notified = [
            n.user_id
            for n in await store.list_all(EntityKind.NOTIFICATION)
            if n.type is NotificationType.PERFORMANCE_REVIEWED
        ]
        assert sorted(notified) == ["u-1", "u-2"]

    @pytest.mark.asyncio
    async def test_review_requires_privilege(self, service) -> None:
        request = await service.create_performance_request("b-1", "u-1", WINDOW, 30)

        with pytest.raises(PermissionDeniedError):
            await service.review_performance_request(
                request.id, "u-2", PerformanceRequestStatus.APPROVED
            )

    @pytest.mark.asyncio
    async def test_decided_request_is_final(self, service) -> None:
        request = await service.create_performance_request("b-1", "u-1", WINDOW, 30)
        await service.review_performance_request(
            request.id, "staff", PerformanceRequestStatus.APPROVED
        )

        with pytest.raises(InvalidStateTransitionError):
            await service.review_performance_request(
                request.id, "staff", PerformanceRequestStatus.REJECTED
            )


class TestLiveSessionRequests:
    @pytest.mark.asyncio
    async def test_requires_approved_performance(self, service) -> None:
        with pytest.raises(NotEligibleError):
            await service.create_live_session_request("b-1", "u-1", WINDOW)

        performance = await service.create_performance_request("b-1", "u-1", WINDOW, 30)
        with pytest.raises(NotEligibleError):
            await service.create_live_session_request("b-1", "u-1", WINDOW)

        await service.review_performance_request(
            performance.id, "staff", PerformanceRequestStatus.APPROVED
        )
        live = await service.create_live_session_request("b-1", "u-1", WINDOW, "Record it")

        assert live.status is LiveSessionRequestStatus.SUBMITTED
        assert await service.get_live_session_request("b-1") == live

    @pytest.mark.asyncio
    async def test_approved_then_scheduled(self, service) -> None:
        performance = await service.create_performance_request("b-1", "u-1", WINDOW, 30)
        await service.review_performance_request(
            performance.id, "staff", PerformanceRequestStatus.APPROVED
        )
        live = await service.create_live_session_request("b-1", "u-1", WINDOW)
        session_day = NOW + timedelta(days=21)
        with pytest.raises(InvalidStateError):
            await service.create_live_session_request("b-1", "u-1", WINDOW)

        await service.review_live_session_request(
            live.id, "staff", LiveSessionRequestStatus.APPROVED
        )
        scheduled = await service.review_live_session_request(
            live.id, "staff", LiveSessionRequestStatus.SCHEDULED, scheduled_date=session_day
        )

        assert scheduled.status is LiveSessionRequestStatus.SCHEDULED
        assert scheduled.scheduled_date == session_day
        assert not scheduled.status.is_open()


class TestRehearsalGoalOverride:
    @pytest.mark.asyncio
    async def test_raised_goal_blocks_requests(self, service, store) -> None:
        band = await service.set_band_rehearsal_goal("b-1", 5, "staff")

        assert band.rehearsal_goal == 5
        assert not band.can_request_performance
        with pytest.raises(NotEligibleError):
            await service.create_performance_request("b-1", "u-1", WINDOW, 30)

    @pytest.mark.asyncio
    async def test_lowered_goal_unlocks_requests(self, service, store) -> None:
        store.seed(EntityKind.BAND, make_band(approved_rehearsals_count=1))

        await service.set_band_rehearsal_goal("b-1", 1, "staff")
        request = await service.create_performance_request("b-1", "u-1", WINDOW, 30)

        assert request.status is PerformanceRequestStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_requires_privilege(self, service, store) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.set_band_rehearsal_goal("b-1", 1, "u-1")

        assert (await store.get(EntityKind.BAND, "b-1")).rehearsal_goal == 3

    @pytest.mark.asyncio
    async def test_goal_must_be_positive(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.set_band_rehearsal_goal("b-1", 0, "staff")

    @pytest.mark.asyncio
    async def test_unknown_band(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.set_band_rehearsal_goal("b-9", 4, "staff")


class TestReads:
    @pytest.mark.asyncio
    async def test_nothing_linked_returns_none(self, service) -> None:
        assert await service.get_performance_request("b-1") is None
        assert await service.get_live_session_request("b-1") is None

    @pytest.mark.asyncio
    async def test_unknown_band_raises(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.get_performance_request("missing")
        with pytest.raises(NotFoundError):
            await service.get_live_session_request("missing")

    @pytest.mark.asyncio
    async def test_list_all(self, service) -> None:
        await service.create_performance_request("b-1", "u-1", WINDOW, 30)

        assert len(await service.get_all_performance_requests()) == 1
        assert await service.get_all_live_session_requests() == []
