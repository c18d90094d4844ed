"""Unit tests for ModerationService."""

from __future__ import annotations

import asyncio

import pytest

from bandgo.application.ports.entity_store import EntityKind, lock_key
from bandgo.application.services.band_lifecycle_service import BandLifecycleService
from bandgo.application.services.event_service import EventService
from bandgo.application.services.moderation_service import ModerationService
from bandgo.domain.errors import (
    InvalidStateTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bandgo.domain.models import (
    ApplicationStatus,
    BandApplication,
    BandRequestStatus,
    NotificationType,
    RegistrationStatus,
    ReportStatus,
    ReportTargetType,
    UserRole,
)
from tests.helpers import NOW, make_band, make_band_request, make_event, seed_users


@pytest.fixture
def events(store, fake_time_authority) -> EventService:
    return EventService(store, fake_time_authority)


@pytest.fixture
def bands(store, fake_time_authority, settings_service, notifications) -> BandLifecycleService:
    return BandLifecycleService(store, fake_time_authority, settings_service, notifications)


@pytest.fixture
def service(store, fake_time_authority, bands, events) -> ModerationService:
    seed_users(store, "u-1", "u-2", "u-3")
    seed_users(store, "admin", role=UserRole.ADMIN)
    seed_users(store, "mod", role=UserRole.MODERATOR)
    return ModerationService(store, fake_time_authority, bands, events)


class TestReports:
    @pytest.mark.asyncio
    async def test_create_and_list(self, service, fake_time_authority) -> None:
        first = await service.create_report("u-1", ReportTargetType.POST, "p-1", "Spam")
        fake_time_authority.advance(seconds=1)
        second = await service.create_report(
            "u-2", ReportTargetType.USER, "u-3", "Harassment", "DMs at 3am"
        )

        assert first.status is ReportStatus.PENDING
        assert [r.id for r in await service.get_reports()] == [second.id, first.id]
        assert [r.id for r in await service.get_reports(ReportStatus.REVIEWED)] == []

    @pytest.mark.asyncio
    async def test_reason_required(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.create_report("u-1", ReportTargetType.BAND, "b-1", " ")

    @pytest.mark.asyncio
    async def test_resolve(self, service) -> None:
        report = await service.create_report("u-1", ReportTargetType.EVENT, "e-1", "Fake")

        resolved = await service.resolve_report(
            report.id, ReportStatus.DISMISSED, "mod", "Event is real"
        )

        assert resolved.status is ReportStatus.DISMISSED
        assert resolved.reviewed_by == "mod"
        assert resolved.review_note == "Event is real"
        assert [r.id for r in await service.get_reports(ReportStatus.DISMISSED)] == [report.id]

    @pytest.mark.asyncio
    async def test_resolution_is_final(self, service) -> None:
        report = await service.create_report("u-1", ReportTargetType.EVENT, "e-1", "Fake")
        await service.resolve_report(report.id, ReportStatus.REVIEWED, "admin")

        with pytest.raises(InvalidStateTransitionError):
            await service.resolve_report(report.id, ReportStatus.DISMISSED, "admin")

    @pytest.mark.asyncio
    async def test_resolve_requires_privilege(self, service) -> None:
        report = await service.create_report("u-1", ReportTargetType.POST, "p-1", "Spam")

        with pytest.raises(PermissionDeniedError):
            await service.resolve_report(report.id, ReportStatus.REVIEWED, "u-2")


class TestRoles:
    @pytest.mark.asyncio
    async def test_admin_changes_role(self, service) -> None:
        updated = await service.update_user_role("u-1", UserRole.STAFF, "admin")

        assert updated.role is UserRole.STAFF

    @pytest.mark.asyncio
    async def test_moderator_cannot_change_roles(self, service) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.update_user_role("u-1", UserRole.BANNED, "mod")

    @pytest.mark.asyncio
    async def test_admin_cannot_change_own_role(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.update_user_role("admin", UserRole.USER, "admin")

    @pytest.mark.asyncio
    async def test_unknown_user(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.update_user_role("ghost", UserRole.BANNED, "admin")


class TestDeleteUser:
    @pytest.mark.asyncio
    async def test_cascade(self, service, store, events, notifications) -> None:
        store.seed(
            EntityKind.BAND,
            make_band("b-1", ("u-1", "u-2")),
            make_band("b-2", ("u-1",)),
        )
        store.seed(
            EntityKind.BAND_REQUEST,
            make_band_request("req-9", "u-2", current_members=("u-2", "u-1")),
        )
        store.seed(EntityKind.EVENT, make_event())
        await events.register_for_event("e-1", "u-1")
        await notifications.create_notification(
            "u-1", NotificationType.SYSTEM_MESSAGE, "Hi", "Welcome"
        )

        await service.delete_user("u-1", "admin")

        assert await store.get(EntityKind.USER, "u-1") is None
        surviving = await store.get(EntityKind.BAND, "b-1")
        assert surviving.member_ids == ("u-2",)
        assert surviving.leader.user_id == "u-2"
        assert await store.get(EntityKind.BAND, "b-2") is None
        request = await store.get(EntityKind.BAND_REQUEST, "req-9")
        assert request.current_members == ("u-2",)
        [registration] = await events.get_event_registrations("e-1")
        assert registration.status is RegistrationStatus.CANCELLED
        assert await notifications.get_notifications("u-1") == []

    @pytest.mark.asyncio
    async def test_admin_only(self, service, store) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.delete_user("u-1", "mod")

        assert await store.get(EntityKind.USER, "u-1") is not None

    @pytest.mark.asyncio
    async def test_unknown_user(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.delete_user("ghost", "admin")

    @pytest.mark.asyncio
    async def test_unformed_requests_of_creator_removed(self, service, store, bands) -> None:
        store.seed(
            EntityKind.BAND_REQUEST,
            make_band_request("req-1", "u-1", current_members=("u-1", "u-2")),
            make_band_request("req-2", "u-1", status=BandRequestStatus.FORMED),
            make_band_request("req-3", "u-3"),
        )
        store.seed(
            EntityKind.APPLICATION,
            BandApplication(
                id="app-1",
                band_request_id="req-1",
                applicant_id="u-2",
                instrument_id="bass",
                created_at=NOW,
                status=ApplicationStatus.APPROVED,
            ),
            BandApplication(
                id="app-2",
                band_request_id="req-3",
                applicant_id="u-1",
                instrument_id="drums",
                created_at=NOW,
            ),
        )

        await service.delete_user("u-1", "admin")

        assert await store.get(EntityKind.BAND_REQUEST, "req-1") is None
        assert (await store.get(EntityKind.BAND_REQUEST, "req-2")).status is (
            BandRequestStatus.FORMED
        )
        assert store.count(EntityKind.APPLICATION) == 0
        with pytest.raises(NotFoundError):
            await bands.form_band("req-1")
        assert store.count(EntityKind.BAND) == 0

    @pytest.mark.asyncio
    async def test_holds_event_locks_while_cancelling(
        self, service, store, events
    ) -> None:
        store.seed(EntityKind.EVENT, make_event("e-1"), make_event("e-2"))
        await events.register_for_event("e-1", "u-1")
        await events.register_for_event("e-2", "u-1")
        await events.register_for_event("e-2", "u-2")

        assert await events.event_ids_for_user("u-1") == ["e-1", "e-2"]

        async with store.transaction(lock_key(EntityKind.EVENT, "e-2")):
            deletion = asyncio.create_task(service.delete_user("u-1", "admin"))
            await asyncio.sleep(0.01)
            assert not deletion.done()
            assert await store.get(EntityKind.USER, "u-1") is not None
        await deletion

        assert await store.get(EntityKind.USER, "u-1") is None
        statuses = {
            r.user_id: r.status for r in await events.get_event_registrations("e-2")
        }
        assert statuses == {
            "u-1": RegistrationStatus.CANCELLED,
            "u-2": RegistrationStatus.REGISTERED,
        }


class TestForceDeleteBand:
    @pytest.mark.asyncio
    async def test_staff_deletes_any_band(self, service, store) -> None:
        store.seed(EntityKind.BAND, make_band())

        await service.force_delete_band("b-1", "mod")

        assert store.count(EntityKind.BAND) == 0

    @pytest.mark.asyncio
    async def test_requires_privilege(self, service, store) -> None:
        store.seed(EntityKind.BAND, make_band())

        with pytest.raises(PermissionDeniedError):
            await service.force_delete_band("b-1", "u-2")

        assert store.count(EntityKind.BAND) == 1
