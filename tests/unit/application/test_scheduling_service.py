"""Unit tests for SchedulingService."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from bandgo.application.ports.entity_store import EntityKind
from bandgo.application.services.scheduling_service import (
    SchedulingService,
    availability_id,
)
from bandgo.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from bandgo.domain.models import AvailabilityStatus, TimeSlot
from tests.helpers import make_band, seed_users

DAY_1 = date(2026, 1, 3)
DAY_2 = date(2026, 1, 4)
EVENING = TimeSlot("19:00", "22:00")
LATE = TimeSlot("20:00", "23:00")


@pytest.fixture
def service(store, fake_time_authority) -> SchedulingService:
    seed_users(store, "u-1", "u-2", "u-3", "u-4")
    store.seed(EntityKind.BAND, make_band(member_ids=("u-1", "u-2", "u-3", "u-4")))
    return SchedulingService(store, fake_time_authority, horizon_days=14)


class TestAvailability:
    @pytest.mark.asyncio
    async def test_one_record_per_member_and_date(self, service, store) -> None:
        await service.update_availability("b-1", "u-1", DAY_1, [EVENING])
        updated = await service.update_availability("b-1", "u-1", DAY_1, [LATE], "after work")

        assert updated.id == availability_id("b-1", "u-1", DAY_1)
        assert updated.time_slots == (LATE,)
        assert updated.notes == "after work"
        assert store.count(EntityKind.AVAILABILITY) == 1

    @pytest.mark.asyncio
    async def test_members_only(self, service, store) -> None:
        seed_users(store, "u-9")

        with pytest.raises(PermissionDeniedError):
            await service.update_availability("b-1", "u-9", DAY_1, [EVENING])

    @pytest.mark.asyncio
    async def test_range_is_inclusive_and_sorted(self, service) -> None:
        await service.update_availability("b-1", "u-2", DAY_2, [EVENING])
        await service.update_availability("b-1", "u-1", DAY_1, [EVENING])
        await service.update_availability("b-1", "u-1", date(2026, 1, 9), [EVENING])

        slots = await service.get_availability("b-1", DAY_1, DAY_2)

        assert [(s.date, s.user_id) for s in slots] == [(DAY_1, "u-1"), (DAY_2, "u-2")]

    @pytest.mark.asyncio
    async def test_reversed_range_rejected(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.get_availability("b-1", DAY_2, DAY_1)


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_ranks_by_member_overlap(self, service) -> None:
        for user_id in ("u-1", "u-2", "u-3"):
            await service.update_availability("b-1", user_id, DAY_1, [EVENING])
        await service.update_availability("b-1", "u-1", DAY_2, [LATE])
        await service.update_availability("b-1", "u-2", DAY_2, [LATE])

        suggestions = await service.get_scheduling_suggestions("b-1", duration_minutes=90)

        assert [s.match_score for s in suggestions] == [75, 50]
        best = suggestions[0]
        assert best.date_time == datetime(2026, 1, 3, 19, 0, tzinfo=timezone.utc)
        assert best.duration_minutes == 90
        assert best.available_members == ("u-1", "u-2", "u-3")
        assert best.unavailable_members == ("u-4",)

    @pytest.mark.asyncio
    async def test_needs_two_available_members(self, service) -> None:
        await service.update_availability("b-1", "u-1", DAY_1, [EVENING])
        await service.update_availability(
            "b-1", "u-2", DAY_1, [TimeSlot("19:00", "22:00", AvailabilityStatus.MAYBE)]
        )

        assert await service.get_scheduling_suggestions("b-1") == []

    @pytest.mark.asyncio
    async def test_most_common_start_time_wins(self, service) -> None:
        await service.update_availability("b-1", "u-1", DAY_1, [EVENING])
        await service.update_availability("b-1", "u-2", DAY_1, [LATE])
        await service.update_availability("b-1", "u-3", DAY_1, [LATE])

        suggestions = await service.get_scheduling_suggestions("b-1")

        assert suggestions[0].date_time.hour == 20

    @pytest.mark.asyncio
    async def test_outside_horizon_ignored(self, service) -> None:
        far = date(2026, 2, 20)
        await service.update_availability("b-1", "u-1", far, [EVENING])
        await service.update_availability("b-1", "u-2", far, [EVENING])

        assert await service.get_scheduling_suggestions("b-1") == []

    @pytest.mark.asyncio
    async def test_unknown_band(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.get_scheduling_suggestions("missing")
