"""Unit tests for Band, BandMember and the membership invariants."""

from __future__ import annotations

from datetime import timedelta

import pytest

from bandgo.domain.errors import MembershipNotFoundError, ValidationError
from bandgo.domain.models import BandMember
from bandgo.domain.models.band import validate_members
from tests.helpers import NOW, make_band


def _member(user_id: str, *, leader: bool = False) -> BandMember:
    return BandMember(user_id=user_id, instrument_id="bass", joined_at=NOW, is_leader=leader)


class TestValidateMembers:
    """Tests for validate_members()."""

    def test_accepts_single_leader(self) -> None:
        members = validate_members([_member("a", leader=True), _member("b")])

        assert isinstance(members, tuple)
        assert [m.user_id for m in members] == ["a", "b"]

    def test_rejects_empty_list(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_members([])

        assert exc_info.value.field == "members"

    def test_rejects_duplicate_user(self) -> None:
        with pytest.raises(ValidationError, match="only once"):
            validate_members([_member("a", leader=True), _member("a")])

    @pytest.mark.parametrize("leaders", [0, 2])
    def test_rejects_wrong_leader_count(self, leaders: int) -> None:
        members = [_member(f"u{i}", leader=i < leaders) for i in range(3)]

        with pytest.raises(ValidationError, match="exactly one leader"):
            validate_members(members)


class TestBandQueries:
    def test_leader_and_member_ids(self) -> None:
        band = make_band(member_ids=("a", "b", "c"), leader_id="b")

        assert band.leader is not None
        assert band.leader.user_id == "b"
        assert band.member_ids == ("a", "b", "c")
        assert band.is_member("c")
        assert not band.is_member("z")
        assert band.is_leader("b")
        assert not band.is_leader("a")

    def test_can_request_performance_at_goal(self) -> None:
        assert not make_band(approved_rehearsals_count=2, rehearsal_goal=3).can_request_performance
        assert make_band(approved_rehearsals_count=3, rehearsal_goal=3).can_request_performance

    def test_with_approved_rehearsal_increments_count(self) -> None:
        band = make_band(approved_rehearsals_count=1)
        later = NOW + timedelta(hours=1)

        updated = band.with_approved_rehearsal(later)

        assert updated.approved_rehearsals_count == 2
        assert updated.updated_at == later
        assert band.approved_rehearsals_count == 1


class TestWithMember:
    def test_appends_as_regular_member(self) -> None:
        band = make_band(member_ids=("a",))

        updated = band.with_member(_member("b", leader=True), NOW)

        assert updated.member_ids == ("a", "b")
        assert updated.leader.user_id == "a"
        assert not updated.members[1].is_leader

    def test_rejects_existing_member(self) -> None:
        band = make_band(member_ids=("a", "b"))

        with pytest.raises(ValidationError):
            band.with_member(_member("b"), NOW)

    def test_with_members_validates(self) -> None:
        band = make_band(member_ids=("a",))

        with pytest.raises(ValidationError):
            band.with_members([_member("x"), _member("y")], NOW)


class TestWithoutMember:
    """Leader succession when members leave."""

    def test_regular_member_leaves(self) -> None:
        band = make_band(member_ids=("a", "b", "c"))

        updated = band.without_member("c", NOW)

        assert updated is not None
        assert updated.member_ids == ("a", "b")
        assert updated.leader.user_id == "a"

    def test_leader_leaves_promotes_earliest_joined(self) -> None:
        band = make_band(member_ids=("a", "b", "c"), leader_id="a")

        updated = band.without_member("a", NOW)

        assert updated is not None
        assert updated.leader.user_id == "b"
        assert sum(1 for m in updated.members if m.is_leader) == 1

    def test_last_member_leaving_returns_none(self) -> None:
        band = make_band(member_ids=("a",))

        assert band.without_member("a", NOW) is None

    def test_non_member_raises(self) -> None:
        band = make_band(member_ids=("a", "b"))

        with pytest.raises(MembershipNotFoundError) as exc_info:
            band.without_member("z", NOW)

        assert exc_info.value.band_id == band.id
        assert exc_info.value.user_id == "z"
