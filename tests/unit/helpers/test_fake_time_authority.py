"""Tests for the FakeTimeAuthority test helper.

Poll deadlines, registration cut-offs and rehearsal approvals all depend on
this clock behaving predictably.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from tests.helpers.fake_time_authority import DEFAULT_FROZEN_AT, FakeTimeAuthority


class TestConstruction:
    def test_implements_protocol(self) -> None:
        assert isinstance(FakeTimeAuthority(), TimeAuthorityProtocol)

    def test_default_frozen_time(self) -> None:
        fake_time = FakeTimeAuthority()

        assert fake_time.now() == DEFAULT_FROZEN_AT
        assert fake_time.utcnow() == DEFAULT_FROZEN_AT

    def test_naive_start_taken_as_utc(self) -> None:
        fake_time = FakeTimeAuthority(frozen_at=datetime(2026, 3, 2, 18, 0))

        assert fake_time.now() == datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)

    def test_time_stays_frozen(self) -> None:
        fake_time = FakeTimeAuthority()

        assert fake_time.now() == fake_time.now()


class TestAdvance:
    def test_advance_by_delta(self) -> None:
        fake_time = FakeTimeAuthority(start_monotonic=10.0)

        fake_time.advance(delta=timedelta(hours=25))

        assert fake_time.now() == DEFAULT_FROZEN_AT + timedelta(hours=25)
        assert fake_time.monotonic() == 10.0 + 25 * 3600

    def test_delta_takes_precedence_over_seconds(self) -> None:
        fake_time = FakeTimeAuthority()

        fake_time.advance(seconds=5, delta=timedelta(minutes=1))

        assert fake_time.current_time == DEFAULT_FROZEN_AT + timedelta(minutes=1)

    def test_requires_an_amount(self) -> None:
        with pytest.raises(ValueError, match="Must provide"):
            FakeTimeAuthority().advance()

    def test_rejects_going_backwards(self) -> None:
        with pytest.raises(ValueError, match="backwards"):
            FakeTimeAuthority().advance(seconds=-1)


class TestSetTime:
    def test_jump_leaves_monotonic_alone(self) -> None:
        fake_time = FakeTimeAuthority()
        target = datetime(2025, 12, 1, tzinfo=timezone.utc)

        fake_time.set_time(target)

        assert fake_time.now() == target
        assert fake_time.monotonic() == 0.0

    def test_repr_shows_current_time(self) -> None:
        assert "2026-01-01T00:00:00+00:00" in repr(FakeTimeAuthority())
