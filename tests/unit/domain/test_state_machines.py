"""Unit tests for the status transition matrices.

Rehearsals, applications, submissions, progression requests, registrations
and reports all move through check_transition(); these tests pin the
matrices down.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from bandgo.domain.errors import InvalidStateError, InvalidStateTransitionError
from bandgo.domain.models import (
    ApplicationStatus,
    BandApplication,
    DateRange,
    EventRegistration,
    LiveSessionRequest,
    LiveSessionRequestStatus,
    PerformanceRequest,
    PerformanceRequestStatus,
    RegistrationStatus,
    Report,
    ReportStatus,
    ReportTargetType,
    RehearsalStatus,
)
from bandgo.domain.models.rehearsal import (
    INITIAL_REHEARSAL_STATES,
    REHEARSAL_TERMINAL_STATES,
)
from tests.helpers import NOW, make_rehearsal

WEEK = DateRange(start=NOW, end=NOW + timedelta(days=7))


class TestRehearsalTransitions:
    """Tests for the rehearsal approval state machine."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (RehearsalStatus.POLLING, RehearsalStatus.SCHEDULED),
            (RehearsalStatus.POLLING, RehearsalStatus.CANCELLED),
            (RehearsalStatus.SCHEDULED, RehearsalStatus.COMPLETION_SUBMITTED),
            (RehearsalStatus.SCHEDULED, RehearsalStatus.CANCELLED),
            (RehearsalStatus.COMPLETION_SUBMITTED, RehearsalStatus.APPROVED),
            (RehearsalStatus.COMPLETION_SUBMITTED, RehearsalStatus.REJECTED),
        ],
    )
    def test_valid_transition(
        self, current: RehearsalStatus, target: RehearsalStatus
    ) -> None:
        rehearsal = make_rehearsal(status=current)

        assert target in current.valid_transitions()
        assert rehearsal.with_status(target).status is target

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (RehearsalStatus.SCHEDULED, RehearsalStatus.APPROVED),
            (RehearsalStatus.POLLING, RehearsalStatus.COMPLETION_SUBMITTED),
            (RehearsalStatus.COMPLETION_SUBMITTED, RehearsalStatus.CANCELLED),
            (RehearsalStatus.APPROVED, RehearsalStatus.REJECTED),
            (RehearsalStatus.REJECTED, RehearsalStatus.SCHEDULED),
        ],
    )
    def test_invalid_transition_names_both_states(
        self, current: RehearsalStatus, target: RehearsalStatus
    ) -> None:
        rehearsal = make_rehearsal(status=current)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            rehearsal.with_status(target)

        error = exc_info.value
        assert error.entity_type == "rehearsal"
        assert error.from_state is current
        assert error.to_state is target
        assert f"{current.value} -> {target.value}" in str(error)

    def test_terminal_states_have_no_exits(self) -> None:
        for status in REHEARSAL_TERMINAL_STATES:
            assert status.is_terminal()
            assert status.valid_transitions() == frozenset()

    def test_initial_states(self) -> None:
        assert INITIAL_REHEARSAL_STATES == {RehearsalStatus.POLLING, RehearsalStatus.SCHEDULED}

    def test_with_status_applies_changes(self) -> None:
        rehearsal = make_rehearsal(status=RehearsalStatus.SCHEDULED)

        submitted = rehearsal.with_status(
            RehearsalStatus.COMPLETION_SUBMITTED, completion_submitted_by="u-1"
        )

        assert submitted.completion_submitted_by == "u-1"
        assert rehearsal.completion_submitted_by is None

    def test_transition_error_is_invalid_state_error(self) -> None:
        with pytest.raises(InvalidStateError):
            make_rehearsal(status=RehearsalStatus.CANCELLED).with_status(
                RehearsalStatus.SCHEDULED
            )


class TestApplicationDecision:
    def _application(self) -> BandApplication:
        return BandApplication(
            id="app-1",
            band_request_id="req-1",
            applicant_id="u-2",
            instrument_id="bass",
            created_at=NOW,
        )

    def test_decision_records_review(self) -> None:
        decided = self._application().with_decision(ApplicationStatus.APPROVED, NOW, "welcome")

        assert decided.status is ApplicationStatus.APPROVED
        assert decided.reviewed_at == NOW
        assert decided.review_note == "welcome"

    def test_second_decision_fails(self) -> None:
        decided = self._application().with_decision(ApplicationStatus.REJECTED, NOW)

        with pytest.raises(InvalidStateTransitionError):
            decided.with_decision(ApplicationStatus.APPROVED, NOW)


class TestProgressionTransitions:
    def _performance(self, status: PerformanceRequestStatus) -> PerformanceRequest:
        return PerformanceRequest(
            id="perf-1",
            band_id="b-1",
            preferred_date_range=WEEK,
            set_duration_minutes=30,
            created_at=NOW,
            updated_at=NOW,
            status=status,
        )

    def test_needs_changes_can_be_approved(self) -> None:
        request = self._performance(PerformanceRequestStatus.NEEDS_CHANGES)

        assert request.with_review(PerformanceRequestStatus.APPROVED).status is (
            PerformanceRequestStatus.APPROVED
        )

    @pytest.mark.parametrize(
        "status", [PerformanceRequestStatus.APPROVED, PerformanceRequestStatus.REJECTED]
    )
    def test_decided_performance_is_closed(self, status: PerformanceRequestStatus) -> None:
        request = self._performance(status)

        assert not status.is_open()
        with pytest.raises(InvalidStateTransitionError):
            request.with_review(PerformanceRequestStatus.IN_REVIEW)

    def test_open_statuses(self) -> None:
        assert PerformanceRequestStatus.SUBMITTED.is_open()
        assert PerformanceRequestStatus.NEEDS_CHANGES.is_open()

    def test_live_session_approved_then_scheduled(self) -> None:
        request = LiveSessionRequest(
            id="live-1",
            band_id="b-1",
            preferred_date_range=WEEK,
            created_at=NOW,
            updated_at=NOW,
        )

        approved = request.with_review(LiveSessionRequestStatus.APPROVED)
        scheduled = approved.with_review(
            LiveSessionRequestStatus.SCHEDULED, scheduled_date=NOW + timedelta(days=3)
        )

        assert approved.status.is_open()
        assert not scheduled.status.is_open()
        assert scheduled.scheduled_date == NOW + timedelta(days=3)
        with pytest.raises(InvalidStateTransitionError):
            scheduled.with_review(LiveSessionRequestStatus.REJECTED)


class TestRegistrationTransitions:
    def _registration(self, status: RegistrationStatus) -> EventRegistration:
        return EventRegistration(
            id="reg-1", event_id="e-1", user_id="u-1", status=status, created_at=NOW
        )

    def test_waitlist_can_be_promoted(self) -> None:
        promoted = self._registration(RegistrationStatus.WAITLIST).with_status(
            RegistrationStatus.REGISTERED
        )

        assert promoted.status is RegistrationStatus.REGISTERED

    def test_registered_cannot_go_back_to_waitlist(self) -> None:
        with pytest.raises(InvalidStateTransitionError):
            self._registration(RegistrationStatus.REGISTERED).with_status(
                RegistrationStatus.WAITLIST
            )

    def test_cancelled_is_final_and_inactive(self) -> None:
        cancelled = self._registration(RegistrationStatus.CANCELLED)

        assert not cancelled.status.is_active()
        with pytest.raises(InvalidStateTransitionError):
            cancelled.with_status(RegistrationStatus.REGISTERED)


class TestReportResolution:
    def test_resolve_then_resolve_again_fails(self) -> None:
        report = Report(
            id="rep-1",
            target_type=ReportTargetType.POST,
            target_id="p-1",
            reported_by_user_id="u-1",
            reason="spam",
            created_at=NOW,
        )

        resolved = report.resolved(ReportStatus.DISMISSED, "mod-1", NOW, "not spam")

        assert resolved.status is ReportStatus.DISMISSED
        assert resolved.reviewed_by == "mod-1"
        assert resolved.resolved_at == NOW
        with pytest.raises(InvalidStateTransitionError):
            resolved.resolved(ReportStatus.REVIEWED, "mod-1", NOW)
