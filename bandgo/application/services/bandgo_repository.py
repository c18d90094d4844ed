"""BandgoRepository - the storage-agnostic contract consumed by the UI.

A thin facade over the managers. It owns no rules of its own; every method
delegates to the manager that owns the entity, and the chat helpers map
onto the event bus channels (``band:<id>``, ``conversation:<id>``,
``global``).

Usage:
    repo = create_repository(BandgoConfig.from_environment())
    user = await repo.sign_in("ana@example.com", "secret")
    band = await repo.form_band(request_id, "The Ana Band")
    unsubscribe = repo.subscribe_to_band_chat(band.id, on_message)
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Sequence

from bandgo.application.ports.chat_event_bus import (
    ChatEventBusProtocol,
    Listener,
    StopPolling,
    Unsubscribe,
)
from bandgo.application.services.band_content_service import BandContentService
from bandgo.application.services.band_lifecycle_service import (
    BandLifecycleService,
    BandRequestFilters,
    LeaveBandResult,
)
from bandgo.application.services.event_service import EventFilters, EventService
from bandgo.application.services.event_submission_service import EventSubmissionService
from bandgo.application.services.feed_service import FeedService
from bandgo.application.services.messaging_service import MessagingService
from bandgo.application.services.moderation_service import ModerationService
from bandgo.application.services.notification_service import NotificationService
from bandgo.application.services.progression_service import ProgressionService
from bandgo.application.services.rehearsal_service import RehearsalService
from bandgo.application.services.scheduling_service import SchedulingService
from bandgo.application.services.session_service import SessionService
from bandgo.application.services.settings_service import SettingsService
from bandgo.domain.events import (
    GLOBAL_CHANNEL,
    ChatEventMessage,
    band_channel,
    conversation_channel,
)
from bandgo.domain.models import (
    ApplicationStatus,
    AvailabilitySlot,
    Band,
    BandApplication,
    BandMember,
    BandProgress,
    BandRequest,
    BandRequestType,
    ChatMessage,
    Comment,
    Conversation,
    DateRange,
    DirectMessage,
    Event,
    EventRegistration,
    EventSubmission,
    EventType,
    LiveSessionRequest,
    LiveSessionRequestStatus,
    Notification,
    PerformanceRequest,
    PerformanceRequestStatus,
    Post,
    PostLike,
    ProposedTime,
    Rehearsal,
    RehearsalPoll,
    RehearsalStatus,
    Report,
    ReportStatus,
    ReportTargetType,
    SchedulingSuggestion,
    Song,
    SystemSettings,
    TargetAudience,
    Task,
    TaskType,
    TimeSlot,
    User,
    UserRole,
)


class BandgoRepository:
    """Every core operation behind one object.

    Attributes:
        session: Identity and profile manager.
        bands: Band requests, applications, formation and membership.
        content: Songs and tasks.
        rehearsals: Polls, rehearsals and approvals.
        progression: Performance and live session requests.
        scheduling: Availability and suggestions.
        events: Events and registrations.
        submissions: Event submission workflow.
        feed: Posts, comments and likes.
        notifications: Per-user notifications.
        messaging: Band chat and direct messages.
        moderation: Reports, role changes and forced deletions.
        settings: SystemSettings load/save.
        bus: The chat event bus.
    """

    def __init__(
        self,
        *,
        session: SessionService,
        bands: BandLifecycleService,
        content: BandContentService,
        rehearsals: RehearsalService,
        progression: ProgressionService,
        scheduling: SchedulingService,
        events: EventService,
        submissions: EventSubmissionService,
        feed: FeedService,
        notifications: NotificationService,
        messaging: MessagingService,
        moderation: ModerationService,
        settings: SettingsService,
        bus: ChatEventBusProtocol,
        chat_poll_interval_ms: int,
    ) -> None:
        self.session = session
        self.bands = bands
        self.content = content
        self.rehearsals = rehearsals
        self.progression = progression
        self.scheduling = scheduling
        self.events = events
        self.submissions = submissions
        self.feed = feed
        self.notifications = notifications
        self.messaging = messaging
        self.moderation = moderation
        self.settings = settings
        self.bus = bus
        self._chat_poll_interval_ms = chat_poll_interval_ms

    # =========================================================================
    # Auth / session
    # =========================================================================

    async def get_current_user(self) -> User | None:
        return await self.session.get_current_user()

    async def sign_in(self, email: str, password: str) -> User:
        return await self.session.sign_in(email, password)

    async def sign_out(self) -> None:
        await self.session.sign_out()

    async def register_user(self, display_name: str, email: str, **profile: Any) -> User:
        return await self.session.register_user(display_name, email, **profile)

    async def update_profile(self, user_id: str, patch: Mapping[str, Any]) -> User:
        return await self.session.update_profile(user_id, patch)

    async def get_user(self, user_id: str) -> User:
        return await self.session.get_user(user_id)

    async def get_all_users(self) -> list[User]:
        return await self.session.get_all_users()

    async def get_users_by_ids(self, user_ids: Iterable[str]) -> list[User]:
        return await self.session.get_users_by_ids(user_ids)

    async def search_users(self, query: str) -> list[User]:
        return await self.session.search_users(query)

    # =========================================================================
    # Band requests and applications
    # =========================================================================

    async def create_band_request(
        self, creator_id: str, description: str, type: BandRequestType, **details: Any
    ) -> BandRequest:
        return await self.bands.create_band_request(creator_id, description, type, **details)

    async def update_band_request(
        self, request_id: str, patch: Mapping[str, Any]
    ) -> BandRequest:
        return await self.bands.update_band_request(request_id, patch)

    async def close_band_request(self, request_id: str) -> BandRequest:
        return await self.bands.close_band_request(request_id)

    async def reopen_band_request(self, request_id: str) -> BandRequest:
        return await self.bands.reopen_band_request(request_id)

    async def get_band_request(self, request_id: str) -> BandRequest:
        return await self.bands.get_band_request(request_id)

    async def get_band_requests(
        self, filters: BandRequestFilters | None = None, user_id: str | None = None
    ) -> list[BandRequest]:
        return await self.bands.get_band_requests(filters, user_id)

    async def get_my_band_requests(self, user_id: str) -> list[BandRequest]:
        return await self.bands.get_my_band_requests(user_id)

    async def create_application(
        self,
        request_id: str,
        applicant_id: str,
        instrument_id: str,
        message: str = "",
        sample_url: str | None = None,
    ) -> BandApplication:
        return await self.bands.create_application(
            request_id, applicant_id, instrument_id, message, sample_url
        )

    async def review_application(
        self, application_id: str, status: ApplicationStatus, note: str | None = None
    ) -> BandApplication:
        return await self.bands.review_application(application_id, status, note)

    async def get_applications(self, request_id: str) -> list[BandApplication]:
        return await self.bands.get_applications(request_id)

    async def get_my_applications(self, user_id: str) -> list[BandApplication]:
        return await self.bands.get_my_applications(user_id)

    async def get_all_applications(self) -> list[BandApplication]:
        return await self.bands.get_all_applications()

    # =========================================================================
    # Band lifecycle
    # =========================================================================

    async def form_band(self, request_id: str, name: str | None = None) -> Band:
        return await self.bands.form_band(request_id, name)

    async def add_band_member(
        self, band_id: str, user_id: str, instrument_id: str
    ) -> Band:
        return await self.bands.add_band_member(band_id, user_id, instrument_id)

    async def replace_band_members(
        self, band_id: str, members: Iterable[BandMember]
    ) -> Band:
        return await self.bands.replace_band_members(band_id, members)

    async def update_band(self, band_id: str, patch: Mapping[str, Any]) -> Band:
        return await self.bands.update_band(band_id, patch)

    async def leave_band(self, band_id: str, user_id: str) -> LeaveBandResult:
        return await self.bands.leave_band(band_id, user_id)

    async def delete_band(self, band_id: str, requester_id: str) -> None:
        await self.bands.delete_band(band_id, requester_id)

    async def force_delete_band(self, band_id: str, actor_id: str) -> None:
        await self.moderation.force_delete_band(band_id, actor_id)

    async def get_band(self, band_id: str) -> Band:
        return await self.bands.get_band(band_id)

    async def get_bands(self) -> list[Band]:
        return await self.bands.get_bands()

    async def get_my_bands(self, user_id: str) -> list[Band]:
        return await self.bands.get_my_bands(user_id)

    async def get_band_progress(self, band_id: str) -> BandProgress:
        return await self.rehearsals.get_band_progress(band_id)

    # =========================================================================
    # Songs and tasks
    # =========================================================================

    async def create_song(
        self, band_id: str, created_by: str, title: str, **details: Any
    ) -> Song:
        return await self.content.create_song(band_id, created_by, title, **details)

    async def update_song(self, song_id: str, patch: Mapping[str, Any]) -> Song:
        return await self.content.update_song(song_id, patch)

    async def delete_song(self, song_id: str) -> None:
        await self.content.delete_song(song_id)

    async def get_song(self, song_id: str) -> Song:
        return await self.content.get_song(song_id)

    async def get_songs(self, band_id: str) -> list[Song]:
        return await self.content.get_songs(band_id)

    async def create_task(
        self,
        band_id: str,
        title: str,
        type: TaskType = TaskType.OTHER,
        description: str | None = None,
        assigned_to: str | None = None,
    ) -> Task:
        return await self.content.create_task(band_id, title, type, description, assigned_to)

    async def update_task(self, task_id: str, patch: Mapping[str, Any]) -> Task:
        return await self.content.update_task(task_id, patch)

    async def delete_task(self, task_id: str) -> None:
        await self.content.delete_task(task_id)

    async def get_band_tasks(self, band_id: str) -> list[Task]:
        return await self.content.get_band_tasks(band_id)

    # =========================================================================
    # Rehearsals and polls
    # =========================================================================

    async def create_rehearsal_poll(
        self,
        band_id: str,
        creator_id: str,
        location: str,
        options: Sequence[ProposedTime],
        deadline: datetime | None = None,
        notes: str | None = None,
    ) -> RehearsalPoll:
        return await self.rehearsals.create_rehearsal_poll(
            band_id, creator_id, location, options, deadline, notes
        )

    async def vote_on_poll(
        self, poll_id: str, option_id: str, user_id: str, can_attend: bool
    ) -> RehearsalPoll:
        return await self.rehearsals.vote_on_poll(poll_id, option_id, user_id, can_attend)

    async def remove_vote_from_poll(
        self, poll_id: str, option_id: str, user_id: str
    ) -> RehearsalPoll:
        return await self.rehearsals.remove_vote_from_poll(poll_id, option_id, user_id)

    async def finalize_poll(
        self, poll_id: str, option_id: str, requester_id: str
    ) -> Rehearsal:
        return await self.rehearsals.finalize_poll(poll_id, option_id, requester_id)

    async def auto_finalize_expired_polls(self) -> list[Rehearsal]:
        return await self.rehearsals.auto_finalize_expired_polls()

    async def get_rehearsal_poll(self, poll_id: str) -> RehearsalPoll:
        return await self.rehearsals.get_rehearsal_poll(poll_id)

    async def get_rehearsal_polls(self, band_id: str) -> list[RehearsalPoll]:
        return await self.rehearsals.get_rehearsal_polls(band_id)

    async def get_active_polls(self, band_id: str) -> list[RehearsalPoll]:
        return await self.rehearsals.get_active_polls(band_id)

    async def create_rehearsal(
        self,
        band_id: str,
        date_time: datetime,
        duration_minutes: int,
        location: str,
        status: RehearsalStatus = RehearsalStatus.SCHEDULED,
    ) -> Rehearsal:
        return await self.rehearsals.create_rehearsal(
            band_id, date_time, duration_minutes, location, status
        )

    async def confirm_rehearsal(self, rehearsal_id: str) -> Rehearsal:
        return await self.rehearsals.confirm_rehearsal(rehearsal_id)

    async def submit_rehearsal_completion(
        self, rehearsal_id: str, user_id: str
    ) -> Rehearsal:
        return await self.rehearsals.submit_rehearsal_completion(rehearsal_id, user_id)

    async def approve_rehearsal(self, rehearsal_id: str, admin_id: str) -> Rehearsal:
        return await self.rehearsals.approve_rehearsal(rehearsal_id, admin_id)

    async def reject_rehearsal(
        self, rehearsal_id: str, admin_id: str, note: str
    ) -> Rehearsal:
        return await self.rehearsals.reject_rehearsal(rehearsal_id, admin_id, note)

    async def cancel_rehearsal(self, rehearsal_id: str) -> Rehearsal:
        return await self.rehearsals.cancel_rehearsal(rehearsal_id)

    async def get_rehearsal(self, rehearsal_id: str) -> Rehearsal:
        return await self.rehearsals.get_rehearsal(rehearsal_id)

    async def get_rehearsals(self, band_id: str) -> list[Rehearsal]:
        return await self.rehearsals.get_rehearsals(band_id)

    async def get_pending_approvals(self) -> list[Rehearsal]:
        return await self.rehearsals.get_pending_approvals()

    # =========================================================================
    # Progression
    # =========================================================================

    async def set_band_rehearsal_goal(self, band_id: str, goal: int, actor_id: str) -> Band:
        return await self.progression.set_band_rehearsal_goal(band_id, goal, actor_id)

    async def create_performance_request(
        self,
        band_id: str,
        requester_id: str,
        preferred_date_range: DateRange,
        set_duration_minutes: int,
        notes: str | None = None,
    ) -> PerformanceRequest:
        return await self.progression.create_performance_request(
            band_id, requester_id, preferred_date_range, set_duration_minutes, notes
        )

    async def review_performance_request(
        self,
        request_id: str,
        reviewer_id: str,
        status: PerformanceRequestStatus,
        note: str | None = None,
        scheduled_date: datetime | None = None,
    ) -> PerformanceRequest:
        return await self.progression.review_performance_request(
            request_id, reviewer_id, status, note, scheduled_date
        )

    async def get_performance_request(self, band_id: str) -> PerformanceRequest | None:
        return await self.progression.get_performance_request(band_id)

    async def get_all_performance_requests(self) -> list[PerformanceRequest]:
        return await self.progression.get_all_performance_requests()

    async def create_live_session_request(
        self,
        band_id: str,
        requester_id: str,
        preferred_date_range: DateRange,
        notes: str | None = None,
    ) -> LiveSessionRequest:
        return await self.progression.create_live_session_request(
            band_id, requester_id, preferred_date_range, notes
        )

    async def review_live_session_request(
        self,
        request_id: str,
        reviewer_id: str,
        status: LiveSessionRequestStatus,
        note: str | None = None,
        scheduled_date: datetime | None = None,
    ) -> LiveSessionRequest:
        return await self.progression.review_live_session_request(
            request_id, reviewer_id, status, note, scheduled_date
        )

    async def get_live_session_request(self, band_id: str) -> LiveSessionRequest | None:
        return await self.progression.get_live_session_request(band_id)

    async def get_all_live_session_requests(self) -> list[LiveSessionRequest]:
        return await self.progression.get_all_live_session_requests()

    # =========================================================================
    # Availability
    # =========================================================================

    async def update_availability(
        self,
        band_id: str,
        user_id: str,
        day: date,
        time_slots: Sequence[TimeSlot],
        notes: str | None = None,
    ) -> AvailabilitySlot:
        return await self.scheduling.update_availability(
            band_id, user_id, day, time_slots, notes
        )

    async def get_availability(
        self, band_id: str, start: date, end: date
    ) -> list[AvailabilitySlot]:
        return await self.scheduling.get_availability(band_id, start, end)

    async def get_scheduling_suggestions(
        self, band_id: str, duration_minutes: int = 120
    ) -> list[SchedulingSuggestion]:
        return await self.scheduling.get_scheduling_suggestions(band_id, duration_minutes)

    # =========================================================================
    # Events
    # =========================================================================

    async def create_event(
        self,
        created_by: str,
        title: str,
        type: EventType,
        date_time: datetime,
        duration_minutes: int,
        location: str,
        organizer_id: str | None = None,
        **details: Any,
    ) -> Event:
        return await self.events.create_event(
            created_by,
            title,
            type,
            date_time,
            duration_minutes,
            location,
            organizer_id,
            **details,
        )

    async def update_event(self, event_id: str, patch: Mapping[str, Any]) -> Event:
        return await self.events.update_event(event_id, patch)

    async def delete_event(self, event_id: str) -> None:
        await self.events.delete_event(event_id)

    async def get_event(self, event_id: str) -> Event:
        return await self.events.get_event(event_id)

    async def get_events(self, filters: EventFilters | None = None) -> list[Event]:
        return await self.events.get_events(filters)

    async def register_for_event(
        self, event_id: str, user_id: str, notes: str | None = None
    ) -> EventRegistration:
        return await self.events.register_for_event(event_id, user_id, notes)

    async def cancel_registration(self, event_id: str, user_id: str) -> EventRegistration:
        return await self.events.cancel_registration(event_id, user_id)

    async def promote_from_waitlist(
        self, event_id: str, actor_id: str
    ) -> list[EventRegistration]:
        return await self.events.promote_from_waitlist(event_id, actor_id)

    async def get_event_registrations(self, event_id: str) -> list[EventRegistration]:
        return await self.events.get_event_registrations(event_id)

    async def get_my_event_registrations(self, user_id: str) -> list[EventRegistration]:
        return await self.events.get_my_event_registrations(user_id)

    # =========================================================================
    # Event submissions
    # =========================================================================

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
        return await self.submissions.create_event_submission(
            submitted_by, title, type, start_at, end_at, location_text, **details
        )

    async def approve_event_submission(self, submission_id: str, reviewer_id: str) -> Event:
        return await self.submissions.approve_event_submission(submission_id, reviewer_id)

    async def edit_and_approve_submission(
        self, submission_id: str, reviewer_id: str, patch: Mapping[str, Any]
    ) -> Event:
        return await self.submissions.edit_and_approve_submission(
            submission_id, reviewer_id, patch
        )

    async def reject_event_submission(
        self, submission_id: str, reason: str, reviewer_id: str
    ) -> EventSubmission:
        return await self.submissions.reject_event_submission(submission_id, reason, reviewer_id)

    async def request_changes_on_submission(
        self, submission_id: str, note: str, reviewer_id: str
    ) -> EventSubmission:
        return await self.submissions.request_changes_on_submission(
            submission_id, note, reviewer_id
        )

    async def resubmit_event_submission(
        self,
        submission_id: str,
        submitter_id: str,
        patch: Mapping[str, Any] | None = None,
    ) -> EventSubmission:
        return await self.submissions.resubmit_event_submission(
            submission_id, submitter_id, patch
        )

    async def get_event_submission(self, submission_id: str) -> EventSubmission:
        return await self.submissions.get_event_submission(submission_id)

    async def get_event_submissions(self) -> list[EventSubmission]:
        return await self.submissions.get_event_submissions()

    async def get_my_event_submissions(self, user_id: str) -> list[EventSubmission]:
        return await self.submissions.get_my_event_submissions(user_id)

    async def get_pending_event_submissions(self) -> list[EventSubmission]:
        return await self.submissions.get_pending_event_submissions()

    # =========================================================================
    # Feed
    # =========================================================================

    async def get_posts(self, limit: int | None = None, offset: int = 0) -> list[Post]:
        return await self.feed.get_posts(limit, offset)

    async def get_post(self, post_id: str) -> Post:
        return await self.feed.get_post(post_id)

    async def create_post(
        self, author_id: str, content: str, media_urls: Sequence[str] = ()
    ) -> Post:
        return await self.feed.create_post(author_id, content, media_urls)

    async def create_system_message(
        self,
        actor_id: str,
        content: str,
        target_audience: TargetAudience = TargetAudience.ALL,
        target_event_id: str | None = None,
    ) -> Post:
        return await self.feed.create_system_message(
            actor_id, content, target_audience, target_event_id
        )

    async def delete_post(self, post_id: str) -> None:
        await self.feed.delete_post(post_id)

    async def pin_post(self, post_id: str) -> Post:
        return await self.feed.pin_post(post_id)

    async def unpin_post(self, post_id: str) -> Post:
        return await self.feed.unpin_post(post_id)

    async def like_post(self, post_id: str, user_id: str) -> Post:
        return await self.feed.like_post(post_id, user_id)

    async def unlike_post(self, post_id: str, user_id: str) -> Post:
        return await self.feed.unlike_post(post_id, user_id)

    async def get_post_likes(self, post_id: str) -> list[PostLike]:
        return await self.feed.get_post_likes(post_id)

    async def get_comments(self, post_id: str) -> list[Comment]:
        return await self.feed.get_comments(post_id)

    async def create_comment(self, post_id: str, author_id: str, content: str) -> Comment:
        return await self.feed.create_comment(post_id, author_id, content)

    async def delete_comment(self, comment_id: str) -> None:
        await self.feed.delete_comment(comment_id)

    # =========================================================================
    # Notifications
    # =========================================================================

    async def get_notifications(self, user_id: str) -> list[Notification]:
        return await self.notifications.get_notifications(user_id)

    async def get_unread_count(self, user_id: str) -> int:
        return await self.notifications.get_unread_count(user_id)

    async def mark_notification_read(self, notification_id: str) -> Notification:
        return await self.notifications.mark_read(notification_id)

    async def mark_all_notifications_read(self, user_id: str) -> int:
        return await self.notifications.mark_all_read(user_id)

    # =========================================================================
    # Messaging
    # =========================================================================

    async def send_chat_message(
        self, band_id: str, sender_id: str, content: str, media_url: str | None = None
    ) -> ChatMessage:
        return await self.messaging.send_chat_message(band_id, sender_id, content, media_url)

    async def get_chat_messages(
        self, band_id: str, limit: int | None = None
    ) -> list[ChatMessage]:
        return await self.messaging.get_chat_messages(band_id, limit)

    async def mark_chat_as_read(self, band_id: str, user_id: str) -> int:
        return await self.messaging.mark_chat_as_read(band_id, user_id)

    async def get_unread_chat_count(self, band_id: str, user_id: str) -> int:
        return await self.messaging.get_unread_chat_count(band_id, user_id)

    async def get_or_create_conversation(
        self, user_id: str, other_user_id: str
    ) -> Conversation:
        return await self.messaging.get_or_create_conversation(user_id, other_user_id)

    async def get_conversations(self, user_id: str) -> list[Conversation]:
        return await self.messaging.get_conversations(user_id)

    async def send_direct_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        media_url: str | None = None,
    ) -> DirectMessage:
        return await self.messaging.send_direct_message(
            conversation_id, sender_id, content, media_url
        )

    async def get_direct_messages(
        self, conversation_id: str, user_id: str, limit: int | None = None
    ) -> list[DirectMessage]:
        return await self.messaging.get_direct_messages(conversation_id, user_id, limit)

    async def mark_direct_messages_as_read(self, conversation_id: str, user_id: str) -> int:
        return await self.messaging.mark_direct_messages_as_read(conversation_id, user_id)

    async def get_unread_direct_message_count(self, user_id: str) -> int:
        return await self.messaging.get_unread_direct_message_count(user_id)

    # =========================================================================
    # Moderation
    # =========================================================================

    async def create_report(
        self,
        reporter_id: str,
        target_type: ReportTargetType,
        target_id: str,
        reason: str,
        description: str | None = None,
    ) -> Report:
        return await self.moderation.create_report(
            reporter_id, target_type, target_id, reason, description
        )

    async def get_reports(self, status: ReportStatus | None = None) -> list[Report]:
        return await self.moderation.get_reports(status)

    async def resolve_report(
        self,
        report_id: str,
        status: ReportStatus,
        reviewer_id: str,
        note: str | None = None,
    ) -> Report:
        return await self.moderation.resolve_report(report_id, status, reviewer_id, note)

    async def update_user_role(self, user_id: str, role: UserRole, actor_id: str) -> User:
        return await self.moderation.update_user_role(user_id, role, actor_id)

    async def delete_user(self, user_id: str, actor_id: str) -> None:
        await self.moderation.delete_user(user_id, actor_id)

    # =========================================================================
    # Settings (get_system_settings/update_system_settings are aliases)
    # =========================================================================

    async def get_settings(self) -> SystemSettings:
        return await self.settings.get_settings()

    async def update_settings(
        self, patch: Mapping[str, Any] | SystemSettings, actor_id: str
    ) -> SystemSettings:
        return await self.settings.update_settings(patch, actor_id)

    get_system_settings = get_settings
    update_system_settings = update_settings

    # =========================================================================
    # Event bus
    # =========================================================================

    def subscribe_to_band_chat(self, band_id: str, listener: Listener) -> Unsubscribe:
        return self.bus.subscribe(band_channel(band_id), listener)

    def subscribe_to_direct_chat(
        self, conversation_id: str, listener: Listener
    ) -> Unsubscribe:
        return self.bus.subscribe(conversation_channel(conversation_id), listener)

    def subscribe_to_global_updates(self, listener: Listener) -> Unsubscribe:
        return self.bus.subscribe(GLOBAL_CHANNEL, listener)

    def emit_band_chat_message(self, band_id: str, message: ChatEventMessage) -> None:
        self.bus.emit_band_chat_message(band_id, message)

    def emit_direct_message(self, conversation_id: str, message: ChatEventMessage) -> None:
        self.bus.emit_direct_message(conversation_id, message)

    def start_polling(
        self,
        key: str,
        callback: Callable[[], Any],
        interval_ms: int | None = None,
    ) -> StopPolling:
        return self.bus.start_polling(
            key, callback, interval_ms or self._chat_poll_interval_ms
        )

    def stop_polling(self, key: str) -> None:
        self.bus.stop_polling(key)

    def destroy(self) -> None:
        """Stop every poll and drop every subscriber."""
        self.bus.destroy()
