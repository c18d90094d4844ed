"""Domain models for bandgo."""

from bandgo.domain.models.application import ApplicationStatus, BandApplication
from bandgo.domain.models.availability import (
    AvailabilitySlot,
    AvailabilityStatus,
    SchedulingSuggestion,
    TimeSlot,
)
from bandgo.domain.models.band import UNKNOWN_INSTRUMENT, Band, BandMember
from bandgo.domain.models.band_request import (
    BandCommitmentLevel,
    BandRequest,
    BandRequestStatus,
    BandRequestType,
    InstrumentSlot,
)
from bandgo.domain.models.chat import ChatMessage, Conversation, DirectMessage
from bandgo.domain.models.event import (
    Event,
    EventRegistration,
    EventType,
    RegistrationStatus,
)
from bandgo.domain.models.event_submission import EventSubmission, EventSubmissionStatus
from bandgo.domain.models.feed import (
    Comment,
    Post,
    PostLike,
    PostType,
    SystemEventType,
    TargetAudience,
)
from bandgo.domain.models.notification import Notification, NotificationType
from bandgo.domain.models.progression import (
    BandProgress,
    DateRange,
    LiveSessionRequest,
    LiveSessionRequestStatus,
    PerformanceRequest,
    PerformanceRequestStatus,
)
from bandgo.domain.models.rehearsal import Rehearsal, RehearsalStatus
from bandgo.domain.models.rehearsal_poll import PollOption, ProposedTime, RehearsalPoll
from bandgo.domain.models.report import Report, ReportStatus, ReportTargetType
from bandgo.domain.models.song import Song, SongLink, SongLinkType
from bandgo.domain.models.system_settings import SystemSettings
from bandgo.domain.models.task import Task, TaskStatus, TaskType
from bandgo.domain.models.user import (
    ContactInfo,
    InstrumentLevel,
    SearchStatus,
    User,
    UserInstrument,
    UserRole,
)

__all__: list[str] = [
    "ApplicationStatus",
    "AvailabilitySlot",
    "AvailabilityStatus",
    "Band",
    "BandApplication",
    "BandCommitmentLevel",
    "BandMember",
    "BandProgress",
    "BandRequest",
    "BandRequestStatus",
    "BandRequestType",
    "ChatMessage",
    "Comment",
    "ContactInfo",
    "Conversation",
    "DateRange",
    "DirectMessage",
    "Event",
    "EventRegistration",
    "EventSubmission",
    "EventSubmissionStatus",
    "EventType",
    "InstrumentLevel",
    "InstrumentSlot",
    "LiveSessionRequest",
    "LiveSessionRequestStatus",
    "Notification",
    "NotificationType",
    "PerformanceRequest",
    "PerformanceRequestStatus",
    "PollOption",
    "ProposedTime",
    "Post",
    "PostLike",
    "PostType",
    "Rehearsal",
    "RehearsalPoll",
    "RehearsalStatus",
    "RegistrationStatus",
    "Report",
    "ReportStatus",
    "ReportTargetType",
    "SchedulingSuggestion",
    "SearchStatus",
    "Song",
    "SongLink",
    "SongLinkType",
    "SystemEventType",
    "SystemSettings",
    "TargetAudience",
    "Task",
    "TaskStatus",
    "TaskType",
    "TimeSlot",
    "UNKNOWN_INSTRUMENT",
    "User",
    "UserInstrument",
    "UserRole",
]
