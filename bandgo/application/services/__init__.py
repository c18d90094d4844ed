"""Application services - use case orchestration.

Each manager owns the rules for one area and talks to storage only through
EntityStoreProtocol transactions.

Available services:
- SessionService: Current user, sign-in/out, registration, profiles
- BandLifecycleService: Band requests, applications, formation, membership
- BandContentService: Songs and tasks
- RehearsalService: Polls, rehearsals, completion approval, progress
- ProgressionService: Performance and live session requests
- SchedulingService: Availability and scheduling suggestions
- EventService: Events and capacity-aware registration
- EventSubmissionService: User-proposed events and staff review
- FeedService: Posts, comments, likes, system messages
- NotificationService: Per-user notifications
- MessagingService: Band chat and direct messages
- ModerationService: Reports, role changes, forced deletions
- SettingsService: SystemSettings load/save
- BandgoRepository: Facade exposing all of the above
"""

from bandgo.application.services.band_content_service import BandContentService
from bandgo.application.services.band_lifecycle_service import (
    BAND_SCOPED_KINDS,
    DEFAULT_BAND_NAME,
    BandLifecycleService,
    BandRequestFilters,
    LeaveBandResult,
)
from bandgo.application.services.bandgo_repository import BandgoRepository
from bandgo.application.services.event_service import EventFilters, EventService
from bandgo.application.services.event_submission_service import EventSubmissionService
from bandgo.application.services.feed_service import (
    DEFAULT_PAGE_SIZE,
    FeedService,
    feed_order,
    system_post,
)
from bandgo.application.services.messaging_service import (
    DEFAULT_HISTORY_LIMIT,
    MessagingService,
    conversation_id_for,
)
from bandgo.application.services.moderation_service import ModerationService
from bandgo.application.services.notification_service import NotificationService
from bandgo.application.services.progression_service import ProgressionService
from bandgo.application.services.rehearsal_service import RehearsalService
from bandgo.application.services.scheduling_service import (
    MIN_AVAILABLE_MEMBERS,
    SchedulingService,
    availability_id,
)
from bandgo.application.services.session_service import SessionService
from bandgo.application.services.settings_service import SettingsService
from bandgo.application.services.time_authority_service import TimeAuthorityService

__all__: list[str] = [
    "BAND_SCOPED_KINDS",
    "DEFAULT_BAND_NAME",
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_PAGE_SIZE",
    "MIN_AVAILABLE_MEMBERS",
    "BandContentService",
    "BandLifecycleService",
    "BandRequestFilters",
    "BandgoRepository",
    "EventFilters",
    "EventService",
    "EventSubmissionService",
    "FeedService",
    "LeaveBandResult",
    "MessagingService",
    "ModerationService",
    "NotificationService",
    "ProgressionService",
    "RehearsalService",
    "SchedulingService",
    "SessionService",
    "SettingsService",
    "TimeAuthorityService",
    "availability_id",
    "conversation_id_for",
    "feed_order",
    "system_post",
]
