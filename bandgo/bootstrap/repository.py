"""Bootstrap wiring for the BandgoRepository.

create_repository() builds a fresh object graph; get_repository() keeps a
process-wide singleton for callers that want one.
"""

from __future__ import annotations

import structlog

from bandgo.application.ports.auth_provider import AuthProviderProtocol
from bandgo.application.ports.chat_event_bus import ChatEventBusProtocol
from bandgo.application.ports.entity_store import EntityStoreProtocol
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.band_content_service import BandContentService
from bandgo.application.services.band_lifecycle_service import BandLifecycleService
from bandgo.application.services.bandgo_repository import BandgoRepository
from bandgo.application.services.event_service import EventService
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
from bandgo.application.services.time_authority_service import TimeAuthorityService
from bandgo.config import BandgoConfig
from bandgo.infrastructure.adapters.messaging.in_process_chat_event_bus import (
    InProcessChatEventBus,
)
from bandgo.infrastructure.adapters.persistence.json_snapshot_store import (
    JsonSnapshotEntityStore,
)
from bandgo.infrastructure.stubs.auth_provider_stub import AuthProviderStub
from bandgo.infrastructure.stubs.in_memory_entity_store import InMemoryEntityStore

logger = structlog.get_logger()

_repository: BandgoRepository | None = None


def _default_store(config: BandgoConfig) -> EntityStoreProtocol:
    if config.snapshot_path:
        return JsonSnapshotEntityStore(config.snapshot_path)
    return InMemoryEntityStore()


def create_repository(
    config: BandgoConfig | None = None,
    *,
    store: EntityStoreProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    auth_provider: AuthProviderProtocol | None = None,
    bus: ChatEventBusProtocol | None = None,
) -> BandgoRepository:
    """Wire every manager around one store, clock and event bus.

    Args:
        config: Process configuration; read from the environment if omitted.
        store: Entity store; defaults to a JSON snapshot store when
            ``config.snapshot_path`` is set, otherwise in-memory.
        time_authority: Clock; defaults to the system clock.
        auth_provider: Credential verifier; defaults to the accept-all stub.
        bus: Chat event bus; defaults to the in-process bus.
    """
    config = config or BandgoConfig.from_environment()
    store = store or _default_store(config)
    time_authority = time_authority or TimeAuthorityService()
    auth_provider = auth_provider or AuthProviderStub()
    bus = bus or InProcessChatEventBus()

    settings = SettingsService(store, config.initial_settings())
    notifications = NotificationService(store, time_authority)
    bands = BandLifecycleService(store, time_authority, settings, notifications)
    events = EventService(store, time_authority)

    repository = BandgoRepository(
        session=SessionService(store, auth_provider, time_authority),
        bands=bands,
        content=BandContentService(store, time_authority, notifications),
        rehearsals=RehearsalService(store, time_authority, settings, notifications),
        progression=ProgressionService(store, time_authority, notifications),
        scheduling=SchedulingService(
            store, time_authority, horizon_days=config.scheduling_horizon_days
        ),
        events=events,
        submissions=EventSubmissionService(store, time_authority, notifications),
        feed=FeedService(
            store, time_authority, notifications, page_size=config.feed_page_size
        ),
        notifications=notifications,
        messaging=MessagingService(
            store,
            time_authority,
            notifications,
            bus,
            history_limit=config.chat_history_limit,
        ),
        moderation=ModerationService(store, time_authority, bands, events),
        settings=settings,
        bus=bus,
        chat_poll_interval_ms=config.chat_poll_interval_ms,
    )
    logger.info(
        "repository_created",
        store=type(store).__name__,
        bus=type(bus).__name__,
        environment=config.environment,
    )
    return repository


def get_repository() -> BandgoRepository:
    """Get the process-wide repository instance (singleton)."""
    global _repository
    if _repository is None:
        _repository = create_repository()
    return _repository


def reset_repository() -> None:
    """Destroy and drop the singleton (testing only)."""
    global _repository
    if _repository is not None:
        _repository.destroy()
    _repository = None


__all__ = ["create_repository", "get_repository", "reset_repository"]
