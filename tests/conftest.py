"""
Pytest configuration and shared fixtures for bandgo tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from collections.abc import Iterator

import pytest

from bandgo.application.services.notification_service import NotificationService
from bandgo.application.services.settings_service import SettingsService
from bandgo.bootstrap import create_repository
from bandgo.config import BandgoConfig
from bandgo.domain.models import SystemSettings
from bandgo.infrastructure.adapters.messaging.in_process_chat_event_bus import (
    InProcessChatEventBus,
)
from bandgo.infrastructure.stubs.in_memory_entity_store import InMemoryEntityStore
from tests.helpers import FakeTimeAuthority


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Clock frozen at 2026-01-01T00:00:00 UTC."""
    return FakeTimeAuthority()


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def notifications(
    store: InMemoryEntityStore, fake_time_authority: FakeTimeAuthority
) -> NotificationService:
    return NotificationService(store, fake_time_authority)


@pytest.fixture
def settings_service(store: InMemoryEntityStore) -> SettingsService:
    return SettingsService(store, SystemSettings())


@pytest.fixture
def bus() -> Iterator[InProcessChatEventBus]:
    bus = InProcessChatEventBus()
    yield bus
    bus.destroy()


@pytest.fixture
def repository(
    store: InMemoryEntityStore,
    fake_time_authority: FakeTimeAuthority,
    bus: InProcessChatEventBus,
):
    """Fully wired repository over an in-memory store and a frozen clock."""
    return create_repository(
        BandgoConfig(environment="development"),
        store=store,
        time_authority=fake_time_authority,
        bus=bus,
    )
