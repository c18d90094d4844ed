"""In-memory stub adapters for development and testing."""

from bandgo.infrastructure.stubs.auth_provider_stub import AuthProviderStub
from bandgo.infrastructure.stubs.in_memory_entity_store import InMemoryEntityStore

__all__: list[str] = ["AuthProviderStub", "InMemoryEntityStore"]
