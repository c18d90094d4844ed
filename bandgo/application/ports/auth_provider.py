"""Auth Provider Protocol - credential verification collaborator.

Session state (who is the current user) lives in the core; deciding whether
a password is right belongs to the external authentication provider.
"""

from abc import ABC, abstractmethod


class AuthProviderProtocol(ABC):
    """Abstract interface for credential verification."""

    @abstractmethod
    async def verify_credentials(self, email: str, password: str) -> bool:
        """Return True if ``password`` is valid for ``email``."""
        ...
