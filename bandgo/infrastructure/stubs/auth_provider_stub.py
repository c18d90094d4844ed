"""Auth provider stub for local development and testing.

By default every password is accepted, mirroring a local demo deployment
where the only credential check is that the email belongs to a user.
"""

from __future__ import annotations

from bandgo.application.ports.auth_provider import AuthProviderProtocol


class AuthProviderStub(AuthProviderProtocol):
    """Configurable credential verifier.

    Attributes:
        _accept_all: When True, any password is valid.
        _passwords: email -> password, consulted when _accept_all is False.
        verified_emails: Every email passed to verify_credentials, in order.
    """

    def __init__(
        self,
        accept_all: bool = True,
        passwords: dict[str, str] | None = None,
    ) -> None:
        self._accept_all = accept_all
        self._passwords = {k.lower(): v for k, v in (passwords or {}).items()}
        self.verified_emails: list[str] = []

    async def verify_credentials(self, email: str, password: str) -> bool:
        self.verified_emails.append(email)
        if self._accept_all:
            return True
        return self._passwords.get(email.lower()) == password
