"""Identity and session manager.

Resolves who the current user is and owns profile reads and edits.
Credential checks are delegated to an AuthProviderProtocol; the core only
maps an authenticated email to a User record.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from bandgo.application.ports.auth_provider import AuthProviderProtocol
from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    lock_key,
)
from bandgo.application.ports.time_authority import TimeAuthorityProtocol
from bandgo.application.services.base import LoggingMixin, require
from bandgo.domain.errors import (
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from bandgo.domain.models import User, UserRole
from bandgo.domain.models.patching import apply_patch, new_entity_id, require_text
from bandgo.domain.models.user import PROFILE_EDITABLE_FIELDS


class SessionService(LoggingMixin):
    """Tracks the signed-in user and serves user lookups."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        auth_provider: AuthProviderProtocol,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._store = store
        self._auth = auth_provider
        self._time = time_authority
        self._current_user_id: str | None = None
        self._init_logger(component="session")

    @property
    def current_user_id(self) -> str | None:
        return self._current_user_id

    async def get_current_user(self) -> User | None:
        """Return the signed-in user, or None.

        A session whose user has since been deleted resolves to None and is
        cleared.
        """
        if self._current_user_id is None:
            return None
        user = await self._store.get(EntityKind.USER, self._current_user_id)
        if user is None:
            self._log.info("session_user_vanished", user_id=self._current_user_id)
            self._current_user_id = None
        return user

    async def require_current_user(self, action: str) -> User:
        """Return the signed-in user.

        Raises:
            NotAuthenticatedError: If nobody is signed in.
        """
        user = await self.get_current_user()
        if user is None:
            raise NotAuthenticatedError(action)
        return user

    async def register_user(
        self,
        display_name: str,
        email: str,
        *,
        role: UserRole = UserRole.USER,
        **profile: Any,
    ) -> User:
        """Create a user record for a newly registered account.

        Raises:
            ValidationError: If the name is empty, the email is taken, or a
                profile field is not editable.
        """
        require_text(display_name, "display_name")
        require_text(email, "email")
        log = self._log_operation("register_user", email=email)
        log.debug("register_user_started")

        now = self._time.now()
        async with self._store.transaction(lock_key(EntityKind.USER, email.lower())) as uow:
            if self._find_by_email(await uow.list_all(EntityKind.USER), email):
                log.warning("register_user_rejected", reason="email_taken")
                raise ValidationError(f"email already registered: {email}", field="email")
            user = User(
                id=new_entity_id(),
                display_name=display_name,
                email=email,
                role=role,
                created_at=now,
                updated_at=now,
            )
            if profile:
                user = apply_patch(user, profile, PROFILE_EDITABLE_FIELDS)
            await uow.put(EntityKind.USER, user)

        log.info("user_registered", user_id=user.id)
        return user

    async def sign_in(self, email: str, password: str) -> User:
        """Authenticate and make the matching user current.

        Raises:
            NotFoundError: If no user has this email.
            PermissionDeniedError: If the user is banned or the credentials
                are rejected.
        """
        log = self._log_operation("sign_in", email=email)
        user = self._find_by_email(await self._store.list_all(EntityKind.USER), email)
        if user is None:
            log.warning("sign_in_rejected", reason="unknown_email")
            raise NotFoundError("user", email)
        if user.is_banned:
            log.warning("sign_in_rejected", reason="banned", user_id=user.id)
            raise PermissionDeniedError(user.id, "sign in", "account is banned")
        if not await self._auth.verify_credentials(email, password):
            log.warning("sign_in_rejected", reason="invalid_credentials", user_id=user.id)
            raise PermissionDeniedError(user.id, "sign in", "invalid credentials")

        self._current_user_id = user.id
        log.info("signed_in", user_id=user.id)
        return user

    async def sign_out(self) -> None:
        if self._current_user_id is not None:
            self._log.info("signed_out", user_id=self._current_user_id)
        self._current_user_id = None

    async def update_profile(self, user_id: str, patch: Mapping[str, Any]) -> User:
        """Apply a partial profile update.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: If the patch touches a non-profile field.
        """
        log = self._log_operation("update_profile", user_id=user_id, fields=sorted(patch))
        log.debug("update_profile_started")
        if "display_name" in patch:
            require_text(patch["display_name"], "display_name")

        async with self._store.transaction(lock_key(EntityKind.USER, user_id)) as uow:
            user = await require(uow, EntityKind.USER, user_id, "user")
            updated = apply_patch(
                user, patch, PROFILE_EDITABLE_FIELDS, updated_at=self._time.now()
            )
            await uow.put(EntityKind.USER, updated)

        log.info("profile_updated")
        return updated

    async def get_user(self, user_id: str) -> User:
        user = await self._store.get(EntityKind.USER, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    async def get_all_users(self) -> list[User]:
        return await self._store.list_all(EntityKind.USER)

    async def get_users_by_ids(self, user_ids: Iterable[str]) -> list[User]:
        """Return the users that exist, in the order of ``user_ids``."""
        users = []
        for user_id in user_ids:
            user = await self._store.get(EntityKind.USER, user_id)
            if user is not None:
                users.append(user)
        return users

    async def search_users(self, query: str) -> list[User]:
        """Case-insensitive match on display name or email."""
        if not query.strip():
            return []
        return [u for u in await self._store.list_all(EntityKind.USER) if u.matches(query.strip())]

    @staticmethod
    def _find_by_email(users: list[User], email: str) -> User | None:
        wanted = email.strip().lower()
        return next(
            (u for u in users if u.email is not None and u.email.lower() == wanted),
            None,
        )
