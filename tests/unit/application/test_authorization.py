"""Unit tests for the shared role gates."""

from __future__ import annotations

import pytest

from bandgo.application.services.authorization import require_admin, require_privileged
from bandgo.domain.errors import PermissionDeniedError
from bandgo.domain.models import UserRole
from tests.helpers import seed_users


@pytest.fixture(autouse=True)
def _users(store) -> None:
    for role in UserRole:
        seed_users(store, role.value, role=role)


class TestRequirePrivileged:
    @pytest.mark.parametrize("actor_id", ["admin", "staff", "moderator"])
    @pytest.mark.asyncio
    async def test_privileged_roles_pass(self, store, actor_id: str) -> None:
        async with store.transaction() as uow:
            actor = await require_privileged(uow, actor_id, "approve rehearsal")

        assert actor.id == actor_id

    @pytest.mark.parametrize("actor_id", ["user", "banned", "ghost"])
    @pytest.mark.asyncio
    async def test_others_denied(self, store, actor_id: str) -> None:
        with pytest.raises(PermissionDeniedError) as exc_info:
            async with store.transaction() as uow:
                await require_privileged(uow, actor_id, "approve rehearsal")

        assert exc_info.value.action == "approve rehearsal"


class TestRequireAdmin:
    @pytest.mark.asyncio
    async def test_admin_passes(self, store) -> None:
        async with store.transaction() as uow:
            actor = await require_admin(uow, "admin", "delete user")

        assert actor.role is UserRole.ADMIN

    @pytest.mark.parametrize("actor_id", ["staff", "moderator", "user"])
    @pytest.mark.asyncio
    async def test_non_admins_denied(self, store, actor_id: str) -> None:
        with pytest.raises(PermissionDeniedError):
            async with store.transaction() as uow:
                await require_admin(uow, actor_id, "delete user")
