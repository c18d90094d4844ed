"""Role checks shared by the managers.

Authorization policy proper belongs to the UI's collaborators; the core
only enforces the role and relationship gates its operations depend on.
"""

from __future__ import annotations

from bandgo.application.ports.entity_store import EntityKind, UnitOfWork
from bandgo.domain.errors import PermissionDeniedError
from bandgo.domain.models import User, UserRole


async def require_privileged(uow: UnitOfWork, actor_id: str, action: str) -> User:
    """Return the actor if they hold an admin, staff or moderator role.

    Raises:
        PermissionDeniedError: If the actor is unknown or not privileged.
    """
    actor = await uow.get(EntityKind.USER, actor_id)
    if actor is None or not actor.role.is_privileged():
        raise PermissionDeniedError(
            actor_id, action, "requires admin, staff or moderator role"
        )
    return actor


async def require_admin(uow: UnitOfWork, actor_id: str, action: str) -> User:
    """Return the actor if they are an admin.

    Raises:
        PermissionDeniedError: If the actor is unknown or not an admin.
    """
    actor = await uow.get(EntityKind.USER, actor_id)
    if actor is None or actor.role is not UserRole.ADMIN:
        raise PermissionDeniedError(actor_id, action, "requires admin role")
    return actor
