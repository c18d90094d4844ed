"""Authorization errors."""

from __future__ import annotations

from bandgo.domain.exceptions import BandgoError


class PermissionDeniedError(BandgoError):
    """Raised when the actor lacks the role or relationship an action needs.

    Attributes:
        actor_id: The user attempting the action (None when anonymous).
        action: Short name of the attempted action.
    """

    def __init__(self, actor_id: str | None, action: str, reason: str = "") -> None:
        self.actor_id = actor_id
        self.action = action
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"{actor_id or 'anonymous'} may not {action}{detail}")


class NotAuthenticatedError(PermissionDeniedError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, action: str) -> None:
        super().__init__(None, action, "no user is signed in")
