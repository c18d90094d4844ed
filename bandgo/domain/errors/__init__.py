"""Domain errors for bandgo.

All exceptions inherit from BandgoError.
"""

from bandgo.domain.errors.capacity import CapacityExceededError
from bandgo.domain.errors.concurrent_modification import ConcurrentModificationError
from bandgo.domain.errors.not_found import MembershipNotFoundError, NotFoundError
from bandgo.domain.errors.permission import NotAuthenticatedError, PermissionDeniedError
from bandgo.domain.errors.state_transition import (
    InvalidStateError,
    InvalidStateTransitionError,
    NotEligibleError,
)
from bandgo.domain.errors.validation import ValidationError

__all__: list[str] = [
    "CapacityExceededError",
    "ConcurrentModificationError",
    "InvalidStateError",
    "InvalidStateTransitionError",
    "MembershipNotFoundError",
    "NotAuthenticatedError",
    "NotEligibleError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
]
