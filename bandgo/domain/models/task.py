"""Band workspace task model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TaskType(Enum):
    UPLOAD_DEMOS = "UPLOAD_DEMOS"
    COMPLETE_PROFILE = "COMPLETE_PROFILE"
    OTHER = "OTHER"


class TaskStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True, eq=True)
class Task:
    """A to-do item on a band's workspace."""

    id: str
    band_id: str
    title: str
    created_at: datetime
    type: TaskType = field(default=TaskType.OTHER)
    status: TaskStatus = field(default=TaskStatus.PENDING)
    description: str | None = field(default=None)
    assigned_to: str | None = field(default=None)
    completed_at: datetime | None = field(default=None)


TASK_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "type", "status", "description", "assigned_to"}
)
