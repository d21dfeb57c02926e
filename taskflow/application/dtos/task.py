"""DTOs for tasks (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from taskflow.application.dtos.hours import TimeTrackingSummary
from taskflow.domain.value_objects import Recurrence


@dataclass(frozen=True)
class TaskCreate:
    """Normalized task record ready to insert (output of the validator or a recurrence clone)."""

    title: str
    status: str
    priority: int
    assigned_to: tuple[int, ...]
    description: str | None = None
    project_id: int | None = None
    parent_id: int | None = None
    tags: tuple[str, ...] = ()
    deadline: date | None = None
    recurrence: Recurrence | None = None
    archived: bool = False


@dataclass(frozen=True)
class TaskResult:
    """Stored task. time_tracking is only populated on engine responses."""

    id: int
    title: str
    description: str | None
    status: str
    priority: int
    project_id: int | None
    parent_id: int | None
    assigned_to: tuple[int, ...]
    tags: tuple[str, ...]
    deadline: date | None
    recurrence: Recurrence | None
    archived: bool
    created_at: datetime
    updated_at: datetime
    time_tracking: TimeTrackingSummary | None = None

    @property
    def is_subtask(self) -> bool:
        return self.parent_id is not None
