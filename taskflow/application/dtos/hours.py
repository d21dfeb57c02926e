"""DTOs for logged hours and time-tracking summaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class HourEntryResult:
    """Logged hours for one assignee on one task."""

    task_id: int
    user_id: int
    hours: float
    updated_at: datetime | None = None


@dataclass(frozen=True)
class AssigneeHours:
    user_id: int
    hours: float


@dataclass(frozen=True)
class TimeTrackingSummary:
    """Aggregate of logged hours on a task.

    per_assignee is sorted by user_id and includes a zero row for every
    current assignee without an entry.
    """

    total_hours: float
    per_assignee: tuple[AssigneeHours, ...]

    def to_dict(self) -> dict[str, Any]:
        """Serializable form attached to task responses."""
        return {
            "total_hours": self.total_hours,
            "per_assignee": [
                {"user_id": row.user_id, "hours": row.hours} for row in self.per_assignee
            ],
        }
