"""Hours ledger: per-assignee logged time on tasks."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from taskflow.application.dtos.hours import (
    AssigneeHours,
    HourEntryResult,
    TimeTrackingSummary,
)
from taskflow.application.interfaces.repositories import IHourEntryRepository
from taskflow.core.config import Settings, get_settings
from taskflow.core.constants import HOURS_INPUT_KEYS, HOURS_PRECISION
from taskflow.domain.exceptions import AuthorizationException, ValidationException
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class HoursLedger:
    """Records and summarizes hours. One entry per (task, user); recording replaces it."""

    def __init__(
        self,
        hour_repo: IHourEntryRepository,
        settings: Settings | None = None,
    ) -> None:
        self.hour_repo = hour_repo
        self.settings = settings or get_settings()

    def normalize_hours(self, value: Any, field: str = "hours") -> float:
        """Return hours rounded to 2 decimals.

        Raises:
            ValidationException: If not a finite non-negative number within the entry cap.
        """
        number: float | None = None
        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                number = None
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            number = float(value)
        if number is None or not math.isfinite(number) or number < 0:
            raise ValidationException("Hours must be a non-negative number", field=field)
        if number > self.settings.max_entry_hours:
            raise ValidationException(
                f"Hours cannot exceed {self.settings.max_entry_hours:g}", field=field
            )
        return round(number, HOURS_PRECISION)

    def extract_hours(self, raw: Mapping[str, Any]) -> float | None:
        """Read logged hours from update input ("hours", else legacy "time_spent_hours").

        A key whose value is None or blank counts as absent. Returns None
        when no hours were supplied.
        """
        for key in HOURS_INPUT_KEYS:
            value = raw.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            return self.normalize_hours(value, field=key)
        return None

    def ensure_can_record(self, assignee_ids: Iterable[int], user_id: int) -> None:
        """Only assignees may record hours on a task."""
        if user_id not in set(assignee_ids):
            raise AuthorizationException(resource="task", action="log hours")

    async def record_hours(
        self, task_id: int, user_id: int, hours: float
    ) -> HourEntryResult:
        """Store the user's logged hours on the task, replacing any previous value."""
        entry = await self.hour_repo.upsert(
            task_id, user_id, round(hours, HOURS_PRECISION)
        )
        logger.info("Recorded %.2f hours for user %s on task %s", entry.hours, user_id, task_id)
        return entry

    async def get_summary(
        self, task_id: int, assignee_ids: Iterable[int]
    ) -> TimeTrackingSummary:
        """Summarize logged hours; every assignee appears, zero-filled, sorted by user id."""
        by_user: dict[int, float] = {
            entry.user_id: round(float(entry.hours), HOURS_PRECISION)
            for entry in await self.hour_repo.find_by_task(task_id)
        }
        for user_id in assignee_ids:
            by_user.setdefault(user_id, 0.0)
        return TimeTrackingSummary(
            total_hours=round(sum(by_user.values()), HOURS_PRECISION),
            per_assignee=tuple(
                AssigneeHours(user_id=user_id, hours=hours)
                for user_id, hours in sorted(by_user.items())
            ),
        )
