"""Hour entry repository: per-assignee logged hours (task_assignee_hours)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.hours import HourEntryResult
from taskflow.infrastructure.persistence.models.task_assignee_hours import (
    TaskAssigneeHours,
)
from taskflow.shared.utils.datetime import ensure_utc, utc_now


def _to_result(row: TaskAssigneeHours) -> HourEntryResult:
    return HourEntryResult(
        task_id=row.task_id,
        user_id=row.user_id,
        hours=float(row.hours),
        updated_at=ensure_utc(row.updated_at),
    )


class HourEntryRepository:
    """Implements IHourEntryRepository with an INSERT ... ON CONFLICT upsert."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def upsert(self, task_id: int, user_id: int, hours: float) -> HourEntryResult:
        now = utc_now()
        stmt = (
            insert(TaskAssigneeHours)
            .values(task_id=task_id, user_id=user_id, hours=hours, updated_at=now)
            .on_conflict_do_update(
                index_elements=[TaskAssigneeHours.task_id, TaskAssigneeHours.user_id],
                set_={"hours": hours, "updated_at": now},
            )
            .returning(TaskAssigneeHours)
        )
        result = await self.db.execute(stmt)
        return _to_result(result.scalar_one())

    async def find_by_task(self, task_id: int) -> list[HourEntryResult]:
        result = await self.db.execute(
            select(TaskAssigneeHours)
            .where(TaskAssigneeHours.task_id == task_id)
            .order_by(TaskAssigneeHours.user_id)
        )
        return [_to_result(r) for r in result.scalars().all()]
