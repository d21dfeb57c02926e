"""Deadline sweep: notify on tasks due today, due tomorrow, or overdue."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import TYPE_CHECKING

from taskflow.application.dtos.query import TaskQuery
from taskflow.application.services.assignee_notifier import deadline_notification_type
from taskflow.core.constants import CLOSED_STATUSES
from taskflow.domain.enums import NotificationType
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import add_span_event, traced
from taskflow.shared.utils.datetime import utc_today

if TYPE_CHECKING:
    from taskflow.application.interfaces.repositories import ITaskRepository
    from taskflow.application.services.assignee_notifier import AssigneeNotifier

logger = get_logger(__name__)

# Tasks fetched per store query
SWEEP_BATCH_SIZE = 500


@dataclass
class DeadlineSweepResult:
    """Counts from one sweep run."""

    tasks_checked: int = 0
    impending_notified: int = 0
    overdue_found: int = 0
    overdue_notified: int = 0
    notifications_sent: int = 0
    errors: int = 0


class RunDeadlineSweepUseCase:
    """Finds open, non-archived tasks due by tomorrow and sends deadline notices.

    Each task's dispatch is independent: a failure is counted and logged
    and the sweep moves on.
    """

    def __init__(
        self,
        task_repo: "ITaskRepository",
        notifier: "AssigneeNotifier",
        batch_size: int = SWEEP_BATCH_SIZE,
    ) -> None:
        self._task_repo = task_repo
        self._notifier = notifier
        self._batch_size = batch_size

    @traced("task.deadline_sweep")
    async def execute(self, today: date | None = None) -> DeadlineSweepResult:
        today = today or utc_today()
        result = DeadlineSweepResult()
        query = TaskQuery(
            archived=False,
            deadline_to=today + timedelta(days=1),
            sort_by="id",
            sort_order="asc",
            page=1,
            limit=self._batch_size,
        )
        while True:
            tasks = await self._task_repo.query(query)
            for task in tasks:
                if task.status in CLOSED_STATUSES:
                    continue
                result.tasks_checked += 1
                kind = deadline_notification_type(task.deadline, today)
                if kind is None:
                    continue
                overdue = kind == NotificationType.OVERDUE.value
                if overdue:
                    result.overdue_found += 1
                try:
                    sent = await self._notifier.send_deadline_notice(task, kind)
                except Exception:
                    result.errors += 1
                    logger.exception("Deadline notice for task %s failed", task.id)
                    add_span_event("deadline_notice_failed", {"task_id": task.id})
                    continue
                if sent:
                    result.notifications_sent += sent
                    if overdue:
                        result.overdue_notified += 1
                    else:
                        result.impending_notified += 1
            if len(tasks) < self._batch_size:
                break
            query = replace(query, page=query.page + 1)
        logger.info(
            "Deadline sweep for %s: checked=%d impending=%d overdue=%d/%d sent=%d errors=%d",
            today.isoformat(),
            result.tasks_checked,
            result.impending_notified,
            result.overdue_notified,
            result.overdue_found,
            result.notifications_sent,
            result.errors,
        )
        return result
