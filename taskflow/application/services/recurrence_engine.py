"""Recurrence engine: spawns the next task of a series when one completes.

Each spawn is a fresh insert. Tasks of one series share recurrence.series_id;
the completed task is only touched once, to store a newly generated series id.

The lifecycle engine reaches the engine through a RecurrenceScope. The
default scope reuses the request's stores; a queued side effect needs a
scope that opens (and commits) its own unit of work.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import date

from taskflow.application.dtos.task import TaskCreate, TaskResult
from taskflow.application.interfaces.repositories import ITaskRepository
from taskflow.domain.enums import RecurrenceFrequency, TaskStatus
from taskflow.domain.value_objects import Recurrence
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import add_span_event
from taskflow.shared.utils.datetime import add_days, add_months, parse_calendar_date
from taskflow.shared.utils.generators import generate_series_id

logger = get_logger(__name__)


def next_deadline(deadline: date | str | None, recurrence: Recurrence) -> date | None:
    """Advance a deadline by one recurrence step. Missing or unreadable deadlines give None."""
    if deadline is None:
        return None
    try:
        current = parse_calendar_date(deadline)
    except ValueError:
        return None
    if recurrence.freq == RecurrenceFrequency.DAILY:
        return add_days(current, recurrence.interval)
    if recurrence.freq == RecurrenceFrequency.WEEKLY:
        return add_days(current, 7 * recurrence.interval)
    return add_months(current, recurrence.interval)


def completes_recurring_task(previous: TaskResult, updated: TaskResult) -> bool:
    """True only on the transition into completed while recurrence is set."""
    return (
        previous.status != TaskStatus.COMPLETED.value
        and updated.status == TaskStatus.COMPLETED.value
        and updated.recurrence is not None
    )


class RecurrenceEngine:
    """Clones a completed recurring task and its subtasks."""

    def __init__(self, task_repo: ITaskRepository) -> None:
        self.task_repo = task_repo

    async def _ensure_series(self, task: TaskResult, recurrence: Recurrence) -> Recurrence:
        if recurrence.series_id:
            return recurrence
        series = recurrence.with_series_id(generate_series_id())
        try:
            await self.task_repo.update_by_id(task.id, {"recurrence": series})
        except Exception:
            logger.exception(
                "Could not store series id %s on task %s", series.series_id, task.id
            )
        return series

    async def spawn_next(self, task: TaskResult) -> TaskResult | None:
        """Insert the successor of a completed recurring task plus clones of its subtasks.

        Returns the new parent task, or None if it could not be inserted.
        Insert failures are logged, never raised.
        """
        if task.recurrence is None:
            return None
        series = await self._ensure_series(task, task.recurrence)
        try:
            successor = await self.task_repo.insert(
                TaskCreate(
                    title=task.title,
                    description=task.description,
                    status=TaskStatus.PENDING.value,
                    priority=task.priority,
                    assigned_to=task.assigned_to,
                    tags=task.tags,
                    project_id=task.project_id,
                    parent_id=None,
                    deadline=next_deadline(task.deadline, series),
                    recurrence=series,
                )
            )
        except Exception:
            logger.exception("Failed to spawn next occurrence of task %s", task.id)
            return None
        logger.info(
            "Task %s completed; spawned task %s in series %s",
            task.id,
            successor.id,
            series.series_id,
        )
        add_span_event(
            "recurrence_spawned",
            {"task_id": successor.id, "series_id": series.series_id or ""},
        )
        try:
            subtasks = await self.task_repo.get_subtasks(task.id)
            if subtasks:
                clones = await self.task_repo.insert_many(
                    [
                        TaskCreate(
                            title=child.title,
                            description=child.description,
                            status=TaskStatus.PENDING.value,
                            priority=child.priority,
                            assigned_to=child.assigned_to,
                            tags=child.tags,
                            project_id=successor.project_id,
                            parent_id=successor.id,
                            deadline=next_deadline(child.deadline, series),
                            recurrence=series,
                        )
                        for child in subtasks
                    ]
                )
                logger.info("Cloned %d subtasks under task %s", len(clones), successor.id)
        except Exception:
            logger.exception("Failed to clone subtasks of task %s", task.id)
        return successor


RecurrenceScope = Callable[[], AbstractAsyncContextManager[RecurrenceEngine]]


def bound_scope(engine: RecurrenceEngine) -> RecurrenceScope:
    """Scope that always yields the given engine (the caller's own stores)."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[RecurrenceEngine]:
        yield engine

    return scope
