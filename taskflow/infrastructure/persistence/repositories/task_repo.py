"""Task repository: the task store backed by the task table."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.query import TaskQuery, VisibilityScope
from taskflow.application.dtos.task import TaskCreate, TaskResult
from taskflow.domain.value_objects import Recurrence
from taskflow.infrastructure.persistence.models.task import Task
from taskflow.shared.utils.datetime import ensure_utc


def _to_result(t: Task) -> TaskResult:
    """Map Task ORM to TaskResult DTO."""
    recurrence = None
    if t.recurrence_freq:
        recurrence = Recurrence(
            freq=t.recurrence_freq,
            interval=t.recurrence_interval or 1,
            series_id=t.recurrence_series_id,
        )
    return TaskResult(
        id=t.id,
        title=t.title,
        description=t.description,
        status=t.status,
        priority=t.priority,
        project_id=t.project_id,
        parent_id=t.parent_id,
        assigned_to=tuple(t.assigned_to or ()),
        tags=tuple(t.tags or ()),
        deadline=t.deadline,
        recurrence=recurrence,
        archived=t.archived,
        created_at=ensure_utc(t.created_at),
        updated_at=ensure_utc(t.updated_at),
    )


def _to_columns(values: Mapping[str, Any]) -> dict[str, Any]:
    """Translate DTO field names to column values (recurrence spans three columns)."""
    columns: dict[str, Any] = {}
    for key, value in values.items():
        if key == "recurrence":
            columns["recurrence_freq"] = value.freq.value if value else None
            columns["recurrence_interval"] = value.interval if value else None
            columns["recurrence_series_id"] = value.series_id if value else None
        elif key in ("assigned_to", "tags"):
            columns[key] = list(value or ())
        else:
            columns[key] = value
    return columns


def _record_columns(record: TaskCreate) -> dict[str, Any]:
    return _to_columns(
        {
            "title": record.title,
            "description": record.description,
            "status": record.status,
            "priority": record.priority,
            "project_id": record.project_id,
            "parent_id": record.parent_id,
            "assigned_to": record.assigned_to,
            "tags": record.tags,
            "deadline": record.deadline,
            "recurrence": record.recurrence,
            "archived": record.archived,
        }
    )


def _visible_clause(scope: VisibilityScope) -> ColumnElement[bool]:
    """Assigned to one of the scope users, or inside one of its projects."""
    clause = Task.assigned_to.overlap(sorted(scope.user_ids))
    if scope.project_ids:
        clause = or_(clause, Task.project_id.in_(sorted(scope.project_ids)))
    return clause


def _filters(query: TaskQuery) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []
    if query.status is not None:
        clauses.append(Task.status == query.status)
    if query.priority is not None:
        clauses.append(Task.priority == query.priority)
    if query.assigned_to is not None:
        clauses.append(Task.assigned_to.contains([query.assigned_to]))
    if query.project_id is not None:
        clauses.append(Task.project_id == query.project_id)
    if query.parent_id is not None:
        clauses.append(Task.parent_id == query.parent_id)
    elif query.top_level_only:
        clauses.append(Task.parent_id.is_(None))
    if query.archived is not None:
        clauses.append(Task.archived.is_(query.archived))
    if query.deadline_from is not None:
        clauses.append(Task.deadline >= query.deadline_from)
    if query.deadline_to is not None:
        clauses.append(Task.deadline <= query.deadline_to)
    if query.visible_to is not None:
        clauses.append(_visible_clause(query.visible_to))
    return clauses


class TaskRepository:
    """Task repository. Implements ITaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, task_id: int) -> TaskResult | None:
        task = await self.db.get(Task, task_id)
        return _to_result(task) if task else None

    async def insert(self, record: TaskCreate) -> TaskResult:
        task = Task(**_record_columns(record))
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return _to_result(task)

    async def insert_many(self, records: list[TaskCreate]) -> list[TaskResult]:
        tasks = [Task(**_record_columns(r)) for r in records]
        self.db.add_all(tasks)
        await self.db.flush()
        for task in tasks:
            await self.db.refresh(task)
        return [_to_result(t) for t in tasks]

    async def update_by_id(
        self, task_id: int, changes: dict[str, Any]
    ) -> TaskResult | None:
        task = await self.db.get(Task, task_id)
        if task is None:
            return None
        for column, value in _to_columns(changes).items():
            setattr(task, column, value)
        await self.db.flush()
        await self.db.refresh(task)
        return _to_result(task)

    async def delete_by_id(self, task_id: int) -> bool:
        result = await self.db.execute(delete(Task).where(Task.id == task_id))
        return (result.rowcount or 0) > 0

    async def get_subtasks(self, parent_id: int) -> list[TaskResult]:
        result = await self.db.execute(
            select(Task).where(Task.parent_id == parent_id).order_by(Task.id)
        )
        return [_to_result(t) for t in result.scalars().all()]

    def _select(self, query: TaskQuery) -> Select[tuple[Task]]:
        sort_column = getattr(Task, query.sort_by)
        order = sort_column.asc() if query.sort_order == "asc" else sort_column.desc()
        return select(Task).where(*_filters(query)).order_by(order, Task.id.asc())

    async def query(self, query: TaskQuery) -> list[TaskResult]:
        stmt = self._select(query).offset(query.offset).limit(query.limit)
        result = await self.db.execute(stmt)
        return [_to_result(t) for t in result.scalars().all()]

    async def count(self, query: TaskQuery) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Task).where(*_filters(query))
        )
        return int(result.scalar_one())
