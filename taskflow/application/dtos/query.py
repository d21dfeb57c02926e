"""DTOs for task listing: validated query and result page."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date

from taskflow.application.dtos.task import TaskResult
from taskflow.core.constants import DEFAULT_SORT_FIELD, DEFAULT_SORT_ORDER


@dataclass(frozen=True)
class VisibilityScope:
    """Tasks a non-global principal may see.

    A task is visible when one of its assignees is in user_ids (the
    principal and, for managers, their subordinates) or when its project is
    in project_ids.
    """

    user_ids: frozenset[int]
    project_ids: frozenset[int] = frozenset()

    def allows(self, task: TaskResult) -> bool:
        if self.user_ids.intersection(task.assigned_to):
            return True
        return task.project_id is not None and task.project_id in self.project_ids


@dataclass(frozen=True)
class TaskQuery:
    """Validated filter, sort and page for a task listing.

    parent_id filters children of one task; top_level_only restricts to
    tasks without a parent. visible_to restricts the result to what one
    principal may see. Filters left as None are not applied.
    """

    status: str | None = None
    priority: int | None = None
    assigned_to: int | None = None
    project_id: int | None = None
    parent_id: int | None = None
    top_level_only: bool = False
    archived: bool | None = False
    deadline_from: date | None = None
    deadline_to: date | None = None
    visible_to: VisibilityScope | None = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = DEFAULT_SORT_ORDER
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class TaskPage:
    tasks: list[TaskResult] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1
