"""Persistence models: ORM entities and mixins."""

from taskflow.infrastructure.persistence.models.mixins import TimestampMixin
from taskflow.infrastructure.persistence.models.task import Task
from taskflow.infrastructure.persistence.models.task_assignee_hours import (
    TaskAssigneeHours,
)

__all__ = [
    "Task",
    "TaskAssigneeHours",
    "TimestampMixin",
]
