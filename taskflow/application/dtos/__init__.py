"""Application DTOs (no ORM dependency)."""

from taskflow.application.dtos.hours import (
    AssigneeHours,
    HourEntryResult,
    TimeTrackingSummary,
)
from taskflow.application.dtos.principal import PrincipalResult, ProjectResult
from taskflow.application.dtos.query import TaskPage, TaskQuery
from taskflow.application.dtos.task import TaskCreate, TaskResult

__all__ = [
    "AssigneeHours",
    "HourEntryResult",
    "PrincipalResult",
    "ProjectResult",
    "TaskCreate",
    "TaskPage",
    "TaskQuery",
    "TaskResult",
    "TimeTrackingSummary",
]
