"""Persistence repositories. Re-exports for dependency injection."""

from taskflow.infrastructure.persistence.repositories.hours_repo import (
    HourEntryRepository,
)
from taskflow.infrastructure.persistence.repositories.project_repo import (
    ProjectRepository,
)
from taskflow.infrastructure.persistence.repositories.task_repo import TaskRepository
from taskflow.infrastructure.persistence.repositories.user_repo import UserDirectory

__all__ = [
    "HourEntryRepository",
    "ProjectRepository",
    "TaskRepository",
    "UserDirectory",
]
