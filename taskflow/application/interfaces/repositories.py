"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from taskflow.application.dtos.hours import HourEntryResult
    from taskflow.application.dtos.principal import PrincipalResult, ProjectResult
    from taskflow.application.dtos.query import TaskQuery
    from taskflow.application.dtos.task import TaskCreate, TaskResult


# Task repository interface
class ITaskRepository(Protocol):
    """Protocol for the task store (DIP)."""

    async def get_by_id(self, task_id: int) -> TaskResult | None:
        """Return task by ID."""

    async def insert(self, record: TaskCreate) -> TaskResult:
        """Insert one task and return it with its assigned id."""

    async def insert_many(self, records: list[TaskCreate]) -> list[TaskResult]:
        """Bulk insert tasks; results are in input order."""

    async def update_by_id(
        self, task_id: int, changes: dict[str, Any]
    ) -> TaskResult | None:
        """Apply field changes (keys are TaskResult field names). Returns None if the task is gone."""

    async def delete_by_id(self, task_id: int) -> bool:
        """Physically delete a task. Returns False when it did not exist."""

    async def get_subtasks(self, parent_id: int) -> list[TaskResult]:
        """Return direct children of a task (oldest first)."""

    async def query(self, query: TaskQuery) -> list[TaskResult]:
        """Return one sorted page of the tasks matching the query filters."""

    async def count(self, query: TaskQuery) -> int:
        """Return the number of tasks matching the query filters."""


# Project repository interface
class IProjectRepository(Protocol):
    """Protocol for the external project store (DIP)."""

    async def get_by_id(self, project_id: int) -> ProjectResult | None:
        """Return project by ID."""

    async def get_accessible_project_ids(self, user_id: int) -> set[int]:
        """Return ids of projects the user created or manages."""

    async def get_member_project_ids(self, user_id: int) -> set[int]:
        """Return ids of projects the user is a member of."""

    async def is_member(self, project_id: int, user_id: int) -> bool:
        """Return whether the user is a member of the project."""


# User directory interface
class IUserDirectory(Protocol):
    """Protocol for the external user directory (DIP)."""

    async def get_by_id(self, user_id: int) -> PrincipalResult | None:
        """Return user by ID."""

    async def get_many_by_ids(self, user_ids: list[int]) -> list[PrincipalResult]:
        """Return the users that exist among the given ids (any order)."""

    async def get_subordinates(
        self, division: str | None, below_hierarchy: int
    ) -> list[PrincipalResult]:
        """Return users in the division with hierarchy strictly below the given rank."""


# Hour entry repository interface
class IHourEntryRepository(Protocol):
    """Protocol for per-assignee logged hours (DIP)."""

    async def upsert(self, task_id: int, user_id: int, hours: float) -> HourEntryResult:
        """Insert or replace the user's logged hours on the task."""

    async def find_by_task(self, task_id: int) -> list[HourEntryResult]:
        """Return all entries for the task."""
