"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from taskflow.application.dtos.task import TaskResult


# Notification dispatcher interface
class INotificationDispatcher(Protocol):
    """Protocol for notification creation (DIP). Each method returns how many notifications were created."""

    async def create_assignment_notifications(
        self,
        *,
        task: TaskResult,
        assignee_ids: list[int],
        assigned_by_id: int,
        previous_assignee_ids: list[int],
        current_assignee_ids: list[int],
        notification_type: str,
    ) -> int:
        """Notify users newly assigned to the task (task_assignment or reassignment)."""

    async def create_removal_notifications(
        self,
        *,
        task: TaskResult,
        assignee_ids: list[int],
        removed_by_id: int,
        previous_assignee_ids: list[int],
        current_assignee_ids: list[int],
    ) -> int:
        """Notify users removed from the task."""

    async def create_update_notifications(
        self,
        *,
        task: TaskResult,
        updated_by_id: int,
        changes: list[str],
        assignee_ids: list[int],
    ) -> int:
        """Notify current assignees that the listed fields changed."""

    async def create_deadline_notifications(
        self,
        *,
        task: TaskResult,
        recipient_ids: list[int],
        notification_type: str,
    ) -> int:
        """Notify recipients that the task is due today, tomorrow, or overdue."""


# Side-effect channel interface
class ISideEffectChannel(Protocol):
    """Protocol for best-effort side effects: failures are logged, never raised."""

    @property
    def is_running(self) -> bool:
        """True while effects are queued for later instead of awaited inline."""

    async def submit(self, name: str, effect: Callable[[], Awaitable[object]]) -> None:
        """Run or enqueue the effect; never raises on effect failure."""
