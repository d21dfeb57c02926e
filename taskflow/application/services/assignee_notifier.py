"""Assignee diff and notification routing.

Decides which notifications a create or update produces and hands each
batch to the side-effect channel. Dispatch failures never reach the caller.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from taskflow.application.dtos.task import TaskResult
from taskflow.application.interfaces.repositories import IProjectRepository
from taskflow.application.interfaces.services import (
    INotificationDispatcher,
    ISideEffectChannel,
)
from taskflow.core.constants import TRACKED_UPDATE_FIELDS
from taskflow.domain.enums import NotificationType
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AssigneeDiff:
    added: tuple[int, ...]
    removed: tuple[int, ...]

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def diff_assignees(previous: Iterable[int], current: Iterable[int]) -> AssigneeDiff:
    """Set difference of two assignee collections (order-insensitive)."""
    before, after = set(previous), set(current)
    return AssigneeDiff(
        added=tuple(sorted(after - before)),
        removed=tuple(sorted(before - after)),
    )


def _comparable(field: str, value: Any) -> Any:
    if field == "description":
        return value or None
    if field == "tags":
        return tuple(value or ())
    if field == "recurrence":
        return None if value is None else (value.freq, value.interval)
    return value


def changed_fields(previous: TaskResult, updated: TaskResult) -> list[str]:
    """Names of tracked fields whose normalized values differ."""
    return [
        field
        for field in TRACKED_UPDATE_FIELDS
        if _comparable(field, getattr(previous, field))
        != _comparable(field, getattr(updated, field))
    ]


def deadline_notification_type(deadline: date | None, today: date) -> str | None:
    """deadline_today / deadline_tomorrow when due soon, overdue when past, else None."""
    if deadline is None:
        return None
    if deadline == today:
        return NotificationType.DEADLINE_TODAY.value
    if deadline == today + timedelta(days=1):
        return NotificationType.DEADLINE_TOMORROW.value
    if deadline < today:
        return NotificationType.OVERDUE.value
    return None


class AssigneeNotifier:
    """Notification trigger for task mutations."""

    def __init__(
        self,
        dispatcher: INotificationDispatcher,
        channel: ISideEffectChannel,
        project_repo: IProjectRepository | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.channel = channel
        self.project_repo = project_repo

    async def notify_created(self, task: TaskResult, creator_id: int) -> None:
        """Every initial assignee gets a task_assignment notification."""
        if not task.assigned_to:
            return
        assignees = list(task.assigned_to)

        async def _send() -> None:
            count = await self.dispatcher.create_assignment_notifications(
                task=task,
                assignee_ids=assignees,
                assigned_by_id=creator_id,
                previous_assignee_ids=[],
                current_assignee_ids=assignees,
                notification_type=NotificationType.TASK_ASSIGNMENT.value,
            )
            logger.info("Task %s: %d assignment notifications created", task.id, count)

        await self.channel.submit(f"task_assignment:{task.id}", _send)

    async def notify_updated(
        self,
        previous: TaskResult,
        updated: TaskResult,
        changes: Mapping[str, Any],
        updated_by_id: int,
    ) -> None:
        """Route an update to the assignment/removal path or the task_update path.

        The two paths are exclusive: when the assignee set changed only the
        reassignment and removal batches are sent.
        """
        if "assigned_to" in changes:
            diff = diff_assignees(previous.assigned_to, updated.assigned_to)
            if diff.changed:
                await self._notify_assignee_diff(previous, updated, diff, updated_by_id)
                return
        fields = changed_fields(previous, updated)
        if not fields:
            return
        assignees = list(updated.assigned_to)

        async def _send() -> None:
            await self.dispatcher.create_update_notifications(
                task=updated,
                updated_by_id=updated_by_id,
                changes=fields,
                assignee_ids=assignees,
            )

        await self.channel.submit(f"task_update:{updated.id}", _send)

    async def _notify_assignee_diff(
        self,
        previous: TaskResult,
        updated: TaskResult,
        diff: AssigneeDiff,
        updated_by_id: int,
    ) -> None:
        before = list(previous.assigned_to)
        after = list(updated.assigned_to)
        if diff.added:

            async def _send_added() -> None:
                await self.dispatcher.create_assignment_notifications(
                    task=updated,
                    assignee_ids=list(diff.added),
                    assigned_by_id=updated_by_id,
                    previous_assignee_ids=before,
                    current_assignee_ids=after,
                    notification_type=NotificationType.REASSIGNMENT.value,
                )

            await self.channel.submit(f"reassignment:{updated.id}", _send_added)
        if diff.removed:

            async def _send_removed() -> None:
                await self.dispatcher.create_removal_notifications(
                    task=updated,
                    assignee_ids=list(diff.removed),
                    removed_by_id=updated_by_id,
                    previous_assignee_ids=before,
                    current_assignee_ids=after,
                )

            await self.channel.submit(f"task_removal:{updated.id}", _send_removed)

    async def notify_deadline(self, task: TaskResult, today: date) -> None:
        """Notify assignees and the project creator when the task is due today or tomorrow.

        Recipients are resolved here, on the caller's stores; only the
        dispatch goes through the channel.
        """
        kind = deadline_notification_type(task.deadline, today)
        if kind not in (
            NotificationType.DEADLINE_TODAY.value,
            NotificationType.DEADLINE_TOMORROW.value,
        ):
            return
        try:
            recipients = await self.deadline_recipients(task)
        except Exception:
            logger.exception("Task %s: could not resolve %s recipients", task.id, kind)
            return
        if not recipients:
            return

        async def _send() -> None:
            await self.dispatcher.create_deadline_notifications(
                task=task, recipient_ids=recipients, notification_type=kind
            )

        await self.channel.submit(f"{kind}:{task.id}", _send)

    async def deadline_recipients(self, task: TaskResult) -> list[int]:
        """Assignees plus the project creator, without duplicates."""
        recipients = list(task.assigned_to)
        if self.project_repo is not None and task.project_id is not None:
            project = await self.project_repo.get_by_id(task.project_id)
            if project is not None and project.creator_id is not None:
                recipients.append(project.creator_id)
        return list(dict.fromkeys(recipients))

    async def send_deadline_notice(self, task: TaskResult, kind: str) -> int:
        """Dispatch one deadline notification batch; raises on dispatcher failure."""
        recipients = await self.deadline_recipients(task)
        if not recipients:
            return 0
        return await self.dispatcher.create_deadline_notifications(
            task=task, recipient_ids=recipients, notification_type=kind
        )
