"""Notification dispatch: log-only implementation of INotificationDispatcher."""

from __future__ import annotations

import logging

from taskflow.application.dtos.task import TaskResult
from taskflow.core.constants import FIELD_LABELS
from taskflow.domain.enums import NotificationType
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class LogOnlyNotificationDispatcher:
    """Logs notification intents instead of storing or sending them.

    Use when no notification store or transport is wired. Each method
    returns the number of notifications that would have been created.
    """

    def _log(self, kind: str, task: TaskResult, recipients: list[int], **extra: object) -> int:
        if not recipients:
            logger.info("Notify %s: no recipients for task %s, skipping", kind, task.id)
            return 0
        logger.info(
            "Notify %s: task %s (%r) -> %d recipients",
            kind,
            task.id,
            task.title[:80],
            len(recipients),
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Notify %s recipients=%s extra=%s", kind, recipients, extra)
        return len(recipients)

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
        return self._log(
            notification_type,
            task,
            list(assignee_ids),
            assigned_by=assigned_by_id,
            previous=previous_assignee_ids,
            current=current_assignee_ids,
        )

    async def create_removal_notifications(
        self,
        *,
        task: TaskResult,
        assignee_ids: list[int],
        removed_by_id: int,
        previous_assignee_ids: list[int],
        current_assignee_ids: list[int],
    ) -> int:
        return self._log(
            NotificationType.TASK_REMOVAL.value,
            task,
            list(assignee_ids),
            removed_by=removed_by_id,
            previous=previous_assignee_ids,
            current=current_assignee_ids,
        )

    async def create_update_notifications(
        self,
        *,
        task: TaskResult,
        updated_by_id: int,
        changes: list[str],
        assignee_ids: list[int],
    ) -> int:
        labels = [FIELD_LABELS.get(field, field) for field in changes]
        return self._log(
            NotificationType.TASK_UPDATE.value,
            task,
            list(assignee_ids),
            updated_by=updated_by_id,
            fields=labels,
        )

    async def create_deadline_notifications(
        self,
        *,
        task: TaskResult,
        recipient_ids: list[int],
        notification_type: str,
    ) -> int:
        return self._log(
            notification_type,
            task,
            list(recipient_ids),
            deadline=task.deadline.isoformat() if task.deadline else None,
        )
