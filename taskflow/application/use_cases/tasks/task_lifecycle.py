"""Task lifecycle engine: create, update, read, list, archive and delete tasks.

A mutation runs validator -> access control -> field patch -> hours record
-> summary read -> notifications -> recurrence. The phases are not wrapped
in a transaction: a committed patch stays committed if a later phase fails.
Notifications and recurrence cloning go through the side-effect channel
and never fail the mutation. Recurrence runs inside recurrence_scope, which
must open its own unit of work when the channel defers effects past the
request.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date
from typing import Any

from taskflow.application.dtos.hours import TimeTrackingSummary
from taskflow.application.dtos.principal import PrincipalResult
from taskflow.application.dtos.query import TaskPage
from taskflow.application.dtos.task import TaskResult
from taskflow.application.interfaces.repositories import (
    IHourEntryRepository,
    IProjectRepository,
    ITaskRepository,
    IUserDirectory,
)
from taskflow.application.interfaces.services import (
    INotificationDispatcher,
    ISideEffectChannel,
)
from taskflow.application.services.access_control import AccessControlFilter
from taskflow.application.services.assignee_notifier import AssigneeNotifier
from taskflow.application.services.hours_ledger import HoursLedger
from taskflow.application.services.recurrence_engine import (
    RecurrenceEngine,
    RecurrenceScope,
    bound_scope,
    completes_recurring_task,
)
from taskflow.application.services.side_effects import SideEffectChannel
from taskflow.application.services.task_validator import TaskValidator
from taskflow.core.config import Settings, get_settings
from taskflow.domain.exceptions import ResourceNotFoundException, ValidationException
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import add_span_attributes, traced
from taskflow.shared.utils.datetime import utc_today

logger = get_logger(__name__)


class TaskLifecycleEngine:
    """Entry point for task operations on behalf of a resolved principal."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        project_repo: IProjectRepository,
        user_directory: IUserDirectory,
        hour_repo: IHourEntryRepository,
        dispatcher: INotificationDispatcher,
        channel: ISideEffectChannel | None = None,
        settings: Settings | None = None,
        today: Callable[[], date] = utc_today,
        recurrence_scope: RecurrenceScope | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.task_repo = task_repo
        self.channel = channel or SideEffectChannel(settings.side_effect_queue_size)
        self.validator = TaskValidator(task_repo, project_repo, settings, today)
        self.access = AccessControlFilter(project_repo, user_directory, settings)
        self.hours = HoursLedger(hour_repo, settings)
        self.notifier = AssigneeNotifier(dispatcher, self.channel, project_repo)
        self.recurrence = RecurrenceEngine(task_repo)
        self.recurrence_scope = recurrence_scope or bound_scope(self.recurrence)
        self._today = today

    async def _get_or_404(self, task_id: int) -> TaskResult:
        task = await self.task_repo.get_by_id(task_id)
        if task is None:
            raise ResourceNotFoundException("task", task_id)
        return task

    async def _with_time_tracking(self, task: TaskResult) -> TaskResult:
        summary = await self.hours.get_summary(task.id, task.assigned_to)
        return replace(task, time_tracking=summary)

    @traced("task.create")
    async def create_task(
        self, raw: Mapping[str, Any], principal: PrincipalResult
    ) -> TaskResult:
        """Create a task; the creating principal is always an assignee.

        Raises:
            ValidationException: Invalid input (e.g. more than 5 assignees).
            ResourceNotFoundException: Unknown parent task or project.
            AuthorizationException: Inactive project or no access to it.
        """
        record, project = await self.validator.normalize_create(raw, principal.id)
        await self.access.require_create(project, principal)
        task = await self.task_repo.insert(record)
        add_span_attributes(task_id=task.id)
        logger.info(
            "Task %s created by user %s (project=%s, assignees=%s)",
            task.id,
            principal.id,
            task.project_id,
            list(task.assigned_to),
        )
        response = await self._with_time_tracking(task)
        await self.notifier.notify_created(task, principal.id)
        await self.notifier.notify_deadline(task, self._today())
        return response

    @traced("task.update")
    async def update_task(
        self,
        task_id: int,
        raw: Mapping[str, Any],
        principal: PrincipalResult,
    ) -> TaskResult:
        """Patch a task, optionally logging the principal's hours on it.

        All validation and permission checks happen before the first write.

        Raises:
            ResourceNotFoundException: Unknown task.
            ImmutableFieldException: project_id or parent_id would change.
            ValidationException: Invalid input, invalid hours, or nothing to update.
            AuthorizationException: No edit access, or logging hours as a non-assignee.
        """
        stored = await self._get_or_404(task_id)
        changes = self.validator.normalize_update(raw, stored)
        hours = self.hours.extract_hours(raw)
        if not changes and hours is None:
            raise ValidationException("At least one field to update is required")
        await self.access.require_edit(stored, principal)
        if hours is not None:
            self.hours.ensure_can_record(
                changes.get("assigned_to", stored.assigned_to), principal.id
            )

        updated = stored
        if changes:
            result = await self.task_repo.update_by_id(task_id, changes)
            if result is None:
                raise ResourceNotFoundException("task", task_id)
            updated = result
            logger.info(
                "Task %s updated by user %s: %s", task_id, principal.id, sorted(changes)
            )
        if hours is not None:
            await self.hours.record_hours(task_id, principal.id, hours)

        response = await self._with_time_tracking(updated)
        await self.notifier.notify_updated(stored, updated, changes, principal.id)
        if "deadline" in changes:
            await self.notifier.notify_deadline(updated, self._today())
        if completes_recurring_task(stored, updated):

            async def _spawn() -> None:
                async with self.recurrence_scope() as recurrence:
                    await recurrence.spawn_next(updated)

            await self.channel.submit(f"recurrence:{task_id}", _spawn)
        return response

    @traced("task.get")
    async def get_task(self, task_id: int, principal: PrincipalResult) -> TaskResult:
        """Return a visible task with its time-tracking summary."""
        task = await self._get_or_404(task_id)
        await self.access.require_view(task, principal)
        return await self._with_time_tracking(task)

    @traced("task.list")
    async def list_tasks(
        self,
        principal: PrincipalResult,
        raw_query: Mapping[str, Any] | None = None,
    ) -> TaskPage:
        """Return one page of the tasks visible to the principal.

        Visibility is part of the store filter, so the page and the total
        both count only tasks the principal may see.
        """
        query = self.validator.normalize_query(raw_query)
        scope = await self.access.visibility_scope(principal)
        if scope is not None:
            query = replace(query, visible_to=scope)
        tasks = await self.task_repo.query(query)
        total = await self.task_repo.count(query)
        return TaskPage(tasks=tasks, total=total, page=query.page, limit=query.limit)

    async def list_subtasks(
        self, parent_id: int, principal: PrincipalResult
    ) -> list[TaskResult]:
        """Return the subtasks of a task the principal can see."""
        parent = await self._get_or_404(parent_id)
        await self.access.require_view(parent, principal)
        return await self.task_repo.get_subtasks(parent_id)

    async def archive_task(
        self,
        task_id: int,
        principal: PrincipalResult,
        archived: bool = True,
    ) -> TaskResult:
        """Flip the archived flag (goes through the normal update path)."""
        return await self.update_task(task_id, {"archived": archived}, principal)

    @traced("task.delete")
    async def delete_task(self, task_id: int, principal: PrincipalResult) -> None:
        """Physically delete a task. Requires edit permission."""
        task = await self._get_or_404(task_id)
        await self.access.require_edit(task, principal, action="delete")
        if not await self.task_repo.delete_by_id(task_id):
            raise ResourceNotFoundException("task", task_id)
        logger.info("Task %s deleted by user %s", task_id, principal.id)

    async def get_time_tracking(
        self, task_id: int, principal: PrincipalResult
    ) -> TimeTrackingSummary:
        task = await self._get_or_404(task_id)
        await self.access.require_view(task, principal)
        return await self.hours.get_summary(task.id, task.assigned_to)
