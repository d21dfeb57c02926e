"""Access control: which tasks a principal may see, edit, or create.

Edit permission is a decision table keyed by role (EDIT_RULES). Each rule
is a named async predicate over an EditContext; the first rule that
returns True grants the edit.

Managers see subordinates' tasks only within their own division, but may
edit a task when any assignee ranks below them regardless of division.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType

from taskflow.application.dtos.principal import PrincipalResult, ProjectResult
from taskflow.application.dtos.query import VisibilityScope
from taskflow.application.dtos.task import TaskResult
from taskflow.application.interfaces.repositories import (
    IProjectRepository,
    IUserDirectory,
)
from taskflow.core.config import Settings, get_settings
from taskflow.domain.enums import Role
from taskflow.domain.exceptions import AuthorizationException
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EditContext:
    principal: PrincipalResult
    task: TaskResult
    projects: IProjectRepository
    users: IUserDirectory


EditRule = Callable[[EditContext], Awaitable[bool]]


async def is_assignee(ctx: EditContext) -> bool:
    """The principal is one of the task's assignees."""
    return ctx.principal.id in ctx.task.assigned_to


async def outranks_project_creator_in_division(ctx: EditContext) -> bool:
    """The principal outranks the project's creator and shares their division."""
    if ctx.task.project_id is None or ctx.principal.division is None:
        return False
    project = await ctx.projects.get_by_id(ctx.task.project_id)
    if project is None or project.creator_id is None:
        return False
    creator = await ctx.users.get_by_id(project.creator_id)
    if creator is None:
        return False
    return (
        ctx.principal.hierarchy > creator.hierarchy
        and ctx.principal.division == creator.division
    )


async def outranks_any_assignee(ctx: EditContext) -> bool:
    """Some current assignee ranks below the principal. Division is not compared."""
    if not ctx.task.assigned_to:
        return False
    assignees = await ctx.users.get_many_by_ids(list(ctx.task.assigned_to))
    return any(a.hierarchy < ctx.principal.hierarchy for a in assignees)


DEFAULT_EDIT_RULES: tuple[EditRule, ...] = (is_assignee,)

EDIT_RULES: MappingProxyType[str, tuple[EditRule, ...]] = MappingProxyType(
    {
        Role.ADMIN.value: DEFAULT_EDIT_RULES,
        Role.STAFF.value: DEFAULT_EDIT_RULES,
        Role.MANAGER.value: (
            is_assignee,
            outranks_project_creator_in_division,
            outranks_any_assignee,
        ),
    }
)


class AccessControlFilter:
    """Task visibility, edit and create checks for a principal."""

    def __init__(
        self,
        project_repo: IProjectRepository,
        user_directory: IUserDirectory,
        settings: Settings | None = None,
        edit_rules: MappingProxyType[str, tuple[EditRule, ...]] = EDIT_RULES,
    ) -> None:
        self.project_repo = project_repo
        self.user_directory = user_directory
        self.settings = settings or get_settings()
        self.edit_rules = edit_rules

    def has_global_visibility(self, principal: PrincipalResult) -> bool:
        """Org-wide departments (e.g. HR) and admins see every task."""
        department = (principal.department or "").strip().lower()
        if department and department in self.settings.org_wide_department_set:
            return True
        return principal.is_admin

    async def _subordinate_ids(self, principal: PrincipalResult) -> set[int]:
        if not principal.is_manager or principal.division is None:
            return set()
        subordinates = await self.user_directory.get_subordinates(
            principal.division, principal.hierarchy
        )
        return {u.id for u in subordinates if u.id != principal.id}

    async def visibility_scope(self, principal: PrincipalResult) -> VisibilityScope | None:
        """What the principal may see, as a store filter; None means everything."""
        if self.has_global_visibility(principal):
            return None
        projects = set(await self.project_repo.get_accessible_project_ids(principal.id))
        if principal.is_staff:
            projects |= await self.project_repo.get_member_project_ids(principal.id)
        users = {principal.id} | await self._subordinate_ids(principal)
        return VisibilityScope(user_ids=frozenset(users), project_ids=frozenset(projects))

    async def filter_visible(
        self, tasks: Iterable[TaskResult], principal: PrincipalResult
    ) -> list[TaskResult]:
        """Return the tasks the principal may see, in input order."""
        tasks = list(tasks)
        scope = await self.visibility_scope(principal)
        if scope is None:
            return tasks
        return [t for t in tasks if scope.allows(t)]

    async def can_view(self, task: TaskResult, principal: PrincipalResult) -> bool:
        return bool(await self.filter_visible([task], principal))

    async def can_edit(self, task: TaskResult, principal: PrincipalResult) -> bool:
        """Evaluate the principal's role rules in order; deny when none matches."""
        ctx = EditContext(
            principal=principal,
            task=task,
            projects=self.project_repo,
            users=self.user_directory,
        )
        for rule in self.edit_rules.get(principal.role, DEFAULT_EDIT_RULES):
            if await rule(ctx):
                logger.debug(
                    "Edit on task %s granted to user %s by %s",
                    task.id,
                    principal.id,
                    rule.__name__,
                )
                return True
        return False

    async def can_create_in_project(
        self, project: ProjectResult | None, principal: PrincipalResult
    ) -> bool:
        """Personal tasks, admins, project creator/members, and senior managers of the creator's division."""
        if project is None or principal.is_admin:
            return True
        if project.creator_id == principal.id:
            return True
        if await self.project_repo.is_member(project.id, principal.id):
            return True
        if principal.is_manager and project.creator_id is not None:
            creator = await self.user_directory.get_by_id(project.creator_id)
            return (
                creator is not None
                and principal.division is not None
                and creator.division == principal.division
                and principal.hierarchy > creator.hierarchy
            )
        return False

    async def require_view(self, task: TaskResult, principal: PrincipalResult) -> None:
        if not await self.can_view(task, principal):
            raise AuthorizationException(resource="task", action="read")

    async def require_edit(
        self, task: TaskResult, principal: PrincipalResult, action: str = "update"
    ) -> None:
        """Raise AuthorizationException if the principal may not edit the task."""
        if not await self.can_edit(task, principal):
            raise AuthorizationException(resource="task", action=action)

    async def require_create(
        self, project: ProjectResult | None, principal: PrincipalResult
    ) -> None:
        if not await self.can_create_in_project(project, principal):
            raise AuthorizationException(resource="project", action="create task")
