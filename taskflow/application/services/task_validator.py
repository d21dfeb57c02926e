"""Task input validation and normalization.

Canonicalizes raw create/update input into TaskCreate records and change
dicts, and raw list parameters into TaskQuery. Every check here runs
before the engine touches a store.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any

from taskflow.application.dtos.principal import ProjectResult
from taskflow.application.dtos.query import TaskQuery
from taskflow.application.dtos.task import TaskCreate, TaskResult
from taskflow.application.interfaces.repositories import (
    IProjectRepository,
    ITaskRepository,
)
from taskflow.core.config import Settings, get_settings
from taskflow.core.constants import (
    IMMUTABLE_FIELDS,
    VALID_SORT_FIELDS,
    VALID_SORT_ORDERS,
    VALID_STATUSES,
)
from taskflow.domain.enums import TaskStatus
from taskflow.domain.exceptions import (
    AuthorizationException,
    ImmutableFieldException,
    ResourceNotFoundException,
    ValidationException,
)
from taskflow.domain.value_objects import Priority, Recurrence
from taskflow.shared.utils.datetime import parse_calendar_date, utc_today

_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})


def normalize_title(raw: Any) -> str:
    if raw is None:
        raise ValidationException("Title is required", field="title")
    title = str(raw).strip()
    if not title:
        raise ValidationException("Title cannot be empty", field="title")
    return title


def normalize_description(raw: Any) -> str | None:
    if raw is None:
        return None
    return str(raw).strip() or None


def normalize_priority(raw: Any) -> int:
    """Return the 1-10 priority for raw input (int, numeric string, or low/medium/high)."""
    try:
        return Priority.from_input(raw).value
    except ValueError as e:
        raise ValidationException(str(e), field="priority") from e


def normalize_status(raw: Any) -> str:
    status = str(raw).strip().lower() if raw is not None else ""
    if status not in VALID_STATUSES:
        raise ValidationException(
            f"Status must be one of: {', '.join(TaskStatus.values())}", field="status"
        )
    return status


def normalize_tags(raw: Any) -> tuple[str, ...]:
    """Split, trim and de-duplicate tags, keeping first-seen order.

    Accepts a comma-delimited string or a list.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        parts: list[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        parts = list(raw)
    else:
        raise ValidationException(
            "Tags must be a list or a comma-separated string", field="tags"
        )
    tags: list[str] = []
    for part in parts:
        if part is None:
            continue
        tag = str(part).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def _coerce_user_id(item: Any) -> int | None:
    """Return an integer user id, or None when the item is blank or not numeric."""
    if item is None or isinstance(item, bool):
        return None
    if isinstance(item, str):
        text = item.strip()
        if not text:
            return None
        try:
            number: int | float = float(text)
        except ValueError:
            return None
    elif isinstance(item, (int, float)):
        number = item
    else:
        return None
    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        return math.trunc(number)
    return number


def normalize_assignees(
    raw: Any,
    *,
    max_assignees: int,
    creator_id: int | None = None,
) -> tuple[int, ...]:
    """Normalize an assignee list.

    Strings are trimmed, blank and non-numeric entries dropped, numbers
    truncated to integers, duplicates collapsed. creator_id is appended when
    absent. The size cap is checked after de-duplication.
    """
    if raw is None:
        items: list[Any] = []
    elif isinstance(raw, (list, tuple, set, frozenset)):
        items = list(raw)
    else:
        raise ValidationException(
            "assigned_to must be a list of user ids", field="assigned_to"
        )
    user_ids: list[int] = []
    for item in items:
        user_id = _coerce_user_id(item)
        if user_id is not None and user_id not in user_ids:
            user_ids.append(user_id)
    if creator_id is not None and creator_id not in user_ids:
        user_ids.append(creator_id)
    if len(user_ids) > max_assignees:
        raise ValidationException(
            f"A task can have at most {max_assignees} assignees", field="assigned_to"
        )
    return tuple(user_ids)


def normalize_deadline(raw: Any, today: date) -> date | None:
    """Parse a deadline; None or blank clears it. Past dates are rejected."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        deadline = parse_calendar_date(raw)
    except ValueError as e:
        raise ValidationException("Deadline must be a valid date", field="deadline") from e
    if deadline < today:
        raise ValidationException("Deadline cannot be in the past", field="deadline")
    return deadline


def normalize_recurrence(raw: Any) -> Recurrence | None:
    """Parse {freq, interval}; None clears recurrence. Both keys are required."""
    if raw is None or isinstance(raw, Recurrence):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationException(
            "Recurrence must be an object with freq and interval", field="recurrence"
        )
    freq = raw.get("freq")
    interval = raw.get("interval")
    if freq is None or interval is None:
        raise ValidationException(
            "Recurrence requires both freq and interval", field="recurrence"
        )
    if isinstance(freq, str):
        freq = freq.strip().lower()
    if isinstance(interval, str) and interval.strip().isdigit():
        interval = int(interval.strip())
    try:
        return Recurrence(freq=freq, interval=interval)
    except ValueError as e:
        raise ValidationException(str(e), field="recurrence") from e


def coerce_bool(raw: Any, field: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValidationException(f"{field} must be a boolean", field=field)


def coerce_id(raw: Any, field: str) -> int | None:
    """Return a positive integer id, None for None; anything else fails."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationException(f"{field} must be a positive integer", field=field)
    if isinstance(raw, str) and raw.strip().isdigit():
        raw = int(raw.strip())
    if not isinstance(raw, int) or raw < 1:
        raise ValidationException(f"{field} must be a positive integer", field=field)
    return raw


class TaskValidator:
    """Validator/normalizer for task input.

    Project linkage needs the task and project stores; all other rules are
    pure functions of the input and the current UTC day.
    """

    def __init__(
        self,
        task_repo: ITaskRepository,
        project_repo: IProjectRepository,
        settings: Settings | None = None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.task_repo = task_repo
        self.project_repo = project_repo
        self.settings = settings or get_settings()
        self._today = today

    async def _resolve_project(
        self, raw: Mapping[str, Any]
    ) -> tuple[int | None, int | None, ProjectResult | None]:
        """Return (project_id, parent_id, project). Subtasks inherit the parent's project."""
        parent_id = coerce_id(raw.get("parent_id"), "parent_id")
        project_id = coerce_id(raw.get("project_id"), "project_id")
        if parent_id is not None:
            parent = await self.task_repo.get_by_id(parent_id)
            if parent is None:
                raise ResourceNotFoundException("task", parent_id)
            project_id = parent.project_id
        if project_id is None:
            return None, parent_id, None
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("project", project_id)
        if not project.is_active:
            raise AuthorizationException(
                message="Tasks can only be assigned to active projects"
            )
        return project_id, parent_id, project

    async def normalize_create(
        self, raw: Mapping[str, Any], creator_id: int
    ) -> tuple[TaskCreate, ProjectResult | None]:
        """Validate create input.

        Returns:
            The record to insert and the owning project (None for personal tasks).

        Raises:
            ValidationException: On any invalid field.
            ResourceNotFoundException: If the parent task or project does not exist.
            AuthorizationException: If the project is not active.
        """
        title = normalize_title(raw.get("title"))
        priority = (
            normalize_priority(raw["priority"])
            if raw.get("priority") is not None
            else self.settings.default_priority
        )
        status = (
            normalize_status(raw["status"])
            if raw.get("status") is not None
            else TaskStatus.PENDING.value
        )
        assigned_to = normalize_assignees(
            raw.get("assigned_to"),
            max_assignees=self.settings.max_assignees,
            creator_id=creator_id,
        )
        record_fields = {
            "title": title,
            "description": normalize_description(raw.get("description")),
            "status": status,
            "priority": priority,
            "assigned_to": assigned_to,
            "tags": normalize_tags(raw.get("tags")),
            "deadline": normalize_deadline(raw.get("deadline"), self._today()),
            "recurrence": normalize_recurrence(raw.get("recurrence")),
            "archived": coerce_bool(raw["archived"], "archived")
            if raw.get("archived") is not None
            else False,
        }
        project_id, parent_id, project = await self._resolve_project(raw)
        return (
            TaskCreate(project_id=project_id, parent_id=parent_id, **record_fields),
            project,
        )

    def normalize_update(
        self, raw: Mapping[str, Any], stored: TaskResult
    ) -> dict[str, Any]:
        """Validate update input against the stored task.

        Only keys present in raw are validated and returned. Hours keys are
        left to the hours ledger.

        Raises:
            ImmutableFieldException: If project_id or parent_id would change.
            ValidationException: On any invalid field.
        """
        for field in IMMUTABLE_FIELDS:
            if field in raw and coerce_id(raw[field], field) != getattr(stored, field):
                raise ImmutableFieldException(field)

        changes: dict[str, Any] = {}
        if "title" in raw:
            changes["title"] = normalize_title(raw["title"])
        if "description" in raw:
            changes["description"] = normalize_description(raw["description"])
        if "priority" in raw:
            changes["priority"] = normalize_priority(raw["priority"])
        if "status" in raw:
            changes["status"] = normalize_status(raw["status"])
        if "tags" in raw:
            changes["tags"] = normalize_tags(raw["tags"])
        if "deadline" in raw:
            changes["deadline"] = normalize_deadline(raw["deadline"], self._today())
        if "archived" in raw:
            changes["archived"] = coerce_bool(raw["archived"], "archived")
        if "assigned_to" in raw:
            assigned_to = normalize_assignees(
                raw["assigned_to"], max_assignees=self.settings.max_assignees
            )
            if not assigned_to:
                raise ValidationException(
                    "A task must have at least one assignee", field="assigned_to"
                )
            changes["assigned_to"] = assigned_to
        if "recurrence" in raw:
            recurrence = normalize_recurrence(raw["recurrence"])
            if (
                recurrence is not None
                and stored.recurrence is not None
                and stored.recurrence.series_id
            ):
                recurrence = recurrence.with_series_id(stored.recurrence.series_id)
            changes["recurrence"] = recurrence
        return changes

    def normalize_query(self, raw: Mapping[str, Any] | None = None) -> TaskQuery:
        """Validate list filters, sort and paging.

        Raises:
            ValidationException: On unknown sort fields, bad ids, or out-of-range paging.
        """
        raw = raw or {}
        page = coerce_id(raw.get("page", 1), "page") or 1
        limit = raw.get("limit", self.settings.default_page_size)
        if isinstance(limit, str) and limit.strip().isdigit():
            limit = int(limit.strip())
        if (
            isinstance(limit, bool)
            or not isinstance(limit, int)
            or not 1 <= limit <= self.settings.max_page_size
        ):
            raise ValidationException(
                f"Limit must be between 1 and {self.settings.max_page_size}", field="limit"
            )
        sort_by = str(raw.get("sort_by") or "created_at").strip()
        if sort_by not in VALID_SORT_FIELDS:
            raise ValidationException(
                f"Sort field must be one of: {', '.join(sorted(VALID_SORT_FIELDS))}",
                field="sort_by",
            )
        sort_order = str(raw.get("sort_order") or "desc").strip().lower()
        if sort_order not in VALID_SORT_ORDERS:
            raise ValidationException("Sort order must be asc or desc", field="sort_order")

        archived: bool | None = False
        if "archived" in raw:
            archived = (
                None if raw["archived"] is None else coerce_bool(raw["archived"], "archived")
            )

        def _date_filter(field: str) -> date | None:
            value = raw.get(field)
            if value is None:
                return None
            try:
                return parse_calendar_date(value)
            except ValueError as e:
                raise ValidationException(f"{field} must be a valid date", field=field) from e

        return TaskQuery(
            status=normalize_status(raw["status"]) if raw.get("status") else None,
            priority=normalize_priority(raw["priority"])
            if raw.get("priority") is not None
            else None,
            assigned_to=coerce_id(raw.get("assigned_to"), "assigned_to"),
            project_id=coerce_id(raw.get("project_id"), "project_id"),
            parent_id=coerce_id(raw.get("parent_id"), "parent_id"),
            top_level_only=coerce_bool(raw["top_level_only"], "top_level_only")
            if raw.get("top_level_only") is not None
            else False,
            archived=archived,
            deadline_from=_date_filter("deadline_from"),
            deadline_to=_date_filter("deadline_to"),
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
