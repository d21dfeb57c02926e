"""Core constants: immutable tables shared by the task rules.

Single source of truth for field sets, sort keys and labels. Every table is
a frozenset or read-only mapping so no caller can mutate it at runtime.
"""

from types import MappingProxyType

from taskflow.domain.enums import SortOrder, TaskStatus

VALID_STATUSES = frozenset(TaskStatus.values())

# Statuses the deadline sweep no longer chases
CLOSED_STATUSES = frozenset({TaskStatus.COMPLETED.value, TaskStatus.CANCELLED.value})

VALID_SORT_FIELDS = frozenset(
    {"id", "title", "status", "priority", "created_at", "updated_at", "deadline"}
)
VALID_SORT_ORDERS = frozenset(SortOrder.values())
DEFAULT_SORT_FIELD = "created_at"
DEFAULT_SORT_ORDER = SortOrder.DESC.value

# Fields whose change produces a task_update notification
TRACKED_UPDATE_FIELDS = (
    "title",
    "description",
    "priority",
    "status",
    "deadline",
    "archived",
    "tags",
    "recurrence",
)

FIELD_LABELS = MappingProxyType(
    {
        "title": "Title",
        "description": "Description",
        "priority": "Priority",
        "status": "Status",
        "deadline": "Deadline",
        "archived": "Archived",
        "tags": "Tags",
        "recurrence": "Recurrence",
        "assigned_to": "Assignees",
    }
)

# Fields fixed at creation
IMMUTABLE_FIELDS = ("project_id", "parent_id")

# Input keys carrying logged hours; the first one present wins
HOURS_INPUT_KEYS = ("hours", "time_spent_hours")

HOURS_PRECISION = 2
