"""Domain enumerations for taskflow.

Enums represent fixed sets of domain values (task status, role, recurrence
frequency). Each exposes values() for validation and serialization.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TaskStatus(_ValuesMixin, str, Enum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    BLOCKED = "blocked"


class Role(_ValuesMixin, str, Enum):
    """Principal roles known to the access rules. Other role strings are allowed and get no extra grants."""

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class ProjectStatus(_ValuesMixin, str, Enum):
    """Project status. Only active projects accept new tasks."""

    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"


class RecurrenceFrequency(_ValuesMixin, str, Enum):
    """Recurrence frequency for repeating tasks."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class NotificationType(_ValuesMixin, str, Enum):
    """Notification kinds emitted by the lifecycle engine."""

    TASK_ASSIGNMENT = "task_assignment"
    REASSIGNMENT = "reassignment"
    TASK_REMOVAL = "task_removal"
    TASK_UPDATE = "task_update"
    DEADLINE_TODAY = "deadline_today"
    DEADLINE_TOMORROW = "deadline_tomorrow"
    OVERDUE = "overdue"


class SortOrder(_ValuesMixin, str, Enum):
    """Sort direction for task listings."""

    ASC = "asc"
    DESC = "desc"
