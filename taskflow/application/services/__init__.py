"""Application services: validation, access control, hours, notifications, recurrence."""

from taskflow.application.services.access_control import (
    EDIT_RULES,
    AccessControlFilter,
    EditContext,
)
from taskflow.application.services.assignee_notifier import (
    AssigneeDiff,
    AssigneeNotifier,
    diff_assignees,
)
from taskflow.application.services.hours_ledger import HoursLedger
from taskflow.application.services.recurrence_engine import (
    RecurrenceEngine,
    next_deadline,
)
from taskflow.application.services.side_effects import SideEffectChannel
from taskflow.application.services.task_validator import TaskValidator

__all__ = [
    "EDIT_RULES",
    "AccessControlFilter",
    "AssigneeDiff",
    "AssigneeNotifier",
    "EditContext",
    "HoursLedger",
    "RecurrenceEngine",
    "SideEffectChannel",
    "TaskValidator",
    "diff_assignees",
    "next_deadline",
]
