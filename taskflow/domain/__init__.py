"""Domain layer: enums, value objects, and exceptions.

No dependencies on infrastructure. Used by application and infrastructure layers.
"""

from taskflow.domain.enums import (
    NotificationType,
    ProjectStatus,
    RecurrenceFrequency,
    Role,
    SortOrder,
    TaskStatus,
)
from taskflow.domain.exceptions import (
    AuthorizationException,
    ImmutableFieldException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    TaskflowException,
    ValidationException,
)
from taskflow.domain.value_objects import Priority, Recurrence

__all__ = [
    "AuthorizationException",
    "ImmutableFieldException",
    "NotificationType",
    "Priority",
    "ProjectStatus",
    "Recurrence",
    "RecurrenceFrequency",
    "ResourceNotFoundException",
    "Role",
    "SortOrder",
    "SqlNotConfiguredException",
    "TaskStatus",
    "TaskflowException",
    "ValidationException",
]
