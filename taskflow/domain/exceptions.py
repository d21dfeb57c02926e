"""Domain exceptions for taskflow.

Every failure the engine reports is a TaskflowException carrying a stable
error_code. taskflow.core.exception_mapping turns the code into a status
(VALIDATION_ERROR and IMMUTABLE_FIELD 400, PERMISSION_DENIED 403,
RESOURCE_NOT_FOUND 404).
"""

from typing import Any


class TaskflowException(Exception):
    """Base class for engine errors.

    Attributes:
        message: Text safe to show to the caller.
        error_code: Stable code used for status mapping (class name if not given).
        details: Structured context such as the offending field or resource id.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = dict(details) if details else {}

    def to_dict(self) -> dict[str, Any]:
        """Error body: {"error", "message", "details"}."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TaskflowException):
    """Input could not be normalized (bad title, priority, deadline, hours, ...)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", {"field": field} if field else None)


class AuthorizationException(TaskflowException):
    """The principal may not perform the action (view, edit, create, log hours).

    When both resource and action are given the message names them.
    """

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        context = {
            key: value
            for key, value in (("resource", resource), ("action", action))
            if value
        }
        super().__init__(message, "PERMISSION_DENIED", context)


class ResourceNotFoundException(TaskflowException):
    """A task, parent task or project referenced by id does not exist."""

    def __init__(self, resource_type: str, resource_id: int | str) -> None:
        super().__init__(
            f"{resource_type.capitalize()} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ImmutableFieldException(TaskflowException):
    """An update tried to change a field fixed at creation (project_id, parent_id)."""

    def __init__(self, field: str) -> None:
        super().__init__(
            f"{field} cannot be changed after the task is created",
            "IMMUTABLE_FIELD",
            {"field": field},
        )


class SqlNotConfiguredException(TaskflowException):
    """A SQL adapter was used without DATABASE_URL."""

    def __init__(self) -> None:
        super().__init__(
            "DATABASE_URL is not set; the SQL task store is unavailable.",
            "SERVICE_UNAVAILABLE",
        )
