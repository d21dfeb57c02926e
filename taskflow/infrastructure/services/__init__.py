"""Infrastructure services: notification dispatch adapters."""

from taskflow.infrastructure.services.notification_dispatcher import (
    LogOnlyNotificationDispatcher,
)

__all__ = ["LogOnlyNotificationDispatcher"]
