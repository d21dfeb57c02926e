"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from taskflow.infrastructure.
"""

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

__all__ = [
    "IHourEntryRepository",
    "INotificationDispatcher",
    "IProjectRepository",
    "ISideEffectChannel",
    "ITaskRepository",
    "IUserDirectory",
]
