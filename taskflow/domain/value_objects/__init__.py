"""Domain value objects."""

from taskflow.domain.value_objects.core import Priority, Recurrence

__all__ = [
    "Priority",
    "Recurrence",
]
