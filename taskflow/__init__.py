"""taskflow: task lifecycle engine (visibility, recurrence, assignee notifications, hours)."""

__version__ = "1.0.0"
