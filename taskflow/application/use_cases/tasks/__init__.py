"""Task use cases: lifecycle engine and deadline sweep."""

from taskflow.application.use_cases.tasks.deadline_sweep import (
    DeadlineSweepResult,
    RunDeadlineSweepUseCase,
)
from taskflow.application.use_cases.tasks.task_lifecycle import TaskLifecycleEngine

__all__ = [
    "DeadlineSweepResult",
    "RunDeadlineSweepUseCase",
    "TaskLifecycleEngine",
]
