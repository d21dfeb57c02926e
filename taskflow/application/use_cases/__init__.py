"""Application use cases: one entry point per workflow."""

from taskflow.application.use_cases.tasks import (
    RunDeadlineSweepUseCase,
    TaskLifecycleEngine,
)

__all__ = [
    "RunDeadlineSweepUseCase",
    "TaskLifecycleEngine",
]
