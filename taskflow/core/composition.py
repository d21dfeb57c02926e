"""Composition root: builds use cases from the SQL adapters.

Callers own the session (and its transaction); everything built here is
bound to it for the duration of one request or job. Recurrence spawned
from a running side-effect worker outlives that transaction, so it gets a
session of its own from the session factory.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskflow.application.interfaces.services import (
    INotificationDispatcher,
    ISideEffectChannel,
)
from taskflow.application.services.assignee_notifier import AssigneeNotifier
from taskflow.application.services.recurrence_engine import (
    RecurrenceEngine,
    RecurrenceScope,
)
from taskflow.application.services.side_effects import SideEffectChannel
from taskflow.application.use_cases.tasks import (
    RunDeadlineSweepUseCase,
    TaskLifecycleEngine,
)
from taskflow.core.config import Settings, get_settings
from taskflow.infrastructure.persistence import database
from taskflow.infrastructure.persistence.repositories import (
    HourEntryRepository,
    ProjectRepository,
    TaskRepository,
    UserDirectory,
)
from taskflow.infrastructure.services import LogOnlyNotificationDispatcher


def own_session_scope(sessions: async_sessionmaker[AsyncSession]) -> RecurrenceScope:
    """Recurrence scope that opens a session and commits its transaction on exit."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[RecurrenceEngine]:
        async with sessions() as session, session.begin():
            yield RecurrenceEngine(TaskRepository(session))

    return scope


def build_task_lifecycle_engine(
    session: AsyncSession,
    *,
    dispatcher: INotificationDispatcher | None = None,
    channel: ISideEffectChannel | None = None,
    settings: Settings | None = None,
    effect_sessions: async_sessionmaker[AsyncSession] | None = None,
) -> TaskLifecycleEngine:
    """Wire the lifecycle engine to SQL repositories on the given session.

    With a running channel, recurrence uses effect_sessions (default: the
    application session factory) instead of the caller's session.
    """
    settings = settings or get_settings()
    channel = channel or SideEffectChannel(settings.side_effect_queue_size)
    recurrence_scope = None
    if channel.is_running:
        recurrence_scope = own_session_scope(effect_sessions or database.get_sessionmaker())
    return TaskLifecycleEngine(
        task_repo=TaskRepository(session),
        project_repo=ProjectRepository(session),
        user_directory=UserDirectory(session),
        hour_repo=HourEntryRepository(session),
        dispatcher=dispatcher or LogOnlyNotificationDispatcher(),
        channel=channel,
        settings=settings,
        recurrence_scope=recurrence_scope,
    )


def build_deadline_sweep(
    session: AsyncSession,
    *,
    dispatcher: INotificationDispatcher | None = None,
) -> RunDeadlineSweepUseCase:
    """Wire the deadline sweep. Dispatch is awaited directly, not via the channel."""
    notifier = AssigneeNotifier(
        dispatcher=dispatcher or LogOnlyNotificationDispatcher(),
        channel=SideEffectChannel(),
        project_repo=ProjectRepository(session),
    )
    return RunDeadlineSweepUseCase(task_repo=TaskRepository(session), notifier=notifier)
