"""Pytest configuration and fixtures for taskflow.

Unit tests run the engine against in-memory implementations of every port.
DB-dependent fixtures use taskflow.infrastructure.persistence.database and
skip when DATABASE_URL is not configured.
"""

from dataclasses import replace
from datetime import date
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.application.dtos.hours import HourEntryResult
from taskflow.application.dtos.principal import PrincipalResult, ProjectResult
from taskflow.application.dtos.query import TaskQuery
from taskflow.application.dtos.task import TaskCreate, TaskResult
from taskflow.application.services.side_effects import SideEffectChannel
from taskflow.application.use_cases.tasks import TaskLifecycleEngine
from taskflow.core.config import Settings, get_settings
from taskflow.infrastructure.persistence import database
from taskflow.shared.utils.datetime import utc_now

# Fixed "current day" for every engine built by the fixtures
TODAY = date(2024, 5, 20)


class InMemoryTaskRepository:
    """ITaskRepository over a dict. Counts writes; can be told to fail inserts."""

    def __init__(self) -> None:
        self.tasks: dict[int, TaskResult] = {}
        self._next_id = 1
        self.writes = 0
        self.fail_inserts = False
        self.queries: list[TaskQuery] = []

    def _build(self, record: TaskCreate) -> TaskResult:
        now = utc_now()
        task = TaskResult(
            id=self._next_id,
            title=record.title,
            description=record.description,
            status=record.status,
            priority=record.priority,
            project_id=record.project_id,
            parent_id=record.parent_id,
            assigned_to=tuple(record.assigned_to),
            tags=tuple(record.tags),
            deadline=record.deadline,
            recurrence=record.recurrence,
            archived=record.archived,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self.tasks[task.id] = task
        return task

    def seed(self, **fields: Any) -> TaskResult:
        """Store a task directly (no write counted). Unspecified fields get defaults."""
        defaults: dict[str, Any] = {
            "title": "Task",
            "status": "pending",
            "priority": 5,
            "assigned_to": (1,),
        }
        defaults.update(fields)
        defaults["assigned_to"] = tuple(defaults["assigned_to"])
        defaults["tags"] = tuple(defaults.get("tags", ()))
        return self._build(TaskCreate(**defaults))

    async def get_by_id(self, task_id: int) -> TaskResult | None:
        return self.tasks.get(task_id)

    async def insert(self, record: TaskCreate) -> TaskResult:
        if self.fail_inserts:
            raise RuntimeError("task store unavailable")
        self.writes += 1
        return self._build(record)

    async def insert_many(self, records: list[TaskCreate]) -> list[TaskResult]:
        if self.fail_inserts:
            raise RuntimeError("task store unavailable")
        self.writes += 1
        return [self._build(r) for r in records]

    async def update_by_id(
        self, task_id: int, changes: dict[str, Any]
    ) -> TaskResult | None:
        task = self.tasks.get(task_id)
        if task is None:
            return None
        self.writes += 1
        updated = replace(task, **changes, updated_at=utc_now())
        self.tasks[task_id] = updated
        return updated

    async def delete_by_id(self, task_id: int) -> bool:
        self.writes += 1
        return self.tasks.pop(task_id, None) is not None

    async def get_subtasks(self, parent_id: int) -> list[TaskResult]:
        return sorted(
            (t for t in self.tasks.values() if t.parent_id == parent_id),
            key=lambda t: t.id,
        )

    def _matches(self, t: TaskResult, q: TaskQuery) -> bool:
        if q.status is not None and t.status != q.status:
            return False
        if q.priority is not None and t.priority != q.priority:
            return False
        if q.assigned_to is not None and q.assigned_to not in t.assigned_to:
            return False
        if q.project_id is not None and t.project_id != q.project_id:
            return False
        if q.parent_id is not None and t.parent_id != q.parent_id:
            return False
        if q.parent_id is None and q.top_level_only and t.parent_id is not None:
            return False
        if q.archived is not None and t.archived != q.archived:
            return False
        if q.deadline_from is not None and (t.deadline is None or t.deadline < q.deadline_from):
            return False
        if q.deadline_to is not None and (t.deadline is None or t.deadline > q.deadline_to):
            return False
        return q.visible_to is None or q.visible_to.allows(t)

    async def query(self, query: TaskQuery) -> list[TaskResult]:
        self.queries.append(query)
        rows = [t for t in self.tasks.values() if self._matches(t, query)]
        rows.sort(key=lambda t: t.id)
        rows.sort(
            key=lambda t: (getattr(t, query.sort_by) is None, getattr(t, query.sort_by)),
            reverse=query.sort_order == "desc",
        )
        return rows[query.offset : query.offset + query.limit]

    async def count(self, query: TaskQuery) -> int:
        return len([t for t in self.tasks.values() if self._matches(t, query)])


class InMemoryProjectRepository:
    """IProjectRepository: projects plus member and manager sets."""

    def __init__(self) -> None:
        self.projects: dict[int, ProjectResult] = {}
        self.members: dict[int, set[int]] = {}
        self.managers: dict[int, set[int]] = {}

    def add(self, project: ProjectResult, members=(), managers=()) -> ProjectResult:
        self.projects[project.id] = project
        self.members[project.id] = set(members)
        self.managers[project.id] = set(managers)
        return project

    async def get_by_id(self, project_id: int) -> ProjectResult | None:
        return self.projects.get(project_id)

    async def get_accessible_project_ids(self, user_id: int) -> set[int]:
        return {
            p.id
            for p in self.projects.values()
            if p.creator_id == user_id or user_id in self.managers.get(p.id, set())
        }

    async def get_member_project_ids(self, user_id: int) -> set[int]:
        return {pid for pid, users in self.members.items() if user_id in users}

    async def is_member(self, project_id: int, user_id: int) -> bool:
        return user_id in self.members.get(project_id, set())


class InMemoryUserDirectory:
    def __init__(self, users: list[PrincipalResult] | None = None) -> None:
        self.users = {u.id: u for u in users or []}

    async def get_by_id(self, user_id: int) -> PrincipalResult | None:
        return self.users.get(user_id)

    async def get_many_by_ids(self, user_ids: list[int]) -> list[PrincipalResult]:
        return [self.users[uid] for uid in user_ids if uid in self.users]

    async def get_subordinates(
        self, division: str | None, below_hierarchy: int
    ) -> list[PrincipalResult]:
        return [
            u
            for u in self.users.values()
            if u.division == division and u.hierarchy < below_hierarchy
        ]


class InMemoryHourEntryRepository:
    def __init__(self) -> None:
        self.entries: dict[tuple[int, int], HourEntryResult] = {}
        self.writes = 0

    async def upsert(self, task_id: int, user_id: int, hours: float) -> HourEntryResult:
        self.writes += 1
        entry = HourEntryResult(
            task_id=task_id, user_id=user_id, hours=hours, updated_at=utc_now()
        )
        self.entries[(task_id, user_id)] = entry
        return entry

    async def find_by_task(self, task_id: int) -> list[HourEntryResult]:
        return [e for (tid, _), e in self.entries.items() if tid == task_id]


class RecordingDispatcher:
    """INotificationDispatcher that records calls; fail=True makes every call raise."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail = False

    def _record(self, method: str, kwargs: dict[str, Any], recipients: list[int]) -> int:
        if self.fail:
            raise RuntimeError("dispatcher down")
        self.calls.append((method, kwargs))
        return len(recipients)

    def of(self, method: str) -> list[dict[str, Any]]:
        return [kw for name, kw in self.calls if name == method]

    async def create_assignment_notifications(self, **kwargs: Any) -> int:
        return self._record("assignment", kwargs, kwargs["assignee_ids"])

    async def create_removal_notifications(self, **kwargs: Any) -> int:
        return self._record("removal", kwargs, kwargs["assignee_ids"])

    async def create_update_notifications(self, **kwargs: Any) -> int:
        return self._record("update", kwargs, kwargs["assignee_ids"])

    async def create_deadline_notifications(self, **kwargs: Any) -> int:
        return self._record("deadline", kwargs, kwargs["recipient_ids"])


# Directory used by most tests: ops staff 1-7 (hierarchy 1), a senior
# specialist 13 (hierarchy 4), managers in ops and sales, an admin, and HR.
PRINCIPALS = [
    *(PrincipalResult(id=i, role="staff", hierarchy=1, division="ops") for i in range(1, 8)),
    PrincipalResult(id=10, role="manager", hierarchy=3, division="ops"),
    PrincipalResult(id=11, role="manager", hierarchy=3, division="sales"),
    PrincipalResult(id=13, role="staff", hierarchy=4, division="ops"),
    PrincipalResult(id=20, role="admin", hierarchy=5, division="hq"),
    PrincipalResult(id=30, role="staff", hierarchy=1, division="people", department="Human Resources"),
]


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env."""
    return Settings(_env_file=None)


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def project_repo() -> InMemoryProjectRepository:
    """Projects: 100 active (creator 7), 101 archived (creator 7), 102 active (creator 1, member 2)."""
    repo = InMemoryProjectRepository()
    repo.add(ProjectResult(id=100, status="active", creator_id=7, name="Ops"))
    repo.add(ProjectResult(id=101, status="archived", creator_id=7, name="Old"))
    repo.add(ProjectResult(id=102, status="active", creator_id=1, name="Shared"), members=[2])
    return repo


@pytest.fixture
def user_directory() -> InMemoryUserDirectory:
    return InMemoryUserDirectory(PRINCIPALS)


@pytest.fixture
def hour_repo() -> InMemoryHourEntryRepository:
    return InMemoryHourEntryRepository()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def principal(user_directory):
    """Look up a directory principal by id: principal(7)."""
    return lambda user_id: user_directory.users[user_id]


@pytest.fixture
def engine(
    task_repo, project_repo, user_directory, hour_repo, dispatcher, settings
) -> TaskLifecycleEngine:
    """Lifecycle engine on the in-memory stores, side effects inline, today fixed."""
    return TaskLifecycleEngine(
        task_repo=task_repo,
        project_repo=project_repo,
        user_directory=user_directory,
        hour_repo=hour_repo,
        dispatcher=dispatcher,
        channel=SideEffectChannel(queue_size=10),
        settings=settings,
        today=lambda: TODAY,
    )


@pytest.fixture
async def db_session() -> AsyncSession:
    """Database session for repository/integration tests. Rolls back after test.

    Requires DATABASE_URL (Postgres). Skips when it is not configured. Use
    @pytest.mark.requires_db on tests that need this fixture; run without
    a DB via: pytest -m 'not requires_db'.
    """
    get_settings.cache_clear()
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip("Postgres not configured: set DATABASE_URL")
    await database.create_schema()
    async with database.AsyncSessionLocal() as session:
        yield session
        await session.rollback()
    await database.dispose_engine()
