"""Task lifecycle engine: end-to-end create/update/read/list flows on in-memory stores."""

from contextlib import asynccontextmanager
from datetime import date

import pytest

from taskflow.application.dtos.principal import PrincipalResult, ProjectResult
from taskflow.application.dtos.query import VisibilityScope
from taskflow.application.services.recurrence_engine import RecurrenceEngine
from taskflow.application.services.side_effects import SideEffectChannel
from taskflow.application.use_cases.tasks import TaskLifecycleEngine
from taskflow.domain.enums import RecurrenceFrequency
from taskflow.domain.exceptions import (
    AuthorizationException,
    ImmutableFieldException,
    ResourceNotFoundException,
    ValidationException,
)
from taskflow.domain.value_objects import Recurrence

TODAY = date(2024, 5, 20)


class TestCreate:
    async def test_creator_becomes_assignee(self, engine, principal) -> None:
        task = await engine.create_task({"title": "Design Doc", "assigned_to": []}, principal(7))
        assert task.assigned_to == (7,)
        assert task.status == "pending"
        assert task.priority == 5
        assert task.time_tracking.total_hours == 0.0

    async def test_notifies_initial_assignees(self, engine, principal, dispatcher) -> None:
        await engine.create_task({"title": "Plan", "assigned_to": [1, "2"]}, principal(7))
        [call] = dispatcher.of("assignment")
        assert call["assignee_ids"] == [1, 2, 7]
        assert call["notification_type"] == "task_assignment"

    async def test_too_many_assignees_rejected(self, engine, principal, task_repo) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await engine.create_task(
                {"title": "Crowded", "assigned_to": [1, 2, 3, 4, 5]}, principal(7)
            )
        assert exc_info.value.details == {"field": "assigned_to"}
        assert task_repo.writes == 0

    async def test_archived_project_rejected(self, engine, principal) -> None:
        with pytest.raises(AuthorizationException):
            await engine.create_task({"title": "Late", "project_id": 101}, principal(7))

    async def test_unknown_project_not_found(self, engine, principal) -> None:
        with pytest.raises(ResourceNotFoundException) as exc_info:
            await engine.create_task({"title": "Lost", "project_id": 999}, principal(7))
        assert exc_info.value.details == {"resource_type": "project", "resource_id": 999}

    async def test_outsider_cannot_create_in_project(self, engine, principal) -> None:
        with pytest.raises(AuthorizationException):
            await engine.create_task({"title": "Intruder", "project_id": 102}, principal(5))

    async def test_subtask_inherits_parent_project(self, engine, principal, task_repo) -> None:
        parent = task_repo.seed(project_id=100, assigned_to=[7])
        child = await engine.create_task(
            {"title": "Child", "parent_id": parent.id}, principal(7)
        )
        assert child.project_id == 100
        assert child.is_subtask

    async def test_deadline_today_sends_notice(self, engine, principal, dispatcher) -> None:
        await engine.create_task(
            {"title": "Urgent", "project_id": 100, "deadline": TODAY.isoformat()}, principal(7)
        )
        [call] = dispatcher.of("deadline")
        assert call["notification_type"] == "deadline_today"
        assert call["recipient_ids"] == [7]

    async def test_dispatcher_failure_does_not_fail_create(
        self, engine, principal, dispatcher, task_repo
    ) -> None:
        dispatcher.fail = True
        task = await engine.create_task({"title": "Quiet"}, principal(7))
        assert task.id in task_repo.tasks


class TestUpdate:
    async def test_non_assignee_cannot_reassign(
        self, engine, principal, task_repo, hour_repo, dispatcher
    ) -> None:
        task = task_repo.seed(assigned_to=[1, 2], project_id=100)
        with pytest.raises(AuthorizationException) as exc_info:
            await engine.update_task(task.id, {"assigned_to": [1, 2, 3]}, principal(5))
        assert exc_info.value.error_code == "PERMISSION_DENIED"
        assert task_repo.writes == 0
        assert hour_repo.writes == 0
        assert dispatcher.calls == []
        assert task_repo.tasks[task.id].assigned_to == (1, 2)

    async def test_hours_only_patch_records_hours(
        self, engine, principal, task_repo, dispatcher
    ) -> None:
        task = task_repo.seed(assigned_to=[10, 1])
        updated = await engine.update_task(task.id, {"hours": 2.5}, principal(10))
        assert updated.time_tracking.total_hours == 2.5
        assert task_repo.writes == 0
        assert dispatcher.of("assignment") == []
        assert dispatcher.of("removal") == []

    async def test_removal_only_batch(self, engine, principal, task_repo, dispatcher) -> None:
        task = task_repo.seed(assigned_to=[1, 2, 3])
        await engine.update_task(task.id, {"assigned_to": [1, 2]}, principal(1))
        [removal] = dispatcher.of("removal")
        assert removal["assignee_ids"] == [3]
        assert dispatcher.of("assignment") == []
        assert dispatcher.of("update") == []

    async def test_field_change_sends_update_batch(
        self, engine, principal, task_repo, dispatcher
    ) -> None:
        task = task_repo.seed(assigned_to=[1, 2])
        updated = await engine.update_task(
            task.id, {"title": "  Renamed ", "priority": "high"}, principal(1)
        )
        assert (updated.title, updated.priority) == ("Renamed", 10)
        [call] = dispatcher.of("update")
        assert call["changes"] == ["title", "priority"]

    async def test_hours_by_removed_assignee_rejected_before_write(
        self, engine, principal, task_repo, hour_repo
    ) -> None:
        task = task_repo.seed(assigned_to=[1, 2])
        with pytest.raises(AuthorizationException):
            await engine.update_task(task.id, {"assigned_to": [2], "hours": 1}, principal(1))
        assert task_repo.writes == 0
        assert hour_repo.writes == 0

    async def test_legacy_hours_key(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(assigned_to=[1])
        updated = await engine.update_task(task.id, {"time_spent_hours": "3"}, principal(1))
        assert updated.time_tracking.total_hours == 3.0

    async def test_empty_patch_rejected(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(assigned_to=[1])
        with pytest.raises(ValidationException, match="At least one field"):
            await engine.update_task(task.id, {}, principal(1))

    async def test_project_change_rejected(
        self, engine, principal, task_repo, hour_repo
    ) -> None:
        task = task_repo.seed(assigned_to=[1], project_id=100)
        with pytest.raises(ImmutableFieldException) as exc_info:
            await engine.update_task(
                task.id, {"project_id": 102, "title": "Moved"}, principal(1)
            )
        assert exc_info.value.details == {"field": "project_id"}
        assert task_repo.writes == 0
        assert hour_repo.writes == 0
        assert task_repo.tasks[task.id].title == "Task"

    @pytest.mark.parametrize("hours", [-1, float("nan"), float("inf"), "-0.5"])
    async def test_invalid_hours_rejected_before_any_write(
        self, engine, principal, task_repo, hour_repo, dispatcher, hours
    ) -> None:
        task = task_repo.seed(assigned_to=[1])
        with pytest.raises(ValidationException):
            await engine.update_task(task.id, {"title": "Logged", "hours": hours}, principal(1))
        assert task_repo.writes == 0
        assert hour_repo.writes == 0
        assert dispatcher.calls == []

    async def test_unchanged_project_allowed(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(assigned_to=[1], project_id=100)
        updated = await engine.update_task(
            task.id, {"project_id": 100, "title": "Same project"}, principal(1)
        )
        assert updated.title == "Same project"

    async def test_unknown_task(self, engine, principal) -> None:
        with pytest.raises(ResourceNotFoundException):
            await engine.update_task(404, {"title": "x"}, principal(1))

    async def test_manager_of_same_division_outranking_creator(
        self, engine, task_repo, project_repo, user_directory
    ) -> None:
        user_directory.users.update(
            {
                40: PrincipalResult(id=40, role="manager", hierarchy=4, division="Sales"),
                41: PrincipalResult(id=41, role="staff", hierarchy=2, division="Sales"),
                42: PrincipalResult(id=42, role="staff", hierarchy=6, division="Sales"),
            }
        )
        project_repo.add(ProjectResult(id=300, status="active", creator_id=41))
        project_repo.add(ProjectResult(id=301, status="active", creator_id=42))
        junior_creator = task_repo.seed(assigned_to=[42], project_id=300)
        senior_creator = task_repo.seed(assigned_to=[42], project_id=301)
        manager = user_directory.users[40]

        updated = await engine.update_task(junior_creator.id, {"priority": 8}, manager)
        assert updated.priority == 8
        with pytest.raises(AuthorizationException):
            await engine.update_task(senior_creator.id, {"priority": 8}, manager)


class TestRecurrence:
    async def test_completion_spawns_next_with_subtasks(
        self, engine, principal, task_repo
    ) -> None:
        parent = task_repo.seed(
            assigned_to=[1],
            deadline=date(2024, 6, 1),
            recurrence=Recurrence(freq=RecurrenceFrequency.WEEKLY, interval=2),
        )
        task_repo.seed(assigned_to=[1], parent_id=parent.id, deadline=date(2024, 6, 3))

        await engine.update_task(parent.id, {"status": "completed"}, principal(1))

        spawned = [t for t in task_repo.tasks.values() if t.id > parent.id + 1]
        new_parent = next(t for t in spawned if t.parent_id is None)
        [clone] = [t for t in spawned if t.parent_id == new_parent.id]
        assert new_parent.deadline == date(2024, 6, 15)
        assert new_parent.status == "pending"
        assert clone.deadline == date(2024, 6, 17)
        assert task_repo.tasks[parent.id].status == "completed"

    async def test_no_spawn_when_already_completed(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(
            assigned_to=[1],
            status="completed",
            recurrence=Recurrence(freq=RecurrenceFrequency.DAILY, interval=1),
        )
        before = len(task_repo.tasks)
        await engine.update_task(task.id, {"status": "completed", "title": "Again"}, principal(1))
        assert len(task_repo.tasks) == before

    async def test_spawn_failure_does_not_fail_update(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(
            assigned_to=[1], recurrence=Recurrence(freq=RecurrenceFrequency.DAILY, interval=1)
        )
        task_repo.fail_inserts = True
        updated = await engine.update_task(task.id, {"status": "completed"}, principal(1))
        assert updated.status == "completed"

    async def test_queued_spawn_runs_in_its_own_scope_after_return(
        self, task_repo, project_repo, user_directory, hour_repo, dispatcher, settings, principal
    ) -> None:
        scopes = []

        @asynccontextmanager
        async def own_scope():
            scopes.append("open")
            yield RecurrenceEngine(task_repo)
            scopes.append("commit")

        channel = SideEffectChannel(queue_size=10)
        await channel.start()
        engine = TaskLifecycleEngine(
            task_repo=task_repo,
            project_repo=project_repo,
            user_directory=user_directory,
            hour_repo=hour_repo,
            dispatcher=dispatcher,
            channel=channel,
            settings=settings,
            today=lambda: TODAY,
            recurrence_scope=own_scope,
        )
        task = task_repo.seed(
            assigned_to=[1], recurrence=Recurrence(freq=RecurrenceFrequency.DAILY, interval=1)
        )
        try:
            await engine.update_task(task.id, {"status": "completed"}, principal(1))
            assert scopes == []
            assert len(task_repo.tasks) == 1
        finally:
            await channel.stop()
        assert scopes == ["open", "commit"]
        assert len(task_repo.tasks) == 2


class TestRead:
    async def test_get_task_includes_time_tracking(
        self, engine, principal, task_repo, hour_repo
    ) -> None:
        task = task_repo.seed(assigned_to=[1, 2])
        await hour_repo.upsert(task.id, 2, 1.5)
        result = await engine.get_task(task.id, principal(1))
        assert result.time_tracking.total_hours == 1.5
        assert [row.user_id for row in result.time_tracking.per_assignee] == [1, 2]

    async def test_get_invisible_task_denied(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(assigned_to=[1])
        with pytest.raises(AuthorizationException):
            await engine.get_task(task.id, principal(5))

    async def test_get_missing_task(self, engine, principal) -> None:
        with pytest.raises(ResourceNotFoundException):
            await engine.get_task(1234, principal(1))

    async def test_get_time_tracking(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(assigned_to=[1])
        await engine.update_task(task.id, {"hours": 4}, principal(1))
        summary = await engine.get_time_tracking(task.id, principal(1))
        assert summary.to_dict()["total_hours"] == 4.0

    async def test_list_subtasks(self, engine, principal, task_repo) -> None:
        parent = task_repo.seed(assigned_to=[1])
        a = task_repo.seed(assigned_to=[3], parent_id=parent.id)
        b = task_repo.seed(assigned_to=[4], parent_id=parent.id)
        assert await engine.list_subtasks(parent.id, principal(1)) == [a, b]
        with pytest.raises(AuthorizationException):
            await engine.list_subtasks(parent.id, principal(5))


class TestList:
    async def test_staff_pages_and_total_cover_only_visible_tasks(self, engine, principal, task_repo) -> None:
        mine = [task_repo.seed(assigned_to=[2], priority=p) for p in (1, 2, 3)]
        task_repo.seed(assigned_to=[3], priority=4)
        page = await engine.list_tasks(
            principal(2), {"sort_by": "priority", "sort_order": "asc", "limit": 2}
        )
        assert page.total == 3
        assert page.tasks == mine[:2]
        assert page.has_next
        second = await engine.list_tasks(
            principal(2), {"sort_by": "priority", "sort_order": "asc", "limit": 2, "page": 2}
        )
        assert second.tasks == mine[2:]
        assert not second.has_next

    async def test_visibility_is_pushed_into_the_store(self, engine, principal, task_repo) -> None:
        task_repo.seed(assigned_to=[1], project_id=102)
        task_repo.seed(assigned_to=[3])
        page = await engine.list_tasks(principal(2), {"limit": 5})
        assert page.total == 1
        [query] = task_repo.queries
        assert query.visible_to == VisibilityScope(
            user_ids=frozenset({2}), project_ids=frozenset({102})
        )

    async def test_manager_scope_covers_subordinates(self, engine, principal, task_repo) -> None:
        subordinate = task_repo.seed(assigned_to=[4])
        task_repo.seed(assigned_to=[13])
        page = await engine.list_tasks(principal(10))
        assert page.tasks == [subordinate]

    async def test_global_visibility_sends_no_scope(self, engine, principal, task_repo) -> None:
        await engine.list_tasks(principal(30))
        [query] = task_repo.queries
        assert query.visible_to is None

    async def test_admin_sees_all(self, engine, principal, task_repo) -> None:
        for user_id in (1, 2, 3):
            task_repo.seed(assigned_to=[user_id])
        page = await engine.list_tasks(principal(20))
        assert page.total == 3

    async def test_archived_hidden_by_default(self, engine, principal, task_repo) -> None:
        task_repo.seed(assigned_to=[1], archived=True)
        live = task_repo.seed(assigned_to=[1])
        page = await engine.list_tasks(principal(1))
        assert page.tasks == [live]
        archived = await engine.list_tasks(principal(1), {"archived": "true"})
        assert archived.total == 1

    async def test_invalid_sort_rejected(self, engine, principal) -> None:
        with pytest.raises(ValidationException):
            await engine.list_tasks(principal(1), {"sort_by": "secret"})


class TestArchiveAndDelete:
    async def test_archive_and_unarchive(self, engine, principal, task_repo, dispatcher) -> None:
        task = task_repo.seed(assigned_to=[1, 2])
        assert (await engine.archive_task(task.id, principal(1))).archived is True
        assert (await engine.archive_task(task.id, principal(1), archived=False)).archived is False
        assert [c["changes"] for c in dispatcher.of("update")] == [["archived"], ["archived"]]

    async def test_delete_requires_edit(self, engine, principal, task_repo) -> None:
        task = task_repo.seed(assigned_to=[1])
        with pytest.raises(AuthorizationException) as exc_info:
            await engine.delete_task(task.id, principal(5))
        assert exc_info.value.details["action"] == "delete"
        await engine.delete_task(task.id, principal(1))
        assert task.id not in task_repo.tasks

    async def test_delete_missing(self, engine, principal) -> None:
        with pytest.raises(ResourceNotFoundException):
            await engine.delete_task(99, principal(1))
