"""Tests for StageProgressService: ledger upserts, access, auto-advance."""

import pytest
from sqlalchemy import select

from taskboard.core.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from taskboard.db.models.project_stage import ProjectStage
from taskboard.db.models.task import Task
from taskboard.db.models.task_stage_progress import TaskStageProgress
from taskboard.services.stage_progress import StageProgressService
from taskboard.services.stage_registry import StageRegistry

pytestmark = pytest.mark.integration


def by_stage(entries):
    return {e.stage_name: e for e in entries}


async def load_task(session, task_id="task-1") -> Task:
    result = await session.execute(
        select(Task).where(Task.id == task_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestAdvanceStage:
    async def test_done_with_advance_moves_task_and_seeds_next_stage(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        await service.advance_stage(admin, "task-1", "Design", "In Progress")

        entries = await service.advance_stage(admin, "task-1", "Design", "Done", advance_to_next=True)

        rows = by_stage(entries)
        assert [e.stage_name for e in entries] == ["Design", "Approval"]
        assert rows["Design"].status == "Done"
        assert rows["Design"].completed_at is not None
        assert rows["Approval"].status == "To Do"
        assert rows["Approval"].sort_order == 30
        assert rows["Approval"].started_at is None
        assert rows["Approval"].assigned_to_email == ""
        assert (await load_task(db_session)).stage == "Approval"

    async def test_done_at_last_stage_does_not_advance(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        entries = await service.advance_stage(admin, "task-1", "Approval", "Done", advance_to_next=True)

        assert [e.stage_name for e in entries] == ["Approval"]
        assert (await load_task(db_session)).stage == "Design"

    async def test_without_advance_flag_stage_pointer_is_unchanged(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        entries = await service.advance_stage(admin, "task-1", "Design", "Done")

        assert [e.stage_name for e in entries] == ["Design"]
        assert (await load_task(db_session)).stage == "Design"

    async def test_advance_flag_ignored_unless_done(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        entries = await service.advance_stage(admin, "task-1", "Design", "In Progress", advance_to_next=True)

        assert [e.stage_name for e in entries] == ["Design"]
        assert (await load_task(db_session)).stage == "Design"

    async def test_advance_keeps_existing_next_stage_row(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        await service.advance_stage(admin, "task-1", "Approval", "In Progress")

        entries = await service.advance_stage(admin, "task-1", "Design", "Done", advance_to_next=True)

        assert by_stage(entries)["Approval"].status == "In Progress"
        assert (await load_task(db_session)).stage == "Approval"

    async def test_new_row_timestamps(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        todo = by_stage(await service.advance_stage(admin, "task-1", "Brief", "To Do"))["Brief"]
        done = by_stage(await service.advance_stage(admin, "task-1", "Approval", "Done"))["Approval"]

        assert todo.started_at is None and todo.completed_at is None
        assert done.started_at is not None and done.completed_at is not None

    async def test_status_defaults_to_todo(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        entries = await service.advance_stage(admin, "task-1", "Brief", None)

        assert by_stage(entries)["Brief"].status == "To Do"

    async def test_completed_at_is_set_once(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        first = by_stage(await service.advance_stage(admin, "task-1", "Design", "Done"))["Design"]
        second = by_stage(await service.advance_stage(admin, "task-1", "Design", "Done"))["Design"]

        assert first.completed_at is not None
        assert second.completed_at == first.completed_at
        assert second.updated_at >= first.updated_at

    async def test_reopening_done_stage_keeps_first_completion(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        await service.advance_stage(admin, "task-1", "Design", "In Progress")
        first = by_stage(await service.advance_stage(admin, "task-1", "Design", "Done"))["Design"]

        reopened = by_stage(await service.advance_stage(admin, "task-1", "Design", "In Progress"))["Design"]
        again = by_stage(await service.advance_stage(admin, "task-1", "Design", "Done"))["Design"]

        assert reopened.status == "In Progress"
        assert reopened.completed_at == first.completed_at
        assert reopened.started_at == first.started_at
        assert again.completed_at == first.completed_at

    async def test_moving_back_to_todo_keeps_started_at(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        started = by_stage(await service.advance_stage(admin, "task-1", "Design", "In Progress"))["Design"]

        back = by_stage(await service.advance_stage(admin, "task-1", "Design", "To Do"))["Design"]

        assert back.status == "To Do"
        assert back.started_at == started.started_at

    async def test_one_row_per_task_and_stage(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        for status in ("To Do", "In Progress", "Done", "In Progress"):
            await service.advance_stage(admin, "task-1", "Design", status)

        result = await db_session.execute(
            select(TaskStageProgress).where(TaskStageProgress.task_id == "task-1")
        )
        assert len(result.scalars().all()) == 1

    async def test_assignment_defaults_to_actor(self, db_session, launch_task, stage_owner):
        service = StageProgressService(db_session)

        entry = by_stage(await service.advance_stage(stage_owner, "task-1", "Design", "In Progress"))["Design"]

        assert entry.assigned_to == "Dee Designer"
        assert entry.assigned_to_email == "designer@acme.test"

    async def test_explicit_assignment_is_normalized(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        entry = by_stage(
            await service.advance_stage(
                admin,
                "task-1",
                "Design",
                "In Progress",
                assigned_to="Dee",
                assigned_to_email=" Dee@Acme.TEST ",
            )
        )["Design"]

        assert entry.assigned_to == "Dee"
        assert entry.assigned_to_email == "dee@acme.test"

    async def test_unregistered_stage_gets_sort_order_zero(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        entries = await service.advance_stage(admin, "task-1", "QA", "In Progress", advance_to_next=True)

        assert entries[0].stage_name == "QA"
        assert entries[0].sort_order == 0

    async def test_done_on_unregistered_stage_advances_to_first_stage(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)

        entries = await service.advance_stage(admin, "task-1", "QA", "Done", advance_to_next=True)

        assert [(e.stage_name, e.status, e.sort_order) for e in entries] == [
            ("QA", "Done", 0),
            ("Brief", "To Do", 10),
        ]
        assert (await load_task(db_session)).stage == "Brief"


class TestAdvanceStageValidation:
    async def test_blank_stage_name(self, db_session, launch_task, admin):
        with pytest.raises(InvalidArgumentError, match="stage_name is required"):
            await StageProgressService(db_session).advance_stage(admin, "task-1", "   ", "Done")

    async def test_blank_task_id(self, db_session, launch_task, admin):
        with pytest.raises(InvalidArgumentError, match="task_id is required"):
            await StageProgressService(db_session).advance_stage(admin, "", "Design", "Done")

    @pytest.mark.parametrize("status", ["Pending", "done", ""])
    async def test_unknown_status(self, db_session, launch_task, admin, status):
        with pytest.raises(InvalidArgumentError, match="Invalid status"):
            await StageProgressService(db_session).advance_stage(admin, "task-1", "Design", status)

    async def test_unknown_status_leaves_ledger_and_task_untouched(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        before = await service.advance_stage(admin, "task-1", "Design", "In Progress")

        with pytest.raises(InvalidArgumentError):
            await service.advance_stage(admin, "task-1", "Design", "Pending", advance_to_next=True)

        assert await service.get_progress(admin, "task-1") == before
        task = await load_task(db_session)
        assert task.stage == "Design"

    async def test_missing_task(self, db_session, launch_task, admin):
        with pytest.raises(NotFoundError, match="Task not found"):
            await StageProgressService(db_session).advance_stage(admin, "task-404", "Design", "Done")

    async def test_task_of_another_tenant_is_not_found(self, db_session, launch_task, outsider):
        with pytest.raises(NotFoundError):
            await StageProgressService(db_session).advance_stage(outsider, "task-1", "Design", "Done")


class TestAdvanceStageAccess:
    async def test_member_is_forbidden_and_ledger_untouched(self, db_session, launch_task, member):
        service = StageProgressService(db_session)

        with pytest.raises(ForbiddenError, match="Only admin, stage owner, or task owner"):
            await service.advance_stage(member, "task-1", "Design", "Done", advance_to_next=True)

        assert await service.get_progress(member, "task-1") == []
        assert (await load_task(db_session)).stage == "Design"

    async def test_stage_owner_allowed_on_own_stage(self, db_session, launch_task, stage_owner):
        entries = await StageProgressService(db_session).advance_stage(stage_owner, "task-1", "Design", "Done")
        assert by_stage(entries)["Design"].status == "Done"

    async def test_stage_owner_forbidden_on_other_stage(self, db_session, launch_task, stage_owner):
        with pytest.raises(ForbiddenError):
            await StageProgressService(db_session).advance_stage(stage_owner, "task-1", "Approval", "Done")

    async def test_task_owner_allowed_on_any_stage(self, db_session, launch_task, task_owner):
        entries = await StageProgressService(db_session).advance_stage(task_owner, "task-1", "Approval", "Done")
        assert by_stage(entries)["Approval"].status == "Done"

    async def test_assignee_gets_no_access(self, db_session, launch_task, admin, member):
        service = StageProgressService(db_session)
        await service.advance_stage(
            admin, "task-1", "Approval", "In Progress", assigned_to="Max", assigned_to_email="member@acme.test"
        )

        with pytest.raises(ForbiddenError):
            await service.advance_stage(member, "task-1", "Approval", "Done")


class TestLedgerReads:
    async def test_empty_ledger(self, db_session, launch_task, member):
        assert await StageProgressService(db_session).get_progress(member, "task-1") == []

    async def test_reads_follow_live_registry_order(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        for stage_name in ("Brief", "Design", "Approval"):
            await service.advance_stage(admin, "task-1", stage_name, "In Progress")

        registry = StageRegistry(db_session)
        project = await registry.get_project(admin.tenant_id, "Launch")
        await registry.reorder_stages(project, ["Approval", "Brief", "Design"])

        entries = await service.get_progress(admin, "task-1")
        assert [(e.stage_name, e.sort_order) for e in entries] == [
            ("Approval", 10),
            ("Brief", 20),
            ("Design", 30),
        ]

    async def test_orphaned_rows_keep_stored_order(self, db_session, launch_task, admin):
        service = StageProgressService(db_session)
        await service.advance_stage(admin, "task-1", "Brief", "Done")
        await service.advance_stage(admin, "task-1", "Design", "In Progress")

        registry = StageRegistry(db_session)
        project = await registry.get_project(admin.tenant_id, "Launch")
        await registry.replace_stages(project, ["Design", "Review"])

        entries = await service.get_progress(admin, "task-1")
        assert [(e.stage_name, e.sort_order) for e in entries] == [("Brief", 10), ("Design", 10)]

        stages = (await db_session.execute(select(ProjectStage.stage_name))).scalars().all()
        assert "Brief" not in stages
