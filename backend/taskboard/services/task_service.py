"""TaskService — tenant-scoped task records."""

from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from taskboard.db.models.project import Project
from taskboard.db.models.task import Task
from taskboard.db.models.task_comment import TaskComment
from taskboard.db.models.task_stage_progress import TaskStageProgress
from taskboard.domain.access import Actor, can_edit_task, can_operate_stage
from taskboard.domain.stages import normalize_email
from taskboard.schemas.tasks import TaskCreate, TaskOrderUpdate, TaskUpdate
from taskboard.services.stage_registry import StageRegistry

logger = structlog.get_logger(__name__)


class TaskService:
    """Service layer for task records.

    A task in another tenant is reported exactly like a missing one.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.registry = StageRegistry(session)

    async def get_task(self, actor: Actor, task_id: str) -> Task:
        """Load a task in the actor's tenant.

        Raises:
            InvalidArgumentError: ``task_id`` is blank
            NotFoundError: no such task in the tenant
        """
        task_id = (task_id or "").strip()
        if not task_id:
            raise InvalidArgumentError("task_id is required")

        result = await self.session.execute(
            select(Task)
            .where(Task.id == task_id, Task.tenant_id == actor.tenant_id)
            .execution_options(populate_existing=True)
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def list_tasks(self, actor: Actor, project_name: str | None = None) -> list[Task]:
        """Tasks of the tenant, most recently updated first."""
        stmt = select(Task).where(Task.tenant_id == actor.tenant_id)
        if project_name:
            stmt = stmt.join(Project, Project.id == Task.project_id).where(Project.name == project_name.strip())
        stmt = stmt.order_by(Task.updated_at.desc(), Task.created_at.desc())

        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def create_task(self, actor: Actor, request: TaskCreate) -> Task:
        task_name = request.task_name.strip()
        if not task_name:
            raise InvalidArgumentError("task_name is required")

        project_id = await self._resolve_project_id(actor, request.project_name)
        now = datetime.now(timezone.utc)
        task = Task(
            tenant_id=actor.tenant_id,
            project_id=project_id,
            task_name=task_name,
            description=request.description,
            owner=request.owner or actor.display_name,
            owner_email=normalize_email(request.owner_email or actor.email),
            type=request.type or "Other",
            priority=request.priority or "Medium",
            status=request.status or "To Do",
            due_date=request.due_date,
            external_stakeholders=request.external_stakeholders,
            stage=request.stage.strip(),
            sort_order=request.sort_order,
            created_at=now,
            updated_at=now,
        )
        self.session.add(task)
        await self.session.commit()

        logger.info("task_created", task_id=task.id, tenant_id=actor.tenant_id, project_id=project_id)
        return await self.get_task(actor, task.id)

    async def update_task(self, actor: Actor, task_id: str, request: TaskUpdate) -> Task:
        """Apply the fields present in ``request``. Admin or task owner only."""
        task = await self.get_task(actor, task_id)
        if not can_edit_task(actor, task.owner_email):
            raise ForbiddenError("You can only edit tasks assigned to you.")

        changes = request.model_dump(exclude_unset=True)
        if not changes:
            raise InvalidArgumentError("No updatable fields provided")

        if "project_name" in changes:
            task.project_id = await self._resolve_project_id(actor, changes.pop("project_name") or "")
        if "owner_email" in changes:
            changes["owner_email"] = normalize_email(changes["owner_email"])
        if "task_name" in changes and not (changes["task_name"] or "").strip():
            raise InvalidArgumentError("task_name cannot be empty")

        for field, value in changes.items():
            if value is None:
                value = 0 if field == "sort_order" else ""
            setattr(task, field, value)
        task.updated_at = datetime.now(timezone.utc)
        await self.session.commit()

        logger.info("task_updated", task_id=task.id, fields=sorted(changes))
        return await self.get_task(actor, task.id)

    async def delete_task(self, actor: Actor, task_id: str) -> None:
        """Delete a task with its stage progress ledger and comments. Admin or task owner only."""
        task = await self.get_task(actor, task_id)
        if not can_edit_task(actor, task.owner_email):
            raise ForbiddenError("You can only delete tasks assigned to you.")

        await self.session.execute(delete(TaskStageProgress).where(TaskStageProgress.task_id == task.id))
        await self.session.execute(delete(TaskComment).where(TaskComment.task_id == task.id))
        await self.session.delete(task)
        await self.session.commit()

        logger.info("task_deleted", task_id=task_id, tenant_id=actor.tenant_id)

    async def reorder_tasks(self, actor: Actor, updates: list[TaskOrderUpdate]) -> int:
        """Apply a batch of board moves: new ``sort_order`` and optionally ``status``.

        Every task in the batch must be movable by the actor (admin, task owner,
        or owner of the stage the task sits at), otherwise nothing is written.
        Ids that are blank or not in the tenant are skipped. Returns the number
        of tasks updated.

        Raises:
            InvalidArgumentError: empty batch
            ForbiddenError: a task in the batch is not movable by the actor
        """
        if not updates:
            raise InvalidArgumentError("updates is required")

        by_id = {u.id.strip(): u for u in updates if (u.id or "").strip()}
        if not by_id:
            return 0
        result = await self.session.execute(
            select(Task).where(Task.id.in_(list(by_id)), Task.tenant_id == actor.tenant_id)
        )
        tasks = list(result.scalars().unique().all())

        for task in tasks:
            stage = await self.registry.get_stage(task.project_id, task.stage)
            if not can_operate_stage(actor, task, stage.stage_owner_email if stage else None):
                raise ForbiddenError("You can only reorder tasks you own or tasks in stages you own")

        now = datetime.now(timezone.utc)
        for task in tasks:
            update = by_id[task.id]
            task.sort_order = update.sort_order
            if update.status:
                task.status = update.status
            task.updated_at = now
        await self.session.commit()

        logger.info("tasks_reordered", tenant_id=actor.tenant_id, requested=len(by_id), updated=len(tasks))
        return len(tasks)

    async def _resolve_project_id(self, actor: Actor, project_name: str) -> str | None:
        name = (project_name or "").strip()
        if not name:
            return None
        result = await self.session.execute(
            select(Project.id).where(Project.tenant_id == actor.tenant_id, Project.name == name)
        )
        project_id = result.scalar_one_or_none()
        if project_id is None:
            raise InvalidArgumentError(f"Unknown project: {name}")
        return project_id
