"""StageProgressService — the stage progress workflow engine.

Applies one status change for one (task, stage) pair, optionally advances the
task to the next registered stage, and returns the task's full ledger.

Ledger writes are single ``INSERT ... ON CONFLICT DO UPDATE`` statements keyed
by (task_id, stage_name). ``started_at`` and ``completed_at`` are only filled
when null: re-opening a Done stage and completing it again keeps the first
``completed_at`` (first completion wins).

The ledger upsert and the move of the task's stage pointer commit together.
"""

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import ForbiddenError, InternalFailureError, InvalidArgumentError
from taskboard.db.models.project_stage import ProjectStage
from taskboard.db.models.task import Task
from taskboard.db.models.task_stage_progress import TaskStageProgress
from taskboard.domain.access import Actor, can_operate_stage
from taskboard.domain.stages import StageStatus, next_stage_name, normalize_email, parse_status
from taskboard.schemas.stage_progress import StageProgressEntry
from taskboard.services.stage_registry import StageRegistry
from taskboard.services.task_service import TaskService

logger = structlog.get_logger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class StageProgressService:
    """Service layer for per-stage task progress."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.registry = StageRegistry(session)
        self.tasks = TaskService(session)

    async def get_progress(self, actor: Actor, task_id: str) -> list[StageProgressEntry]:
        """Ledger of a task in the actor's tenant, ordered by stage.

        Raises:
            InvalidArgumentError: ``task_id`` is blank
            NotFoundError: no such task in the tenant
        """
        task = await self.tasks.get_task(actor, task_id)
        return await self.list_entries(task)

    async def advance_stage(
        self,
        actor: Actor,
        task_id: str,
        stage_name: str,
        status: str | None,
        assigned_to: str | None = None,
        assigned_to_email: str | None = None,
        advance_to_next: bool = False,
    ) -> list[StageProgressEntry]:
        """Set ``status`` for (task, stage) and return the task's ledger.

        ``status`` defaults to "To Do" when None. Assignment defaults to the
        actor. With ``advance_to_next`` and a Done status, the task moves to
        the next registered stage and that stage gets a To Do row if it has
        none yet; at the last stage this is a no-op. Completing a stage that is
        not in the registry advances to the first registered stage.

        Raises:
            InvalidArgumentError: blank ids or an unknown status
            NotFoundError: no such task in the tenant
            ForbiddenError: actor is not admin, stage owner or task owner
            InternalFailureError: the store rejected a write
        """
        task_id = (task_id or "").strip()
        stage_name = (stage_name or "").strip()
        if not task_id:
            raise InvalidArgumentError("task_id is required")
        if not stage_name:
            raise InvalidArgumentError("stage_name is required")

        new_status = parse_status(StageStatus.TODO if status is None else status)
        if new_status is None:
            raise InvalidArgumentError("Invalid status")

        task = await self.tasks.get_task(actor, task_id)
        stage = await self.registry.get_stage(task.project_id, stage_name)

        if not can_operate_stage(actor, task, stage.stage_owner_email if stage else None):
            logger.info(
                "stage_progress_forbidden",
                task_id=task.id,
                stage_name=stage_name,
                actor_email=actor.email,
            )
            raise ForbiddenError("Only admin, stage owner, or task owner can update stage progress")

        # Unregistered stage: order 0
        sort_order = stage.sort_order if stage is not None else 0
        assignee = (assigned_to or actor.display_name or "").strip()
        assignee_email = normalize_email(assigned_to_email or actor.email)
        now = datetime.now(timezone.utc)

        try:
            await self._upsert_entry(task, stage_name, sort_order, new_status, assignee, assignee_email, now)
            logger.info(
                "stage_progress_updated",
                task_id=task.id,
                stage_name=stage_name,
                status=new_status.value,
                assigned_to_email=assignee_email,
            )

            if advance_to_next and new_status == StageStatus.DONE:
                await self._auto_advance(task, stage_name, now)

            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "stage_progress_write_failed",
                task_id=task_id,
                stage_name=stage_name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise InternalFailureError("Failed to update stage progress") from exc

        return await self.list_entries(task)

    async def list_entries(self, task: Task) -> list[StageProgressEntry]:
        """Ledger rows for ``task`` ordered by the live registry sort order.

        Rows whose stage left the registry fall back to their stored order.
        """
        live_order = func.coalesce(ProjectStage.sort_order, TaskStageProgress.sort_order)
        result = await self.session.execute(
            select(TaskStageProgress, live_order.label("live_sort_order"))
            .outerjoin(
                ProjectStage,
                and_(
                    ProjectStage.project_id == task.project_id,
                    ProjectStage.stage_name == TaskStageProgress.stage_name,
                ),
            )
            .where(TaskStageProgress.task_id == task.id)
            .order_by(live_order.asc(), TaskStageProgress.created_at.asc(), TaskStageProgress.stage_name.asc())
            .execution_options(populate_existing=True)
        )
        return [
            StageProgressEntry.model_validate(entry).model_copy(update={"sort_order": live_sort_order})
            for entry, live_sort_order in result.all()
        ]

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect]
        except KeyError:
            raise InternalFailureError(f"Unsupported database dialect: {dialect}") from None

    async def _upsert_entry(
        self,
        task: Task,
        stage_name: str,
        sort_order: int,
        status: StageStatus,
        assigned_to: str,
        assigned_to_email: str,
        now: datetime,
    ) -> None:
        """Insert or update the (task, stage) row in one statement.

        New rows: started_at unless To Do, completed_at only when Done.
        Existing rows: status and assignment overwritten, sort_order kept,
        timestamps filled only if still null.
        """
        stmt = self._insert()(TaskStageProgress).values(
            id=str(uuid.uuid4()),
            task_id=task.id,
            project_id=task.project_id,
            stage_name=stage_name,
            sort_order=sort_order,
            status=status.value,
            assigned_to=assigned_to,
            assigned_to_email=assigned_to_email,
            started_at=now if status != StageStatus.TODO else None,
            completed_at=now if status == StageStatus.DONE else None,
            created_at=now,
            updated_at=now,
        )

        updates = {
            "status": stmt.excluded.status,
            "assigned_to": stmt.excluded.assigned_to,
            "assigned_to_email": stmt.excluded.assigned_to_email,
            "updated_at": stmt.excluded.updated_at,
        }
        if status == StageStatus.DONE:
            updates["completed_at"] = func.coalesce(TaskStageProgress.completed_at, stmt.excluded.updated_at)
        if status == StageStatus.IN_PROGRESS:
            updates["started_at"] = func.coalesce(TaskStageProgress.started_at, stmt.excluded.updated_at)

        await self.session.execute(
            stmt.on_conflict_do_update(index_elements=["task_id", "stage_name"], set_=updates)
        )

    async def _auto_advance(self, task: Task, stage_name: str, now: datetime) -> None:
        """Point the task at the stage after ``stage_name`` and seed its row."""
        stages = await self.registry.list_stages(task.project_id)
        next_name = next_stage_name([s.stage_name for s in stages], stage_name)
        if next_name is None:
            logger.info("task_auto_advance_skipped", task_id=task.id, stage_name=stage_name)
            return

        next_stage = next(s for s in stages if s.stage_name == next_name)
        previous_stage = task.stage
        task.stage = next_name
        task.updated_at = now

        stmt = self._insert()(TaskStageProgress).values(
            id=str(uuid.uuid4()),
            task_id=task.id,
            project_id=task.project_id,
            stage_name=next_name,
            sort_order=next_stage.sort_order,
            status=StageStatus.TODO.value,
            assigned_to="",
            assigned_to_email="",
            started_at=None,
            completed_at=None,
            created_at=now,
            updated_at=now,
        )
        await self.session.execute(stmt.on_conflict_do_nothing(index_elements=["task_id", "stage_name"]))

        logger.info(
            "task_auto_advanced",
            task_id=task.id,
            from_stage=previous_stage,
            to_stage=next_name,
        )
