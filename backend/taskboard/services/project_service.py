"""ProjectService — tenant projects and their initial stage registry."""

from datetime import datetime, timezone

import structlog
from sqlalchemy import and_, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import ForbiddenError, InvalidArgumentError
from taskboard.db.models.project import Project
from taskboard.db.models.project_stage import ProjectStage
from taskboard.db.models.task import Task
from taskboard.domain.access import Actor, can_manage_project
from taskboard.domain.stages import clean_stage_entries, normalize_email
from taskboard.schemas.projects import ProjectCreate, ProjectUpdate
from taskboard.services.stage_registry import StageRegistry

logger = structlog.get_logger(__name__)


class ProjectService:
    """Service layer for projects."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.registry = StageRegistry(session)

    async def list_projects(self, actor: Actor, archived: bool | None = False) -> list[Project]:
        """Projects visible to ``actor``; ``archived=None`` lists both kinds.

        Admins see every project in the tenant. Members see projects where they
        own a task, or own the stage a task currently sits at.
        """
        stmt = select(Project).where(Project.tenant_id == actor.tenant_id)
        if archived is not None:
            stmt = stmt.where(Project.archived.is_(archived))

        if not actor.is_tenant_admin:
            me = normalize_email(actor.email)
            owns_stage = exists().where(
                and_(
                    ProjectStage.project_id == Task.project_id,
                    ProjectStage.stage_name == Task.stage,
                    ProjectStage.stage_owner_email == me,
                )
            )
            stmt = stmt.where(
                exists().where(
                    and_(
                        Task.project_id == Project.id,
                        or_(Task.owner_email == me, owns_stage),
                    )
                )
            )

        result = await self.session.execute(stmt.order_by(Project.archived.asc(), Project.name.asc()))
        return list(result.scalars().all())

    async def create_project(self, actor: Actor, request: ProjectCreate) -> Project:
        """Create a project and, optionally, its stage registry. Admin only."""
        if not actor.is_tenant_admin:
            raise ForbiddenError("Only admin can create projects")

        name = request.name.strip()
        if not name:
            raise InvalidArgumentError("name is required")
        owner_email = normalize_email(request.owner_email or actor.email)
        if not owner_email:
            raise InvalidArgumentError("owner_email is required")
        default_name = actor.display_name if owner_email == normalize_email(actor.email) else ""
        owner_name = (request.owner_name or default_name or "").strip() or owner_email.split("@")[0]

        result = await self.session.execute(
            select(Project.id).where(Project.tenant_id == actor.tenant_id, Project.name == name)
        )
        if result.scalar_one_or_none() is not None:
            raise InvalidArgumentError(f"Project already exists: {name}")

        project = Project(
            tenant_id=actor.tenant_id,
            name=name,
            owner_name=owner_name,
            owner_email=owner_email,
            archived=False,
        )
        self.session.add(project)
        await self.session.flush()

        stages = self.registry.add_stages(project, clean_stage_entries(request.stages))
        await self.session.commit()
        await self.session.refresh(project)

        logger.info(
            "project_created",
            project_id=project.id,
            tenant_id=actor.tenant_id,
            stage_count=len(stages),
        )
        return project

    async def update_project(self, actor: Actor, project_name: str, request: ProjectUpdate) -> Project:
        """Transfer ownership and/or (un)archive. Admin or project owner only."""
        project = await self.registry.get_project(actor.tenant_id, project_name)
        if not can_manage_project(actor, project.owner_email):
            raise ForbiddenError("Only admin or project owner can update project")

        changed = False
        if request.owner_email is not None:
            next_owner = normalize_email(request.owner_email)
            if not next_owner:
                raise InvalidArgumentError("owner_email cannot be empty")
            if next_owner != project.owner_email:
                project.owner_email = next_owner
                project.owner_name = (request.owner_name or "").strip() or next_owner.split("@")[0]
                changed = True

        if request.archived is not None and request.archived != project.archived:
            project.archived = request.archived
            changed = True

        if changed:
            project.updated_at = datetime.now(timezone.utc)
            await self.session.commit()
            await self.session.refresh(project)
            logger.info("project_updated", project_id=project.id, archived=project.archived)

        return project
