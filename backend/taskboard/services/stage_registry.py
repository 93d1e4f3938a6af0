"""StageRegistry — ordered, named stages of a project.

Two mutation paths keep the registry numbered in steps of 10: a full replace
(delete every row, insert the cleaned list) and a reorder that only rewrites
``sort_order``. Ledger rows reference stages by name and are never touched
here, so removing a stage orphans its ledger rows.
"""

from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import InvalidArgumentError, NotFoundError
from taskboard.db.models.project import Project
from taskboard.db.models.project_stage import ProjectStage
from taskboard.domain.stages import StageEntry, clean_stage_entries, sort_order_for

logger = structlog.get_logger(__name__)


class StageRegistry:
    """Data access for a project's stage registry."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_project(self, tenant_id: str, project_name: str) -> Project:
        """Load a project by name within a tenant.

        Raises:
            InvalidArgumentError: ``project_name`` is blank
            NotFoundError: no such project in the tenant
        """
        name = (project_name or "").strip()
        if not name:
            raise InvalidArgumentError("project_name is required")

        result = await self.session.execute(
            select(Project).where(Project.tenant_id == tenant_id, Project.name == name)
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def list_stages(self, project_id: str | None) -> list[ProjectStage]:
        """All stages of a project, in registry order."""
        if project_id is None:
            return []
        result = await self.session.execute(
            select(ProjectStage)
            .where(ProjectStage.project_id == project_id)
            .order_by(ProjectStage.sort_order.asc(), ProjectStage.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_stage(self, project_id: str | None, stage_name: str) -> ProjectStage | None:
        """One registered stage, or None when the name is not in the registry."""
        if project_id is None:
            return None
        result = await self.session.execute(
            select(ProjectStage)
            .where(ProjectStage.project_id == project_id, ProjectStage.stage_name == stage_name)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def replace_stages(self, project: Project, items: list) -> list[ProjectStage]:
        """Replace the whole registry with ``items`` in submitted order.

        Raises:
            InvalidArgumentError: nothing left after cleaning
        """
        entries = clean_stage_entries(items)
        if not entries:
            raise InvalidArgumentError("No valid stages")

        await self.session.execute(delete(ProjectStage).where(ProjectStage.project_id == project.id))
        stages = self.add_stages(project, entries)
        await self.session.commit()

        logger.info(
            "stage_registry_replaced",
            project_id=project.id,
            stage_count=len(stages),
        )
        return stages

    def add_stages(self, project: Project, entries: list[StageEntry]) -> list[ProjectStage]:
        """Stage new registry rows numbered (i+1)*10. Caller commits."""
        now = datetime.now(timezone.utc)
        stages = []
        for index, entry in enumerate(entries):
            stage = ProjectStage(
                project_id=project.id,
                stage_name=entry.stage_name,
                sort_order=sort_order_for(index),
                stage_owner_email=entry.stage_owner_email,
                created_at=now,
            )
            self.session.add(stage)
            stages.append(stage)
        return stages

    async def reorder_stages(self, project: Project, ordered_names: list[str]) -> list[ProjectStage]:
        """Renumber registered stages in the given order.

        Names and owners are left alone. Names are matched case-insensitively;
        unknown names are ignored and stages not listed keep their sort order.

        Raises:
            InvalidArgumentError: nothing left after cleaning
        """
        entries = clean_stage_entries(ordered_names)
        if not entries:
            raise InvalidArgumentError("ordered_stage_names is required")

        result = await self.session.execute(
            select(ProjectStage).where(
                ProjectStage.project_id == project.id,
                func.lower(ProjectStage.stage_name).in_([e.stage_name.lower() for e in entries]),
            )
        )
        by_key = {stage.stage_name.lower(): stage for stage in result.scalars().all()}

        for index, entry in enumerate(entries):
            stage = by_key.get(entry.stage_name.lower())
            if stage is not None:
                stage.sort_order = sort_order_for(index)

        await self.session.commit()
        logger.info(
            "stage_registry_reordered",
            project_id=project.id,
            requested=len(entries),
            matched=len(by_key),
        )
        return await self.list_stages(project.id)
