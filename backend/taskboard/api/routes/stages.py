"""Stage registry API routes."""

from fastapi import APIRouter, Depends

from taskboard.core.auth import require_actor, require_admin
from taskboard.core.exceptions import ForbiddenError
from taskboard.db.base import get_session_factory
from taskboard.domain.access import Actor, can_manage_project
from taskboard.schemas.stages import (
    ReorderStagesRequest,
    ReplaceStagesRequest,
    StageListResponse,
    StageResponse,
)
from taskboard.services.stage_registry import StageRegistry

router = APIRouter()


def _stage_list(project_name: str, stages) -> StageListResponse:
    return StageListResponse(
        project_name=project_name,
        stages=[StageResponse.model_validate(s) for s in stages],
    )


@router.get("/{project_name}/stages", response_model=StageListResponse)
async def list_stages(project_name: str, actor: Actor = Depends(require_actor)):
    """Stages of a project in registry order."""
    factory = get_session_factory()
    async with factory() as session:
        registry = StageRegistry(session)
        project = await registry.get_project(actor.tenant_id, project_name)
        return _stage_list(project.name, await registry.list_stages(project.id))


@router.put("/{project_name}/stages", response_model=StageListResponse)
async def replace_stages(
    project_name: str,
    request: ReplaceStagesRequest,
    actor: Actor = Depends(require_admin),
):
    """Replace the whole stage registry of a project. Admin only."""
    factory = get_session_factory()
    async with factory() as session:
        registry = StageRegistry(session)
        project = await registry.get_project(actor.tenant_id, project_name)
        stages = await registry.replace_stages(project, request.stages)
        return _stage_list(project.name, stages)


@router.put("/{project_name}/stages/reorder", response_model=StageListResponse)
async def reorder_stages(
    project_name: str,
    request: ReorderStagesRequest,
    actor: Actor = Depends(require_actor),
):
    """Renumber stages in the given order. Admin or project owner."""
    factory = get_session_factory()
    async with factory() as session:
        registry = StageRegistry(session)
        project = await registry.get_project(actor.tenant_id, project_name)
        if not can_manage_project(actor, project.owner_email):
            raise ForbiddenError("Only admin or project owner can reorder stages")
        stages = await registry.reorder_stages(project, request.ordered_stage_names)
        return _stage_list(project.name, stages)
