"""Stage progress API routes."""

from fastapi import APIRouter, Depends

from taskboard.core.auth import require_actor
from taskboard.db.base import get_session_factory
from taskboard.domain.access import Actor
from taskboard.schemas.stage_progress import (
    AdvanceStageRequest,
    AdvanceStageResponse,
    StageProgressResponse,
)
from taskboard.services.stage_progress import StageProgressService

router = APIRouter()


@router.get("/{task_id}/stage-progress", response_model=StageProgressResponse)
async def get_stage_progress(task_id: str, actor: Actor = Depends(require_actor)):
    """All stage progress rows of a task, ordered by stage.

    Raises:
        NotFoundError(404): Task not found in the caller's tenant
    """
    factory = get_session_factory()
    async with factory() as session:
        progress = await StageProgressService(session).get_progress(actor, task_id)
        return StageProgressResponse(task_id=task_id, progress=progress)


@router.post("/{task_id}/stage-progress", response_model=AdvanceStageResponse)
async def advance_stage(task_id: str, request: AdvanceStageRequest, actor: Actor = Depends(require_actor)):
    """Set a task's status at one stage, optionally advancing to the next.

    Raises:
        InvalidArgumentError(400): Missing stage_name or unknown status
        NotFoundError(404): Task not found in the caller's tenant
        ForbiddenError(403): Caller is not admin, stage owner or task owner
    """
    factory = get_session_factory()
    async with factory() as session:
        progress = await StageProgressService(session).advance_stage(
            actor,
            task_id,
            request.stage_name,
            request.status,
            assigned_to=request.assigned_to,
            assigned_to_email=request.assigned_to_email,
            advance_to_next=request.advance_to_next,
        )
        return AdvanceStageResponse(task_id=task_id, progress=progress)
