"""Project management API routes."""

from fastapi import APIRouter, Depends, Query

from taskboard.core.auth import require_actor
from taskboard.core.exceptions import InvalidArgumentError
from taskboard.db.base import get_session_factory
from taskboard.domain.access import Actor
from taskboard.schemas.projects import ProjectCreate, ProjectResponse, ProjectUpdate
from taskboard.services.project_service import ProjectService

router = APIRouter()


def _parse_archived(value: str) -> bool | None:
    value = value.strip().lower()
    if value == "all":
        return None
    if value in ("1", "true"):
        return True
    if value in ("0", "false", ""):
        return False
    raise InvalidArgumentError("archived must be 0, 1 or all")


@router.get("", response_model=list[ProjectResponse])
async def list_projects(archived: str = Query(default="0"), actor: Actor = Depends(require_actor)):
    """List projects visible to the caller."""
    factory = get_session_factory()
    async with factory() as session:
        return await ProjectService(session).list_projects(actor, _parse_archived(archived))


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(request: ProjectCreate, actor: Actor = Depends(require_actor)):
    """Create a project with an optional initial stage list. Admin only."""
    factory = get_session_factory()
    async with factory() as session:
        return await ProjectService(session).create_project(actor, request)


@router.put("/{project_name}", response_model=ProjectResponse)
async def update_project(project_name: str, request: ProjectUpdate, actor: Actor = Depends(require_actor)):
    """Transfer ownership or (un)archive a project. Admin or project owner."""
    factory = get_session_factory()
    async with factory() as session:
        return await ProjectService(session).update_project(actor, project_name, request)
