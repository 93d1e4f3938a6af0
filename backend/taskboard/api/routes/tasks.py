"""Task API routes: tenant scoped."""

from fastapi import APIRouter, Depends, Query

from taskboard.core.auth import require_actor
from taskboard.db.base import get_session_factory
from taskboard.domain.access import Actor
from taskboard.schemas.tasks import ReorderTasksRequest, TaskCreate, TaskResponse, TaskUpdate
from taskboard.services.task_service import TaskService

router = APIRouter()


@router.get("", response_model=list[TaskResponse])
async def list_tasks(project_name: str | None = Query(default=None), actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        return await TaskService(session).list_tasks(actor, project_name)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(request: TaskCreate, actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        return await TaskService(session).create_task(actor, request)


@router.post("/reorder")
async def reorder_tasks(request: ReorderTasksRequest, actor: Actor = Depends(require_actor)):
    """Batch board moves. Admin, task owner, or owner of the task's current stage."""
    factory = get_session_factory()
    async with factory() as session:
        updated = await TaskService(session).reorder_tasks(actor, request.updates)
        return {"ok": True, "updated": updated}


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        return await TaskService(session).get_task(actor, task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: str, request: TaskUpdate, actor: Actor = Depends(require_actor)):
    """Partially update a task. Admin or task owner."""
    factory = get_session_factory()
    async with factory() as session:
        return await TaskService(session).update_task(actor, task_id, request)


@router.delete("/{task_id}")
async def delete_task(task_id: str, actor: Actor = Depends(require_actor)):
    """Delete a task and its stage progress. Admin or task owner."""
    factory = get_session_factory()
    async with factory() as session:
        await TaskService(session).delete_task(actor, task_id)
        return {"ok": True}
