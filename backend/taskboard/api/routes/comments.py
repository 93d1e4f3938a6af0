"""Task comment routes."""

from fastapi import APIRouter, Depends

from taskboard.core.auth import require_actor
from taskboard.db.base import get_session_factory
from taskboard.domain.access import Actor
from taskboard.schemas.comments import CommentCreate, CommentResponse
from taskboard.services.comment_service import CommentService

router = APIRouter()


@router.get("/tasks/{task_id}/comments", response_model=list[CommentResponse])
async def list_comments(task_id: str, actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        return await CommentService(session).list_comments(actor, task_id)


@router.post("/tasks/{task_id}/comments", response_model=CommentResponse, status_code=201)
async def create_comment(task_id: str, request: CommentCreate, actor: Actor = Depends(require_actor)):
    factory = get_session_factory()
    async with factory() as session:
        return await CommentService(session).create_comment(actor, task_id, request.body)


@router.delete("/comments/{comment_id}")
async def delete_comment(comment_id: str, actor: Actor = Depends(require_actor)):
    """Delete a comment. Admin or author."""
    factory = get_session_factory()
    async with factory() as session:
        await CommentService(session).delete_comment(actor, comment_id)
        return {"ok": True}
