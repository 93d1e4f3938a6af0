"""CommentService — comments on tenant tasks."""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import ForbiddenError, InvalidArgumentError
from taskboard.db.models.task_comment import TaskComment
from taskboard.domain.access import Actor, can_delete_comment
from taskboard.domain.stages import normalize_email
from taskboard.services.task_service import TaskService

logger = structlog.get_logger(__name__)


class CommentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.tasks = TaskService(session)

    async def list_comments(self, actor: Actor, task_id: str) -> list[TaskComment]:
        """Comments of a task, oldest first."""
        task = await self.tasks.get_task(actor, task_id)
        result = await self.session.execute(
            select(TaskComment)
            .where(TaskComment.task_id == task.id, TaskComment.tenant_id == actor.tenant_id)
            .order_by(TaskComment.created_at.asc())
        )
        return list(result.scalars().all())

    async def create_comment(self, actor: Actor, task_id: str, body: str) -> TaskComment:
        """Any tenant member may comment on a task of the tenant.

        Raises:
            InvalidArgumentError: blank task id or body
            NotFoundError: no such task in the tenant
        """
        text = (body or "").strip()
        task = await self.tasks.get_task(actor, task_id)
        if not text:
            raise InvalidArgumentError("body is required")

        comment = TaskComment(
            tenant_id=actor.tenant_id,
            task_id=task.id,
            author_name=actor.display_name,
            author_email=normalize_email(actor.email),
            body=text,
        )
        self.session.add(comment)
        await self.session.commit()

        logger.info("task_comment_created", task_id=task.id, comment_id=comment.id)
        return comment

    async def delete_comment(self, actor: Actor, comment_id: str) -> None:
        """Delete a comment. Admin or author only; unknown ids are a no-op."""
        comment_id = (comment_id or "").strip()
        if not comment_id:
            raise InvalidArgumentError("id is required")

        result = await self.session.execute(
            select(TaskComment).where(TaskComment.id == comment_id, TaskComment.tenant_id == actor.tenant_id)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            return
        if not can_delete_comment(actor, comment.author_email):
            raise ForbiddenError("Can only delete your own comments")

        await self.session.delete(comment)
        await self.session.commit()

        logger.info("task_comment_deleted", task_id=comment.task_id, comment_id=comment_id)
