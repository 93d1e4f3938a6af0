"""Access policy: who may operate stages, projects, tasks and comments.

Pure functions -- no side effects, no DB access.
"""

from dataclasses import dataclass

from taskboard.domain.stages import normalize_email

# Roles an admin can assign. "owner" is only granted by tenant bootstrap.
MEMBER_ROLES = ("admin", "manager", "member", "viewer")


@dataclass(frozen=True)
class Actor:
    """Authenticated principal resolved to a tenant membership."""

    user_id: str
    email: str
    display_name: str
    tenant_id: str
    role: str
    is_tenant_admin: bool = False


def can_operate_stage(actor: Actor, task, stage_owner_email: str | None) -> bool:
    """Whether ``actor`` may change stage progress on ``task``.

    ``task`` is anything with an ``owner_email`` attribute.

    Allowed for tenant admins, the registered owner of the stage, and the
    task's owner. Being the ledger row's assignee grants nothing.
    """
    if actor.is_tenant_admin:
        return True

    me = normalize_email(actor.email)
    if not me:
        return False
    return me == normalize_email(stage_owner_email) or me == normalize_email(task.owner_email)


def can_manage_project(actor: Actor, project_owner_email: str | None) -> bool:
    """Admins and the project's owner may reorder stages and edit the project."""
    if actor.is_tenant_admin:
        return True
    me = normalize_email(actor.email)
    return bool(me) and me == normalize_email(project_owner_email)


def can_edit_task(actor: Actor, task_owner_email: str | None) -> bool:
    """Admins and the task's owner may edit or delete a task."""
    if actor.is_tenant_admin:
        return True
    me = normalize_email(actor.email)
    return bool(me) and me == normalize_email(task_owner_email)


def can_delete_comment(actor: Actor, author_email: str | None) -> bool:
    """Admins and the comment's author may delete a comment."""
    return can_edit_task(actor, author_email)
