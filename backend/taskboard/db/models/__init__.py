"""Re-export all models so Base.metadata sees them."""

from taskboard.db.models.project import Project
from taskboard.db.models.project_stage import ProjectStage
from taskboard.db.models.task import Task
from taskboard.db.models.task_comment import TaskComment
from taskboard.db.models.task_stage_progress import TaskStageProgress
from taskboard.db.models.tenant import Tenant, TenantMember

__all__ = [
    "Project",
    "ProjectStage",
    "Task",
    "TaskComment",
    "TaskStageProgress",
    "Tenant",
    "TenantMember",
]
