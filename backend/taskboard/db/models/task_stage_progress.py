"""TaskStageProgress model: the stage progress ledger.

One row per (task, stage) pair that has ever been touched. Rows are upserted,
not appended: only the latest status per stage survives, while ``started_at``
and ``completed_at`` keep the first entry into "In Progress" and "Done".
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from taskboard.db.base import Base


class TaskStageProgress(Base):
    __tablename__ = "task_stage_progress"
    __table_args__ = (UniqueConstraint("task_id", "stage_name", name="uq_task_stage_progress"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    task_id = Column(String(36), ForeignKey("tasks.id"), nullable=False, index=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=True, index=True)
    stage_name = Column(String(255), nullable=False)

    # Registry sort_order at (re)creation; readers prefer the live registry value
    sort_order = Column(Integer, nullable=False, default=0)

    status = Column(String(50), nullable=False, default="To Do")  # To Do, In Progress, Done
    assigned_to = Column(String(255), nullable=False, default="")
    assigned_to_email = Column(String(320), nullable=False, default="")

    started_at = Column(DateTime(timezone=True), nullable=True)  # first start, never overwritten
    completed_at = Column(DateTime(timezone=True), nullable=True)  # first completion, never overwritten

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
