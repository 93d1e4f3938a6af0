"""ProjectStage model: one row of a project's ordered stage registry."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from taskboard.db.base import Base


class ProjectStage(Base):
    __tablename__ = "project_stages"
    __table_args__ = (UniqueConstraint("project_id", "stage_name", name="uq_project_stage_name"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)

    # Natural key: tasks and ledger rows reference the stage by name
    stage_name = Column(String(255), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)  # (index + 1) * 10
    stage_owner_email = Column(String(320), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
