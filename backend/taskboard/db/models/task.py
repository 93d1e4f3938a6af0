"""Task model: a unit of work positioned at one stage of its project."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from taskboard.db.base import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=True, index=True)

    task_name = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    owner = Column(String(255), nullable=False, default="")
    owner_email = Column(String(320), nullable=False, default="")
    type = Column(String(100), nullable=False, default="Other")
    priority = Column(String(50), nullable=False, default="Medium")
    status = Column(String(50), nullable=False, default="To Do")
    due_date = Column(String(50), nullable=False, default="")
    external_stakeholders = Column(Text, nullable=False, default="")
    sort_order = Column(Integer, nullable=False, default=0)

    # Current stage, by name, in the project's stage registry ("" = no stage)
    stage = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    project = relationship("Project", lazy="joined")

    @property
    def project_name(self) -> str:
        return self.project.name if self.project is not None else ""
