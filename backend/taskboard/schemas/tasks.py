"""Task Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TaskCreate(BaseModel):
    task_name: str = ""
    description: str = ""
    owner: str | None = None
    owner_email: str | None = None
    type: str = "Other"
    priority: str = "Medium"
    status: str = "To Do"
    due_date: str = ""
    external_stakeholders: str = ""
    project_name: str = ""
    stage: str = ""
    sort_order: int = 0


class TaskUpdate(BaseModel):
    """Partial update. Only fields present in the request body are written."""

    task_name: str | None = None
    description: str | None = None
    owner: str | None = None
    owner_email: str | None = None
    type: str | None = None
    priority: str | None = None
    status: str | None = None
    due_date: str | None = None
    external_stakeholders: str | None = None
    project_name: str | None = None
    stage: str | None = None
    sort_order: int | None = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    task_name: str
    description: str
    owner: str
    owner_email: str
    type: str
    priority: str
    status: str
    due_date: str
    external_stakeholders: str
    project_name: str
    stage: str
    sort_order: int
    created_at: datetime
    updated_at: datetime


class TaskOrderUpdate(BaseModel):
    """New position for one task; ``status`` is written only when given."""

    id: str = ""
    sort_order: int
    status: str | None = None


class ReorderTasksRequest(BaseModel):
    updates: list[TaskOrderUpdate] = Field(default_factory=list)
