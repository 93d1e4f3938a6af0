"""Stage progress Pydantic schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StageProgressEntry(BaseModel):
    """One ledger row: a task's progress through one stage."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    stage_name: str
    sort_order: int
    status: str
    assigned_to: str = ""
    assigned_to_email: str = ""
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AdvanceStageRequest(BaseModel):
    """Request to set a task's status at one stage.

    ``status`` is validated by the service so that an unknown value yields the
    same invalid-argument error as any other bad input.
    """

    stage_name: str = ""
    status: str | None = Field(default=None, description="To Do, In Progress or Done (default To Do)")
    assigned_to: str | None = Field(default=None, description="Display name; defaults to the caller")
    assigned_to_email: str | None = Field(default=None, description="Identity; defaults to the caller")
    advance_to_next: bool = Field(
        default=False, description="Move the task to the next stage when status is Done"
    )


class StageProgressResponse(BaseModel):
    """Full ledger for a task, ordered by stage sort order."""

    task_id: str
    progress: list[StageProgressEntry] = Field(default_factory=list)


class AdvanceStageResponse(StageProgressResponse):
    """Ledger after a stage progress update."""

    ok: bool = True
