"""Project Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskboard.schemas.stages import StageInput


class ProjectCreate(BaseModel):
    name: str = ""
    owner_email: str | None = None
    owner_name: str | None = None
    stages: list[str | StageInput] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    """Ownership transfer and/or archive flag. Omitted fields are unchanged."""

    owner_email: str | None = None
    owner_name: str | None = None
    archived: bool | None = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    owner_name: str
    owner_email: str
    archived: bool
    created_at: datetime
    updated_at: datetime
