"""Stage registry Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class StageInput(BaseModel):
    stage_name: str = ""
    stage_owner_email: str | None = None


class StageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stage_name: str
    sort_order: int
    stage_owner_email: str = ""


class StageListResponse(BaseModel):
    project_name: str
    stages: list[StageResponse] = Field(default_factory=list)


class ReplaceStagesRequest(BaseModel):
    """Full replacement of a project's registry, in submitted order.

    Each item is a stage name or a ``{stage_name, stage_owner_email}`` object.
    """

    stages: list[str | StageInput] = Field(default_factory=list)


class ReorderStagesRequest(BaseModel):
    ordered_stage_names: list[str] = Field(default_factory=list)
