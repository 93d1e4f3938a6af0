"""Tenant member management Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    email: str | None = None
    role: str
    created_at: datetime


class InviteMemberRequest(BaseModel):
    email: str = ""
    name: str = ""
    role: str = "member"


class ChangeRoleRequest(BaseModel):
    email: str = ""
    role: str = ""
