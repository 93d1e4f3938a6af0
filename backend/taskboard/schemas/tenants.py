"""Tenant and identity Pydantic schemas."""

from pydantic import BaseModel


class BootstrapTenantRequest(BaseModel):
    name: str = "My Workspace"


class BootstrapTenantResponse(BaseModel):
    tenant_id: str
    role: str
    created: bool


class MeResponse(BaseModel):
    user_id: str
    email: str
    display_name: str
    tenant_id: str
    role: str
    is_tenant_admin: bool
