"""Identity and tenant bootstrap routes."""

from fastapi import APIRouter, Depends

from taskboard.core.auth import AuthUser, require_actor, require_auth
from taskboard.db.base import get_session_factory
from taskboard.domain.access import Actor
from taskboard.schemas.tenants import BootstrapTenantRequest, BootstrapTenantResponse, MeResponse
from taskboard.services.tenant_service import TenantService

router = APIRouter()


@router.get("/me", response_model=MeResponse)
async def get_me(actor: Actor = Depends(require_actor)):
    """The caller as resolved to a tenant membership."""
    return MeResponse(
        user_id=actor.user_id,
        email=actor.email,
        display_name=actor.display_name,
        tenant_id=actor.tenant_id,
        role=actor.role,
        is_tenant_admin=actor.is_tenant_admin,
    )


@router.post("/tenants/bootstrap", response_model=BootstrapTenantResponse)
async def bootstrap_tenant(request: BootstrapTenantRequest, user: AuthUser = Depends(require_auth)):
    """Create a tenant owned by the caller unless they already belong to one."""
    factory = get_session_factory()
    async with factory() as session:
        member, created = await TenantService(session).bootstrap(
            user.user_id, user.email, user.name, request.name
        )
        return BootstrapTenantResponse(tenant_id=member.tenant_id, role=member.role, created=created)
